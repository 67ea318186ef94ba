"""
Image field type for OneNode documents.

An Image holds exactly one payload representation:
- raw bytes (``bytes``, ``bytearray``, ``memoryview``)
- a binary file-like handle (anything with ``read``)
- a base64 string (optionally given as a ``data:`` URL)
- an external URL (a string starting with ``http``), already processed

Binary and base64 payloads never appear in the wire object; they travel as
separate multipart parts (see ``onenode.binary``). Only URL payloads are
round-tripped through the ``data`` wire key.

The ``Image(...)`` constructor infers the representation of a string
payload (data URL, then http prefix, then base64). The explicit
constructors ``from_bytes``, ``from_base64``, ``from_url`` and
``from_file`` skip inference entirely.

Example:
    >>> photo = Image.from_file("cat.png").enable_index(vision_model="gpt-4o")
    >>> photo.serialize()
    {'xImage': {'mime_type': 'image/png', 'index': True, 'vision_model': 'gpt-4o'}}

Invariants:
    - mime_type is only checked against the supported set by enable_index()
    - A non-URL string payload is valid base64
    - Values decoded from the service are not re-validated
"""

from __future__ import annotations

import base64
import re
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any, Union

from .errors import ValidationError
from .models import EmbeddingModel, VisionModel
from .validate import is_valid_base64, validate_index_options, validate_mime_type

IMAGE_MARKER = "xImage"

# Suffix of side-table paths carrying an image payload
IMAGE_DATA_SUFFIX = f"{IMAGE_MARKER}.data"

IMAGE_OPTION_KEYS: tuple[str, ...] = (
    "emb_model",
    "vision_model",
    "max_chunk_size",
    "chunk_overlap",
    "is_separator_regex",
    "separators",
    "keep_separator",
)

DEFAULT_MIME_TYPE = "image/jpeg"

ImagePayload = Union[str, bytes, bytearray, memoryview, IO[bytes]]

_DATA_URL_RE = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)

_EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def mime_type_from_name(name: str) -> str:
    """Guess MIME type from a file name or URL extension."""
    lowered = name.lower().split("?", 1)[0]
    for ext, mime_type in _EXTENSION_MIME_TYPES.items():
        if lowered.endswith(ext):
            return mime_type
    return DEFAULT_MIME_TYPE


def mime_type_from_bytes(head: bytes) -> str:
    """Detect MIME type from leading magic bytes."""
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if head.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if len(head) >= 12 and head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_MIME_TYPE


def _mime_type_from_base64(data: str) -> str:
    # 100 chars decode to 75 bytes, enough for any magic number
    sample = data[:100]
    sample = sample[: len(sample) - len(sample) % 4]
    try:
        return mime_type_from_bytes(base64.b64decode(sample))
    except ValueError:
        return DEFAULT_MIME_TYPE


class Image:
    """Image payload plus optional vision and embedding instructions.

    Attributes:
        mime_type: Image MIME type
        chunks: Chunks produced by the service (empty until read back)
        url: Public URL assigned by the service, if any
        index_enabled: Whether the service should index this field
        emb_model, vision_model, max_chunk_size, chunk_overlap,
        is_separator_regex, separators, keep_separator: Index options,
            None means the service default
    """

    def __init__(self, data: ImagePayload, mime_type: str | None = None) -> None:
        """Create an Image, inferring the payload representation.

        Args:
            data: Bytes, binary file handle, base64 string, data URL or http URL
            mime_type: Explicit MIME type (detected from the payload if omitted)

        Raises:
            ValidationError: If the payload is empty, malformed or of an
                unsupported type
        """
        if isinstance(data, str):
            if data.startswith("data:"):
                match = _DATA_URL_RE.match(data)
                if not match or not is_valid_base64(match.group(2)):
                    raise ValidationError(
                        "Invalid data URL format. Expected format: data:image/type;base64,<data>",
                        field_name="data",
                    )
                detected, data = match.group(1), match.group(2)
                self._set_payload(data, mime_type or detected, is_url=False)
            elif data.startswith("http"):
                self._set_payload(data, mime_type or mime_type_from_name(data), is_url=True)
            elif is_valid_base64(data):
                self._set_payload(data, mime_type or _mime_type_from_base64(data), is_url=False)
            else:
                raise ValidationError(
                    "Invalid data: must be a non-empty string containing valid "
                    "base64-encoded image data, a data URL, or an HTTP URL.",
                    field_name="data",
                )
        elif isinstance(data, (bytes, bytearray, memoryview)):
            if len(data) == 0:
                raise ValidationError("Invalid data: image bytes are empty.", field_name="data")
            detected = mime_type_from_bytes(bytes(data[:16]))
            self._set_payload(data, mime_type or detected, is_url=False)
        elif hasattr(data, "read"):
            detected = mime_type_from_name(str(getattr(data, "name", "")))
            self._set_payload(data, mime_type or detected, is_url=False)
        else:
            raise ValidationError(
                "Invalid data type: must be str (base64, data URL or HTTP URL), "
                f"bytes, bytearray, memoryview or a binary file object, got {type(data).__name__}",
                field_name="data",
            )
        self._reset_fields()

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview, mime_type: str | None = None) -> Image:
        """Create an Image from raw bytes."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValidationError(
                f"from_bytes() expects bytes, got {type(data).__name__}", field_name="data"
            )
        return cls(data, mime_type)

    @classmethod
    def from_base64(cls, data: str, mime_type: str | None = None) -> Image:
        """Create an Image from a base64 string (never treated as a URL)."""
        if not isinstance(data, str) or not is_valid_base64(data):
            raise ValidationError(
                "Invalid data: must be a non-empty string containing valid base64-encoded image data.",
                field_name="data",
            )
        return cls._build(data, mime_type or _mime_type_from_base64(data), is_url=False)

    @classmethod
    def from_url(cls, url: str, mime_type: str | None = None) -> Image:
        """Create an Image referencing an external, already processed URL."""
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise ValidationError(f"Invalid image URL: {url!r}", field_name="data")
        return cls._build(url, mime_type or mime_type_from_name(url), is_url=True)

    @classmethod
    def from_file(cls, path: str | Path, mime_type: str | None = None) -> Image:
        """Create an Image from a local file, read eagerly.

        Raises:
            ValidationError: If the file cannot be read or is empty
        """
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ValidationError(f"Could not read file '{path}': {e}", field_name="data") from e
        if not content:
            raise ValidationError(f"File '{path}' is empty", field_name="data")

        if mime_type is None:
            mime_type = _EXTENSION_MIME_TYPES.get(path.suffix.lower()) or mime_type_from_bytes(
                content[:16]
            )
        return cls._build(content, mime_type, is_url=False)

    @classmethod
    def _build(cls, data: ImagePayload, mime_type: str, *, is_url: bool) -> Image:
        instance = cls.__new__(cls)
        instance._set_payload(data, mime_type, is_url=is_url)
        instance._reset_fields()
        return instance

    def _set_payload(self, data: ImagePayload, mime_type: str, *, is_url: bool) -> None:
        self._data = data
        self._is_url = is_url
        self.mime_type = mime_type

    def _reset_fields(self) -> None:
        self.chunks: list[str] = []
        self.url: str | None = None
        self.index_enabled = False
        self.emb_model: str | None = None
        self.vision_model: str | None = None
        self.max_chunk_size: int | None = None
        self.chunk_overlap: int | None = None
        self.is_separator_regex: bool | None = None
        self.separators: list[str] | None = None
        self.keep_separator: bool | None = None

    @property
    def data(self) -> ImagePayload:
        """The payload as given."""
        return self._data

    @property
    def is_url(self) -> bool:
        """Whether the payload is an external URL."""
        return self._is_url

    @property
    def has_binary_data(self) -> bool:
        """Whether the payload must travel as a multipart part."""
        return self._data is not None and not self._is_url

    @property
    def binary_data(self) -> bytes | IO[bytes] | None:
        """Raw payload for transmission: bytes, or the file handle as given."""
        if not self.has_binary_data:
            return None
        if isinstance(self._data, str):
            return base64.b64decode(self._data)
        if isinstance(self._data, (bytes, bytearray, memoryview)):
            return bytes(self._data)
        return self._data

    @property
    def base64_data(self) -> str | None:
        """The payload if it is a base64 string."""
        if isinstance(self._data, str) and not self._is_url:
            return self._data
        return None

    def enable_index(
        self,
        *,
        emb_model: EmbeddingModel | str | None = None,
        vision_model: VisionModel | str | None = None,
        max_chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        is_separator_regex: bool | None = None,
        separators: list[str] | None = None,
        keep_separator: bool | None = None,
    ) -> Image:
        """Enable indexing with optional vision and chunking configuration.

        The MIME type is validated here rather than at construction, so
        images that are only stored may use any type.

        Returns:
            Self for chaining

        Raises:
            ValidationError: If the MIME type, a model or an option is invalid
        """
        validate_mime_type(self.mime_type)
        options = validate_index_options(
            {
                "emb_model": emb_model,
                "vision_model": vision_model,
                "max_chunk_size": max_chunk_size,
                "chunk_overlap": chunk_overlap,
                "is_separator_regex": is_separator_regex,
                "separators": separators,
                "keep_separator": keep_separator,
            }
        )
        self.index_enabled = True
        for name, value in options.items():
            setattr(self, name, value)
        return self

    def serialize(self) -> dict[str, Any]:
        """Convert to the tagged wire object (binary payload excluded)."""
        result: dict[str, Any] = {
            "mime_type": self.mime_type,
            "index": self.index_enabled,
        }
        for key in IMAGE_OPTION_KEYS:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.chunks:
            result["chunks"] = list(self.chunks)
        if self._is_url:
            result["data"] = self._data
        if self.url is not None:
            result["url"] = self.url
        return {IMAGE_MARKER: result}

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> Image:
        """Rebuild an Image from its wire object (marker optional).

        Raises:
            ValidationError: If 'mime_type' is missing, or both 'data' and
                'url' are missing
        """
        if IMAGE_MARKER in data:
            data = data[IMAGE_MARKER]
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"'{IMAGE_MARKER}' must be an object, got {type(data).__name__}",
                field_name=IMAGE_MARKER,
            )

        mime_type = data.get("mime_type")
        if mime_type is None:
            raise ValidationError(
                f"JSON data must include 'mime_type' under '{IMAGE_MARKER}'.",
                field_name="mime_type",
            )

        payload = data.get("data")
        url = data.get("url")
        if payload is None and url is None:
            raise ValidationError(
                f"JSON data must include 'data' or 'url' under '{IMAGE_MARKER}'.",
                field_name="data",
            )

        instance = cls._build(
            payload,
            mime_type,
            is_url=isinstance(payload, str) and payload.startswith("http"),
        )
        instance.url = url
        instance.chunks = list(data.get("chunks") or [])
        instance.index_enabled = bool(data.get("index", False))
        for key in IMAGE_OPTION_KEYS:
            setattr(instance, key, data.get(key))
        return instance

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return self._data == other._data and self.serialize() == other.serialize()

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self._is_url:
            return f"Image({self._data})"
        if self.chunks:
            return f'Image("{self.chunks[0]}")'
        if self.url:
            return f"Image({self.url})"
        return "Image(<raw data>)"

    def __repr__(self) -> str:
        return f"Image(mime_type={self.mime_type!r}, index_enabled={self.index_enabled})"
