"""
Text field type for OneNode documents.

A Text value is stored as-is and, when indexing is enabled, chunked and
embedded by the service in the background. The ``chunks`` attribute is
populated by the service and only appears on values read back from it.

Example:
    >>> from onenode import Text, EmbeddingModel
    >>> bio = Text("Loves hiking and AI").enable_index(
    ...     emb_model=EmbeddingModel.TEXT_EMBEDDING_3_SMALL,
    ...     max_chunk_size=200,
    ... )
    >>> bio.serialize()["xText"]["index"]
    True

Invariants:
    - text is never empty or whitespace only
    - Unset options are omitted from the wire object
    - Values decoded from the service are not re-validated
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import ValidationError
from .models import EmbeddingModel
from .validate import is_valid_text, validate_index_options

TEXT_MARKER = "xText"

# Optional wire keys shared with Image, in wire order
INDEX_OPTION_KEYS: tuple[str, ...] = (
    "emb_model",
    "max_chunk_size",
    "chunk_overlap",
    "is_separator_regex",
    "separators",
    "keep_separator",
)


class Text:
    """Text whose chunking and embedding is delegated to the service.

    Attributes:
        text: The text content
        chunks: Chunks produced by the service (empty until read back)
        index_enabled: Whether the service should index this field
        emb_model: Embedding model, or None for the service default
        max_chunk_size: Maximum characters per chunk
        chunk_overlap: Characters shared by consecutive chunks
        is_separator_regex: Whether separators are regex patterns
        separators: Strings (or patterns) to split on
        keep_separator: Whether separators stay in the chunks
    """

    def __init__(self, text: str) -> None:
        """Create a Text value.

        Args:
            text: Non-empty text content

        Raises:
            ValidationError: If text is empty or whitespace only
        """
        if not is_valid_text(text):
            raise ValidationError("Invalid text: must be a non-empty string.", field_name="text")

        self.text = text
        self.chunks: list[str] = []
        self.index_enabled = False
        self.emb_model: str | None = None
        self.max_chunk_size: int | None = None
        self.chunk_overlap: int | None = None
        self.is_separator_regex: bool | None = None
        self.separators: list[str] | None = None
        self.keep_separator: bool | None = None

    def enable_index(
        self,
        *,
        emb_model: EmbeddingModel | str | None = None,
        max_chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        is_separator_regex: bool | None = None,
        separators: list[str] | None = None,
        keep_separator: bool | None = None,
    ) -> Text:
        """Enable indexing with optional chunking configuration.

        Options left as None keep their current value.

        Returns:
            Self for chaining

        Raises:
            ValidationError: If the model is unsupported or an option is invalid
        """
        options = validate_index_options(
            {
                "emb_model": emb_model,
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
        """Convert to the tagged wire object."""
        result: dict[str, Any] = {"text": self.text}
        if self.chunks:
            result["chunks"] = list(self.chunks)
        result["index"] = self.index_enabled
        for key in INDEX_OPTION_KEYS:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return {TEXT_MARKER: result}

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> Text:
        """Rebuild a Text from its wire object (marker optional).

        Raises:
            ValidationError: If the 'text' field is missing
        """
        if TEXT_MARKER in data:
            data = data[TEXT_MARKER]
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"'{TEXT_MARKER}' must be an object, got {type(data).__name__}",
                field_name=TEXT_MARKER,
            )

        text = data.get("text")
        if text is None:
            raise ValidationError(
                f"JSON data must include 'text' under '{TEXT_MARKER}'.",
                field_name="text",
            )

        instance = cls.__new__(cls)
        instance.text = text
        instance.chunks = list(data.get("chunks") or [])
        instance.index_enabled = bool(data.get("index", False))
        for key in INDEX_OPTION_KEYS:
            setattr(instance, key, data.get(key))
        return instance

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Text):
            return NotImplemented
        return self.serialize() == other.serialize()

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.chunks:
            return f'Text("{self.chunks[0]}")'
        return f'Text("{self.text}")'

    def __repr__(self) -> str:
        return f"Text({self.text!r}, index_enabled={self.index_enabled})"
