"""
Binary payload extraction for multipart requests.

The wire tree never carries image bytes. This pass walks the original
documents (before serialization) and collects every Image payload that has
to travel as its own multipart part, keyed by the field path the service
uses to pair it with the wire object:

    doc_<i>[.<key or index>...].xImage.data

Example:
    >>> extract_binary([{"photo": Image(png_bytes)}])
    {'doc_0.photo.xImage.data': b'\\x89PNG...'}
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import IO, Any, Union

from .errors import TooDeepError
from .image import IMAGE_DATA_SUFFIX, Image
from .serialize import MAX_DEPTH

BinaryPart = Union[bytes, IO[bytes]]


def _walk(value: Any, path: str, files: dict[str, BinaryPart], depth: int) -> None:
    if depth > MAX_DEPTH:
        raise TooDeepError(MAX_DEPTH, "extract_binary")

    if isinstance(value, Image):
        if value.has_binary_data:
            files[f"{path}.{IMAGE_DATA_SUFFIX}"] = value.binary_data
        return

    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _walk(item, f"{path}.{i}", files, depth + 1)
    elif isinstance(value, Mapping):
        for key, item in value.items():
            _walk(item, f"{path}.{key}", files, depth + 1)


def extract_binary(documents: Sequence[Any]) -> dict[str, BinaryPart]:
    """Collect binary image payloads from documents.

    Args:
        documents: Documents in request order (index gives the doc_<i> prefix)

    Returns:
        Field path to raw bytes (or the file handle given to Image)

    Raises:
        TooDeepError: If nesting exceeds MAX_DEPTH
    """
    files: dict[str, BinaryPart] = {}
    for i, document in enumerate(documents):
        _walk(document, f"doc_{i}", files, 0)
    return files
