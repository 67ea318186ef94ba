"""
Document serialization for OneNode SDK.

This module converts between caller documents and the wire tree:
- serialize(): document -> JSON-safe tree of tagged objects
- deserialize(): wire tree -> document with Text, Image and bson values

Both directions are pure: they build a new tree and never mutate their
input. Nesting is capped at MAX_DEPTH; there is no cycle detection, so a
circular structure fails only once it reaches the cap.

Invariants:
    - Primitives pass through unchanged
    - Text/Image markers are checked before extended scalar markers
    - Unrecognized leaves raise UnsupportedTypeError
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bson.errors import InvalidId

from .errors import TooDeepError, UnsupportedTypeError, ValidationError
from .image import IMAGE_MARKER, Image
from .registry import CodecRegistry, get_registry
from .text import TEXT_MARKER, Text

MAX_DEPTH = 100

_PRIMITIVES = (str, int, float, bool)


def serialize(value: Any, depth: int = 0, registry: CodecRegistry | None = None) -> Any:
    """Convert a document (or any value inside one) to its wire form.

    Args:
        value: Document, sequence or leaf value
        depth: Current nesting depth
        registry: Codec registry (default registry if omitted)

    Returns:
        JSON-safe wire value

    Raises:
        TooDeepError: If nesting exceeds MAX_DEPTH
        UnsupportedTypeError: If a leaf has no wire encoding
        ValidationError: Propagated from field types
    """
    if depth > MAX_DEPTH:
        raise TooDeepError(MAX_DEPTH, "serialize")

    # Exact type check: bson Code is a str subclass and must hit the registry
    if value is None or type(value) in _PRIMITIVES:
        return value

    if isinstance(value, (list, tuple)):
        return [serialize(item, depth + 1, registry) for item in value]

    if isinstance(value, (Text, Image)):
        return value.serialize()

    registry = registry or get_registry()
    encoder = registry.encoder_for(value)
    if encoder is not None:
        return encoder(value)

    if isinstance(value, Mapping):
        return {key: serialize(val, depth + 1, registry) for key, val in value.items()}

    # Enum members and other primitive subclasses
    if isinstance(value, _PRIMITIVES):
        return value

    raise UnsupportedTypeError(type(value).__name__)


def deserialize(value: Any, depth: int = 0, registry: CodecRegistry | None = None) -> Any:
    """Convert a wire value back into a document.

    Args:
        value: Decoded JSON value
        depth: Current nesting depth
        registry: Codec registry (default registry if omitted)

    Returns:
        Document with Text, Image and extended scalar leaves restored

    Raises:
        TooDeepError: If nesting exceeds MAX_DEPTH
        ValidationError: If a Text/Image object lacks a required field, or
            an extended scalar value is malformed
        UnsupportedTypeError: If value is not a JSON type
    """
    if depth > MAX_DEPTH:
        raise TooDeepError(MAX_DEPTH, "deserialize")

    if value is None or isinstance(value, _PRIMITIVES):
        return value

    if isinstance(value, (list, tuple)):
        return [deserialize(item, depth + 1, registry) for item in value]

    if not isinstance(value, Mapping):
        raise UnsupportedTypeError(type(value).__name__)

    if TEXT_MARKER in value:
        return Text.deserialize(value)
    if IMAGE_MARKER in value:
        return Image.deserialize(value)

    registry = registry or get_registry()
    matched = registry.match(value)
    if matched is not None:
        marker, decoder = matched
        try:
            return decoder(value)
        except (ValueError, TypeError, KeyError, ArithmeticError, InvalidId) as e:
            raise ValidationError(f"Malformed '{marker}' value", field_name=marker) from e

    return {key: deserialize(val, depth + 1, registry) for key, val in value.items()}


def serialize_document(document: Any) -> Any:
    """Serialize a whole document with the default registry."""
    return serialize(document)


def deserialize_response(data: Any) -> Any:
    """Deserialize a whole JSON response body with the default registry."""
    return deserialize(data)
