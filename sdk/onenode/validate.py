"""
Validation helpers for embeddable fields.

This module provides:
- Content checks (non-empty text, base64 payloads)
- Index option validation with supported-set error messages
- Suggestions for mistyped model names

Invariants:
    - Validation errors are deterministic
    - Error messages list the supported values
    - Options left as None are never validated (server default applies)
"""

from __future__ import annotations

import base64
import binascii
import re
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Tuple, Type

from .errors import ValidationError
from .models import SUPPORTED_MIME_TYPES, EmbeddingModel, VisionModel, _ModelEnum

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


def is_valid_text(text: Any) -> bool:
    """Whether text is a string with non-whitespace content."""
    return isinstance(text, str) and len(text.strip()) > 0


def is_valid_base64(data: str) -> bool:
    """Whether data is strictly valid base64 (standard alphabet, padded)."""
    if not data or not _BASE64_RE.match(data):
        return False
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _check_model(
    name: str,
    value: Any,
    model_type: Type[_ModelEnum],
) -> Tuple[Optional[str], Optional[str]]:
    """Resolve value to a model identifier.

    Returns (identifier, None) if supported, (None, error message) if not.
    """
    try:
        return model_type.from_str(str(value)).value, None
    except ValueError:
        pass
    supported = model_type.values()
    msg = f"Invalid {name}: '{value}' is not supported. Supported models are: {', '.join(supported)}"
    suggestions = get_close_matches(str(value), supported, n=1)
    if suggestions:
        msg += f". Did you mean: {suggestions[0]}?"
    return None, msg


def _validate_option(name: str, value: Any) -> Optional[str]:
    """Validate a single non-model index option.

    Returns error message if invalid, None if valid.
    """
    if name == "max_chunk_size":
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            return f"Option '{name}' must be a positive integer, got {value!r}"

    elif name == "chunk_overlap":
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            return f"Option '{name}' must be a non-negative integer, got {value!r}"

    elif name in ("is_separator_regex", "keep_separator"):
        if not isinstance(value, bool):
            return f"Option '{name}' must be a boolean, got {type(value).__name__}"

    elif name == "separators":
        if not isinstance(value, (list, tuple)):
            return f"Option '{name}' must be a list, got {type(value).__name__}"
        for i, item in enumerate(value):
            if not isinstance(item, str):
                return f"Option '{name}[{i}]' must be a string"

    return None


def validate_index_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Validate enable_index() options and normalize them.

    Model enums are converted to their plain string values and separator
    tuples to lists. Options set to None are dropped.

    Args:
        options: Option name to value

    Returns:
        Normalized options

    Raises:
        ValidationError: If any option is invalid (all errors are listed)
    """
    errors: List[str] = []
    normalized: Dict[str, Any] = {}

    for name, value in options.items():
        if value is None:
            continue

        if name == "emb_model":
            value, error = _check_model("embedding model", value, EmbeddingModel)
        elif name == "vision_model":
            value, error = _check_model("vision model", value, VisionModel)
        else:
            error = _validate_option(name, value)
            if name == "separators" and error is None:
                value = list(value)

        if error:
            errors.append(error)
        else:
            normalized[name] = value

    if errors:
        raise ValidationError("; ".join(errors), errors=errors)
    return normalized


def validate_mime_type(mime_type: str) -> None:
    """Raise if mime_type is not an indexable image type.

    Raises:
        ValidationError: Listing the supported MIME types
    """
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ValidationError(
            f"Unsupported mime type: '{mime_type}'. "
            f"Supported types are: {', '.join(SUPPORTED_MIME_TYPES)}",
            field_name="mime_type",
        )
