"""
Codec registry for OneNode SDK.

This module maps extended scalar types to their wire representation:
- Encoders are looked up by exact runtime type (no isinstance fallback)
- Decoders are looked up by marker key, in registration order
- The default registry is populated once and frozen

Text and Image are not registered here: the document walker handles them
before consulting the registry, since their encoding spans several fields.

Example:
    >>> from bson import ObjectId
    >>> registry = get_registry()
    >>> encoder = registry.encoder_for(ObjectId("65a000000000000000000000"))
    >>> encoder(ObjectId("65a000000000000000000000"))
    {'$oid': '65a000000000000000000000'}
"""

from __future__ import annotations

import base64
import re
import threading
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from bson import Binary, Code, Decimal128, MaxKey, MinKey, ObjectId, Regex, Timestamp

Encoder = Callable[[Any], dict[str, Any]]
Decoder = Callable[[Mapping[str, Any]], Any]

# Global registry
_default_registry: CodecRegistry | None = None
_registry_lock = threading.Lock()

_REGEX_FLAG_LETTERS = (
    (re.IGNORECASE, "i"),
    (re.LOCALE, "l"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.UNICODE, "u"),
    (re.VERBOSE, "x"),
)


class RegistryFrozenError(Exception):
    """Registry is frozen and cannot be modified."""

    pass


class DuplicateRegistrationError(Exception):
    """Type or marker is already registered."""

    pass


class CodecRegistry:
    """Table of extended scalar codecs.

    The registry stores one encoder per Python type and one decoder per
    wire marker key. Decoders are tried in registration order, so the
    first registered marker present in an object wins.

    Example:
        >>> registry = CodecRegistry()
        >>> registry.register_encoder(ObjectId, lambda v: {"$oid": str(v)})
        >>> registry.register_decoder("$oid", lambda obj: ObjectId(obj["$oid"]))
        >>> registry.freeze()
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._encoders: dict[type, Encoder] = {}
        self._decoders: dict[str, Decoder] = {}
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        """Whether registry is frozen."""
        return self._frozen

    def register_encoder(self, value_type: type, encoder: Encoder) -> None:
        """Register the wire encoder for a Python type.

        Args:
            value_type: Exact type the encoder handles
            encoder: Function returning the tagged wire object

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If type already registered
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Cannot register: registry is frozen")

            if value_type in self._encoders:
                raise DuplicateRegistrationError(
                    f"type '{value_type.__name__}' already has an encoder"
                )

            self._encoders[value_type] = encoder

    def register_decoder(self, marker: str, decoder: Decoder) -> None:
        """Register the decoder for a wire marker key.

        Args:
            marker: Marker key (e.g. "$oid")
            decoder: Function receiving the whole tagged object

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If marker already registered
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Cannot register: registry is frozen")

            if marker in self._decoders:
                raise DuplicateRegistrationError(f"marker '{marker}' already registered")

            self._decoders[marker] = decoder

    def encoder_for(self, value: Any) -> Encoder | None:
        """Get the encoder for a value's exact type."""
        return self._encoders.get(type(value))

    def match(self, obj: Mapping[str, Any]) -> tuple[str, Decoder] | None:
        """Get the first registered marker present in obj and its decoder."""
        for marker, decoder in self._decoders.items():
            if marker in obj:
                return marker, decoder
        return None

    def decoder_for(self, obj: Mapping[str, Any]) -> Decoder | None:
        """Get the decoder of the first registered marker present in obj."""
        matched = self.match(obj)
        return matched[1] if matched else None

    def markers(self) -> Iterator[str]:
        """Iterate over marker keys in priority order."""
        yield from self._decoders.keys()

    def freeze(self) -> None:
        """Freeze registry.

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")
            self._frozen = True


def _encode_date(value: datetime) -> dict[str, Any]:
    # Naive datetimes are taken as UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    # Year is always four digits, even below 1000
    return {"$date": value.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"}


def _decode_date(obj: Mapping[str, Any]) -> datetime:
    raw = obj["$date"]
    if isinstance(raw, Mapping) and "$numberLong" in raw:
        raw = int(raw["$numberLong"])
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)

    text = str(raw)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def regex_options(flags: int) -> str:
    """Convert integer regex flags to option letters ("im", ...)."""
    return "".join(letter for flag, letter in _REGEX_FLAG_LETTERS if flags & flag)


def _encode_regex(value: Regex | re.Pattern) -> dict[str, Any]:
    flags = value.flags if isinstance(value.flags, int) else 0
    return {"$regex": value.pattern, "$options": regex_options(flags)}


def _decode_binary(obj: Mapping[str, Any]) -> Binary:
    raw = obj["$binary"]
    # Canonical extended JSON carries base64 plus a hex subtype
    if isinstance(raw, Mapping):
        subtype = int(raw.get("subType", "00"), 16)
        return Binary(base64.b64decode(raw["base64"]), subtype)
    return Binary(bytes.fromhex(raw))


def _decode_timestamp(obj: Mapping[str, Any]) -> Timestamp:
    raw = obj["$timestamp"]
    return Timestamp(int(raw["t"]), int(raw["i"]))


def _build_default_registry() -> CodecRegistry:
    registry = CodecRegistry()

    registry.register_encoder(ObjectId, lambda v: {"$oid": str(v)})
    registry.register_encoder(datetime, _encode_date)
    registry.register_encoder(Decimal128, lambda v: {"$numberDecimal": str(v)})
    registry.register_encoder(Decimal, lambda v: {"$numberDecimal": str(v)})
    registry.register_encoder(Binary, lambda v: {"$binary": bytes(v).hex()})
    registry.register_encoder(bytes, lambda v: {"$binary": v.hex()})
    registry.register_encoder(Regex, _encode_regex)
    registry.register_encoder(re.Pattern, _encode_regex)
    registry.register_encoder(Code, lambda v: {"$code": str(v)})
    registry.register_encoder(Timestamp, lambda v: {"$timestamp": {"t": v.time, "i": v.inc}})
    registry.register_encoder(MinKey, lambda v: {"$minKey": 1})
    registry.register_encoder(MaxKey, lambda v: {"$maxKey": 1})

    # Order matters: first marker present wins
    registry.register_decoder("$oid", lambda obj: ObjectId(obj["$oid"]))
    registry.register_decoder("$date", _decode_date)
    registry.register_decoder("$numberDecimal", lambda obj: Decimal128(obj["$numberDecimal"]))
    registry.register_decoder("$binary", _decode_binary)
    registry.register_decoder("$regex", lambda obj: Regex(obj["$regex"], obj.get("$options") or ""))
    registry.register_decoder("$code", lambda obj: Code(obj["$code"]))
    registry.register_decoder("$timestamp", _decode_timestamp)
    registry.register_decoder("$minKey", lambda obj: MinKey())
    registry.register_decoder("$maxKey", lambda obj: MaxKey())

    registry.freeze()
    return registry


def get_registry() -> CodecRegistry:
    """Get the default codec registry (built and frozen on first use)."""
    global _default_registry
    with _registry_lock:
        if _default_registry is None:
            _default_registry = _build_default_registry()
        return _default_registry
