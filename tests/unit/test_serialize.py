"""
Unit tests for document serialization.

Tests cover:
- Primitive and container pass-through
- Text/Image encoding inside documents
- Extended scalar encoding and decoding
- Marker precedence on decode
- Depth ceiling and unsupported types
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum

import pytest
from bson import Binary, Code, Decimal128, MaxKey, MinKey, ObjectId, Regex, Timestamp

from onenode.errors import TooDeepError, UnsupportedTypeError, ValidationError
from onenode.image import Image
from onenode.serialize import (
    MAX_DEPTH,
    deserialize,
    deserialize_response,
    serialize,
    serialize_document,
)
from onenode.text import Text

OID = "65a1b2c3d4e5f60718293a4b"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def nested(depth: int) -> dict:
    """Build a document whose innermost leaf sits at the given depth."""
    doc = 1
    for _ in range(depth):
        doc = {"a": doc}
    return doc


class Color(str, Enum):
    RED = "red"


class TestSerializePassThrough:
    """Tests for values serialized unchanged."""

    @pytest.mark.parametrize("value", [None, "x", 0, 3.5, True, False])
    def test_primitives(self, value):
        """Primitives are returned as-is."""
        assert serialize(value) is value

    def test_plain_document(self):
        """Documents of primitives are copied, not mutated."""
        doc = {"name": "Alice", "tags": ["a", "b"], "age": 30, "extra": None}

        result = serialize(doc)

        assert result == doc
        assert result is not doc
        assert result["tags"] is not doc["tags"]

    def test_tuple_becomes_list(self):
        """Tuples are emitted as lists."""
        assert serialize({"pair": (1, 2)}) == {"pair": [1, 2]}

    def test_str_enum(self):
        """String enum members pass through as strings."""
        assert serialize({"color": Color.RED}) == {"color": "red"}


class TestSerializeFields:
    """Tests for Text/Image inside documents."""

    def test_text_field(self):
        """Text becomes its tagged object."""
        doc = {"name": "Alice", "bio": Text("loves AI")}

        assert serialize(doc) == {
            "name": "Alice",
            "bio": {"xText": {"text": "loves AI", "index": False}},
        }

    def test_image_in_list(self):
        """Images inside lists are encoded without payload."""
        doc = {"gallery": [Image(PNG), Image("https://cdn.example.com/a.png")]}

        assert serialize(doc) == {
            "gallery": [
                {"xImage": {"mime_type": "image/png", "index": False}},
                {
                    "xImage": {
                        "mime_type": "image/png",
                        "index": False,
                        "data": "https://cdn.example.com/a.png",
                    }
                },
            ]
        }

    def test_input_not_mutated(self):
        """The caller's document keeps its Text values."""
        bio = Text("loves AI")
        doc = {"bio": bio}

        serialize(doc)

        assert doc["bio"] is bio


class TestSerializeScalars:
    """Tests for extended scalar encoding."""

    def test_object_id(self):
        """ObjectId encodes to $oid."""
        assert serialize({"_id": ObjectId(OID)}) == {"_id": {"$oid": OID}}

    def test_aware_datetime(self):
        """Aware datetimes are converted to UTC with millisecond precision."""
        value = datetime(2024, 1, 15, 12, 30, 0, 123456, tzinfo=timezone(timedelta(hours=2)))

        assert serialize(value) == {"$date": "2024-01-15T10:30:00.123Z"}

    def test_naive_datetime_is_utc(self):
        """Naive datetimes are taken as UTC."""
        assert serialize(datetime(2024, 1, 15, 10, 30)) == {"$date": "2024-01-15T10:30:00.000Z"}

    def test_early_year_zero_padded(self):
        """Years below 1000 keep four digits and decode back."""
        value = datetime(999, 1, 1, tzinfo=timezone.utc)

        assert serialize(value) == {"$date": "0999-01-01T00:00:00.000Z"}
        assert deserialize(serialize(value)) == value

    def test_decimals(self):
        """Decimal128 and Decimal encode to $numberDecimal."""
        assert serialize(Decimal128("1.50")) == {"$numberDecimal": "1.50"}
        assert serialize(Decimal("2.25")) == {"$numberDecimal": "2.25"}

    def test_binary_and_bytes(self):
        """Binary and bytes encode to hex."""
        assert serialize(Binary(b"\x01\xff")) == {"$binary": "01ff"}
        assert serialize(b"\x01\xff") == {"$binary": "01ff"}

    def test_regex(self):
        """Regex and compiled patterns carry their options."""
        assert serialize(Regex("^a", "im")) == {"$regex": "^a", "$options": "im"}
        assert serialize(re.compile("^a", re.IGNORECASE)) == {"$regex": "^a", "$options": "iu"}

    def test_code(self):
        """Code is not mistaken for a plain string."""
        assert serialize(Code("function() {}")) == {"$code": "function() {}"}

    def test_timestamp(self):
        """Timestamp encodes seconds and increment."""
        assert serialize(Timestamp(1700000000, 3)) == {"$timestamp": {"t": 1700000000, "i": 3}}

    def test_min_max_key(self):
        """MinKey/MaxKey encode to sentinels."""
        assert serialize([MinKey(), MaxKey()]) == [{"$minKey": 1}, {"$maxKey": 1}]

    def test_unsupported_type(self):
        """Unknown leaves raise naming the type."""
        with pytest.raises(UnsupportedTypeError, match="Unsupported BSON type: set"):
            serialize({"tags": {"a", "b"}})

    def test_unsupported_object(self):
        """Arbitrary objects are rejected."""

        class Point:
            pass

        with pytest.raises(UnsupportedTypeError) as exc_info:
            serialize([Point()])

        assert exc_info.value.type_name == "Point"
        assert exc_info.value.code == "UNSUPPORTED_TYPE"


class TestDeserialize:
    """Tests for wire-to-document decoding."""

    def test_plain_document(self):
        """Untagged objects decode recursively."""
        data = {"name": "Alice", "meta": {"tags": ["a"], "n": 1.5}}
        assert deserialize(data) == data

    def test_text_and_image(self):
        """Tagged objects become Text and Image."""
        result = deserialize(
            {
                "bio": {"xText": {"text": "hi", "chunks": ["hi"], "index": True}},
                "photo": {
                    "xImage": {"mime_type": "image/png", "data": "https://cdn.example.com/p.png"}
                },
            }
        )

        assert isinstance(result["bio"], Text)
        assert result["bio"].chunks == ["hi"]
        assert isinstance(result["photo"], Image)
        assert result["photo"].is_url is True

    def test_object_id(self):
        """$oid decodes to ObjectId."""
        assert deserialize({"_id": {"$oid": OID}}) == {"_id": ObjectId(OID)}

    @pytest.mark.parametrize(
        "raw",
        [
            "2024-01-15T10:30:00.000Z",
            "2024-01-15T12:30:00+02:00",
            1705314600000,
            {"$numberLong": "1705314600000"},
        ],
    )
    def test_date_forms(self, raw):
        """$date accepts ISO strings and epoch milliseconds, returning UTC."""
        result = deserialize({"$date": raw})

        assert result == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert result.tzinfo is not None

    def test_decimal(self):
        """$numberDecimal decodes to Decimal128."""
        assert deserialize({"$numberDecimal": "1.50"}) == Decimal128("1.50")

    def test_binary_hex(self):
        """$binary hex decodes to Binary."""
        result = deserialize({"$binary": "01ff"})

        assert isinstance(result, Binary)
        assert bytes(result) == b"\x01\xff"

    def test_binary_canonical(self):
        """Canonical extended JSON binary is accepted."""
        result = deserialize({"$binary": {"base64": "Af8=", "subType": "05"}})

        assert bytes(result) == b"\x01\xff"
        assert result.subtype == 5

    def test_regex(self):
        """$regex decodes with options."""
        result = deserialize({"$regex": "^a", "$options": "i"})

        assert isinstance(result, Regex)
        assert result.pattern == "^a"
        assert result.flags & re.IGNORECASE

    def test_code_timestamp_keys(self):
        """Remaining markers decode to their bson types."""
        result = deserialize(
            [
                {"$code": "x = 1"},
                {"$timestamp": {"t": 10, "i": 2}},
                {"$minKey": 1},
                {"$maxKey": 1},
            ]
        )

        assert result[0] == Code("x = 1")
        assert result[1] == Timestamp(10, 2)
        assert isinstance(result[2], MinKey)
        assert isinstance(result[3], MaxKey)

    def test_text_marker_wins_over_scalar_markers(self):
        """Text is checked before any extended scalar marker."""
        result = deserialize({"xText": {"text": "hi"}, "$oid": OID})
        assert isinstance(result, Text)

    def test_oid_wins_over_date(self):
        """$oid takes priority over $date."""
        result = deserialize({"$date": "2024-01-15T10:30:00Z", "$oid": OID})
        assert result == ObjectId(OID)

    def test_missing_text_field(self):
        """Malformed tagged objects raise ValidationError."""
        with pytest.raises(ValidationError):
            deserialize({"bio": {"xText": {"index": True}}})

    def test_non_json_value_raises(self):
        """Values JSON cannot produce are rejected."""
        with pytest.raises(UnsupportedTypeError):
            deserialize({"x": object()})

    def test_round_trip(self):
        """Documents survive serialize then deserialize."""
        doc = {
            "_id": ObjectId(OID),
            "when": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            "bio": Text("hello").enable_index(max_chunk_size=100),
            "scores": [1, 2.5, None],
        }

        assert deserialize(serialize(doc)) == doc

    def test_binary_image_does_not_round_trip(self):
        """Binary image payloads leave the wire tree, so decoding needs the service's URL."""
        wire = serialize({"photo": Image(PNG)})

        with pytest.raises(ValidationError, match="'data' or 'url'"):
            deserialize(wire)

    def test_aliases(self):
        """Whole-document helpers delegate to the walker."""
        assert serialize_document({"_id": ObjectId(OID)}) == {"_id": {"$oid": OID}}
        assert deserialize_response({"_id": {"$oid": OID}}) == {"_id": ObjectId(OID)}


class TestMalformedWire:
    """Tests for malformed tagged objects in responses."""

    @pytest.mark.parametrize(
        "wire,field_name",
        [
            ({"bio": {"xText": "oops"}}, "xText"),
            ({"photo": {"xImage": ["x"]}}, "xImage"),
            ({"$date": "yesterday"}, "$date"),
            ({"$date": None}, "$date"),
            ({"$oid": "nothex"}, "$oid"),
            ({"$oid": 5}, "$oid"),
            ({"$numberDecimal": "abc"}, "$numberDecimal"),
            ({"$binary": "zz"}, "$binary"),
            ({"$binary": {"subType": "00"}}, "$binary"),
            ({"$timestamp": 5}, "$timestamp"),
            ({"$timestamp": {"t": "x", "i": 1}}, "$timestamp"),
        ],
    )
    def test_raises_validation_error(self, wire, field_name):
        """Malformed values raise ValidationError naming the marker."""
        with pytest.raises(ValidationError) as exc_info:
            deserialize(wire)

        assert exc_info.value.field_name == field_name
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_cause_is_chained(self):
        """The underlying parse error is kept as the cause."""
        with pytest.raises(ValidationError, match=r"Malformed '\$date' value") as exc_info:
            deserialize({"$date": "yesterday"})

        assert isinstance(exc_info.value.__cause__, ValueError)


class TestDepthCeiling:
    """Tests for the nesting limit."""

    def test_max_depth_allowed(self):
        """Nesting up to the ceiling succeeds in both directions."""
        doc = nested(MAX_DEPTH)

        assert serialize(doc) == doc
        assert deserialize(doc) == doc

    def test_one_past_max_depth(self):
        """One level past the ceiling raises."""
        with pytest.raises(TooDeepError, match="serialize"):
            serialize(nested(MAX_DEPTH + 1))
        with pytest.raises(TooDeepError, match="deserialize"):
            deserialize(nested(MAX_DEPTH + 1))

    def test_circular_structure(self):
        """Self-referencing documents hit the ceiling instead of recursing forever."""
        doc = {"name": "loop"}
        doc["self"] = doc

        with pytest.raises(TooDeepError) as exc_info:
            serialize(doc)

        assert exc_info.value.max_depth == MAX_DEPTH
        assert exc_info.value.code == "TOO_DEEP"
