"""
OneNode Python SDK - Client library for the OneNode document database.

This SDK provides:
- AI-native field types (Text, Image) embedded and indexed server-side
- Document serialization to the service wire format
- OneNode client for insert, update, delete, find and semantic query

Example:
    >>> from onenode import OneNode, Text, Image
    >>>
    >>> async with OneNode() as client:
    ...     users = client.db("app").collection("users")
    ...     await users.insert([
    ...         {
    ...             "name": "Alice",
    ...             "bio": Text("Loves hiking and AI").enable_index(max_chunk_size=200),
    ...             "avatar": Image.from_file("alice.png").enable_index(),
    ...         }
    ...     ])
    ...     for match in await users.query("outdoor hobbies"):
    ...         print(match.score, match.document["name"])

Invariants:
    - Binary image payloads never appear in the JSON wire tree
    - All local errors are raised before a request is sent

Version: 0.8.7
"""

__version__ = "0.8.7"

from bson import Binary, Code, Decimal128, MaxKey, MinKey, ObjectId, Regex, Timestamp

from .binary import extract_binary
from .client import Collection, Database, OneNode
from .config import Settings
from .errors import (
    APIClientError,
    AuthenticationError,
    ClientRequestError,
    ConfigurationError,
    OneNodeError,
    ServerError,
    TooDeepError,
    UnsupportedTypeError,
    ValidationError,
)
from .image import Image
from .models import EmbeddingModel, VisionModel
from .registry import CodecRegistry, get_registry
from .serialize import deserialize, deserialize_response, serialize, serialize_document
from .text import Text
from .types import InsertResponse, QueryMatch

__all__ = [
    # Version
    "__version__",
    # Field types
    "Text",
    "Image",
    "EmbeddingModel",
    "VisionModel",
    # Extended scalars
    "ObjectId",
    "Binary",
    "Code",
    "Decimal128",
    "MaxKey",
    "MinKey",
    "Regex",
    "Timestamp",
    # Serialization
    "serialize",
    "deserialize",
    "serialize_document",
    "deserialize_response",
    "extract_binary",
    "CodecRegistry",
    "get_registry",
    # Client
    "OneNode",
    "Database",
    "Collection",
    "Settings",
    "QueryMatch",
    "InsertResponse",
    # Errors
    "OneNodeError",
    "ValidationError",
    "UnsupportedTypeError",
    "TooDeepError",
    "ConfigurationError",
    "APIClientError",
    "AuthenticationError",
    "ClientRequestError",
    "ServerError",
]
