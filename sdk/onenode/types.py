"""
Response types for OneNode SDK.

Documents themselves are returned as plain dicts (with Text, Image and
bson leaves restored); only the fixed-shape envelopes get a dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class QueryMatch:
    """A semantic search hit.

    Attributes:
        chunk: Text chunk that matched (None when excluded by projection)
        path: Dotted field path of the matched field
        chunk_n: Index of the chunk within the field
        score: Similarity score (0-1)
        document: Full document containing the match
        embedding: Embedding vector, when requested
    """

    path: str
    chunk_n: int
    score: float
    document: dict[str, Any] = field(default_factory=dict)
    chunk: str | None = None
    embedding: list[float] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueryMatch:
        """Create from a (deserialized) response entry."""
        return cls(
            path=data.get("path", ""),
            chunk_n=data.get("chunk_n", 0),
            score=data.get("score", 0.0),
            document=data.get("document") or {},
            chunk=data.get("chunk"),
            embedding=data.get("embedding", data.get("values")),
        )


@dataclass
class InsertResponse:
    """Result of an insert.

    Attributes:
        inserted_ids: IDs of the inserted documents, in request order
    """

    inserted_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InsertResponse:
        """Create from a (deserialized) response body."""
        return cls(inserted_ids=[str(i) for i in data.get("inserted_ids") or []])
