"""
OneNode client for Python SDK.

This module provides the HTTP client interface:
- OneNode: Project-level client owning the HTTP connection pool
- Database: Handle to a database within the project
- Collection: Document operations (insert, update, delete, find, query, drop)

Every write is sent as a multipart request: one JSON form field per
argument plus one binary part per Image payload (see ``onenode.binary``).

Example:
    >>> async with OneNode() as client:
    ...     users = client.db("app").collection("users")
    ...     await users.insert([{"name": "Alice", "bio": Text("loves AI").enable_index()}])
    ...     matches = await users.query("who likes AI?")

Invariants:
    - Documents are fully serialized before any request is sent
    - Responses are deserialized (Text, Image, bson values restored)
    - Error responses raise APIClientError subclasses, never return
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from .binary import BinaryPart, extract_binary
from .config import Settings, resolve_project_id
from .errors import (
    APIClientError,
    AuthenticationError,
    ClientRequestError,
    ServerError,
)
from .models import EmbeddingModel
from .serialize import deserialize, serialize
from .types import InsertResponse, QueryMatch

logger = logging.getLogger(__name__)


def _multipart(
    fields: Mapping[str, str],
    files: Mapping[str, BinaryPart] | None = None,
) -> list[tuple[str, tuple[Any, ...]]]:
    """Build httpx multipart parts: plain form fields, then binary parts."""
    parts: list[tuple[str, tuple[Any, ...]]] = [
        (name, (None, value)) for name, value in fields.items()
    ]
    for path, blob in (files or {}).items():
        parts.append((path, (path, blob, "application/octet-stream")))
    return parts


class Collection:
    """Document operations on one collection.

    Example:
        >>> users = client.db("app").collection("users")
        >>> docs = await users.find({"name": "Alice"}, limit=10)
    """

    def __init__(self, client: OneNode, db_name: str, collection_name: str) -> None:
        self._client = client
        self.db_name = db_name
        self.name = collection_name

    @property
    def collection_url(self) -> str:
        """Collection path relative to the service base URL."""
        scope = "anon-project" if self._client.is_anonymous else "project"
        return (
            f"/{scope}/{self._client.project_id}/db/{self.db_name}/collection/{self.name}"
        )

    @property
    def document_url(self) -> str:
        """Document endpoint path."""
        return f"{self.collection_url}/document"

    async def insert(self, documents: Sequence[Mapping[str, Any]]) -> InsertResponse:
        """Insert documents.

        Args:
            documents: Documents to insert

        Returns:
            InsertResponse with the new document IDs

        Raises:
            ValidationError, UnsupportedTypeError, TooDeepError: Before sending
            APIClientError: If the service rejects the request
        """
        serialized = [serialize(doc) for doc in documents]
        files = extract_binary(documents)

        data = await self._client._send(
            "POST",
            self.document_url,
            fields={"documents": json.dumps(serialized)},
            files=files,
        )
        return InsertResponse.from_dict(data or {})

    async def update(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool = False,
    ) -> dict[str, Any]:
        """Update documents matching filter.

        Args:
            filter: Query filter
            update: Update document (e.g. {"$set": {...}})
            upsert: Insert if nothing matches

        Returns:
            Service response (matched/modified counts)
        """
        fields = {
            "filter": json.dumps(serialize(filter)),
            "update": json.dumps(serialize(update)),
            "upsert": "true" if upsert else "false",
        }
        files = extract_binary([update])

        data = await self._client._send("PUT", self.document_url, fields=fields, files=files)
        return data or {}

    async def delete(self, filter: Mapping[str, Any]) -> dict[str, Any]:
        """Delete documents matching filter.

        Returns:
            Service response (deleted count)
        """
        fields = {"filter": json.dumps(serialize(filter))}
        data = await self._client._send("DELETE", self.document_url, fields=fields)
        return data or {}

    async def find(
        self,
        filter: Mapping[str, Any],
        projection: Mapping[str, Any] | None = None,
        sort: Mapping[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filter.

        Args:
            filter: Query filter
            projection: {"mode": "include"|"exclude", "fields": [...]}
            sort: Sort order (field to 1 or -1)
            limit: Maximum documents to return
            skip: Documents to skip

        Returns:
            Matching documents
        """
        fields = {"filter": json.dumps(serialize(filter))}
        if projection is not None:
            fields["projection"] = json.dumps(projection)
        if sort is not None:
            fields["sort"] = json.dumps(sort)
        if limit is not None:
            fields["limit"] = str(limit)
        if skip is not None:
            fields["skip"] = str(skip)

        data = await self._client._send("POST", f"{self.document_url}/find", fields=fields)
        return (data or {}).get("docs") or []

    async def query(
        self,
        query: str,
        *,
        filter: Mapping[str, Any] | None = None,
        projection: Mapping[str, Any] | None = None,
        emb_model: EmbeddingModel | str | None = None,
        top_k: int | None = None,
        include_embedding: bool | None = None,
    ) -> list[QueryMatch]:
        """Semantic search over indexed fields.

        Args:
            query: Natural language query
            filter: Optional filter applied before ranking
            projection: Fields to return in each match's document
            emb_model: Embedding model for the query text
            top_k: Maximum matches
            include_embedding: Return the matched chunk's embedding

        Returns:
            Matches ordered by score
        """
        fields = {"query": query}
        if filter is not None:
            fields["filter"] = json.dumps(serialize(filter))
        if projection is not None:
            fields["projection"] = json.dumps(projection)
        if emb_model is not None:
            fields["emb_model"] = str(emb_model)
        if top_k is not None:
            fields["top_k"] = str(top_k)
        if include_embedding is not None:
            fields["include_embedding"] = "true" if include_embedding else "false"

        data = await self._client._send("POST", f"{self.document_url}/query", fields=fields)
        return [QueryMatch.from_dict(m) for m in (data or {}).get("matches") or []]

    async def drop(self) -> None:
        """Drop the collection."""
        await self._client._send("DELETE", self.collection_url, fields={})

    def __repr__(self) -> str:
        return f"Collection({self.db_name!r}, {self.name!r})"


class Database:
    """Handle to a database within the project."""

    def __init__(self, client: OneNode, name: str) -> None:
        self._client = client
        self.name = name

    def collection(self, name: str) -> Collection:
        """Get a collection handle (no request is made)."""
        return Collection(self._client, self.name, name)

    def __repr__(self) -> str:
        return f"Database({self.name!r})"


class OneNode:
    """Client for the OneNode service.

    With an API key, requests are authenticated and addressed to
    ONENODE_PROJECT_ID. Without one, the client runs in anonymous mode
    against a locally persisted anonymous project.

    Example:
        >>> async with OneNode() as client:
        ...     await client.db("app").collection("notes").insert([{"title": "hi"}])
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            settings: Settings (loaded from environment if omitted)
            transport: Optional httpx transport (for testing)

        Raises:
            ConfigurationError: If an API key is set without a project ID
        """
        self.settings = settings or Settings()
        self.project_id = resolve_project_id(self.settings)
        self._http = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout,
            transport=transport,
        )

    @property
    def is_anonymous(self) -> bool:
        """Whether requests are sent without an API key."""
        return self.settings.is_anonymous

    def db(self, name: str) -> Database:
        """Get a database handle (no request is made)."""
        return Database(self, name)

    async def close(self) -> None:
        """Close the HTTP connection pool."""
        await self._http.aclose()

    async def __aenter__(self) -> OneNode:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        if self.is_anonymous:
            return {}
        return {"Authorization": f"Bearer {self.settings.api_key}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        fields: Mapping[str, str],
        files: Mapping[str, BinaryPart] | None = None,
    ) -> Any:
        """Send a multipart request and decode the response."""
        logger.debug(f"{method} {path} ({len(files or {})} binary parts)")
        response = await self._http.request(
            method,
            path,
            headers=self._headers(),
            files=_multipart(fields, files) or None,
        )
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        """Decode a response, raising on error statuses."""
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            try:
                body = response.json()
            except ValueError as e:
                raise APIClientError(response.status_code, "Invalid JSON in response") from e
            return deserialize(body)

        try:
            error_data = response.json()
        except ValueError as e:
            raise APIClientError(response.status_code, response.reason_phrase) from e

        if not isinstance(error_data, dict):
            error_data = {}
        code = error_data.get("code", response.status_code)
        if not isinstance(code, int) or isinstance(code, bool):
            code = response.status_code
        message = error_data.get("message") or "An unknown error occurred."

        logger.warning(f"OneNode API error {code}: {message}")
        if code == 401:
            raise AuthenticationError(code, message)
        if 400 <= code < 500:
            raise ClientRequestError(code, message)
        raise ServerError(code, message)
