"""
Supported model identifiers.

Embedding models turn text (or image descriptions) into vectors, vision
models turn images into text before embedding. Both are selected per field
through ``enable_index()``.

Example:
    >>> from onenode import Text, EmbeddingModel
    >>> Text("hello").enable_index(emb_model=EmbeddingModel.TEXT_EMBEDDING_3_LARGE)
"""

from __future__ import annotations

from enum import Enum


class _ModelEnum(str, Enum):
    @classmethod
    def values(cls) -> list[str]:
        """All model identifiers, in declaration order."""
        return [m.value for m in cls]

    @classmethod
    def from_str(cls, value: str) -> _ModelEnum:
        """Convert string to model, raising ValueError if unknown."""
        for model in cls:
            if model.value == value:
                return model
        raise ValueError(f"Invalid {cls.__name__}: {value}")

    def __str__(self) -> str:
        return self.value


class EmbeddingModel(_ModelEnum):
    """Text-to-embedding models (OpenAI)."""

    TEXT_EMBEDDING_3_SMALL = "text-embedding-3-small"
    TEXT_EMBEDDING_3_LARGE = "text-embedding-3-large"
    TEXT_EMBEDDING_ADA_002 = "text-embedding-ada-002"


class VisionModel(_ModelEnum):
    """Image-to-text models (OpenAI)."""

    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    O4_MINI = "o4-mini"
    O3 = "o3"
    O1 = "o1"
    O1_PRO = "o1-pro"
    GPT_4_1 = "gpt-4.1"
    GPT_4_1_MINI = "gpt-4.1-mini"
    GPT_4_1_NANO = "gpt-4.1-nano"


SUPPORTED_MIME_TYPES: tuple[str, ...] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
)
