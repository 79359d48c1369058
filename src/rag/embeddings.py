from __future__ import annotations

"""Embedding providers used for question and document chunk vectors."""

import hashlib
import math
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from openai import OpenAI

_TOKEN_RE = re.compile(r"[a-z0-9]+")

_OPENAI_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class EmbeddingError(RuntimeError):
    """Raised when embeddings fail or are invalid."""
    pass


class EmbeddingConfigError(RuntimeError):
    """Raised when embedding configuration is invalid."""
    pass


class EmbeddingProvider(Protocol):
    """Turns text into a fixed-length vector."""
    dimension: int

    def embed(self, text: str) -> list[float]:
        """Return an embedding vector for the provided text."""
        raise NotImplementedError


def validate_vector(vector: list[float], dimension: int) -> list[float]:
    """Check the vector length and that every value is a finite number."""
    if len(vector) != dimension:
        raise EmbeddingError(
            f"Embedding dimension mismatch: expected {dimension}, got {len(vector)}"
        )
    cleaned: list[float] = []
    for value in vector:
        if not isinstance(value, (int, float)):
            raise EmbeddingError("Embedding contains a non-numeric value")
        if not math.isfinite(value):
            raise EmbeddingError("Embedding contains a non-finite value")
        cleaned.append(float(value))
    return cleaned


@dataclass
class HashEmbedder:
    """Deterministic token-hashing embedder for tests and offline demos."""
    dimension: int = 256

    def embed(self, text: str) -> list[float]:
        tokens = _TOKEN_RE.findall(text.lower())
        vector = [0.0] * self.dimension
        for token in tokens:
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            vector[digest[0] % self.dimension] += 1.0
        norm = math.sqrt(sum(value * value for value in vector))
        if norm:
            vector = [value / norm for value in vector]
        return validate_vector(vector, self.dimension)


@dataclass
class OpenAIEmbedder:
    """Embedding provider backed by the OpenAI embeddings API."""
    api_key: str
    model: str = "text-embedding-3-small"
    dimension: int = 0
    timeout: float = 10.0
    client: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration and create the API client."""
        if not self.api_key:
            raise EmbeddingConfigError("OPENAI_API_KEY is required for OpenAIEmbedder")
        if not self.model:
            raise EmbeddingConfigError("OPENAI_EMBEDDING_MODEL is required for OpenAIEmbedder")
        expected = _OPENAI_DIMENSIONS.get(self.model)
        if self.dimension <= 0:
            if expected is None:
                raise EmbeddingConfigError(
                    "EMBEDDING_DIMENSION must be set for OpenAI embeddings when model is unknown"
                )
            self.dimension = expected
        elif expected is not None and self.dimension != expected:
            raise EmbeddingConfigError(
                f"EMBEDDING_DIMENSION should be {expected} for model {self.model}"
            )
        self.client = OpenAI(api_key=self.api_key, timeout=self.timeout)

    def embed(self, text: str) -> list[float]:
        """Embed text using the OpenAI embeddings API."""
        try:
            response = self.client.embeddings.create(model=self.model, input=text)
        except Exception as exc:
            raise EmbeddingError(type(exc).__name__) from exc
        if not response.data:
            raise EmbeddingError("Empty embedding response")
        return validate_vector(list(response.data[0].embedding), self.dimension)
