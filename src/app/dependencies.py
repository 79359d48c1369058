from __future__ import annotations

import logging
from functools import lru_cache

from src.app.settings import settings
from src.rag.context import ContextAssembler
from src.rag.embeddings import (
    EmbeddingConfigError,
    EmbeddingProvider,
    HashEmbedder,
    OpenAIEmbedder,
)
from src.rag.fallback import FallbackResponder
from src.rag.llm import (
    GeminiGenerator,
    LLMError,
    OllamaGenerator,
    OpenAIGenerator,
    build_answer_generator,
)
from src.rag.orchestrator import ChatOrchestrator
from src.storage.analytics import AnalyticsStore
from src.storage.hotels import HotelStore
from src.vectorstore.inmemory import InMemoryVectorStore
from src.vectorstore.sql import SQLVectorStore

logger = logging.getLogger(__name__)


@lru_cache
def get_hotel_store() -> HotelStore:
    return HotelStore(settings.db_uri)


@lru_cache
def get_analytics_store() -> AnalyticsStore:
    return AnalyticsStore(settings.db_uri)


@lru_cache
def get_embedder() -> EmbeddingProvider | None:
    """Build the configured embedder; misconfiguration disables document retrieval."""
    provider = settings.embedding_provider.lower().strip()
    try:
        if provider == "hash":
            return HashEmbedder(dimension=settings.embedding_dimension)
        if provider == "openai":
            return OpenAIEmbedder(
                api_key=settings.openai_api_key or "",
                model=settings.openai_embedding_model,
                dimension=settings.embedding_dimension,
                timeout=settings.retrieval_timeout,
            )
        raise EmbeddingConfigError(f"Unsupported embedding provider: {provider}")
    except EmbeddingConfigError as exc:
        logger.error("embedding_provider_unavailable", extra={"detail": str(exc)})
        return None


@lru_cache
def get_vector_store() -> InMemoryVectorStore | SQLVectorStore | None:
    backend = settings.vectorstore_backend.lower().strip()
    if backend in {"", "none"}:
        return None
    embedder = get_embedder()
    if embedder is None:
        return None
    if backend == "sql":
        return SQLVectorStore(embedder=embedder, connection_uri=settings.db_uri)
    return InMemoryVectorStore(embedder=embedder)


@lru_cache
def get_answer_generator() -> OpenAIGenerator | OllamaGenerator | GeminiGenerator | None:
    """Build the configured generator; misconfiguration leaves only the fallback path."""
    try:
        return build_answer_generator(
            settings.llm_provider,
            api_key_openai=settings.openai_api_key,
            api_key_gemini=settings.gemini_api_key,
            openai_base_url=settings.openai_base_url,
            openai_model=settings.openai_chat_model,
            gemini_model=settings.gemini_chat_model,
            ollama_base_url=settings.ollama_base_url,
            ollama_model=settings.ollama_model,
            timeout=settings.llm_timeout,
        )
    except LLMError as exc:
        logger.error("answer_generator_unavailable", extra={"detail": str(exc)})
        return None


@lru_cache
def get_orchestrator() -> ChatOrchestrator:
    store = get_hotel_store()
    vector_store = get_vector_store()
    assembler = ContextAssembler(
        hotels=store,
        embedder=get_embedder() if vector_store is not None else None,
        vector_store=vector_store,
        retrieval_timeout=settings.retrieval_timeout,
    )
    return ChatOrchestrator(
        store=store,
        assembler=assembler,
        fallback=FallbackResponder(source=store),
        generator=get_answer_generator(),
        analytics=get_analytics_store(),
        generation_timeout=settings.llm_timeout,
    )


def reset_caches() -> None:
    for factory in (
        get_hotel_store,
        get_analytics_store,
        get_embedder,
        get_vector_store,
        get_answer_generator,
        get_orchestrator,
    ):
        factory.cache_clear()
