from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    db_uri_raw: str = os.getenv("CONCIERGE_DB_URI", "sqlite:///./concierge.db")
    vectorstore_backend_raw: str = os.getenv("CONCIERGE_VECTORSTORE", "memory")
    embedding_provider_raw: str = os.getenv("EMBEDDING_PROVIDER", "hash")
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "256"))
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_embedding_model: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    openai_chat_model: str | None = os.getenv("OPENAI_CHAT_MODEL", "gpt-4-turbo-preview")
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_chat_model: str | None = os.getenv("GEMINI_CHAT_MODEL")
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3.1")
    llm_provider_raw: str = os.getenv("CONCIERGE_LLM_PROVIDER", "openai")
    llm_timeout: float = float(os.getenv("CONCIERGE_LLM_TIMEOUT", "30"))
    retrieval_timeout: float = float(os.getenv("CONCIERGE_RETRIEVAL_TIMEOUT", "10"))
    chunk_size: int = int(os.getenv("CONCIERGE_CHUNK_SIZE", "1000"))
    chunk_overlap: int = int(os.getenv("CONCIERGE_CHUNK_OVERLAP", "200"))
    api_key_map_raw: str = os.getenv("CONCIERGE_API_KEY_MAP", "")
    metrics_enabled: bool = os.getenv("CONCIERGE_METRICS_ENABLED", "true").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("CONCIERGE_LOG_LEVEL", "INFO")

    @property
    def db_uri(self) -> str:
        return os.getenv("CONCIERGE_DB_URI", self.db_uri_raw)

    @property
    def vectorstore_backend(self) -> str:
        return os.getenv("CONCIERGE_VECTORSTORE", self.vectorstore_backend_raw)

    @property
    def embedding_provider(self) -> str:
        return os.getenv("EMBEDDING_PROVIDER", self.embedding_provider_raw)

    @property
    def llm_provider(self) -> str:
        return os.getenv("CONCIERGE_LLM_PROVIDER", self.llm_provider_raw)

    @property
    def api_key_map(self) -> dict[str, dict[str, str]]:
        """Map API keys to ``{"role": ..., "hotel_id": ...}`` entries."""
        raw = os.getenv("CONCIERGE_API_KEY_MAP", self.api_key_map_raw).strip()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        result: dict[str, dict[str, str]] = {}
        for key, value in data.items():
            if not isinstance(key, str) or not isinstance(value, dict):
                continue
            role = value.get("role")
            hotel_id = value.get("hotel_id")
            if not isinstance(role, str) or hotel_id is None:
                continue
            result[key] = {"role": role.strip().lower(), "hotel_id": str(hotel_id).strip()}
        return result


settings = Settings()
