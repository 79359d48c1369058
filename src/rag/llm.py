from __future__ import annotations

"""Answer generators backed by chat completion APIs."""

from dataclasses import dataclass
import asyncio
from typing import Protocol

import httpx

from src.rag.types import GenerationResult


class LLMError(RuntimeError):
    """Raised when LLM requests fail or responses are invalid."""
    pass


DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 500

NO_ANSWER_APOLOGY = (
    "I apologize, but I cannot provide an answer at this time. "
    "Please contact the hotel staff for assistance."
)

_LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
}

_SYSTEM_PROMPT = (
    "You are a helpful, professional hotel concierge assistant. "
    "Answer guest questions based on the hotel information provided. "
    "Be polite, concise, and accurate. "
    "If you're not confident about an answer, suggest contacting hotel staff. "
    "Respond in {language}."
)


def system_prompt(language: str) -> str:
    """Return the concierge persona prompt for the guest's language."""
    code = (language or "en").strip().lower()
    return _SYSTEM_PROMPT.format(language=_LANGUAGE_NAMES.get(code, language))


def user_content(context: str, question: str) -> str:
    return f"Context:\n{context}\n\nGuest Question: {question}"


def resolve_answer_text(result: GenerationResult) -> str:
    """Return the generated text, or the staff-contact apology when empty."""
    text = (result.text or "").strip()
    return text or NO_ANSWER_APOLOGY


class AnswerGenerator(Protocol):
    """Turns a system prompt and user content into completion text."""

    async def generate(self, system_prompt: str, user_content: str) -> GenerationResult:
        raise NotImplementedError


def _normalize_finish_reason(value: object) -> str | None:
    if value is None:
        return None
    name = getattr(value, "name", value)
    return str(name).strip().lower() or None


@dataclass(frozen=True)
class OpenAIGenerator:
    """Generator backed by OpenAI chat completions."""
    api_key: str
    base_url: str
    model: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = 30.0

    async def generate(self, system_prompt: str, user_content: str) -> GenerationResult:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMError(type(exc).__name__) from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise LLMError("Invalid OpenAI response")
        choice = choices[0]
        message = choice.get("message") or {}
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise LLMError("Invalid OpenAI response content")
        return GenerationResult(
            text=content or "",
            finish_reason=_normalize_finish_reason(choice.get("finish_reason")),
        )


@dataclass(frozen=True)
class OllamaGenerator:
    """Generator backed by the Ollama chat API."""
    base_url: str
    model: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = 60.0

    async def generate(self, system_prompt: str, user_content: str) -> GenerationResult:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/chat", json=payload)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMError(type(exc).__name__) from exc
        if not isinstance(data, dict):
            raise LLMError("Invalid LLM response")
        message = data.get("message") or {}
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise LLMError("Invalid LLM response")
        return GenerationResult(
            text=content or "",
            finish_reason=_normalize_finish_reason(data.get("done_reason")),
        )


@dataclass(frozen=True)
class GeminiGenerator:
    """Generator backed by Gemini generative models."""
    api_key: str
    model: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = 30.0

    async def generate(self, system_prompt: str, user_content: str) -> GenerationResult:
        import google.generativeai as genai

        prompt = f"{system_prompt}\n\n{user_content}"

        def _run() -> GenerationResult:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model)
            response = model.generate_content(
                prompt,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_tokens,
                },
            )
            candidates = getattr(response, "candidates", None) or []
            finish_reason = candidates[0].finish_reason if candidates else None
            try:
                text = response.text or ""
            except ValueError:
                # Blocked or empty candidates have no text accessor.
                text = ""
            return GenerationResult(
                text=text,
                finish_reason=_normalize_finish_reason(finish_reason),
            )

        try:
            return await asyncio.wait_for(asyncio.to_thread(_run), timeout=self.timeout)
        except Exception as exc:
            raise LLMError(type(exc).__name__) from exc


def build_answer_generator(
    provider: str,
    *,
    api_key_openai: str | None,
    api_key_gemini: str | None,
    openai_base_url: str,
    openai_model: str | None,
    gemini_model: str | None,
    ollama_base_url: str,
    ollama_model: str,
    timeout: float,
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> OpenAIGenerator | OllamaGenerator | GeminiGenerator:
    """Factory for answer generators based on provider."""
    normalized = provider.strip().lower()
    if normalized == "openai":
        if not api_key_openai:
            raise LLMError("OPENAI_API_KEY is required for OpenAI provider")
        if not openai_model:
            raise LLMError("OPENAI_CHAT_MODEL is required for OpenAI provider")
        return OpenAIGenerator(
            api_key=api_key_openai,
            base_url=openai_base_url.rstrip("/"),
            model=openai_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
    if normalized in {"gemini", "google"}:
        if not api_key_gemini:
            raise LLMError("GEMINI_API_KEY is required for Gemini provider")
        if not gemini_model:
            raise LLMError("GEMINI_CHAT_MODEL is required for Gemini provider")
        return GeminiGenerator(
            api_key=api_key_gemini,
            model=gemini_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
    return OllamaGenerator(
        base_url=ollama_base_url.rstrip("/"),
        model=ollama_model,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
    )
