"""Abstract LLM provider with OpenAI and Anthropic adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fieldflow.config import Settings, get_settings
from fieldflow.errors import GatewayError
from fieldflow.services.audio import extension_for


class LLMProvider(ABC):
    """Abstract interface for the text and audio calls the gateway needs."""

    @abstractmethod
    async def chat(self, prompt: str) -> str:
        """Text-only chat completion."""
        ...

    @abstractmethod
    async def transcribe(self, audio: bytes, mime_type: str) -> str:
        """Speech-to-text for a recorded job request."""
        ...


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions + Whisper transcription."""

    def __init__(self, api_key: str, model: str = "gpt-4o", transcription_model: str = "whisper-1"):
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.transcription_model = transcription_model

    async def chat(self, prompt: str) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
            max_tokens=2048,
        )
        return resp.choices[0].message.content

    async def transcribe(self, audio: bytes, mime_type: str) -> str:
        resp = await self.client.audio.transcriptions.create(
            model=self.transcription_model,
            file=(f"request.{extension_for(mime_type)}", audio, mime_type),
        )
        return resp.text


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider. Text only."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        from anthropic import AsyncAnthropic
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model

    async def chat(self, prompt: str) -> str:
        resp = await self.client.messages.create(
            model=self.model,
            max_tokens=2048,
            messages=[{"role": "user", "content": [{"type": "text", "text": prompt}]}],
        )
        return resp.content[0].text

    async def transcribe(self, audio: bytes, mime_type: str) -> str:
        raise GatewayError("The Anthropic provider cannot transcribe audio; configure an OpenAI key")


def get_llm_provider(settings: Settings | None = None) -> LLMProvider:
    """Factory: honours ai.provider, otherwise OpenAI if a key is set, else Anthropic."""
    settings = settings or get_settings()
    choice = settings.ai.provider
    if choice in ("auto", "openai") and settings.openai_api_key:
        return OpenAIProvider(
            settings.openai_api_key,
            model=settings.ai.openai_model,
            transcription_model=settings.ai.transcription_model,
        )
    if choice in ("auto", "anthropic") and settings.anthropic_api_key:
        return AnthropicProvider(settings.anthropic_api_key, model=settings.ai.anthropic_model)
    raise RuntimeError("No LLM API key configured. Set OPENAI_API_KEY or ANTHROPIC_API_KEY.")
