"""
Text generation and speech synthesis clients with provider abstraction.

Text: OpenAI chat completions or the Anthropic messages API, or a template
generator when no key is set.
Speech: ElevenLabs with OpenAI speech as fallback, or nothing at all.
Providers are selected via configuration.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import anthropic
import httpx
import structlog

from toastyou.config import Settings
from toastyou.errors import GenerationFailedError
from toastyou.toasts.voices import get_voice

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Text generation
# ---------------------------------------------------------------------------


class TextGenerator(ABC):
    """Abstract base class for toast prose providers."""

    @abstractmethod
    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        """Return generated text. Raises GenerationFailedError on any failure."""
        ...


class OpenAITextGenerator(TextGenerator):
    """Chat completions over the OpenAI HTTP API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 400,
        temperature: float = 0.7,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._client.post(url, headers=headers, json=payload)
        async with httpx.AsyncClient() as client:
            return await client.post(url, headers=headers, json=payload)

    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self._post(
                "/chat/completions",
                {
                    "model": self.model,
                    "messages": messages,
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                },
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            logger.warning("text_generation_failed", provider="openai", error=str(exc))
            raise GenerationFailedError("Text generation request failed", cause=exc) from exc
        except ValueError as exc:
            raise GenerationFailedError("Text generation returned invalid JSON", cause=exc) from exc

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationFailedError("Text generation response was malformed", cause=exc) from exc
        if not isinstance(content, str) or not content.strip():
            raise GenerationFailedError("Text generation returned empty content")

        logger.info("text_generated", provider="openai", model=self.model, chars=len(content))
        return content.strip()


class AnthropicTextGenerator(TextGenerator):
    """Messages API via the Anthropic SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 400,
        temperature: float = 0.7,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            logger.warning("text_generation_failed", provider="anthropic", error=str(exc))
            raise GenerationFailedError("Text generation request failed", cause=exc) from exc

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if not text.strip():
            raise GenerationFailedError("Text generation returned empty content")

        logger.info("text_generated", provider="anthropic", model=self.model, chars=len(text))
        return text.strip()


FALLBACK_TEMPLATES = (
    "Here's to a week of reflection and growth! You took time to document {count} moments "
    "this week. Each note represents a step in your journey, so keep building on this momentum!",
    "Celebrating your consistency this week! With {count} reflections, you're creating a "
    "valuable record of your journey. These moments of awareness are powerful tools for growth.",
    "A toast to your mindfulness! Your {count} reflections this week show your commitment to "
    "self-awareness. These insights will serve you well as you continue forward.",
)


class TemplateTextGenerator(TextGenerator):
    """Offline generator used when no text generation key is configured."""

    def __init__(self, note_count: int | None = None) -> None:
        self.note_count = note_count

    async def generate(self, prompt: str, *, system: str | None = None) -> str:
        count = self.note_count if self.note_count is not None else _count_from_prompt(prompt)
        return FALLBACK_TEMPLATES[count % len(FALLBACK_TEMPLATES)].format(count=count)


def _count_from_prompt(prompt: str) -> int:
    """Read the note count line written by compose_prompt."""
    for line in prompt.splitlines():
        if line.startswith("Reflections this week:"):
            try:
                return int(line.split(":", 1)[1].strip())
            except ValueError:
                break
    return 0


# ---------------------------------------------------------------------------
# Audio storage
# ---------------------------------------------------------------------------


class AudioStore:
    """Writes synthesized audio into a local media directory served at base_url."""

    def __init__(self, directory: str | Path, base_url: str) -> None:
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    async def save(self, data: bytes, prefix: str = "toast") -> str:
        filename = f"{prefix}-{int(time.time())}-{uuid.uuid4().hex[:8]}.mp3"
        path = self.directory / filename

        def _write() -> None:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        return f"{self.base_url}/{filename}"


# ---------------------------------------------------------------------------
# Speech synthesis
# ---------------------------------------------------------------------------


class SpeechSynthesizer(ABC):
    """Abstract base class for text-to-speech providers."""

    @abstractmethod
    async def synthesize(self, text: str, voice: str | None = None) -> str | None:
        """Return an audio URL, or None when no audio is produced."""
        ...


class NullSynthesizer(SpeechSynthesizer):
    """No speech provider configured: toasts are text-only."""

    async def synthesize(self, text: str, voice: str | None = None) -> str | None:
        return None


class ElevenLabsSynthesizer(SpeechSynthesizer):
    """Text-to-speech via the ElevenLabs HTTP API."""

    def __init__(
        self,
        api_key: str,
        store: AudioStore,
        base_url: str = "https://api.elevenlabs.io/v1",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.stability = stability
        self.similarity_boost = similarity_boost
        self._client = client

    async def synthesize(self, text: str, voice: str | None = None) -> str | None:
        voice_id = get_voice(voice).elevenlabs_id
        url = f"{self.base_url}/text-to-speech/{voice_id}"
        headers = {"xi-api-key": self.api_key, "Accept": "audio/mpeg"}
        payload = {
            "text": text,
            "model_id": "eleven_monolingual_v1",
            "voice_settings": {"stability": self.stability, "similarity_boost": self.similarity_boost},
        }
        if self._client is not None:
            response = await self._client.post(url, headers=headers, json=payload)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, headers=headers, json=payload)
        response.raise_for_status()
        audio_url = await self.store.save(response.content, prefix="elevenlabs")
        logger.info("speech_synthesized", provider="elevenlabs", voice=voice_id, url=audio_url)
        return audio_url


class OpenAISpeechSynthesizer(SpeechSynthesizer):
    """Text-to-speech via the OpenAI audio endpoint."""

    def __init__(
        self,
        api_key: str,
        store: AudioStore,
        model: str = "tts-1",
        base_url: str = "https://api.openai.com/v1",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.store = store
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = client

    async def synthesize(self, text: str, voice: str | None = None) -> str | None:
        openai_voice = get_voice(voice).openai_voice
        url = f"{self.base_url}/audio/speech"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {"model": self.model, "voice": openai_voice, "input": text}
        if self._client is not None:
            response = await self._client.post(url, headers=headers, json=payload)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, headers=headers, json=payload)
        response.raise_for_status()
        audio_url = await self.store.save(response.content, prefix="openai-tts")
        logger.info("speech_synthesized", provider="openai", voice=openai_voice, url=audio_url)
        return audio_url


class FallbackSynthesizer(SpeechSynthesizer):
    """Try each provider in order; the first one that succeeds wins."""

    def __init__(self, providers: list[SpeechSynthesizer]) -> None:
        self.providers = providers

    async def synthesize(self, text: str, voice: str | None = None) -> str | None:
        last_error: Exception | None = None
        for provider in self.providers:
            try:
                return await provider.synthesize(text, voice)
            except Exception as exc:
                logger.warning("speech_provider_failed", provider=type(provider).__name__, error=str(exc))
                last_error = exc
        if last_error is not None:
            raise last_error
        return None


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def get_text_generator(settings: Settings) -> TextGenerator:
    """Create the configured text generator."""
    if settings.openai_api_key:
        return OpenAITextGenerator(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            max_tokens=settings.openai_max_tokens,
            temperature=settings.openai_temperature,
        )
    if settings.anthropic_api_key:
        return AnthropicTextGenerator(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            max_tokens=settings.openai_max_tokens,
            temperature=settings.openai_temperature,
        )
    return TemplateTextGenerator()


def get_speech_synthesizer(settings: Settings) -> SpeechSynthesizer:
    """Create the configured speech synthesizer chain."""
    store = AudioStore(settings.audio_dir, settings.audio_base_url)
    providers: list[SpeechSynthesizer] = []
    if settings.elevenlabs_api_key:
        providers.append(
            ElevenLabsSynthesizer(settings.elevenlabs_api_key, store, base_url=settings.elevenlabs_base_url)
        )
    if settings.openai_api_key:
        providers.append(
            OpenAISpeechSynthesizer(
                settings.openai_api_key, store, model=settings.openai_tts_model, base_url=settings.openai_base_url
            )
        )
    if not providers:
        return NullSynthesizer()
    if len(providers) == 1:
        return providers[0]
    return FallbackSynthesizer(providers)
