"""Text generation and speech synthesis client tests (httpx.MockTransport)."""

from __future__ import annotations

import json

import anthropic
import httpx
import pytest

from toastyou.config import Settings
from toastyou.errors import GenerationFailedError
from toastyou.toasts.generation import (
    AnthropicTextGenerator,
    AudioStore,
    ElevenLabsSynthesizer,
    FallbackSynthesizer,
    NullSynthesizer,
    OpenAISpeechSynthesizer,
    OpenAITextGenerator,
    TemplateTextGenerator,
    get_speech_synthesizer,
    get_text_generator,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestOpenAITextGenerator:
    @pytest.mark.asyncio
    async def test_returns_stripped_content(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "  Cheers!  "}}]})

        gen = OpenAITextGenerator("sk-test", model="gpt-test", client=_client(handler))
        text = await gen.generate("prompt", system="be kind")

        assert text == "Cheers!"
        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-test"
        assert seen["body"]["messages"][0] == {"role": "system", "content": "be kind"}

    @pytest.mark.asyncio
    async def test_http_error_wrapped(self):
        gen = OpenAITextGenerator("sk-test", client=_client(lambda r: httpx.Response(500, json={})))
        with pytest.raises(GenerationFailedError) as exc_info:
            await gen.generate("prompt")
        assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_malformed_body_wrapped(self):
        gen = OpenAITextGenerator("sk-test", client=_client(lambda r: httpx.Response(200, json={"choices": []})))
        with pytest.raises(GenerationFailedError):
            await gen.generate("prompt")

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self):
        body = {"choices": [{"message": {"content": "   "}}]}
        gen = OpenAITextGenerator("sk-test", client=_client(lambda r: httpx.Response(200, json=body)))
        with pytest.raises(GenerationFailedError):
            await gen.generate("prompt")

    @pytest.mark.asyncio
    async def test_non_json_wrapped(self):
        gen = OpenAITextGenerator("sk-test", client=_client(lambda r: httpx.Response(200, content=b"<html>")))
        with pytest.raises(GenerationFailedError):
            await gen.generate("prompt")


class TestAnthropicTextGenerator:
    @staticmethod
    def _sdk(handler) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(api_key="ak-test", http_client=_client(handler), max_retries=0)

    @pytest.mark.asyncio
    async def test_returns_text_block(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "id": "msg_1",
                    "type": "message",
                    "role": "assistant",
                    "model": "claude-test",
                    "content": [{"type": "text", "text": " Cheers! "}],
                    "stop_reason": "end_turn",
                    "stop_sequence": None,
                    "usage": {"input_tokens": 1, "output_tokens": 1},
                },
            )

        gen = AnthropicTextGenerator("ak-test", model="claude-test", client=self._sdk(handler))
        text = await gen.generate("prompt", system="be kind")

        assert text == "Cheers!"
        assert seen["path"] == "/v1/messages"
        assert seen["body"]["system"] == "be kind"
        assert seen["body"]["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self):
        body = {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}
        gen = AnthropicTextGenerator("ak-test", client=self._sdk(lambda r: httpx.Response(529, json=body)))
        with pytest.raises(GenerationFailedError) as exc_info:
            await gen.generate("prompt")
        assert isinstance(exc_info.value.cause, anthropic.APIError)


class TestTemplateTextGenerator:
    @pytest.mark.asyncio
    async def test_uses_note_count_from_prompt(self):
        text = await TemplateTextGenerator().generate("Intro\nReflections this week: 4\n")
        assert "4" in text

    @pytest.mark.asyncio
    async def test_explicit_count(self):
        assert "7 " in await TemplateTextGenerator(note_count=7).generate("")


class TestSpeech:
    @pytest.mark.asyncio
    async def test_elevenlabs_saves_audio(self, tmp_path):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["key"] = request.headers["xi-api-key"]
            return httpx.Response(200, content=b"ID3audio")

        store = AudioStore(tmp_path, "/media/audio")
        synth = ElevenLabsSynthesizer("el-key", store, client=_client(handler))
        url = await synth.synthesize("Cheers!", "maeve")

        assert seen["path"] == "/v1/text-to-speech/XB0fDUnXU5powFXDhCwa"
        assert seen["key"] == "el-key"
        assert url.startswith("/media/audio/elevenlabs-")
        files = list(tmp_path.iterdir())
        assert len(files) == 1
        assert files[0].read_bytes() == b"ID3audio"

    @pytest.mark.asyncio
    async def test_openai_speech_maps_voice(self, tmp_path):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"mp3")

        synth = OpenAISpeechSynthesizer("sk", AudioStore(tmp_path, "/a"), client=_client(handler))
        await synth.synthesize("Cheers!", "unknown-voice")
        assert seen["body"]["voice"] == "alloy"

    @pytest.mark.asyncio
    async def test_fallback_tries_next_provider(self, tmp_path):
        failing = ElevenLabsSynthesizer(
            "k", AudioStore(tmp_path, "/a"), client=_client(lambda r: httpx.Response(401))
        )
        working = OpenAISpeechSynthesizer(
            "k", AudioStore(tmp_path, "/a"), client=_client(lambda r: httpx.Response(200, content=b"x"))
        )
        url = await FallbackSynthesizer([failing, working]).synthesize("hi")
        assert url is not None
        assert url.startswith("/a/openai-tts-")

    @pytest.mark.asyncio
    async def test_fallback_reraises_last_error(self, tmp_path):
        failing = ElevenLabsSynthesizer(
            "k", AudioStore(tmp_path, "/a"), client=_client(lambda r: httpx.Response(503))
        )
        with pytest.raises(httpx.HTTPStatusError):
            await FallbackSynthesizer([failing]).synthesize("hi")


class TestFactories:
    def test_no_keys_gives_offline_clients(self):
        settings = Settings(openai_api_key="", anthropic_api_key="", elevenlabs_api_key="")
        assert isinstance(get_text_generator(settings), TemplateTextGenerator)
        assert isinstance(get_speech_synthesizer(settings), NullSynthesizer)

    def test_both_speech_keys_chain_providers(self):
        settings = Settings(openai_api_key="sk", elevenlabs_api_key="el")
        assert isinstance(get_text_generator(settings), OpenAITextGenerator)
        synth = get_speech_synthesizer(settings)
        assert isinstance(synth, FallbackSynthesizer)
        assert [type(p) for p in synth.providers] == [ElevenLabsSynthesizer, OpenAISpeechSynthesizer]

    def test_anthropic_used_without_openai_key(self):
        settings = Settings(openai_api_key="", anthropic_api_key="ak")
        assert isinstance(get_text_generator(settings), AnthropicTextGenerator)
