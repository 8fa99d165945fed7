"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from toastyou.config import get_settings
from toastyou.database import get_session as _get_session
from toastyou.redis_client import get_redis as _get_redis
from toastyou.toasts.generation import (
    SpeechSynthesizer,
    TextGenerator,
    get_speech_synthesizer,
    get_text_generator,
)

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client as a FastAPI dependency."""
    yield _get_redis()


def get_text_generator_dep() -> TextGenerator:
    """Text generation client configured from settings."""
    return get_text_generator(get_settings())


def get_speech_synthesizer_dep() -> SpeechSynthesizer:
    """Speech synthesis client configured from settings."""
    return get_speech_synthesizer(get_settings())
