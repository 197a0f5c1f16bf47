"""Adapter interfaces and provider implementations."""

from __future__ import annotations

from .base import ContentGenerator
from .factory import create_content_generator
from .gemini import GeminiContentGenerator
from .openai import OpenAIContentGenerator
from .stream import (
    BaseStreamIterator,
    ProviderStreamIterator,
    StreamAccumulator,
    StreamChunk,
    replay_stream,
)
from .utils import estimate_tokens, to_canonical_response, to_openai_messages

__all__ = [
    "BaseStreamIterator",
    "ContentGenerator",
    "GeminiContentGenerator",
    "OpenAIContentGenerator",
    "ProviderStreamIterator",
    "StreamAccumulator",
    "StreamChunk",
    "create_content_generator",
    "estimate_tokens",
    "replay_stream",
    "to_canonical_response",
    "to_openai_messages",
]
