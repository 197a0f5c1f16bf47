"""Capability interface shared by provider implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..schema import (
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    GenerationRequest,
    GenerationResponse,
)
from .stream import BaseStreamIterator


class ContentGenerator(ABC):
    """Abstract interface every provider adapter implements identically."""

    @abstractmethod
    async def generate_content(
        self,
        request: GenerationRequest,
        /,
        *,
        prompt_id: str | None = None,
    ) -> GenerationResponse:
        """Generate one complete canonical response for the request."""

    @abstractmethod
    async def generate_content_stream(
        self,
        request: GenerationRequest,
        /,
        *,
        prompt_id: str | None = None,
    ) -> BaseStreamIterator:
        """Return an async iterator of full-so-far canonical responses."""

    @abstractmethod
    async def count_tokens(self, request: GenerationRequest, /) -> CountTokensResponse:
        """Count (or estimate) the tokens of the request's conversation."""

    @abstractmethod
    async def embed_content(self, request: EmbedContentRequest, /) -> EmbedContentResponse:
        """Embed the request's content as exactly one vector."""
