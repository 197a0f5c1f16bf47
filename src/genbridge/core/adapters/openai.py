"""OpenAI chat-completions adapter exposing the canonical generator interface."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx
import openai

from ..errors import (
    AdapterError,
    EmptyConversation,
    ProviderAPIError,
    ProviderTransportError,
    UnsupportedContentShape,
)
from ..schema import (
    ContentEmbedding,
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    GenerationRequest,
    GenerationResponse,
)
from .base import ContentGenerator
from .stream import ProviderStreamIterator, StreamChunk
from .utils import (
    coerce_mapping,
    estimate_tokens,
    has_dialogue,
    map_openai_finish_reason,
    openai_usage,
    to_canonical_response,
    to_embedding_text,
    to_openai_messages,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

OPENAI_PROVIDER_ERRORS: tuple[type[Exception], ...] = (openai.APIError, httpx.TransportError, OSError)


class OpenAIContentGenerator(ContentGenerator):
    """Translate canonical requests to OpenAI's chat completion API."""

    def __init__(
        self,
        client: Any,
        *,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
    ) -> None:
        if not embedding_model:
            msg = "embedding_model must be a non-empty string"
            raise ValueError(msg)
        self._client = client
        self._embedding_model = embedding_model

    @classmethod
    def from_api_key(
        cls,
        api_key: str,
        *,
        base_url: str | None = None,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
    ) -> OpenAIContentGenerator:
        """Build an adapter around a fresh ``openai.AsyncOpenAI`` client."""

        client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)
        return cls(client, embedding_model=embedding_model)

    @property
    def embedding_model(self) -> str:
        return self._embedding_model

    async def generate_content(
        self,
        request: GenerationRequest,
        /,
        *,
        prompt_id: str | None = None,
    ) -> GenerationResponse:
        payload = self._build_payload(request, stream=False)
        LOGGER.debug(
            "generate_content model=%s messages=%s prompt_id=%s",
            payload["model"],
            len(payload["messages"]),
            prompt_id,
        )

        response = await _call(self._client.chat.completions.create, payload)
        return to_canonical_response(response)

    async def generate_content_stream(
        self,
        request: GenerationRequest,
        /,
        *,
        prompt_id: str | None = None,
    ) -> ProviderStreamIterator:
        payload = self._build_payload(request, stream=True)
        LOGGER.debug(
            "generate_content_stream model=%s messages=%s prompt_id=%s",
            payload["model"],
            len(payload["messages"]),
            prompt_id,
        )

        stream = await _call(self._client.chat.completions.create, payload)
        return ProviderStreamIterator(
            stream,
            OpenAIStreamNormalizer(),
            error_translator=translate_openai_error,
            provider_errors=OPENAI_PROVIDER_ERRORS,
        )

    async def count_tokens(self, request: GenerationRequest, /) -> CountTokensResponse:
        # The chat API has no token counting endpoint.
        messages = to_openai_messages(request.contents, request.system_instruction)
        return CountTokensResponse(total_tokens=estimate_tokens(messages))

    async def embed_content(self, request: EmbedContentRequest, /) -> EmbedContentResponse:
        text = to_embedding_text(request.contents)
        if not text:
            msg = "embedding input contains no text"
            raise EmptyConversation(msg)

        LOGGER.debug("embed_content model=%s length=%s", self._embedding_model, len(text))
        response = await _call(
            self._client.embeddings.create,
            {"model": self._embedding_model, "input": text},
        )
        return EmbedContentResponse(embeddings=(ContentEmbedding(values=_first_embedding(response)),))

    def _build_payload(self, request: GenerationRequest, *, stream: bool) -> dict[str, Any]:
        messages = to_openai_messages(request.contents, request.system_instruction)
        if not has_dialogue(messages):
            msg = "conversation contains no text-bearing user or model turn"
            raise EmptyConversation(msg)

        payload: dict[str, Any] = {"model": request.model, "messages": messages}
        config = request.config
        for key, value in (
            ("temperature", config.temperature),
            ("max_tokens", config.max_output_tokens),
            ("top_p", config.top_p),
        ):
            if value is not None:
                payload[key] = value
        if stream:
            payload["stream"] = True
        return payload


class OpenAIStreamNormalizer:
    """Normalize OpenAI streaming chunks into canonical stream chunks."""

    def normalize_chunk(self, chunk: Mapping[str, Any]) -> StreamChunk:
        choice: Mapping[str, Any] = {}
        choices = chunk.get("choices")
        if isinstance(choices, Sequence) and choices:
            choice = coerce_mapping(choices[0], path="choices[0]")

        delta_payload = choice.get("delta")
        delta = coerce_mapping(delta_payload, path="choices[0].delta") if delta_payload else {}

        content = delta.get("content")
        if content is None:
            content = ""
        elif not isinstance(content, str):
            msg = "OpenAI delta content fragments must be strings"
            raise UnsupportedContentShape(msg)

        raw_finish_reason = choice.get("finish_reason")
        finish_reason = None if raw_finish_reason is None else map_openai_finish_reason(raw_finish_reason)

        usage_payload = chunk.get("usage")
        usage = None if usage_payload is None else openai_usage(usage_payload)

        return StreamChunk(delta=content, finish_reason=finish_reason, usage=usage)


def translate_openai_error(exc: Exception) -> AdapterError:
    """Map an exception raised by the OpenAI SDK onto the adapter taxonomy."""

    if isinstance(exc, AdapterError):
        return exc

    if isinstance(exc, openai.APIConnectionError):
        return ProviderTransportError(f"OpenAI connection failed: {exc}")

    if isinstance(exc, openai.APIStatusError):
        return ProviderAPIError(
            f"OpenAI API error: {exc}",
            status_code=exc.status_code,
            code=_error_code(exc),
        )

    if isinstance(exc, openai.APIError):
        return ProviderAPIError(f"OpenAI API error: {exc}", code=_error_code(exc))

    return ProviderTransportError(f"OpenAI transport failed: {exc}")


async def _call(creator: Callable[..., Any], payload: Mapping[str, Any]) -> Any:
    try:
        result = creator(**payload)
        if inspect.isawaitable(result):
            result = await result
    except OPENAI_PROVIDER_ERRORS as exc:
        raise translate_openai_error(exc) from exc
    return result


def _first_embedding(response: Any) -> tuple[float, ...]:
    data = coerce_mapping(response, path="response").get("data")
    if not isinstance(data, Sequence) or not data:
        msg = "OpenAI embedding response missing data"
        raise ProviderAPIError(msg)

    vector = coerce_mapping(data[0], path="data[0]").get("embedding")
    if not isinstance(vector, Sequence) or isinstance(vector, (str, bytes, bytearray)):
        msg = "OpenAI embedding response missing vector"
        raise ProviderAPIError(msg)
    return tuple(float(value) for value in vector)


def _error_code(exc: Exception) -> str | None:
    code = getattr(exc, "code", None)
    return code if isinstance(code, str) else None


__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "OPENAI_PROVIDER_ERRORS",
    "OpenAIContentGenerator",
    "OpenAIStreamNormalizer",
    "translate_openai_error",
]
