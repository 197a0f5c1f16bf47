"""Adapter for the native multi-part content API served through google-genai."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors

from ..content import Role, Turn
from ..errors import (
    AdapterError,
    EmptyConversation,
    ProviderAPIError,
    ProviderTransportError,
)
from ..schema import (
    ContentEmbedding,
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    FinishReason,
    GenerationRequest,
    GenerationResponse,
    UsageMetadata,
)
from .base import ContentGenerator
from .stream import ProviderStreamIterator, StreamChunk
from .utils import coerce_count, coerce_mapping, to_embedding_text

LOGGER = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "gemini-embedding-001"

GEMINI_PROVIDER_ERRORS: tuple[type[Exception], ...] = (genai_errors.APIError, httpx.TransportError, OSError)

GEMINI_FINISH_REASONS: Mapping[str, FinishReason] = MappingProxyType(
    {
        "STOP": FinishReason.STOP,
        "MAX_TOKENS": FinishReason.MAX_TOKENS,
        "SAFETY": FinishReason.SAFETY,
    }
)


class GeminiContentGenerator(ContentGenerator):
    """Pass canonical turns to the multi-part content API and normalize replies."""

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
    ) -> GeminiContentGenerator:
        """Build an adapter around a fresh ``google.genai.Client``."""

        http_options = {"base_url": base_url} if base_url else None
        client = genai.Client(api_key=api_key, http_options=http_options)
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
        payload = self._build_payload(request)
        LOGGER.debug(
            "generate_content model=%s turns=%s prompt_id=%s",
            request.model,
            len(payload["contents"]),
            prompt_id,
        )

        response = await _call(self._client.aio.models.generate_content, payload)
        return to_canonical_response(response)

    async def generate_content_stream(
        self,
        request: GenerationRequest,
        /,
        *,
        prompt_id: str | None = None,
    ) -> ProviderStreamIterator:
        payload = self._build_payload(request)
        LOGGER.debug(
            "generate_content_stream model=%s turns=%s prompt_id=%s",
            request.model,
            len(payload["contents"]),
            prompt_id,
        )

        stream = await _call(self._client.aio.models.generate_content_stream, payload)
        return ProviderStreamIterator(
            stream,
            GeminiStreamNormalizer(),
            error_translator=translate_gemini_error,
            provider_errors=GEMINI_PROVIDER_ERRORS,
        )

    async def count_tokens(self, request: GenerationRequest, /) -> CountTokensResponse:
        # System instructions are not accepted by the count endpoint.
        contents, _ = to_gemini_contents(request.contents)
        if not contents:
            return CountTokensResponse(total_tokens=0)

        response = await _call(
            self._client.aio.models.count_tokens,
            {"model": request.model, "contents": contents},
        )
        total = coerce_mapping(response, path="response").get("total_tokens")
        return CountTokensResponse(total_tokens=coerce_count(total))

    async def embed_content(self, request: EmbedContentRequest, /) -> EmbedContentResponse:
        text = to_embedding_text(request.contents)
        if not text:
            msg = "embedding input contains no text"
            raise EmptyConversation(msg)

        LOGGER.debug("embed_content model=%s length=%s", self._embedding_model, len(text))
        response = await _call(
            self._client.aio.models.embed_content,
            {"model": self._embedding_model, "contents": text},
        )
        return EmbedContentResponse(embeddings=(ContentEmbedding(values=_first_embedding(response)),))

    def _build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        contents, system_texts = to_gemini_contents(request.contents)
        if not contents:
            msg = "conversation contains no text-bearing user or model turn"
            raise EmptyConversation(msg)

        if request.system_instruction is not None and request.system_instruction.text:
            system_texts.insert(0, request.system_instruction.text)

        config: dict[str, Any] = {}
        if system_texts:
            config["system_instruction"] = "\n".join(system_texts)
        for key, value in (
            ("temperature", request.config.temperature),
            ("max_output_tokens", request.config.max_output_tokens),
            ("top_p", request.config.top_p),
        ):
            if value is not None:
                config[key] = value

        payload: dict[str, Any] = {"model": request.model, "contents": contents}
        if config:
            payload["config"] = config
        return payload


class GeminiStreamNormalizer:
    """Normalize streamed content chunks into canonical stream chunks."""

    def normalize_chunk(self, chunk: Mapping[str, Any]) -> StreamChunk:
        candidate = _first_candidate(chunk)
        raw_finish_reason = candidate.get("finish_reason")
        finish_reason = None if raw_finish_reason is None else map_gemini_finish_reason(raw_finish_reason)

        usage_payload = chunk.get("usage_metadata")
        usage = None if usage_payload is None else gemini_usage(usage_payload)

        return StreamChunk(delta=_candidate_text(candidate), finish_reason=finish_reason, usage=usage)


def to_gemini_contents(conversation: Sequence[Turn]) -> tuple[list[dict[str, Any]], list[str]]:
    """Split a conversation into native content dictionaries and system texts.

    Turns without any non-empty text part are skipped. System-role turns are
    not valid dialogue entries, so their text is returned separately for the
    caller to merge into the system instruction.
    """

    contents: list[dict[str, Any]] = []
    system_texts: list[str] = []
    for turn in conversation:
        parts = [{"text": part.text} for part in turn.parts if part.text]
        if not parts:
            continue
        if turn.role is Role.SYSTEM:
            system_texts.append(turn.text)
            continue
        contents.append({"role": turn.role.value, "parts": parts})
    return contents, system_texts


def map_gemini_finish_reason(value: Any) -> FinishReason:
    """Map a native finish reason onto the canonical finish reason table."""

    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return GEMINI_FINISH_REASONS.get(value.upper(), FinishReason.OTHER)
    return FinishReason.OTHER


def gemini_usage(payload: Any) -> UsageMetadata:
    """Copy native usage counters, substituting zero for missing values."""

    if payload is None:
        return UsageMetadata()

    usage = coerce_mapping(payload, path="usage_metadata")
    return UsageMetadata(
        prompt_token_count=coerce_count(usage.get("prompt_token_count")),
        candidates_token_count=coerce_count(usage.get("candidates_token_count")),
        total_token_count=coerce_count(usage.get("total_token_count")),
    )


def to_canonical_response(response: Any) -> GenerationResponse:
    """Normalize a native response into a single-candidate canonical response."""

    mapping = coerce_mapping(response, path="response")
    candidate = _first_candidate(mapping)
    return GenerationResponse.from_text(
        _candidate_text(candidate),
        finish_reason=map_gemini_finish_reason(candidate.get("finish_reason")),
        usage=gemini_usage(mapping.get("usage_metadata")),
    )


def translate_gemini_error(exc: Exception) -> AdapterError:
    """Map an exception raised by google-genai onto the adapter taxonomy."""

    if isinstance(exc, AdapterError):
        return exc

    if isinstance(exc, genai_errors.APIError):
        code = getattr(exc, "code", None)
        status = getattr(exc, "status", None)
        return ProviderAPIError(
            f"Gemini API error: {exc}",
            status_code=code if isinstance(code, int) else None,
            code=status if isinstance(status, str) else None,
        )

    return ProviderTransportError(f"Gemini connection failed: {exc}")


async def _call(creator: Callable[..., Awaitable[Any]], payload: Mapping[str, Any]) -> Any:
    try:
        return await creator(**payload)
    except GEMINI_PROVIDER_ERRORS as exc:
        raise translate_gemini_error(exc) from exc


def _first_candidate(response: Mapping[str, Any]) -> Mapping[str, Any]:
    candidates = response.get("candidates")
    if not isinstance(candidates, Sequence) or not candidates:
        return {}
    return coerce_mapping(candidates[0], path="candidates[0]")


def _candidate_text(candidate: Mapping[str, Any]) -> str:
    content_payload = candidate.get("content")
    if not content_payload:
        return ""

    content = coerce_mapping(content_payload, path="candidates[0].content")
    fragments: list[str] = []
    for index, part_payload in enumerate(content.get("parts") or ()):
        part = coerce_mapping(part_payload, path=f"candidates[0].content.parts[{index}]")
        text = part.get("text")
        if isinstance(text, str) and not part.get("thought"):
            fragments.append(text)
    return "".join(fragments)


def _first_embedding(response: Any) -> tuple[float, ...]:
    embeddings = coerce_mapping(response, path="response").get("embeddings")
    if not isinstance(embeddings, Sequence) or not embeddings:
        msg = "Gemini embedding response missing embeddings"
        raise ProviderAPIError(msg)

    values = coerce_mapping(embeddings[0], path="embeddings[0]").get("values")
    if not isinstance(values, Sequence) or isinstance(values, (str, bytes, bytearray)):
        msg = "Gemini embedding response missing values"
        raise ProviderAPIError(msg)
    return tuple(float(value) for value in values)


__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "GEMINI_FINISH_REASONS",
    "GEMINI_PROVIDER_ERRORS",
    "GeminiContentGenerator",
    "GeminiStreamNormalizer",
    "gemini_usage",
    "map_gemini_finish_reason",
    "to_canonical_response",
    "to_gemini_contents",
    "translate_gemini_error",
]
