"""Stream accumulation primitives and base iterators for streaming adapters."""

from __future__ import annotations

import abc
import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Protocol

from ..errors import AdapterError, ProviderAPIError
from ..schema import FinishReason, GenerationResponse, UsageMetadata
from .utils import coerce_mapping

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StreamChunk:
    """Provider-neutral view of one incremental streaming delta."""

    delta: str = ""
    finish_reason: FinishReason | None = None
    usage: UsageMetadata | None = None


@dataclass(slots=True)
class StreamAccumulator:
    """Fold successive deltas of one stream into full-so-far responses.

    An accumulator belongs to exactly one in-flight stream. Every call to
    :meth:`fold` appends the chunk's delta and returns a response carrying the
    entire text accumulated so far, so consumers observe monotonically growing
    text rather than bare deltas. The finish reason starts as
    :attr:`FinishReason.OTHER` and only changes when a chunk carries a signal.
    Usage stays zero until the provider reports it.
    """

    text: str = ""
    finish_reason: FinishReason = FinishReason.OTHER
    usage: UsageMetadata = field(default_factory=UsageMetadata)
    chunk_count: int = 0

    def fold(self, chunk: StreamChunk) -> GenerationResponse:
        self.text += chunk.delta
        if chunk.finish_reason is not None:
            self.finish_reason = chunk.finish_reason
        if chunk.usage is not None:
            self.usage = chunk.usage
        self.chunk_count += 1

        return GenerationResponse.from_text(
            self.text,
            finish_reason=self.finish_reason,
            usage=self.usage,
        )


class StreamNormalizer(Protocol):
    def normalize_chunk(self, chunk: Mapping[str, Any]) -> StreamChunk:
        """Map a provider-specific chunk into a canonical stream chunk."""


class BaseStreamIterator(AsyncIterator[GenerationResponse], metaclass=abc.ABCMeta):
    """Shared async iterator driving provider-specific streaming adapters.

    Subclasses source raw provider chunks by implementing
    :meth:`_get_next_chunk`. Each chunk is normalized into a
    :class:`StreamChunk` and folded into the iterator's own
    :class:`StreamAccumulator`, yielding one :class:`GenerationResponse` per
    provider chunk. The iterator is finite and cannot be restarted; it closes
    the provider stream when the transport ends, when a failure surfaces, or
    when the consumer calls :meth:`aclose`. Use it as an async context manager
    so that leaving a loop early still releases the provider stream:

    .. code-block:: python

        async with await generator.generate_content_stream(request) as stream:
            async for response in stream:
                ...
    """

    def __init__(self, normalizer: StreamNormalizer) -> None:
        self._normalizer = normalizer
        self._accumulator = StreamAccumulator()
        self._closed = False
        self._close_lock = asyncio.Lock()

    def __aiter__(self) -> BaseStreamIterator:
        return self

    async def __aenter__(self) -> BaseStreamIterator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def __anext__(self) -> GenerationResponse:
        if self._closed:
            raise StopAsyncIteration

        chunk = await self._consume_chunk()
        try:
            normalized = self._normalizer.normalize_chunk(chunk)
        except Exception:
            await self.close()
            raise
        return self._accumulator.fold(normalized)

    @property
    def closed(self) -> bool:
        """Whether the iterator has released its provider stream."""

        return self._closed

    async def close(self) -> None:
        """Release provider resources and prevent additional iteration."""

        async with self._close_lock:
            if self._closed:
                return

            self._closed = True
            LOGGER.debug(
                "stream closed chunks=%s length=%s finish_reason=%s",
                self._accumulator.chunk_count,
                len(self._accumulator.text),
                self._accumulator.finish_reason.value,
            )
            await self._on_close()

    async def aclose(self) -> None:
        await self.close()

    async def _consume_chunk(self) -> Mapping[str, Any]:
        try:
            return await self._get_next_chunk()
        except Exception:
            await self.close()
            raise

    @abc.abstractmethod
    async def _get_next_chunk(self) -> Mapping[str, Any]:
        """Retrieve the next raw chunk from the provider stream."""

    async def _on_close(self) -> None:
        """Allow subclasses to dispose provider resources when closing."""


class ProviderStreamIterator(BaseStreamIterator):
    """Stream iterator over an SDK async stream of provider chunks.

    Only exceptions listed in ``provider_errors`` are passed through
    ``error_translator``; anything else propagates unchanged.
    """

    def __init__(
        self,
        stream: Any,
        normalizer: StreamNormalizer,
        *,
        error_translator: Callable[[Exception], AdapterError],
        provider_errors: tuple[type[Exception], ...],
    ) -> None:
        self._stream = stream
        self._iterator: Any = None
        self._error_translator = error_translator
        self._provider_errors = provider_errors
        super().__init__(normalizer)

    async def _get_next_chunk(self) -> Mapping[str, Any]:
        if self._iterator is None:
            self._iterator = self._coerce_async_iterator(self._stream)

        try:
            raw_chunk = await self._iterator.__anext__()
        except self._provider_errors as exc:
            raise self._error_translator(exc) from exc

        return coerce_mapping(raw_chunk, path="chunk")

    async def _on_close(self) -> None:
        for closer_name in ("aclose", "close"):
            closer = getattr(self._stream, closer_name, None)
            if closer is None:
                continue
            result = closer()
            if inspect.isawaitable(result):
                await result
            return

    def _coerce_async_iterator(self, stream: Any) -> Any:
        iterator_factory = getattr(stream, "__aiter__", None)
        if iterator_factory is None or not callable(iterator_factory):
            msg = "provider stream must support async iteration"
            raise ProviderAPIError(msg)
        iterator = iterator_factory()
        if not hasattr(iterator, "__anext__"):
            msg = "provider stream iterator must define '__anext__'"
            raise ProviderAPIError(msg)
        return iterator


async def replay_stream(iterator: BaseStreamIterator) -> List[GenerationResponse]:
    """Collect all responses emitted by a stream iterator."""

    responses: List[GenerationResponse] = []
    async with iterator:
        async for response in iterator:
            responses.append(response)
    return responses


__all__ = [
    "BaseStreamIterator",
    "ProviderStreamIterator",
    "StreamAccumulator",
    "StreamChunk",
    "StreamNormalizer",
    "replay_stream",
]
