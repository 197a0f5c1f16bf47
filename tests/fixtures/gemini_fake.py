"""Deterministic google-genai client fixtures for offline adapter tests."""

from __future__ import annotations

from collections import deque
from types import SimpleNamespace
from typing import Any, Mapping, Sequence

from tests.fixtures.openai_fake import FakeAsyncStream


class FakeModels:
    """Async stub for ``client.aio.models`` recording every call."""

    def __init__(
        self,
        *,
        response: Any = None,
        streams: Sequence[FakeAsyncStream] = (),
        total_tokens: int = 0,
        vector: Sequence[float] = (0.5, 0.25),
        error: BaseException | None = None,
    ) -> None:
        self._response = response
        self._streams = deque(streams)
        self._total_tokens = total_tokens
        self._vector = list(vector)
        self._error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self._record("generate_content", kwargs)
        return self._response

    async def generate_content_stream(self, **kwargs: Any) -> FakeAsyncStream:
        self._record("generate_content_stream", kwargs)
        return self._streams.popleft()

    async def count_tokens(self, **kwargs: Any) -> SimpleNamespace:
        self._record("count_tokens", kwargs)
        return SimpleNamespace(total_tokens=self._total_tokens)

    async def embed_content(self, **kwargs: Any) -> dict[str, Any]:
        self._record("embed_content", kwargs)
        return {"embeddings": [{"values": list(self._vector)}]}

    def _record(self, name: str, kwargs: Mapping[str, Any]) -> None:
        self.calls.append((name, dict(kwargs)))
        if self._error is not None:
            raise self._error


def build_client(
    *,
    response: Any = None,
    chunks: Sequence[Sequence[Any]] = (),
    total_tokens: int = 0,
    vector: Sequence[float] = (0.5, 0.25),
    error: BaseException | None = None,
) -> tuple[SimpleNamespace, FakeModels, list[FakeAsyncStream]]:
    """Return a fake genai client, its models stub, and its queued streams."""

    streams = [FakeAsyncStream(stream_chunks) for stream_chunks in chunks]
    models = FakeModels(
        response=response,
        streams=streams,
        total_tokens=total_tokens,
        vector=vector,
        error=error,
    )
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return client, models, streams


def content_response(
    *texts: str,
    finish_reason: str | None = "STOP",
    usage: Mapping[str, int] | None = None,
) -> dict[str, Any]:
    """Build a native response whose first candidate carries ``texts`` as parts."""

    payload: dict[str, Any] = {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text} for text in texts]},
                "finish_reason": finish_reason,
                "index": 0,
            }
        ],
    }
    if usage is not None:
        payload["usage_metadata"] = dict(usage)
    return payload


__all__ = ["FakeModels", "build_client", "content_response"]
