from __future__ import annotations

import asyncio
import enum

import httpx
import pytest
from google import genai
from google.genai import errors as genai_errors

from genbridge.core import (
    EmbedContentRequest,
    EmptyConversation,
    FinishReason,
    GenerationRequest,
    ProviderAPIError,
    ProviderTransportError,
    Role,
)
from genbridge.core.adapters.gemini import (
    GeminiContentGenerator,
    GeminiStreamNormalizer,
    map_gemini_finish_reason,
    to_canonical_response,
    to_gemini_contents,
)

from tests.fixtures import gemini_fake
from tests.harness import collect, texts


def _chunk(text: str, finish_reason: str | None = None, usage: dict | None = None) -> dict:
    payload = gemini_fake.content_response(text, finish_reason=finish_reason)
    if usage is not None:
        payload["usage_metadata"] = usage
    return payload


def test_generate_passes_turns_and_system_instruction(hello_request: GenerationRequest) -> None:
    usage = {"prompt_token_count": 4, "candidates_token_count": 1, "total_token_count": 5}
    client, models, _ = gemini_fake.build_client(
        response=gemini_fake.content_response("Hi", finish_reason="STOP", usage=usage)
    )
    generator = GeminiContentGenerator(client)

    response = asyncio.run(generator.generate_content(hello_request, prompt_id="p-1"))

    assert response.text == "Hi"
    assert response.finish_reason is FinishReason.STOP
    assert response.candidates[0].content.role is Role.MODEL
    assert response.usage_metadata.total_token_count == 5
    assert models.calls == [
        (
            "generate_content",
            {
                "model": "gpt-4o-mini",
                "contents": [{"role": "user", "parts": [{"text": "Hello"}]}],
                "config": {"system_instruction": "Be terse"},
            },
        )
    ]


def test_generate_forwards_sampling_options_and_merges_system_turns() -> None:
    client, models, _ = gemini_fake.build_client(response=gemini_fake.content_response("ok"))
    generator = GeminiContentGenerator(client)
    request = GenerationRequest(
        model="gemini-2.5-flash",
        contents=[
            {"role": "system", "parts": [{"text": "Answer in French"}]},
            {"role": "user", "parts": [{"text": "Hi"}, {"text": ""}, {"text": "there"}]},
            {"role": "model", "parts": []},
        ],
        system_instruction="Be terse",
        config={"temperature": 0.1, "max_output_tokens": 32, "top_p": 0.8},
    )

    asyncio.run(generator.generate_content(request))

    [(_, call)] = models.calls
    assert call["contents"] == [{"role": "user", "parts": [{"text": "Hi"}, {"text": "there"}]}]
    assert call["config"] == {
        "system_instruction": "Be terse\nAnswer in French",
        "temperature": 0.1,
        "max_output_tokens": 32,
        "top_p": 0.8,
    }


def test_multi_part_candidates_are_joined_without_thoughts() -> None:
    payload = gemini_fake.content_response("Hel", "lo", finish_reason="MAX_TOKENS")
    payload["candidates"][0]["content"]["parts"].insert(0, {"text": "thinking", "thought": True})

    response = to_canonical_response(payload)

    assert response.text == "Hello"
    assert response.finish_reason is FinishReason.MAX_TOKENS
    assert response.usage_metadata.total_token_count == 0


def test_response_without_candidates_is_empty_text() -> None:
    response = to_canonical_response({"candidates": []})

    assert response.text == ""
    assert response.finish_reason is FinishReason.OTHER


class _NativeFinishReason(enum.Enum):
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"


@pytest.mark.parametrize(
    ("signal", "expected"),
    [
        ("STOP", FinishReason.STOP),
        ("stop", FinishReason.STOP),
        ("MAX_TOKENS", FinishReason.MAX_TOKENS),
        (_NativeFinishReason.SAFETY, FinishReason.SAFETY),
        (_NativeFinishReason.RECITATION, FinishReason.OTHER),
        ("FINISH_REASON_UNSPECIFIED", FinishReason.OTHER),
        (None, FinishReason.OTHER),
    ],
)
def test_native_finish_reasons_map_to_canonical_table(signal: object, expected: FinishReason) -> None:
    assert map_gemini_finish_reason(signal) is expected


def test_system_turns_are_split_from_dialogue() -> None:
    request = GenerationRequest(
        model="gemini-2.5-flash",
        contents=[
            {"role": "system", "parts": [{"text": "Rule"}]},
            {"role": "model", "parts": [{"text": "Sure"}]},
        ],
    )

    contents, system_texts = to_gemini_contents(request.contents)

    assert contents == [{"role": "model", "parts": [{"text": "Sure"}]}]
    assert system_texts == ["Rule"]


def test_empty_conversation_fails_before_network_call() -> None:
    client, models, _ = gemini_fake.build_client()
    generator = GeminiContentGenerator(client)
    request = GenerationRequest(model="gemini-2.5-flash", contents=[], system_instruction="Only rules")

    with pytest.raises(EmptyConversation):
        asyncio.run(generator.generate_content(request))

    with pytest.raises(EmptyConversation):
        asyncio.run(generator.generate_content_stream(request))

    assert models.calls == []


def test_stream_accumulates_text_and_latches_finish_reason(hello_request: GenerationRequest) -> None:
    usage = {"prompt_token_count": 2, "candidates_token_count": 3, "total_token_count": 5}
    client, models, [stream] = gemini_fake.build_client(
        chunks=[[_chunk("The"), _chunk(" answer", "STOP"), _chunk("", None, usage)]]
    )
    generator = GeminiContentGenerator(client)

    responses = collect(generator, hello_request)

    assert texts(responses) == ["The", "The answer", "The answer"]
    assert [response.finish_reason for response in responses] == [
        FinishReason.OTHER,
        FinishReason.STOP,
        FinishReason.STOP,
    ]
    assert responses[-1].usage_metadata.total_token_count == 5
    assert models.calls[0][0] == "generate_content_stream"
    assert stream.closed


def test_stream_normalizer_reads_usage_only_when_present() -> None:
    normalizer = GeminiStreamNormalizer()

    chunk = normalizer.normalize_chunk(_chunk("x"))

    assert chunk.delta == "x"
    assert chunk.finish_reason is None
    assert chunk.usage is None


def test_count_tokens_uses_provider_count_on_contents_only(hello_request: GenerationRequest) -> None:
    client, models, _ = gemini_fake.build_client(total_tokens=7)
    generator = GeminiContentGenerator(client)

    response = asyncio.run(generator.count_tokens(hello_request))

    assert response.total_tokens == 7
    assert models.calls == [
        (
            "count_tokens",
            {"model": "gpt-4o-mini", "contents": [{"role": "user", "parts": [{"text": "Hello"}]}]},
        )
    ]


def test_count_tokens_of_empty_conversation_skips_provider() -> None:
    client, models, _ = gemini_fake.build_client(total_tokens=7)
    generator = GeminiContentGenerator(client)

    response = asyncio.run(generator.count_tokens(GenerationRequest(model="m", contents=[])))

    assert response.total_tokens == 0
    assert models.calls == []


def test_embed_content_uses_fixed_model_and_returns_one_vector() -> None:
    client, models, _ = gemini_fake.build_client(vector=(1.0, 2.0))
    generator = GeminiContentGenerator(client)

    response = asyncio.run(generator.embed_content(EmbedContentRequest(contents=["alpha", "beta"])))

    assert [embedding.values for embedding in response.embeddings] == [(1.0, 2.0)]
    assert models.calls == [
        ("embed_content", {"model": "gemini-embedding-001", "contents": "alpha\nbeta"}),
    ]


def test_api_errors_keep_status(hello_request: GenerationRequest) -> None:
    error = genai_errors.ClientError(
        404,
        {"error": {"code": 404, "message": "model not found", "status": "NOT_FOUND"}},
    )
    client, _, _ = gemini_fake.build_client(error=error)
    generator = GeminiContentGenerator(client)

    with pytest.raises(ProviderAPIError) as excinfo:
        asyncio.run(generator.generate_content(hello_request))

    assert excinfo.value.status_code == 404
    assert excinfo.value.code == "NOT_FOUND"
    assert excinfo.value.__cause__ is error


def test_connection_errors_become_transport_errors(hello_request: GenerationRequest) -> None:
    error = httpx.ConnectError("connection refused")
    client, _, _ = gemini_fake.build_client(error=error)
    generator = GeminiContentGenerator(client)

    with pytest.raises(ProviderTransportError) as excinfo:
        asyncio.run(generator.count_tokens(hello_request))

    assert excinfo.value.__cause__ is error


def test_from_api_key_builds_genai_client() -> None:
    generator = GeminiContentGenerator.from_api_key("test-key")

    assert isinstance(generator._client, genai.Client)
    assert generator.embedding_model == "gemini-embedding-001"


def test_embed_content_keeps_system_turn_text_first() -> None:
    client, models, _ = gemini_fake.build_client()
    generator = GeminiContentGenerator(client)
    request = EmbedContentRequest(
        contents=[
            {"role": "user", "parts": [{"text": "question"}]},
            {"role": "system", "parts": [{"text": "context"}]},
        ]
    )

    asyncio.run(generator.embed_content(request))

    assert models.calls == [
        ("embed_content", {"model": "gemini-embedding-001", "contents": "context\nquestion"}),
    ]


def test_programming_errors_propagate_unchanged(hello_request: GenerationRequest) -> None:
    error = TypeError("generate_content() got an unexpected keyword argument")
    client, _, _ = gemini_fake.build_client(error=error)
    generator = GeminiContentGenerator(client)

    with pytest.raises(TypeError) as excinfo:
        asyncio.run(generator.generate_content(hello_request))

    assert excinfo.value is error
