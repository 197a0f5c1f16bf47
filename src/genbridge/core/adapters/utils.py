"""Pure conversion helpers shared by adapter implementations."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from ..content import Role, normalize_contents, normalize_system_instruction
from ..errors import AdapterError, UnsupportedContentShape
from ..schema import FinishReason, GenerationResponse, UsageMetadata

OPENAI_FINISH_REASONS: Mapping[str, FinishReason] = MappingProxyType(
    {
        "stop": FinishReason.STOP,
        "length": FinishReason.MAX_TOKENS,
        "content_filter": FinishReason.SAFETY,
    }
)

_OPENAI_ROLES = {Role.USER: "user", Role.MODEL: "assistant"}


def to_openai_messages(contents: Any, system_instruction: Any = None) -> list[dict[str, str]]:
    """Convert canonical contents into the OpenAI Chat API message list."""

    conversation = normalize_contents(contents)
    system_turn = normalize_system_instruction(system_instruction)

    system_texts: list[str] = []
    if system_turn is not None and system_turn.text:
        system_texts.append(system_turn.text)

    messages: list[dict[str, str]] = []
    for turn in conversation:
        text = turn.text
        if not text:
            continue
        if turn.role is Role.SYSTEM:
            system_texts.append(text)
            continue
        messages.append({"role": _OPENAI_ROLES[turn.role], "content": text})

    if system_texts:
        messages.insert(0, {"role": "system", "content": "\n".join(system_texts)})
    return messages


def to_embedding_text(contents: Any) -> str:
    """Flatten contents to the newline-joined text of the translated messages."""

    return "\n".join(message["content"] for message in to_openai_messages(contents))


def has_dialogue(messages: Sequence[Mapping[str, str]]) -> bool:
    """Return whether any non-system message survived translation."""

    return any(message["role"] != "system" for message in messages)


def map_openai_finish_reason(value: Any) -> FinishReason:
    """Map an OpenAI finish signal onto the canonical finish reason table."""

    if isinstance(value, str):
        return OPENAI_FINISH_REASONS.get(value, FinishReason.OTHER)
    return FinishReason.OTHER


def to_canonical_response(response: Any) -> GenerationResponse:
    """Normalize an OpenAI chat completion into a canonical response."""

    mapping = coerce_mapping(response, path="response")

    choice: Mapping[str, Any] = {}
    choices = mapping.get("choices")
    if _is_non_empty_sequence(choices):
        choice = coerce_mapping(choices[0], path="choices[0]")

    message_payload = choice.get("message")
    message = coerce_mapping(message_payload, path="choices[0].message") if message_payload else {}

    content = message.get("content")
    if content is None:
        content = ""
    elif not isinstance(content, str):
        msg = "OpenAI message content must be a string"
        raise UnsupportedContentShape(msg)

    return GenerationResponse.from_text(
        content,
        finish_reason=map_openai_finish_reason(choice.get("finish_reason")),
        usage=openai_usage(mapping.get("usage")),
    )


def openai_usage(payload: Any) -> UsageMetadata:
    """Copy OpenAI usage counters, substituting zero for missing values."""

    if payload is None:
        return UsageMetadata()

    usage = coerce_mapping(payload, path="usage")
    return UsageMetadata(
        prompt_token_count=coerce_count(usage.get("prompt_tokens")),
        candidates_token_count=coerce_count(usage.get("completion_tokens")),
        total_token_count=coerce_count(usage.get("total_tokens")),
    )


def estimate_tokens(messages: Sequence[Mapping[str, str]]) -> int:
    """Approximate a token count as one token per four characters."""

    total_text = "".join(message["content"] for message in messages)
    return math.ceil(len(total_text) / 4)


def coerce_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    """Return a mapping view of a provider payload or SDK object."""

    if isinstance(value, Mapping):
        return value

    if hasattr(value, "model_dump"):
        mapping = value.model_dump()
        if isinstance(mapping, Mapping):
            return mapping

    if hasattr(value, "__dict__"):
        return vars(value)

    msg = f"{path} must be a mapping"
    raise AdapterError(msg)


def coerce_count(value: Any) -> int:
    """Return a non-negative integer counter, or zero for anything else."""

    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def _is_non_empty_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)) and bool(value)


__all__ = [
    "OPENAI_FINISH_REASONS",
    "coerce_count",
    "coerce_mapping",
    "estimate_tokens",
    "has_dialogue",
    "map_openai_finish_reason",
    "openai_usage",
    "to_canonical_response",
    "to_embedding_text",
    "to_openai_messages",
]
