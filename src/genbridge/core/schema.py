"""Request and response schemas exposed by the content generator interface."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .content import (
    Conversation,
    Part,
    Role,
    Turn,
    normalize_contents,
    normalize_system_instruction,
)


class FinishReason(str, Enum):
    """Closed set of reasons describing why generation stopped."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


class GenerationConfig(BaseModel):
    """Sampling options forwarded to the provider when set."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    temperature: float | None = Field(None, ge=0, description="Sampling temperature.")
    max_output_tokens: int | None = Field(None, gt=0, description="Upper bound on generated tokens.")
    top_p: float | None = Field(None, ge=0, le=1, description="Nucleus sampling probability mass.")


class GenerationRequest(BaseModel):
    """Canonical request accepted by every content generator."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    model: str = Field(..., min_length=1, description="Target model identifier.")
    contents: Conversation = Field(..., description="Conversation in chronological order.")
    system_instruction: Turn | None = Field(None, description="Optional system instruction.")
    config: GenerationConfig = Field(default_factory=GenerationConfig, description="Sampling options.")

    @field_validator("contents", mode="before")
    @classmethod
    def _normalize_contents(cls, value: Any) -> Conversation:
        return normalize_contents(value)

    @field_validator("system_instruction", mode="before")
    @classmethod
    def _normalize_system_instruction(cls, value: Any) -> Turn | None:
        return normalize_system_instruction(value)


class UsageMetadata(BaseModel):
    """Token counters reported by the provider, zero when omitted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    prompt_token_count: int = Field(0, ge=0, description="Tokens consumed by the prompt.")
    candidates_token_count: int = Field(0, ge=0, description="Tokens produced for the candidate.")
    total_token_count: int = Field(0, ge=0, description="Total tokens billed for the call.")


class Candidate(BaseModel):
    """The single completion option returned in a response."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    content: Turn = Field(..., description="Generated model turn with exactly one text part.")
    finish_reason: FinishReason = Field(default=FinishReason.OTHER, description="Why generation stopped.")
    index: int = Field(0, ge=0, le=0, description="Candidate position, always zero.")

    @field_validator("content")
    @classmethod
    def _require_single_text_part(cls, value: Turn) -> Turn:
        if value.role is not Role.MODEL:
            raise ValueError("candidate content must have the model role")
        if len(value.parts) != 1:
            raise ValueError("candidate content must have exactly one part")
        return value


class GenerationResponse(BaseModel):
    """Canonical response holding exactly one candidate."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    candidates: tuple[Candidate, ...] = Field(..., min_length=1, max_length=1, description="Generated candidates.")
    usage_metadata: UsageMetadata = Field(default_factory=UsageMetadata, description="Token usage counters.")

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        finish_reason: FinishReason = FinishReason.OTHER,
        usage: UsageMetadata | None = None,
    ) -> GenerationResponse:
        """Build a single-candidate response around ``text``."""

        candidate = Candidate(
            content=Turn(role=Role.MODEL, parts=(Part(text=text),)),
            finish_reason=finish_reason,
            index=0,
        )
        return cls(candidates=(candidate,), usage_metadata=usage or UsageMetadata())

    @property
    def text(self) -> str:
        """Return the text of the only candidate."""

        return self.candidates[0].content.parts[0].text

    @property
    def finish_reason(self) -> FinishReason:
        """Return the finish reason of the only candidate."""

        return self.candidates[0].finish_reason


class CountTokensResponse(BaseModel):
    """Result of a token count request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total_tokens: int = Field(..., ge=0, description="Estimated or exact token count.")


class EmbedContentRequest(BaseModel):
    """Single-input embedding request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    contents: Conversation = Field(..., description="Content to embed.")

    @field_validator("contents", mode="before")
    @classmethod
    def _normalize_contents(cls, value: Any) -> Conversation:
        return normalize_contents(value)


class ContentEmbedding(BaseModel):
    """A single embedding vector."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    values: tuple[float, ...] = Field(..., description="Ordered embedding components.")


class EmbedContentResponse(BaseModel):
    """Embedding response holding exactly one vector."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    embeddings: tuple[ContentEmbedding, ...] = Field(..., min_length=1, max_length=1, description="Embedding vectors.")


__all__ = [
    "Candidate",
    "ContentEmbedding",
    "CountTokensResponse",
    "EmbedContentRequest",
    "EmbedContentResponse",
    "FinishReason",
    "GenerationConfig",
    "GenerationRequest",
    "GenerationResponse",
    "UsageMetadata",
]
