"""Canonical content model, schemas, and error taxonomy."""

from __future__ import annotations

from .content import Conversation, Part, Role, Turn, normalize_contents, normalize_system_instruction
from .errors import (
    AdapterError,
    EmptyConversation,
    ProviderAPIError,
    ProviderTransportError,
    UnsupportedContentShape,
)
from .schema import (
    Candidate,
    ContentEmbedding,
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    FinishReason,
    GenerationConfig,
    GenerationRequest,
    GenerationResponse,
    UsageMetadata,
)

__all__ = [
    "AdapterError",
    "Candidate",
    "ContentEmbedding",
    "Conversation",
    "CountTokensResponse",
    "EmbedContentRequest",
    "EmbedContentResponse",
    "EmptyConversation",
    "FinishReason",
    "GenerationConfig",
    "GenerationRequest",
    "GenerationResponse",
    "Part",
    "ProviderAPIError",
    "ProviderTransportError",
    "Role",
    "Turn",
    "UnsupportedContentShape",
    "UsageMetadata",
    "normalize_contents",
    "normalize_system_instruction",
]
