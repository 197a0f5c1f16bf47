"""One capability contract over incompatible language model backends.

The package converts between a canonical multi-part conversation model and
provider-native formats, normalizes one-shot and streamed completions back into
canonical responses, and exposes each provider through the same
:class:`~genbridge.core.adapters.ContentGenerator` interface.
"""

from __future__ import annotations

from .config import AuthType, GeneratorConfig
from .core import (
    AdapterError,
    EmptyConversation,
    FinishReason,
    GenerationConfig,
    GenerationRequest,
    GenerationResponse,
    Part,
    ProviderAPIError,
    ProviderTransportError,
    Role,
    Turn,
    UnsupportedContentShape,
)
from .core.adapters import ContentGenerator, create_content_generator

__all__ = [
    "AdapterError",
    "AuthType",
    "ContentGenerator",
    "EmptyConversation",
    "FinishReason",
    "GenerationConfig",
    "GenerationRequest",
    "GenerationResponse",
    "GeneratorConfig",
    "Part",
    "ProviderAPIError",
    "ProviderTransportError",
    "Role",
    "Turn",
    "UnsupportedContentShape",
    "create_content_generator",
]

__version__ = "0.1.0"
