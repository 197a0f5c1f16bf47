"""Select the content generator a session uses."""

from __future__ import annotations

import logging
from typing import Any

from ...config import AuthType, GeneratorConfig
from .base import ContentGenerator
from .gemini import GeminiContentGenerator
from .openai import OpenAIContentGenerator

LOGGER = logging.getLogger(__name__)

_GENERATORS: dict[AuthType, type[OpenAIContentGenerator] | type[GeminiContentGenerator]] = {
    AuthType.USE_OPENAI: OpenAIContentGenerator,
    AuthType.USE_GEMINI: GeminiContentGenerator,
}


def create_content_generator(config: GeneratorConfig, *, client: Any | None = None) -> ContentGenerator:
    """Return the adapter for ``config.auth_type``.

    The adapter is chosen once and holds only the SDK client and embedding
    model, neither of which changes afterwards. Pass ``client`` to reuse an
    existing SDK client instead of building one from the credential.
    """

    generator_cls = _GENERATORS[config.auth_type]
    options: dict[str, Any] = {}
    if config.embedding_model is not None:
        options["embedding_model"] = config.embedding_model

    if client is None:
        generator = generator_cls.from_api_key(config.api_key, base_url=config.base_url, **options)
    else:
        generator = generator_cls(client, **options)

    LOGGER.info(
        "content generator selected auth_type=%s adapter=%s custom_base_url=%s",
        config.auth_type.value,
        type(generator).__name__,
        config.base_url is not None,
    )
    return generator


__all__ = ["create_content_generator"]
