"""Configuration consumed when selecting a content generator for a session."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class AuthType(str, Enum):
    """Provider/credential combinations a session can be configured with."""

    USE_OPENAI = "openai"
    USE_GEMINI = "gemini-api-key"

    @classmethod
    def parse(cls, value: "AuthType | str") -> "AuthType":
        """Resolve an enum value or member name, ignoring case."""

        if isinstance(value, AuthType):
            return value

        normalized = value.strip().lower()
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        raise ValueError(f"unknown auth type '{value}'")


_API_KEY_VARIABLES: Mapping[AuthType, tuple[str, ...]] = {
    AuthType.USE_OPENAI: ("OPENAI_API_KEY",),
    AuthType.USE_GEMINI: ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}
_BASE_URL_VARIABLES: Mapping[AuthType, tuple[str, ...]] = {
    AuthType.USE_OPENAI: ("OPENAI_BASE_URL",),
    AuthType.USE_GEMINI: (),
}


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Immutable settings used to construct one provider adapter.

    Attributes
    ----------
    auth_type:
        Which provider adapter the session talks to.
    api_key:
        Credential passed to the provider SDK client. Storage of the secret
        belongs to the caller.
    base_url:
        Optional endpoint override, for proxies or compatible servers.
    embedding_model:
        Optional override of the adapter's fixed embedding model.
    """

    auth_type: AuthType
    api_key: str
    base_url: str | None = None
    embedding_model: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "auth_type", AuthType.parse(self.auth_type))
        if not isinstance(self.api_key, str) or not self.api_key.strip():
            raise ValueError("api_key must not be empty")
        if self.base_url is not None and not self.base_url.strip():
            raise ValueError("base_url must not be blank when provided")
        if self.embedding_model is not None and not self.embedding_model.strip():
            raise ValueError("embedding_model must not be blank when provided")

    @classmethod
    def from_env(
        cls,
        auth_type: AuthType | str,
        *,
        environ: Mapping[str, str] | None = None,
        embedding_model: str | None = None,
    ) -> "GeneratorConfig":
        """Build a :class:`GeneratorConfig` from environment variables.

        Parameters
        ----------
        auth_type:
            The provider selection, as an :class:`AuthType` or its value.
        environ:
            Mapping consulted instead of :data:`os.environ`, mainly for tests.
        embedding_model:
            Optional embedding model override.
        """

        resolved = AuthType.parse(auth_type)
        env = os.environ if environ is None else environ

        api_key = _first_set(env, _API_KEY_VARIABLES[resolved])
        if api_key is None:
            names = " or ".join(_API_KEY_VARIABLES[resolved])
            raise ValueError(f"{names} must be set for auth type '{resolved.value}'")

        return cls(
            auth_type=resolved,
            api_key=api_key,
            base_url=_first_set(env, _BASE_URL_VARIABLES[resolved]),
            embedding_model=embedding_model,
        )


def _first_set(env: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return None
