"""Canonical multi-part content model shared across adapters."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnsupportedContentShape

_TURN_KEYS = {"role", "parts"}
_PART_KEYS = {"text"}


class Role(str, Enum):
    """Canonical role names used by conversation turns."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class Part(BaseModel):
    """A single text fragment within a turn."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str = Field(..., description="Plain text carried by the part.")


class Turn(BaseModel):
    """One role-tagged message unit composed of ordered parts."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    role: Role = Field(default=Role.USER, description="Author of the turn.")
    parts: tuple[Part, ...] = Field(default_factory=tuple, description="Ordered parts of the turn.")

    @property
    def text(self) -> str:
        """Return the newline-joined text of all non-empty parts."""

        return "\n".join(part.text for part in self.parts if part.text)


Conversation = tuple[Turn, ...]


def normalize_contents(value: Any) -> Conversation:
    """Normalize any legal content shape into a canonical conversation.

    Accepted shapes are a string, a single part, a single turn, or a sequence
    of strings/parts (wrapped into one ``user`` turn) or of turns (passed
    through in order). Normalizing an already canonical conversation returns
    an equal conversation.
    """

    if isinstance(value, str):
        return (Turn(role=Role.USER, parts=(Part(text=value),)),)

    if isinstance(value, Turn):
        return (value,)

    if isinstance(value, Part):
        return (Turn(role=Role.USER, parts=(value,)),)

    if isinstance(value, Mapping):
        if _is_turn_like(value):
            return (_coerce_turn(value),)
        return (Turn(role=Role.USER, parts=(_coerce_part(value),)),)

    if _is_sequence(value):
        items = list(value)
        if not items:
            return ()

        turn_flags = [_is_turn_like(item) for item in items]
        if all(turn_flags):
            return tuple(_coerce_turn(item) for item in items)
        if any(turn_flags):
            msg = "contents cannot mix turns with bare parts"
            raise UnsupportedContentShape(msg)
        return (Turn(role=Role.USER, parts=tuple(_coerce_part(item) for item in items)),)

    msg = f"unsupported content type {type(value).__name__}"
    raise UnsupportedContentShape(msg)


def normalize_system_instruction(value: Any) -> Turn | None:
    """Normalize the four system instruction encodings into a system turn.

    A plain string, a single part, a sequence of parts (or strings) and a full
    turn all resolve to the same effective text.
    """

    if value is None:
        return None

    if isinstance(value, str):
        parts: tuple[Part, ...] = (Part(text=value),)
    elif isinstance(value, (Turn, Mapping)) and _is_turn_like(value):
        parts = _coerce_turn(value).parts
    elif isinstance(value, (Part, Mapping)):
        parts = (_coerce_part(value),)
    elif _is_sequence(value):
        items = list(value)
        if any(_is_turn_like(item) for item in items):
            msg = "system instruction must be a turn, a part, or a sequence of parts"
            raise UnsupportedContentShape(msg)
        parts = tuple(_coerce_part(item) for item in items)
    else:
        msg = f"unsupported system instruction type {type(value).__name__}"
        raise UnsupportedContentShape(msg)

    return Turn(role=Role.SYSTEM, parts=parts)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _is_turn_like(value: Any) -> bool:
    if isinstance(value, Turn):
        return True
    return isinstance(value, Mapping) and bool(_TURN_KEYS.intersection(value))


def _coerce_part(item: Any) -> Part:
    if isinstance(item, Part):
        return item

    if isinstance(item, str):
        return Part(text=item)

    if isinstance(item, Mapping):
        extra = set(item) - _PART_KEYS
        if extra:
            joined = ", ".join(sorted(str(key) for key in extra))
            msg = f"unsupported part fields: {joined}"
            raise UnsupportedContentShape(msg)

        text = item.get("text")
        if not isinstance(text, str):
            msg = "part text must be a string"
            raise UnsupportedContentShape(msg)
        return Part(text=text)

    msg = f"unsupported part type {type(item).__name__}"
    raise UnsupportedContentShape(msg)


def _coerce_turn(item: Turn | Mapping[str, Any]) -> Turn:
    if isinstance(item, Turn):
        return item

    extra = set(item) - _TURN_KEYS
    if extra:
        joined = ", ".join(sorted(str(key) for key in extra))
        msg = f"unsupported turn fields: {joined}"
        raise UnsupportedContentShape(msg)

    raw_role = item.get("role") or Role.USER.value
    try:
        role = Role(raw_role)
    except ValueError as exc:
        msg = f"unsupported role '{raw_role}'"
        raise UnsupportedContentShape(msg) from exc

    raw_parts = item.get("parts") or ()
    if not _is_sequence(raw_parts):
        msg = "turn parts must be provided as a sequence"
        raise UnsupportedContentShape(msg)

    return Turn(role=role, parts=tuple(_coerce_part(part) for part in raw_parts))


__all__ = [
    "Conversation",
    "Part",
    "Role",
    "Turn",
    "normalize_contents",
    "normalize_system_instruction",
]
