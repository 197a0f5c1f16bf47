from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genbridge.core.schema import GenerationRequest  # noqa: E402


@pytest.fixture
def hello_request() -> GenerationRequest:
    """A one-turn conversation with a plain string system instruction."""

    return GenerationRequest(
        model="gpt-4o-mini",
        contents=[{"role": "user", "parts": [{"text": "Hello"}]}],
        system_instruction="Be terse",
    )
