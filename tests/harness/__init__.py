"""Test harness utilities for adapter validation."""

from .adapter_harness import collect, collect_async, finish_reasons, texts

__all__ = [
    "collect",
    "collect_async",
    "finish_reasons",
    "texts",
]
