"""LLM integration layer for the deep-think engines.

The engines talk to text-generation backends exclusively through LangChain
chat models.  This sub-package resolves which model serves each pipeline
stage, builds the models, and pulls search citations out of responses.

Public API
----------
ModelFactory
    ``Callable[[str], BaseChatModel]``; anything that builds a chat model
    from an identifier.
ModelStageRouter
    Stage -> model resolution with web-search binding.
ChatModelFactory
    Default registry-based ``ModelFactory`` (OpenAI, OpenRouter, Anthropic).
extract_sources
    Provider-tagged citation extraction.
"""

from __future__ import annotations

from deep_think.infrastructure.llm.citations import (
    CitationExtractor,
    extract_sources,
    provider_of,
    register_extractor,
)
from deep_think.infrastructure.llm.router import ModelFactory, ModelStageRouter

__all__ = [
    "ModelFactory",
    "ModelStageRouter",
    "ChatModelFactory",
    "CitationExtractor",
    "extract_sources",
    "provider_of",
    "register_extractor",
]


def __getattr__(name: str):  # noqa: N807
    """Lazy-load the default factory on attribute access."""
    if name == "ChatModelFactory":
        from deep_think.infrastructure.llm.factory import ChatModelFactory

        return ChatModelFactory
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
