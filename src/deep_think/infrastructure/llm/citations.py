"""Citation extraction from chat-model responses.

Each backend reports search citations in its own place on the returned
``AIMessage``.  Extractors are registered per provider tag and looked up via
:func:`provider_of`; an unknown provider yields no sources.

Records without a ``url`` or without a ``title`` are skipped.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from langchain_core.messages import BaseMessage

from deep_think.domain.values import Source
from deep_think.infrastructure.llm.factory import ChatModelFactory

logger = logging.getLogger(__name__)


def _to_source(item: Any) -> Source | None:
    if not isinstance(item, Mapping):
        return None
    # Chat-completions style nests the payload under the type key
    payload = item.get("url_citation")
    if not isinstance(payload, Mapping):
        payload = item
    url = payload.get("url")
    title = payload.get("title")
    if not url or not title:
        return None
    content = payload.get("snippet") or payload.get("content") or ""
    return Source(url=url, title=title, content=content)


def _search_results(message: BaseMessage) -> list[Any]:
    web_search = message.response_metadata.get("web_search")
    if isinstance(web_search, Mapping):
        return list(web_search.get("results") or [])
    return []


def _collect(items: Iterable[Any]) -> list[Source]:
    sources: list[Source] = []
    for item in items:
        source = _to_source(item)
        if source is not None:
            sources.append(source)
    return sources


# ===================================================================== #
#  Extractors                                                            #
# ===================================================================== #

class CitationExtractor(ABC):
    """Pull ``Source`` records out of a provider's response message."""

    provider: str = ""

    @abstractmethod
    def extract(self, message: BaseMessage) -> list[Source]:
        ...


class OpenAICitationExtractor(CitationExtractor):
    """OpenAI built-in web search.

    Reads ``url_citation`` annotations on content blocks, then any
    ``web_search.results`` list in the response metadata.
    """

    provider = "openai"

    def extract(self, message: BaseMessage) -> list[Source]:
        annotations: list[Any] = []
        if isinstance(message.content, list):
            for block in message.content:
                if isinstance(block, Mapping):
                    annotations.extend(
                        a for a in block.get("annotations") or []
                        if isinstance(a, Mapping) and a.get("type") == "url_citation"
                    )
        return _collect(annotations) + _collect(_search_results(message))


class OpenRouterCitationExtractor(CitationExtractor):
    """OpenRouter web plugin: ``annotations`` on the message payload."""

    provider = "openrouter"

    def extract(self, message: BaseMessage) -> list[Source]:
        annotations: list[Any] = []
        for container in (message.additional_kwargs, message.response_metadata):
            annotations.extend(
                a for a in container.get("annotations") or []
                if isinstance(a, Mapping) and a.get("type") == "url_citation"
            )
        return _collect(annotations) + _collect(_search_results(message))


_EXTRACTORS: dict[str, CitationExtractor] = {
    extractor.provider: extractor
    for extractor in (OpenAICitationExtractor(), OpenRouterCitationExtractor())
}


_FAMILIES = ChatModelFactory()


def register_extractor(extractor: CitationExtractor) -> None:
    """Register (or replace) the extractor for ``extractor.provider``."""
    _EXTRACTORS[extractor.provider] = extractor


def provider_of(message: BaseMessage, model_name: str) -> str:
    """Return the provider tag used to pick a citation extractor.

    The response's ``model_provider`` metadata wins; backends that do not set
    it are identified by the model-family prefix of *model_name*.
    """
    if "openrouter" in model_name:
        return "openrouter"
    provider = message.response_metadata.get("model_provider")
    if provider:
        return str(provider)
    return _FAMILIES.family_of(model_name) or ""


def extract_sources(message: BaseMessage, model_name: str) -> list[Source]:
    """Extract citations from *message*; unknown providers yield ``[]``."""
    provider = provider_of(message, model_name)
    extractor = _EXTRACTORS.get(provider)
    if extractor is None:
        logger.debug("No citation extractor for provider %r", provider)
        return []
    sources = extractor.extract(message)
    logger.debug("Extracted %d source(s) from %s response", len(sources), provider)
    return sources
