"""Stage-aware text generation over LangChain chat models.

``TextGenerationClient`` is the only place the engines call a model.  It
resolves the model for a stage through the ``ModelStageRouter``, optionally
binds web search, and records any citations found on the response.

Failures of the chat model propagate unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from langchain_core.messages import (
    BaseMessage,
    HumanMessage,
    SystemMessage,
    convert_to_messages,
)
from pydantic import BaseModel

from deep_think.domain.enums import Stage
from deep_think.infrastructure.llm.citations import extract_sources
from deep_think.infrastructure.llm.router import ModelStageRouter
from deep_think.services.sources import SourceCollector

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# ("user" | "assistant", text) pairs or ready-made messages
MessageLike = BaseMessage | tuple[str, str]


def message_text(message: BaseMessage) -> str:
    """Return the plain text of a response, joining text content blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


class TextGenerationClient:
    """Free-text and structured generation routed by stage.

    Parameters
    ----------
    router:
        Resolves and builds the chat model for each stage.
    sources:
        Collector receiving citations from search-enabled calls.  A fresh
        collector is created when omitted.
    """

    def __init__(
        self,
        router: ModelStageRouter,
        sources: SourceCollector | None = None,
    ) -> None:
        self.router = router
        self.sources = sources if sources is not None else SourceCollector()

    @staticmethod
    def _build_messages(
        prompt: str | None,
        messages: Sequence[MessageLike] | None,
        system: str | None,
    ) -> list[BaseMessage]:
        if prompt is None and not messages:
            raise ValueError("generate() needs a prompt or a message history")
        built: list[BaseMessage] = []
        if system:
            built.append(SystemMessage(content=system))
        if messages:
            built.extend(convert_to_messages(list(messages)))
        if prompt is not None:
            built.append(HumanMessage(content=prompt))
        return built

    async def generate(
        self,
        stage: Stage,
        prompt: str | None = None,
        *,
        messages: Sequence[MessageLike] | None = None,
        system: str | None = None,
        web_search: bool = False,
    ) -> str:
        """Generate free text for *stage*.

        Parameters
        ----------
        stage:
            Pipeline stage; selects the model.
        prompt:
            Single user prompt, appended after *messages* when both are given.
        messages:
            Conversation history as ``(role, text)`` pairs or messages.
        system:
            Optional system framing, sent first.
        web_search:
            Bind the backend's built-in search when enabled and supported,
            and collect citations from the response.

        Returns
        -------
        str
            The generated text.
        """
        search = web_search and self.router.supports_search(stage)
        model = self.router.chat_model_for(stage, web_search=search)
        payload = self._build_messages(prompt, messages, system)
        logger.debug("generate[%s]: %d message(s), search=%s", stage.value, len(payload), search)

        response = await model.ainvoke(payload)

        if search and isinstance(response, BaseMessage):
            self.sources.extend(extract_sources(response, self.router.model_for(stage)))
        if isinstance(response, BaseMessage):
            return message_text(response)
        return str(response)

    async def generate_structured(
        self,
        stage: Stage,
        schema: type[SchemaT],
        prompt: str | Sequence[MessageLike],
    ) -> SchemaT:
        """Generate an instance of *schema* via ``with_structured_output``."""
        model = self.router.chat_model_for(stage)
        structured = model.with_structured_output(schema)
        payload: Any = (
            [HumanMessage(content=prompt)]
            if isinstance(prompt, str)
            else convert_to_messages(list(prompt))
        )
        logger.debug("generate_structured[%s]: schema=%s", stage.value, schema.__name__)
        result = await structured.ainvoke(payload)
        if isinstance(result, dict):
            return schema.model_validate(result)
        return result
