"""Stage router for the deep-think LLM layer.

Maps each pipeline ``Stage`` to a model identifier and builds the matching
LangChain chat model, binding the backend's built-in web search when it is
enabled and the resolved model supports it.

Usage::

    router = ModelStageRouter("gpt-4.1", ModelStageConfig(verification="o3"), factory)
    router.model_for(Stage.VERIFICATION)   # "o3"
    router.model_for(Stage.SUMMARY)        # "gpt-4.1"
    model = router.chat_model_for(Stage.INITIAL, web_search=True)
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import Runnable

from deep_think.domain.enums import Stage
from deep_think.infrastructure.config import ModelStageConfig, SearchConfig

logger = logging.getLogger(__name__)

ModelFactory = Callable[[str], BaseChatModel]

_OPENAI_SEARCH_PREFIXES = ("gpt-4o", "gpt-4.1", "gpt-5")


class ModelStageRouter:
    """Resolve the model for a stage, falling back to a default.

    Parameters
    ----------
    default_model:
        Identifier used for every stage without an override.
    stages:
        Per-stage overrides.  Unset or empty entries use *default_model*.
    model_factory:
        Callable building a chat model from an identifier.
    search:
        Web-search settings.  Tools are bound only when ``search.enabled``.
    """

    def __init__(
        self,
        default_model: str,
        stages: ModelStageConfig | None = None,
        model_factory: ModelFactory | None = None,
        search: SearchConfig | None = None,
    ) -> None:
        if not default_model:
            raise ValueError("ModelStageRouter requires a default model")
        self._default_model = default_model
        self._stages = stages or ModelStageConfig()
        self._model_factory = model_factory
        self._search = search or SearchConfig()

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def stages(self) -> ModelStageConfig:
        return self._stages

    @property
    def search(self) -> SearchConfig:
        return self._search

    # -- resolution -----------------------------------------------------------

    def model_for(self, stage: Stage) -> str:
        """Return the model identifier for *stage*.  Never fails."""
        model = self._stages.get(stage) or self._default_model
        logger.debug("ModelStageRouter: %s -> %s", stage.value, model)
        return model

    def search_tools(self, model: str) -> list[dict[str, Any]] | None:
        """Return the built-in web-search tool spec for *model*, if any."""
        if not self._search.enabled or self._search.provider != "model":
            return None
        if model.startswith(_OPENAI_SEARCH_PREFIXES):
            size = "high" if self._search.max_results > 5 else "medium"
            return [{"type": "web_search_preview", "search_context_size": size}]
        return None

    def provider_options(self, model: str) -> dict[str, Any] | None:
        """Return provider-specific call options enabling web search, if any."""
        if not self._search.enabled or self._search.provider != "model":
            return None
        if "openrouter" in model:
            return {
                "extra_body": {
                    "plugins": [{"id": "web", "max_results": self._search.max_results}]
                }
            }
        return None

    def chat_model_for(self, stage: Stage, *, web_search: bool = False) -> Runnable:
        """Build the chat model for *stage*.

        When *web_search* is requested, search tools and provider options are
        bound according to the resolved model name.
        """
        if self._model_factory is None:
            raise RuntimeError("ModelStageRouter has no model factory")
        model_name = self.model_for(stage)
        model: Runnable = self._model_factory(model_name)
        if not web_search:
            return model

        tools = self.search_tools(model_name)
        if tools:
            logger.debug("ModelStageRouter: binding web search tools for %s", model_name)
            model = model.bind_tools(tools)
        options = self.provider_options(model_name)
        if options:
            logger.debug("ModelStageRouter: binding provider options for %s", model_name)
            model = model.bind(**options)
        return model

    def supports_search(self, stage: Stage) -> bool:
        """Whether a search-enabled call for *stage* binds anything."""
        model_name = self.model_for(stage)
        return bool(self.search_tools(model_name) or self.provider_options(model_name))

    # -- derivation -----------------------------------------------------------

    def for_agents(self) -> ModelStageRouter:
        """Router for nested agent engines.

        Its default is the ``agentThinking`` stage model; every other stage
        override is inherited.
        """
        return ModelStageRouter(
            self.model_for(Stage.AGENT_THINKING),
            self._stages,
            self._model_factory,
            self._search,
        )
