"""Chat-model factory for the deep-think engines.

Registry of *family matchers* mapping a model identifier to a LangChain chat
model constructor.  Concrete backends (``langchain_openai``,
``langchain_anthropic``) are imported lazily inside the constructors so that
importing this module never requires API keys or network access.

Usage::

    factory = ChatModelFactory()
    model = factory.create("gpt-4.1")
    model = factory.create("claude-sonnet-4-5")
    factory.register("local", lambda name: ChatOllama(model=name), prefixes=("llama",))
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from langchain_core.language_models import BaseChatModel

from deep_think.domain.exceptions import ModelFactoryError

logger = logging.getLogger(__name__)


# Type for chat-model constructor functions
ChatModelConstructor = Callable[[str], BaseChatModel]


class ChatModelFactory:
    """Registry-based factory for creating chat models by identifier.

    Each registered family carries a tuple of name prefixes.  The first
    family (in registration order) with a matching prefix builds the model.
    Instances are callable, so a factory can be passed anywhere a
    ``ModelFactory`` (``Callable[[str], BaseChatModel]``) is expected.

    Parameters
    ----------
    auto_discover:
        If ``True`` (default), pre-register the OpenAI, OpenRouter and
        Anthropic families.
    **model_kwargs:
        Extra keyword arguments forwarded to every built-in constructor
        (e.g. ``temperature``).
    """

    def __init__(self, auto_discover: bool = True, **model_kwargs: Any) -> None:
        self._registry: dict[str, tuple[tuple[str, ...], ChatModelConstructor]] = {}
        self._model_kwargs = model_kwargs

        if auto_discover:
            self._discover_builtin_families()

    # -- registration ---------------------------------------------------------

    def register(
        self,
        name: str,
        constructor: ChatModelConstructor,
        prefixes: tuple[str, ...] = (),
        overwrite: bool = False,
    ) -> None:
        """Register a model family.

        Parameters
        ----------
        name:
            Family name (e.g. ``"openai"``).
        constructor:
            Callable taking the model identifier and returning a chat model.
        prefixes:
            Identifier prefixes handled by this family.  An empty tuple
            makes the family a catch-all.
        overwrite:
            If ``False`` (default), raises ``ValueError`` when *name* is
            already registered.

        Raises
        ------
        ValueError
            If the name is already registered and ``overwrite`` is ``False``.
        """
        if name in self._registry and not overwrite:
            raise ValueError(
                f"Model family {name!r} is already registered. "
                f"Use overwrite=True to replace it."
            )
        self._registry[name] = (tuple(prefixes), constructor)
        logger.debug("ChatModelFactory: registered family %r for %s", name, prefixes)

    # -- creation -------------------------------------------------------------

    def family_of(self, model: str) -> str | None:
        """Return the registered family that handles *model*, if any."""
        for name, (prefixes, _) in self._registry.items():
            if not prefixes or model.startswith(prefixes):
                return name
        return None

    def create(self, model: str) -> BaseChatModel:
        """Build a chat model for *model*.

        Raises
        ------
        ModelFactoryError
            If no registered family matches the identifier.
        """
        family = self.family_of(model)
        if family is None:
            available = ", ".join(sorted(self._registry.keys()))
            raise ModelFactoryError(
                f"No model family matches {model!r}. Registered families: {available}",
                model=model,
            )
        logger.debug("ChatModelFactory: building %r via %r", model, family)
        _, constructor = self._registry[family]
        return constructor(model)

    __call__ = create

    @property
    def registered_families(self) -> list[str]:
        return sorted(self._registry.keys())

    # -- built-in families ----------------------------------------------------

    def _discover_builtin_families(self) -> None:
        kwargs = self._model_kwargs

        def _openai(model: str) -> BaseChatModel:
            from langchain_openai import ChatOpenAI

            return ChatOpenAI(model=model, **kwargs)

        def _openrouter(model: str) -> BaseChatModel:
            import os

            from langchain_openai import ChatOpenAI

            return ChatOpenAI(
                model=model.removeprefix("openrouter/"),
                base_url="https://openrouter.ai/api/v1",
                api_key=os.environ.get("OPENROUTER_API_KEY"),
                **kwargs,
            )

        def _anthropic(model: str) -> BaseChatModel:
            from langchain_anthropic import ChatAnthropic

            return ChatAnthropic(model=model, **kwargs)

        self.register("openrouter", _openrouter, prefixes=("openrouter/",))
        self.register("openai", _openai, prefixes=("gpt-", "o1", "o3", "o4", "chatgpt-"))
        self.register("anthropic", _anthropic, prefixes=("claude-",))
