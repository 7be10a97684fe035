"""Configuration dataclasses for the deep-think engines.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations, plus ``to_dict()`` / ``from_dict()``.
``from_dict`` ignores unknown keys and accepts the camelCase spelling used by
web clients (``maxIterations``, ``modelStages``...).

Configs are **frozen** so a run cannot mutate the options it was started
with; derived options (e.g. for a nested agent) are built with
``dataclasses.replace``.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field, fields
from typing import Any

import yaml

from deep_think.domain.enums import Stage
from deep_think.domain.exceptions import ConfigurationError

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _normalise_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {_snake(k): v for k, v in data.items()}


# ===================================================================== #
#  Stage -> model overrides                                              #
# ===================================================================== #

@dataclass(frozen=True)
class ModelStageConfig:
    """Per-stage model overrides.  Unset stages use the run's default model."""

    questions: str | None = None
    initial: str | None = None
    improvement: str | None = None
    verification: str | None = None
    correction: str | None = None
    summary: str | None = None
    planning: str | None = None
    agent_config: str | None = None
    agent_thinking: str | None = None
    synthesis: str | None = None

    def get(self, stage: Stage) -> str | None:
        """Return the override for *stage*, or ``None`` when unset or empty."""
        return getattr(self, _snake(stage.value)) or None

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"model for stage {f.name!r} must be a string, got {value!r}")

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ModelStageConfig:
        if not data:
            return cls()
        normalised = _normalise_keys(data)
        valid_keys = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in normalised.items() if k in valid_keys})
        cfg.validate()
        return cfg


# ===================================================================== #
#  Web search                                                            #
# ===================================================================== #

@dataclass(frozen=True)
class SearchConfig:
    """Web-search toggle and provider choice.

    Attributes
    ----------
    enabled:
        Whether tool-augmented generation may be used at all.
    provider:
        ``"model"`` uses the backend's built-in search when the model
        advertises it.  Other providers are accepted but have no built-in
        binding.
    max_results:
        Requested number of search results.
    """

    enabled: bool = False
    provider: str = "model"
    max_results: int = 5

    def validate(self) -> None:
        if not self.provider:
            raise ValueError("search provider must not be empty")
        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SearchConfig:
        if not data:
            return cls()
        normalised = _normalise_keys(data)
        if "max_result" in normalised and "max_results" not in normalised:
            normalised["max_results"] = normalised.pop("max_result")
        valid_keys = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in normalised.items() if k in valid_keys})
        cfg.validate()
        return cfg


# ===================================================================== #
#  Run options                                                           #
# ===================================================================== #

@dataclass(frozen=True)
class DeepThinkOptions:
    """Options for one single-track refinement run.

    Attributes
    ----------
    problem_statement:
        The immutable problem text.
    thinking_model:
        Default model identifier for every stage without an override.
    other_prompts:
        Auxiliary prompt fragments appended to the initial prompt.
    knowledge_context:
        Optional reference material folded into the system framing.
    max_iterations:
        Upper bound on loop passes.
    required_successful_verifications:
        Consecutive passing verifications needed for success.
    max_errors_before_give_up:
        Consecutive failing verifications that abort the loop.
    enable_ask_questions / enable_interactive_mode:
        Ask clarifying questions first; pause for answers when interactive.
    user_answers:
        Answers collected after an interactive pause.
    enable_planning:
        Produce a thinking plan before the initial exploration.
    """

    problem_statement: str
    thinking_model: str
    other_prompts: tuple[str, ...] = ()
    knowledge_context: str | None = None
    max_iterations: int = 30
    required_successful_verifications: int = 3
    max_errors_before_give_up: int = 10
    search: SearchConfig = field(default_factory=SearchConfig)
    enable_ask_questions: bool = False
    user_answers: str | None = None
    enable_planning: bool = False
    enable_interactive_mode: bool = False
    model_stages: ModelStageConfig = field(default_factory=ModelStageConfig)

    def __post_init__(self) -> None:
        # frozen=True prevents normal assignment; use object.__setattr__
        # to coerce lists coming from JSON into tuples.
        if self.other_prompts is None:
            object.__setattr__(self, "other_prompts", ())
        elif not isinstance(self.other_prompts, tuple):
            object.__setattr__(self, "other_prompts", tuple(self.other_prompts))

    def validate(self) -> None:
        if not self.problem_statement or not self.problem_statement.strip():
            raise ValueError("problem_statement must not be empty")
        if not self.thinking_model:
            raise ValueError("thinking_model must not be empty")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.required_successful_verifications < 1:
            raise ValueError(
                "required_successful_verifications must be >= 1, "
                f"got {self.required_successful_verifications}"
            )
        if self.max_errors_before_give_up < 1:
            raise ValueError(
                f"max_errors_before_give_up must be >= 1, got {self.max_errors_before_give_up}"
            )
        self.search.validate()
        self.model_stages.validate()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["other_prompts"] = list(self.other_prompts)
        data["model_stages"] = self.model_stages.to_dict()
        return data

    @classmethod
    def _kwargs_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        normalised = _normalise_keys(data)
        # Flat web-client spelling: enableWebSearch + searchProvider
        if "search" not in normalised:
            search = dict(normalised.pop("search_provider", None) or {})
            if "enable_web_search" in normalised:
                search["enabled"] = normalised.pop("enable_web_search")
            normalised["search"] = search
        normalised["search"] = SearchConfig.from_dict(normalised.get("search"))
        normalised["model_stages"] = ModelStageConfig.from_dict(normalised.get("model_stages"))
        valid_keys = {f.name for f in fields(cls)}
        return {k: v for k, v in normalised.items() if k in valid_keys}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeepThinkOptions:
        cfg = cls(**cls._kwargs_from_dict(data))
        cfg.validate()
        return cfg


@dataclass(frozen=True)
class UltraThinkOptions(DeepThinkOptions):
    """Options for a multi-agent run.

    ``max_agents`` caps the number of planned agents that actually run.  When
    ``None`` every configuration produced by the planning stage is used.
    """

    max_agents: int | None = None

    def validate(self) -> None:
        super().validate()
        if self.max_agents is not None and self.max_agents < 1:
            raise ValueError(f"max_agents must be >= 1, got {self.max_agents}")

    @classmethod
    def _kwargs_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        data = dict(data)
        if "numAgents" in data and "maxAgents" not in data:
            data["maxAgents"] = data.pop("numAgents")
        return super()._kwargs_from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UltraThinkOptions:
        cfg = cls(**cls._kwargs_from_dict(data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Unified config loader                                                 #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "deep_think": DeepThinkOptions,
    "ultra_think": UltraThinkOptions,
    "model_stages": ModelStageConfig,
    "search": SearchConfig,
}


def _load_sections(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigurationError("Top-level document must be a mapping")
    result: dict[str, Any] = {}
    for section, data in raw.items():
        key = _snake(section)
        cls = _CONFIG_MAP.get(key)
        if cls is not None and isinstance(data, dict):
            try:
                result[key] = cls.from_dict(data)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(
                    f"Invalid {key!r} section: {exc}", section=key
                ) from exc
        else:
            result[key] = data
    return result


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    Top-level keys name config sections (``deep_think``, ``ultra_think``,
    ``model_stages``, ``search``).  Unknown sections are preserved as raw
    values.
    """
    try:
        raw = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON: {exc}") from exc
    return _load_sections(raw)


def load_config_from_yaml(yaml_str: str) -> dict[str, Any]:
    """YAML counterpart of :func:`load_config_from_json`."""
    try:
        raw = yaml.safe_load(yaml_str)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML: {exc}") from exc
    return _load_sections(raw or {})


def read_config_sections(text: str) -> dict[str, Any]:
    """Parse a YAML or JSON document into raw, unvalidated sections.

    Section names and their keys are normalised to snake_case.  Callers
    complete the sections (e.g. with command-line flags) and validate
    through ``from_dict``.
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid config document: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError("Top-level document must be a mapping")
    return {
        _snake(k): _normalise_keys(v) if isinstance(v, dict) else v
        for k, v in raw.items()
    }
