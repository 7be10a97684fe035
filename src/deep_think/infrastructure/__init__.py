"""Infrastructure layer for the deep-think engines.

Re-exports the public API surface for convenience::

    from deep_think.infrastructure import (
        ProgressEmitter, EventRecorder,
        DeepThinkOptions, UltraThinkOptions, ModelStageConfig, SearchConfig,
        ModelStageRouter,
    )
"""

from deep_think.infrastructure.config import (
    DeepThinkOptions,
    ModelStageConfig,
    SearchConfig,
    UltraThinkOptions,
    load_config_from_json,
    load_config_from_yaml,
    read_config_sections,
)
from deep_think.infrastructure.event_bus import (
    EventRecorder,
    ProgressEmitter,
)
from deep_think.infrastructure.llm import (
    ModelFactory,
    ModelStageRouter,
    extract_sources,
)
from deep_think.infrastructure.serialization import (
    serialize,
    to_json,
)

__all__ = [
    # Event channel
    "ProgressEmitter",
    "EventRecorder",
    # Configuration
    "DeepThinkOptions",
    "UltraThinkOptions",
    "ModelStageConfig",
    "SearchConfig",
    "load_config_from_json",
    "load_config_from_yaml",
    "read_config_sections",
    # Serialization
    "serialize",
    "to_json",
    # LLM
    "ModelFactory",
    "ModelStageRouter",
    "extract_sources",
]
