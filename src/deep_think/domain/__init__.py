"""Domain layer for the deep-think engines.

Re-exports all public domain types so that consumers can write::

    from deep_think.domain import AgentResult, Verification, Stage
"""

# -- Enumerations -------------------------------------------------------------
from .enums import (
    AgentStatus,
    IterationStatus,
    ProgressEventType,
    Stage,
    StopReason,
)

# -- Value Objects ------------------------------------------------------------
from .values import (
    AgentConfig,
    AgentConfigBatch,
    AgentResult,
    DeepThinkResult,
    Iteration,
    Source,
    UltraThinkResult,
    Verification,
)

# -- Progress Events ----------------------------------------------------------
from .events import (
    AgentUpdated,
    Asking,
    CorrectionStarted,
    Failed,
    Init,
    Planning,
    ProgressEvent,
    ProgressMessage,
    SolutionProposed,
    Succeeded,
    Summarizing,
    Thinking,
    VerificationCompleted,
    WaitingForAnswers,
)

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    AgentConfigError,
    ConfigurationError,
    DeepThinkError,
    ModelFactoryError,
)

__all__ = [
    # Enums
    "AgentStatus",
    "IterationStatus",
    "ProgressEventType",
    "Stage",
    "StopReason",
    # Values
    "AgentConfig",
    "AgentConfigBatch",
    "AgentResult",
    "DeepThinkResult",
    "Iteration",
    "Source",
    "UltraThinkResult",
    "Verification",
    # Events
    "AgentUpdated",
    "Asking",
    "CorrectionStarted",
    "Failed",
    "Init",
    "Planning",
    "ProgressEvent",
    "ProgressMessage",
    "SolutionProposed",
    "Succeeded",
    "Summarizing",
    "Thinking",
    "VerificationCompleted",
    "WaitingForAnswers",
    # Exceptions
    "AgentConfigError",
    "ConfigurationError",
    "DeepThinkError",
    "ModelFactoryError",
]
