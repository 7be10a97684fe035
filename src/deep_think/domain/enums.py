"""Domain enumerations for the deep-think engines.

These enums capture the fixed vocabularies used across the domain layer:
pipeline stages, iteration and agent statuses, progress event tags and the
reasons a refinement loop stops.
"""

from enum import Enum


class Stage(Enum):
    """A named pipeline phase that can be routed to a distinct model."""

    QUESTIONS = "questions"
    INITIAL = "initial"
    IMPROVEMENT = "improvement"
    VERIFICATION = "verification"
    CORRECTION = "correction"
    SUMMARY = "summary"
    PLANNING = "planning"
    AGENT_CONFIG = "agentConfig"
    AGENT_THINKING = "agentThinking"
    SYNTHESIS = "synthesis"


class IterationStatus(Enum):
    """Outcome recorded for one pass of the verify/correct loop."""

    COMPLETED = "completed"
    CORRECTING = "correcting"


class AgentStatus(Enum):
    """Lifecycle status of one agent in a multi-agent run."""

    PENDING = "pending"
    THINKING = "thinking"
    VERIFYING = "verifying"
    COMPLETED = "completed"
    FAILED = "failed"  # terminal, reachable from any non-terminal state

    @property
    def is_terminal(self) -> bool:
        return self in (AgentStatus.COMPLETED, AgentStatus.FAILED)

    @property
    def rank(self) -> int:
        return _AGENT_STATUS_ORDER.index(self)


_AGENT_STATUS_ORDER = (
    AgentStatus.PENDING,
    AgentStatus.THINKING,
    AgentStatus.VERIFYING,
    AgentStatus.COMPLETED,
    AgentStatus.FAILED,
)


class ProgressEventType(Enum):
    """Tags of the progress event union."""

    INIT = "init"
    ASKING = "asking"
    WAITING_FOR_ANSWERS = "waiting_for_answers"
    PLANNING = "planning"
    THINKING = "thinking"
    SOLUTION = "solution"
    VERIFICATION = "verification"
    CORRECTION = "correction"
    SUMMARIZING = "summarizing"
    SUCCESS = "success"
    FAILURE = "failure"
    PROGRESS = "progress"
    AGENT_UPDATE = "agent_update"


class StopReason(Enum):
    """Why a refinement run left its loop."""

    VERIFIED = "verified"
    TOO_MANY_ERRORS = "too_many_errors"
    MAX_ITERATIONS = "max_iterations"
    AWAITING_ANSWERS = "awaiting_answers"
