"""Progress events emitted by the deep-think engines.

Every event is a frozen dataclass inheriting from ``ProgressEvent`` and tagged
with a class-level ``event_type``.  Events are transient: the engines hand
them to the ``ProgressEmitter`` and keep no reference afterwards.

``source_id`` is empty for top-level runs; nested per-agent engines set it to
the agent id.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .enums import ProgressEventType

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressEvent:
    """Base class for all progress events."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.PROGRESS

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Pipeline stage events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Init(ProgressEvent):
    """A run started."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.INIT

    problem: str = ""


@dataclass(frozen=True)
class Asking(ProgressEvent):
    """Clarifying questions were generated."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.ASKING

    questions: str = ""


@dataclass(frozen=True)
class WaitingForAnswers(ProgressEvent):
    """The run paused for user answers (interactive mode)."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.WAITING_FOR_ANSWERS

    questions: str = ""


@dataclass(frozen=True)
class Planning(ProgressEvent):
    """A thinking plan was produced."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.PLANNING

    plan: str = ""


@dataclass(frozen=True)
class Thinking(ProgressEvent):
    """A generation phase started."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.THINKING

    iteration: int = 0
    phase: str = ""


@dataclass(frozen=True)
class SolutionProposed(ProgressEvent):
    """A new candidate solution is available."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.SOLUTION

    solution: str = ""
    iteration: int = 0


@dataclass(frozen=True)
class VerificationCompleted(ProgressEvent):
    """A candidate solution was verified."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.VERIFICATION

    passed: bool = False
    iteration: int = 0


@dataclass(frozen=True)
class CorrectionStarted(ProgressEvent):
    """A failed verification triggered a correction call."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.CORRECTION

    iteration: int = 0


@dataclass(frozen=True)
class Summarizing(ProgressEvent):
    """The final user-facing summary is being produced."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.SUMMARIZING

    message: str = ""


# ---------------------------------------------------------------------------
# Terminal events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Succeeded(ProgressEvent):
    """The run reached its success condition."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.SUCCESS

    solution: str = ""
    iterations: int = 0


@dataclass(frozen=True)
class Failed(ProgressEvent):
    """A budget was exhausted before the success condition was met."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.FAILURE

    reason: str = ""


# ---------------------------------------------------------------------------
# Informational events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressMessage(ProgressEvent):
    """Free-form status message."""

    event_type: ClassVar[ProgressEventType] = ProgressEventType.PROGRESS

    message: str = ""


@dataclass(frozen=True)
class AgentUpdated(ProgressEvent):
    """One mutation of an ``AgentResult`` in a multi-agent run.

    ``changes`` holds only the fields touched by the mutation, keyed by their
    ``AgentResult`` attribute names.
    """

    event_type: ClassVar[ProgressEventType] = ProgressEventType.AGENT_UPDATE

    agent_id: str = ""
    changes: Mapping[str, Any] = field(default_factory=dict)
