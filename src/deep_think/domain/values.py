"""Value objects and result snapshots for the deep-think engines.

Records produced by a run (``Verification``, ``Iteration``, ``Source``) and
the terminal result snapshots are frozen dataclasses.  ``AgentResult`` is the
one mutable record: it is updated in place while its agent runs.

``AgentConfig`` is a pydantic model because it doubles as the shape requested
from the model during structured generation.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from .enums import AgentStatus, IterationStatus, StopReason


@dataclass(frozen=True)
class Source:
    """A citation surfaced by the text-generation backend."""

    url: str
    title: str | None = None
    content: str | None = None


@dataclass(frozen=True)
class Verification:
    """Outcome of one verification call pair (critique + yes/no check).

    Attributes
    ----------
    passed:
        ``True`` iff ``good_verify`` contains ``"yes"`` (case-insensitive).
    bug_report:
        Critique text before the ``Detailed Review`` marker; empty on pass.
    good_verify:
        Raw answer to the yes/no confirmation question.
    """

    passed: bool
    bug_report: str = ""
    good_verify: str = ""
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Iteration:
    """Append-only log entry for one pass of the loop."""

    index: int
    solution: str
    verification: Verification
    status: IterationStatus


class AgentConfig(BaseModel):
    """One strategic approach produced by the planning stage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent_id: str = Field(alias="agentId", description="Stable agent identifier, e.g. agent_01")
    approach: str = Field(description="Short name of the approach")
    specific_prompt: str = Field(
        alias="specificPrompt",
        description="Instructions for the agent exploring this approach",
    )


class AgentConfigBatch(BaseModel):
    """Structured-output envelope for agent configurations."""

    configs: list[AgentConfig] = Field(description="One entry per agent")


@dataclass
class AgentResult:
    """Mutable progress record of one agent.

    Status only moves forward (pending -> thinking -> verifying -> completed);
    ``failed`` can be reached from any non-terminal status and is terminal.
    """

    agent_id: str
    approach: str
    specific_prompt: str
    status: AgentStatus = AgentStatus.PENDING
    progress: int = 0
    solution: str | None = None
    verifications: tuple[Verification, ...] | None = None
    error: str | None = None

    @classmethod
    def from_config(cls, config: AgentConfig) -> AgentResult:
        return cls(
            agent_id=config.agent_id,
            approach=config.approach,
            specific_prompt=config.specific_prompt,
        )

    def can_transition(self, status: AgentStatus) -> bool:
        """Return whether moving to *status* respects the forward-only rule."""
        if self.status.is_terminal:
            return False
        if status is AgentStatus.FAILED:
            return True
        return status.rank >= self.status.rank


@dataclass(frozen=True)
class DeepThinkResult:
    """Terminal snapshot of a single-track refinement run."""

    initial_thought: str
    final_solution: str
    iterations: tuple[Iteration, ...] = ()
    verifications: tuple[Verification, ...] = ()
    total_iterations: int = 0
    successful_verifications: int = 0
    questions: str | None = None
    user_answers: str | None = None
    plan: str | None = None
    summary: str | None = None
    sources: tuple[Source, ...] | None = None
    stop_reason: StopReason | None = None
    awaiting_answers: bool = False
    mode: str = "deep-think"

    @property
    def knowledge_enhanced(self) -> bool:
        return bool(self.sources)


@dataclass(frozen=True)
class UltraThinkResult:
    """Terminal snapshot of a multi-agent run."""

    plan: str
    synthesis: str
    final_solution: str
    agent_results: tuple[AgentResult, ...] = ()
    total_agents: int = 0
    completed_agents: int = 0
    questions: str | None = None
    user_answers: str | None = None
    summary: str | None = None
    sources: tuple[Source, ...] | None = None
    mode: str = "ultra-think"

    @property
    def knowledge_enhanced(self) -> bool:
        return bool(self.sources)
