"""Stage operations shared by the refinement graph and the orchestrator.

Each method issues the generation call(s) of one pipeline stage and emits the
matching progress events.  State bookkeeping (counters, logs, routing) lives
in the graph; this class only talks to the model and the emitter.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from deep_think.domain.enums import Stage
from deep_think.domain.events import (
    Asking,
    CorrectionStarted,
    Planning,
    ProgressEvent,
    ProgressMessage,
    SolutionProposed,
    Summarizing,
    Thinking,
    VerificationCompleted,
    WaitingForAnswers,
)
from deep_think.domain.values import Verification
from deep_think.infrastructure.event_bus import ProgressEmitter
from deep_think.services import prompts
from deep_think.services.generation import TextGenerationClient
from deep_think.services.verification import SolutionVerifier

logger = logging.getLogger(__name__)


class RefinementStages:
    """Generation calls of the single-track pipeline.

    Parameters
    ----------
    client:
        Stage-aware text generation.
    emitter:
        Progress channel.
    knowledge_context:
        Optional reference material folded into the system framing.
    source_id:
        Stamped on every emitted event (agent id for nested runs).
    """

    def __init__(
        self,
        client: TextGenerationClient,
        emitter: ProgressEmitter,
        knowledge_context: str | None = None,
        source_id: str = "",
    ) -> None:
        self.client = client
        self.emitter = emitter
        self.knowledge_context = knowledge_context
        self.source_id = source_id
        self._verifier = SolutionVerifier(client)

    def emit(self, event_cls: type[ProgressEvent], **payload: object) -> None:
        self.emitter.emit(event_cls(source_id=self.source_id, **payload))

    @property
    def _search(self) -> bool:
        return self.client.router.search.enabled

    # -- pre-stages -----------------------------------------------------------

    async def ask_questions(self, problem: str, wait_for_answers: bool = False) -> str:
        """Generate clarifying questions; optionally announce the pause."""
        self.emit(ProgressMessage, message="Generating clarification questions...")
        questions = await self.client.generate(
            Stage.QUESTIONS,
            messages=prompts.ASK_QUESTIONS_PROMPT.format_messages(problem=problem),
        )
        self.emit(Asking, questions=questions)
        if wait_for_answers:
            self.emit(WaitingForAnswers, questions=questions)
        return questions

    async def make_plan(self, problem: str, user_answers: str | None = None) -> str:
        self.emit(ProgressMessage, message="Generating thinking plan...")
        plan = await self.client.generate(
            Stage.PLANNING,
            messages=prompts.THINKING_PLAN_PROMPT.format_messages(
                problem=problem,
                user_context=prompts.user_context_block(user_answers),
            ),
        )
        self.emit(Planning, plan=plan)
        return plan

    # -- exploration ----------------------------------------------------------

    async def explore(self, problem: str, other_prompts: Sequence[str]) -> tuple[str, str]:
        """First solution, then a self-improvement pass over it.

        Returns
        -------
        tuple[str, str]
            ``(first_solution, improved_solution)``.
        """
        self.emit(Thinking, iteration=0, phase="initial-exploration")
        first = await self.client.generate(
            Stage.INITIAL,
            prompts.build_initial_prompt(problem, other_prompts, self.knowledge_context),
            web_search=self._search,
        )
        self.emit(SolutionProposed, solution=first, iteration=0)

        self.emit(Thinking, iteration=0, phase="self-improvement")
        improved = await self.client.generate(
            Stage.IMPROVEMENT,
            messages=[
                ("user", problem),
                ("assistant", first),
                ("user", prompts.SELF_IMPROVEMENT_PROMPT),
            ],
            system=prompts.system_prompt_with_knowledge(self.knowledge_context),
            web_search=self._search,
        )
        self.emit(SolutionProposed, solution=improved, iteration=0)
        return first, improved

    async def verify(self, problem: str, solution: str, iteration: int) -> Verification:
        self.emit(ProgressMessage, message="Verifying solution...")
        verification = await self._verifier.verify(problem, solution)
        self.emit(VerificationCompleted, passed=verification.passed, iteration=iteration)
        return verification

    async def correct(
        self,
        problem: str,
        solution: str,
        bug_report: str,
        iteration: int,
    ) -> str:
        """Revise *solution* against *bug_report*; emits the new solution."""
        self.emit(CorrectionStarted, iteration=iteration)
        revised = await self.client.generate(
            Stage.CORRECTION,
            messages=[
                ("user", problem),
                ("assistant", solution),
                ("user", prompts.CORRECTION_PROMPT + "\n\n" + bug_report),
            ],
            system=prompts.system_prompt_with_knowledge(self.knowledge_context),
            web_search=self._search,
        )
        self.emit(SolutionProposed, solution=revised, iteration=iteration + 1)
        return revised

    # -- terminal -------------------------------------------------------------

    async def summarize(
        self,
        problem: str,
        analysis: str,
        message: str = "Generating final summary...",
    ) -> str:
        self.emit(Summarizing, message=message)
        return await self.client.generate(
            Stage.SUMMARY,
            messages=prompts.FINAL_SUMMARY_PROMPT.format_messages(
                problem=problem, analysis=analysis
            ),
        )
