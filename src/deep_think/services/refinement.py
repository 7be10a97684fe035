"""Single-track refinement engine.

``RefinementEngine`` runs one problem through the compiled refinement graph
and turns the final graph state into a ``DeepThinkResult``.  Budget
exhaustion is a normal outcome reported through a ``failure`` event and the
result's ``stop_reason``; only chat-model failures propagate out of
:meth:`RefinementEngine.run`.

Usage::

    engine = RefinementEngine(
        DeepThinkOptions(problem_statement="...", thinking_model="gpt-4.1"),
        model_factory=ChatModelFactory(),
        emitter=emitter,
    )
    result = await engine.run()
"""

from __future__ import annotations

import logging

from deep_think.domain.enums import StopReason
from deep_think.domain.values import DeepThinkResult
from deep_think.graph.graph import build_refinement_graph, recursion_limit_for
from deep_think.graph.state import make_initial_state
from deep_think.infrastructure.config import DeepThinkOptions
from deep_think.infrastructure.event_bus import ProgressEmitter
from deep_think.infrastructure.llm.router import ModelFactory, ModelStageRouter
from deep_think.services.generation import TextGenerationClient
from deep_think.services.sources import SourceCollector
from deep_think.services.stages import RefinementStages

logger = logging.getLogger(__name__)


class RefinementEngine:
    """Ask/plan/explore/verify/correct loop for one problem.

    Parameters
    ----------
    options:
        Run options; validated on construction.
    model_factory:
        Builds a chat model from an identifier.  Ignored when *router* is
        given.
    emitter:
        Progress channel.  A private emitter is created when omitted.
    sources:
        Citation collector owned by this run.  A fresh one by default.
    router:
        Pre-built stage router (used by nested agent engines).
    source_id:
        Stamped on every emitted event.
    """

    def __init__(
        self,
        options: DeepThinkOptions,
        *,
        model_factory: ModelFactory | None = None,
        emitter: ProgressEmitter | None = None,
        sources: SourceCollector | None = None,
        router: ModelStageRouter | None = None,
        source_id: str = "",
    ) -> None:
        options.validate()
        if router is None and model_factory is None:
            raise ValueError("RefinementEngine needs a model_factory or a router")
        self.options = options
        self.emitter = emitter if emitter is not None else ProgressEmitter()
        self.sources = sources if sources is not None else SourceCollector()
        self.router = router or ModelStageRouter(
            options.thinking_model,
            options.model_stages,
            model_factory,
            options.search,
        )
        self.client = TextGenerationClient(self.router, self.sources)
        self.stages = RefinementStages(
            self.client,
            self.emitter,
            knowledge_context=options.knowledge_context,
            source_id=source_id,
        )

    async def ask_questions(
        self,
        problem_statement: str | None = None,
        wait_for_answers: bool = False,
    ) -> str:
        """Run only the Asking stage and return the question text.

        With *wait_for_answers*, also emits ``waiting_for_answers``.  The
        caller resumes by starting a fresh run with ``user_answers`` set and
        interactive mode off.
        """
        problem = problem_statement or self.options.problem_statement
        return await self.stages.ask_questions(problem, wait_for_answers=wait_for_answers)

    async def run(self) -> DeepThinkResult:
        """Execute the full pipeline and return the terminal snapshot."""
        opts = self.options
        app = build_refinement_graph(
            self.stages,
            max_iterations=opts.max_iterations,
            required_successes=opts.required_successful_verifications,
            max_errors=opts.max_errors_before_give_up,
            enable_ask_questions=opts.enable_ask_questions,
            enable_interactive_mode=opts.enable_interactive_mode,
            enable_planning=opts.enable_planning,
        )
        initial = make_initial_state(
            opts.problem_statement,
            list(opts.other_prompts),
            opts.user_answers,
        )
        final = await app.ainvoke(
            initial,
            config={"recursion_limit": recursion_limit_for(opts.max_iterations)},
        )
        return self._to_result(final)

    def _to_result(self, state: dict) -> DeepThinkResult:
        sources = self.sources.snapshot()
        iterations = tuple(state.get("iterations", ()))
        stop_reason = state.get("stop_reason")
        if stop_reason is StopReason.AWAITING_ANSWERS:
            return DeepThinkResult(
                initial_thought="",
                final_solution="",
                questions=state.get("questions"),
                user_answers=self.options.user_answers,
                sources=sources or None,
                stop_reason=stop_reason,
                awaiting_answers=True,
            )
        return DeepThinkResult(
            initial_thought=state.get("initial_thought", ""),
            final_solution=state.get("solution", ""),
            iterations=iterations,
            verifications=tuple(state.get("verifications", ())),
            total_iterations=len(iterations),
            successful_verifications=state.get("consecutive_successes", 0),
            questions=state.get("questions"),
            user_answers=self.options.user_answers,
            plan=state.get("plan"),
            summary=state.get("summary"),
            sources=sources or None,
            stop_reason=stop_reason,
        )


async def run_deep_think(
    options: DeepThinkOptions,
    *,
    model_factory: ModelFactory,
    emitter: ProgressEmitter | None = None,
) -> DeepThinkResult:
    """Convenience wrapper: build a :class:`RefinementEngine` and run it."""
    engine = RefinementEngine(options, model_factory=model_factory, emitter=emitter)
    return await engine.run()
