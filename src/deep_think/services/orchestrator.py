"""Multi-agent orchestration ("ultra think").

``MultiAgentOrchestrator`` plans several strategic approaches, runs one
isolated :class:`RefinementEngine` per approach concurrently, waits for all
of them, and synthesizes their outputs into a single answer.

Agent progress is tracked on an :class:`AgentResultBoard`; every mutation is
published as an ``AgentUpdated`` event.  A failure inside one agent is
recorded on that agent's result and never aborts its siblings or the run.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from deep_think.domain.enums import AgentStatus, Stage
from deep_think.domain.events import (
    AgentUpdated,
    Failed,
    Init,
    ProgressEvent,
    ProgressMessage,
    Succeeded,
    Thinking,
    VerificationCompleted,
)
from deep_think.domain.exceptions import AgentConfigError
from deep_think.domain.values import (
    AgentConfig,
    AgentConfigBatch,
    AgentResult,
    DeepThinkResult,
    UltraThinkResult,
)
from deep_think.infrastructure.config import DeepThinkOptions, UltraThinkOptions
from deep_think.infrastructure.event_bus import ProgressEmitter
from deep_think.infrastructure.llm.router import ModelFactory, ModelStageRouter
from deep_think.services import prompts
from deep_think.services.generation import TextGenerationClient
from deep_think.services.refinement import RefinementEngine
from deep_think.services.sources import SourceCollector
from deep_think.services.stages import RefinementStages

logger = logging.getLogger(__name__)

EngineFactory = Callable[[DeepThinkOptions, ProgressEmitter, str], RefinementEngine]

_EXCERPT_LENGTH = 200


# ===================================================================== #
#  Agent configurations                                                  #
# ===================================================================== #

def _strip_code_fence(text: str) -> str:
    body = text.strip()
    if body.startswith("```json"):
        body = body[len("```json"):]
    elif body.startswith("```"):
        body = body[3:]
    if body.endswith("```"):
        body = body[:-3]
    return body.strip()


def parse_agent_configs(text: str) -> list[AgentConfig]:
    """Recover agent configurations from free text.

    Accepts a JSON array or an object with a ``configs`` array, optionally
    wrapped in a markdown code fence.

    Raises
    ------
    AgentConfigError
        With the first 200 characters of the offending text.
    """
    body = _strip_code_fence(text)
    excerpt = body[:_EXCERPT_LENGTH]
    try:
        parsed: Any = json.loads(body)
    except json.JSONDecodeError as exc:
        raise AgentConfigError(
            f"Failed to parse agent configurations. Original error: {exc}. "
            f"Response text: {excerpt}...",
            raw_excerpt=excerpt,
        ) from exc

    items = parsed.get("configs") if isinstance(parsed, dict) else parsed
    if not isinstance(items, list):
        raise AgentConfigError(
            "Failed to parse agent configurations. Expected a list or an object "
            f"with 'configs'. Response text: {excerpt}...",
            raw_excerpt=excerpt,
        )
    try:
        return [AgentConfig.model_validate(item) for item in items]
    except ValidationError as exc:
        raise AgentConfigError(
            f"Failed to parse agent configurations. Original error: {exc}. "
            f"Response text: {excerpt}...",
            raw_excerpt=excerpt,
        ) from exc


def select_configs(configs: Sequence[AgentConfig], max_agents: int | None) -> list[AgentConfig]:
    """Prefix of *configs* of length *max_agents*; all of them when unset."""
    if max_agents:
        return list(configs[:max_agents])
    return list(configs)


def agent_options(
    options: UltraThinkOptions,
    config: AgentConfig,
    thinking_model: str,
) -> DeepThinkOptions:
    """Options for one nested agent run.

    Questions and planning already happened at the orchestrator level, so
    both are disabled; the agent's instructions become auxiliary context.
    """
    return DeepThinkOptions(
        problem_statement=options.problem_statement,
        thinking_model=thinking_model,
        other_prompts=(config.specific_prompt,),
        knowledge_context=options.knowledge_context,
        max_iterations=options.max_iterations,
        required_successful_verifications=options.required_successful_verifications,
        max_errors_before_give_up=options.max_errors_before_give_up,
        search=options.search,
        enable_ask_questions=False,
        user_answers=options.user_answers,
        enable_planning=False,
        enable_interactive_mode=False,
        model_stages=options.model_stages,
    )


# ===================================================================== #
#  Agent result board                                                    #
# ===================================================================== #

# Completion data that may still be attached after a terminal status
_POST_TERMINAL_FIELDS = frozenset({"solution", "verifications"})


class AgentResultBoard:
    """Owner of the ``AgentResult`` list of one multi-agent run.

    Updates are serialized under a lock.  Status moves forward only, and
    ``failed`` is terminal; a rejected status change is dropped while the
    other fields of the same update still apply.  Every applied update is
    emitted as an ``AgentUpdated`` event.
    """

    def __init__(self, configs: Sequence[AgentConfig], emitter: ProgressEmitter) -> None:
        self._lock = threading.Lock()
        self._results = [AgentResult.from_config(c) for c in configs]
        self._emitter = emitter

    def announce(self) -> None:
        """Publish each agent's approach and instructions."""
        for result in self._results:
            self._emitter.emit(
                AgentUpdated(
                    agent_id=result.agent_id,
                    changes={
                        "approach": result.approach,
                        "specific_prompt": result.specific_prompt,
                    },
                )
            )

    def update(self, index: int, **changes: Any) -> dict[str, Any]:
        """Apply *changes* to the agent at *index*; return what was applied."""
        with self._lock:
            result = self._results[index]
            applied: dict[str, Any] = {}
            if result.status.is_terminal:
                changes = {k: v for k, v in changes.items() if k in _POST_TERMINAL_FIELDS}
            status = changes.pop("status", None)
            if status is not None:
                if result.can_transition(status):
                    result.status = status
                    applied["status"] = status
                else:
                    logger.debug(
                        "Agent %s: dropping status %s -> %s",
                        result.agent_id, result.status.value, status.value,
                    )
            for name, value in changes.items():
                setattr(result, name, value)
                applied[name] = value
            agent_id = result.agent_id

        if applied:
            self._emitter.emit(AgentUpdated(agent_id=agent_id, changes=applied))
        return applied

    def results(self) -> tuple[AgentResult, ...]:
        with self._lock:
            return tuple(self._results)

    def completed_count(self) -> int:
        with self._lock:
            return sum(1 for r in self._results if r.status is AgentStatus.COMPLETED)

    def __len__(self) -> int:
        return len(self._results)


class AgentProgressAdapter:
    """Maps a nested engine's events onto its agent's board entry."""

    def __init__(self, board: AgentResultBoard, index: int) -> None:
        self._board = board
        self._index = index

    def __call__(self, event: ProgressEvent) -> None:
        if isinstance(event, Thinking):
            self._board.update(
                self._index,
                progress=min(20 + event.iteration * 2, 80),
                status=AgentStatus.THINKING,
            )
        elif isinstance(event, VerificationCompleted):
            self._board.update(self._index, status=AgentStatus.VERIFYING)
        elif isinstance(event, Succeeded):
            self._board.update(self._index, status=AgentStatus.COMPLETED, progress=100)
        elif isinstance(event, Failed):
            self._board.update(self._index, status=AgentStatus.FAILED, error=event.reason)


@dataclass(frozen=True)
class AgentOutcome:
    """Outcome of one agent task, captured at the join point."""

    index: int
    result: DeepThinkResult | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_task(cls, index: int, task: asyncio.Task) -> AgentOutcome:
        if task.cancelled():
            return cls(index, error=asyncio.CancelledError("agent task cancelled"))
        exc = task.exception()
        if exc is not None:
            return cls(index, error=exc)
        return cls(index, result=task.result())


def render_digest(results: Sequence[AgentResult]) -> str:
    """Plain-text digest of all agent results for the synthesis prompt."""
    sections = []
    for n, result in enumerate(results, start=1):
        error_line = f"**Error:** {result.error}" if result.error else ""
        sections.append(
            f"\n### Agent {n}: {result.approach}\n\n"
            f"**Status:** {result.status.value}\n"
            f"{error_line}\n\n"
            f"**Solution:**\n"
            f"{result.solution or 'No solution generated'}\n"
        )
    return "\n\n---\n\n".join(sections)


# ===================================================================== #
#  Orchestrator                                                          #
# ===================================================================== #

class MultiAgentOrchestrator:
    """Plan, fan out, join, synthesize.

    Parameters
    ----------
    options:
        Run options; validated on construction.
    model_factory:
        Builds a chat model from an identifier.
    emitter:
        Progress channel for orchestrator and agent-update events.  Nested
        engines report to private emitters wired to the board.
    engine_factory:
        Builds the nested engine for one agent from its options, its private
        emitter and its agent id.  The default builds an isolated
        :class:`RefinementEngine` stamping its events with the agent id.
    """

    def __init__(
        self,
        options: UltraThinkOptions,
        *,
        model_factory: ModelFactory,
        emitter: ProgressEmitter | None = None,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        options.validate()
        self.options = options
        self.emitter = emitter if emitter is not None else ProgressEmitter()
        self.sources = SourceCollector()
        self.router = ModelStageRouter(
            options.thinking_model,
            options.model_stages,
            model_factory,
            options.search,
        )
        self.client = TextGenerationClient(self.router, self.sources)
        self.stages = RefinementStages(
            self.client, self.emitter, knowledge_context=options.knowledge_context
        )
        self._model_factory = model_factory
        self._engine_factory = engine_factory or self._default_engine_factory

    def _default_engine_factory(
        self,
        options: DeepThinkOptions,
        emitter: ProgressEmitter,
        agent_id: str,
    ) -> RefinementEngine:
        return RefinementEngine(
            options,
            model_factory=self._model_factory,
            emitter=emitter,
            source_id=agent_id,
        )

    def _emit_progress(self, message: str) -> None:
        self.emitter.emit(ProgressMessage(message=message))

    # -- planning -------------------------------------------------------------

    async def generate_plan(self) -> str:
        problem = self.options.problem_statement
        if self.options.user_answers:
            problem = f"{problem}\n\n### User Provided Context ###\n{self.options.user_answers}"
        self._emit_progress("Generating thinking plan...")
        return await self.client.generate(
            Stage.PLANNING,
            messages=prompts.ULTRA_PLAN_PROMPT.format_messages(query=problem),
        )

    async def generate_agent_configs(self, plan: str) -> list[AgentConfig]:
        """Structured generation, with a free-text fallback.

        Raises
        ------
        AgentConfigError
            If the fallback text cannot be parsed either.
        """
        self._emit_progress("Generating agent configurations...")
        messages = prompts.AGENT_CONFIG_PROMPT.format_messages(plan=plan)
        try:
            batch = await self.client.generate_structured(
                Stage.AGENT_CONFIG, AgentConfigBatch, messages
            )
            return list(batch.configs)
        except Exception as exc:
            logger.warning(
                "Structured agent-config generation failed (%s: %s); "
                "falling back to text parsing",
                type(exc).__name__, exc,
            )
        text = await self.client.generate(Stage.AGENT_CONFIG, messages=messages)
        return parse_agent_configs(text)

    # -- fan-out --------------------------------------------------------------

    async def _run_agent(
        self,
        index: int,
        config: AgentConfig,
        board: AgentResultBoard,
        thinking_model: str,
    ) -> DeepThinkResult:
        board.update(index, status=AgentStatus.THINKING, progress=10)
        agent_emitter = ProgressEmitter()
        agent_emitter.subscribe_all(AgentProgressAdapter(board, index))
        engine = self._engine_factory(
            agent_options(self.options, config, thinking_model),
            agent_emitter,
            config.agent_id,
        )
        result = await engine.run()
        self.sources.merge(engine.sources)
        return result

    def _settle(self, board: AgentResultBoard, outcome: AgentOutcome) -> None:
        agent_id = board.results()[outcome.index].agent_id
        if outcome.ok:
            result = outcome.result
            board.update(
                outcome.index,
                status=AgentStatus.COMPLETED,
                progress=100,
                solution=result.final_solution,
                verifications=result.verifications,
            )
            logger.info("Agent %s finished (%s)", agent_id, result.stop_reason)
        else:
            exc = outcome.error
            logger.warning("Agent %s failed: %s: %s", agent_id, type(exc).__name__, exc)
            board.update(
                outcome.index,
                status=AgentStatus.FAILED,
                error=str(exc) or type(exc).__name__,
            )

    async def run_agents(self, configs: Sequence[AgentConfig]) -> AgentResultBoard:
        """Run every agent concurrently and wait for all of them."""
        board = AgentResultBoard(configs, self.emitter)
        board.announce()
        self._emit_progress(f"Running {len(configs)} agents in parallel...")

        thinking_model = self.router.for_agents().default_model
        tasks = {
            asyncio.ensure_future(self._run_agent(i, config, board, thinking_model)): i
            for i, config in enumerate(configs)
        }
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    self._settle(board, AgentOutcome.from_task(tasks[task], task))
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return board

    # -- run ------------------------------------------------------------------

    async def run(self) -> UltraThinkResult:
        """Execute the multi-agent pipeline and return the terminal snapshot."""
        opts = self.options
        problem = opts.problem_statement
        self.emitter.emit(Init(problem=problem))
        logger.info("Multi-agent run started")

        questions = None
        if opts.enable_ask_questions:
            questions = await self.stages.ask_questions(problem)

        plan = await self.generate_plan()
        configs = await self.generate_agent_configs(plan)
        selected = select_configs(configs, opts.max_agents)
        logger.info("Selected %d of %d agent configuration(s)", len(selected), len(configs))

        board = await self.run_agents(selected)
        results = board.results()

        self._emit_progress("Synthesizing results...")
        synthesis = await self.client.generate(
            Stage.SYNTHESIS,
            messages=prompts.SYNTHESIS_PROMPT.format_messages(
                problem=problem, agent_results=render_digest(results)
            ),
        )
        summary = await self.stages.summarize(
            problem, synthesis, message="Creating final summary for user..."
        )
        self.emitter.emit(Succeeded(solution=summary, iterations=1))

        completed = board.completed_count()
        logger.info("Multi-agent run finished: %d/%d agent(s) completed", completed, len(board))
        sources = self.sources.snapshot()
        return UltraThinkResult(
            plan=plan,
            synthesis=synthesis,
            final_solution=synthesis,
            agent_results=results,
            total_agents=len(selected),
            completed_agents=completed,
            questions=questions,
            user_answers=opts.user_answers,
            summary=summary,
            sources=sources or None,
        )


async def run_ultra_think(
    options: UltraThinkOptions,
    *,
    model_factory: ModelFactory,
    emitter: ProgressEmitter | None = None,
) -> UltraThinkResult:
    """Convenience wrapper: build a :class:`MultiAgentOrchestrator` and run it."""
    orchestrator = MultiAgentOrchestrator(options, model_factory=model_factory, emitter=emitter)
    return await orchestrator.run()
