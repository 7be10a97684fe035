"""LangGraph node factories for the refinement loop.

Each ``make_*_node`` closes over the ``RefinementStages`` service (and the
budgets it needs) and returns an async node taking the ``RefinementState``
and returning a partial update dict.  Nodes delegate every model call to
the service and only do the bookkeeping themselves.
"""

from __future__ import annotations

import logging
from typing import Any

from deep_think.domain.enums import IterationStatus, StopReason
from deep_think.domain.events import Failed, Init, Succeeded
from deep_think.domain.values import Iteration
from deep_think.services import prompts
from deep_think.services.stages import RefinementStages

logger = logging.getLogger(__name__)


def make_init_node(stages: RefinementStages) -> Any:
    async def init_node(state: dict[str, Any]) -> dict[str, Any]:
        stages.emit(Init, problem=state["problem"])
        logger.info("Refinement run started (source=%r)", stages.source_id)
        return {}

    return init_node


def make_ask_questions_node(stages: RefinementStages, interactive: bool) -> Any:
    """Clarifying questions.  In interactive mode the run stops here."""

    async def ask_questions_node(state: dict[str, Any]) -> dict[str, Any]:
        questions = await stages.ask_questions(state["problem"], wait_for_answers=interactive)
        update: dict[str, Any] = {"questions": questions}
        if interactive:
            logger.info("Pausing for user answers")
            update["stop_reason"] = StopReason.AWAITING_ANSWERS
            update["awaiting_answers"] = True
        return update

    return ask_questions_node


def make_plan_node(stages: RefinementStages) -> Any:
    """Thinking plan, appended to the auxiliary context."""

    async def plan_node(state: dict[str, Any]) -> dict[str, Any]:
        plan = await stages.make_plan(state["problem"], state.get("user_answers"))
        update: dict[str, Any] = {"plan": plan}
        if plan:
            update["other_prompts"] = [*state.get("other_prompts", []), prompts.plan_fragment(plan)]
        return update

    return plan_node


def make_explore_node(stages: RefinementStages) -> Any:
    """Initial solution plus self-improvement; the improved text is the candidate."""

    async def explore_node(state: dict[str, Any]) -> dict[str, Any]:
        _, improved = await stages.explore(state["problem"], state.get("other_prompts", []))
        return {"initial_thought": improved, "solution": improved}

    return explore_node


def make_verify_node(stages: RefinementStages) -> Any:
    async def verify_node(state: dict[str, Any]) -> dict[str, Any]:
        verification = await stages.verify(
            state["problem"], state["solution"], iteration=state.get("pass_index", 0)
        )
        return {"verification": verification}

    return verify_node


def make_record_node(
    stages: RefinementStages,
    required_successes: int,
    max_errors: int,
) -> Any:
    """Log the pending verification as one pass and update the counters.

    Sets ``stop_reason`` when a success or error budget is reached.
    """

    async def record_node(state: dict[str, Any]) -> dict[str, Any]:
        verification = state["verification"]
        index = state.get("pass_index", 0)
        passed = verification.passed
        iteration = Iteration(
            index=index,
            solution=state["solution"],
            verification=verification,
            status=IterationStatus.COMPLETED if passed else IterationStatus.CORRECTING,
        )

        successes = state.get("consecutive_successes", 0)
        errors = state.get("consecutive_errors", 0)
        stop_reason = None
        if passed:
            successes += 1
            errors = 0
            if successes >= required_successes:
                stop_reason = StopReason.VERIFIED
        else:
            successes = 0
            errors += 1
            if errors >= max_errors:
                stop_reason = StopReason.TOO_MANY_ERRORS
                stages.emit(Failed, reason="Too many errors")

        logger.debug(
            "record_node: pass=%d passed=%s successes=%d errors=%d",
            index, passed, successes, errors,
        )
        return {
            "iterations": [iteration],
            "verifications": [verification],
            "pass_index": index + 1,
            "consecutive_successes": successes,
            "consecutive_errors": errors,
            "stop_reason": stop_reason,
        }

    return record_node


def make_correct_node(stages: RefinementStages) -> Any:
    async def correct_node(state: dict[str, Any]) -> dict[str, Any]:
        verification = state["verification"]
        revised = await stages.correct(
            state["problem"],
            state["solution"],
            verification.bug_report,
            iteration=state["pass_index"] - 1,
        )
        return {"solution": revised}

    return correct_node


def make_summarize_node(stages: RefinementStages) -> Any:
    """Final user-facing summary and the terminal event.

    A run reaching this node without a ``stop_reason`` exhausted its
    iteration budget.
    """

    async def summarize_node(state: dict[str, Any]) -> dict[str, Any]:
        summary = await stages.summarize(state["problem"], state["solution"])
        stop_reason = state.get("stop_reason") or StopReason.MAX_ITERATIONS
        if stop_reason is StopReason.VERIFIED:
            stages.emit(Succeeded, solution=summary, iterations=state["pass_index"])
        elif stop_reason is StopReason.MAX_ITERATIONS:
            stages.emit(Failed, reason="Max iterations reached")
        logger.info(
            "Refinement run finished: %s after %d pass(es)",
            stop_reason.value, state["pass_index"],
        )
        return {"summary": summary, "stop_reason": stop_reason}

    return summarize_node
