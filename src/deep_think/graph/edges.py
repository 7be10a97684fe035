"""Conditional edge functions for the refinement LangGraph.

These functions determine routing between nodes based on the current state.
Budgets are bound by the ``make_*`` factories.
"""

from __future__ import annotations

from typing import Any, Callable, Literal


def make_after_init(
    enable_ask_questions: bool,
    enable_planning: bool,
) -> Callable[[dict[str, Any]], Literal["ask_questions", "plan", "explore"]]:
    """Enter the first enabled pre-stage."""

    def after_init(state: dict[str, Any]) -> Literal["ask_questions", "plan", "explore"]:
        if enable_ask_questions:
            return "ask_questions"
        return "plan" if enable_planning else "explore"

    return after_init


def make_after_questions(
    enable_planning: bool,
) -> Callable[[dict[str, Any]], Literal["plan", "explore", "__end__"]]:
    """Stop on an interactive pause, else continue with the next pre-stage."""

    def after_questions(state: dict[str, Any]) -> Literal["plan", "explore", "__end__"]:
        if state.get("awaiting_answers"):
            return "__end__"
        return "plan" if enable_planning else "explore"

    return after_questions


def make_after_record(
    max_iterations: int,
) -> Callable[[dict[str, Any]], Literal["correct", "verify", "summarize"]]:
    """Route after a pass is recorded.

    A failed pass is always corrected unless the error budget tripped.  A
    successful pass below the threshold re-verifies the unchanged solution
    while iteration budget remains.
    """

    def after_record(state: dict[str, Any]) -> Literal["correct", "verify", "summarize"]:
        if state.get("stop_reason"):
            return "summarize"
        verification = state["verification"]
        if not verification.passed:
            return "correct"
        if state["pass_index"] >= max_iterations:
            return "summarize"
        return "verify"

    return after_record


def make_after_correct(
    max_iterations: int,
) -> Callable[[dict[str, Any]], Literal["verify", "summarize"]]:
    """Verify the revised solution while iteration budget remains."""

    def after_correct(state: dict[str, Any]) -> Literal["verify", "summarize"]:
        if state["pass_index"] >= max_iterations:
            return "summarize"
        return "verify"

    return after_correct
