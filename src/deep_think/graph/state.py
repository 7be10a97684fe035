"""LangGraph state definition for the refinement loop.

Defines ``RefinementState``, a ``TypedDict`` that flows through the
LangGraph ``StateGraph``.  The pass log uses ``Annotated[list, operator.add]``
so that the record node appends without overwriting earlier entries.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

import operator
from typing import Annotated, Optional, TypedDict

from deep_think.domain.enums import StopReason
from deep_think.domain.values import Iteration, Verification


class RefinementState(TypedDict, total=False):
    """State of one single-track run.

    ``verification`` holds the latest verdict until the record node logs it;
    ``pass_index`` counts recorded passes.
    """

    # -- Inputs
    problem: str
    user_answers: Optional[str]

    # -- Context accumulated by the pre-stages
    other_prompts: list[str]
    questions: Optional[str]
    plan: Optional[str]

    # -- Candidate
    initial_thought: str
    solution: str
    verification: Optional[Verification]

    # -- Pass log (append-only)
    iterations: Annotated[list[Iteration], operator.add]
    verifications: Annotated[list[Verification], operator.add]

    # -- Counters
    pass_index: int
    consecutive_successes: int
    consecutive_errors: int

    # -- Termination
    stop_reason: Optional[StopReason]
    awaiting_answers: bool
    summary: Optional[str]


def make_initial_state(
    problem: str,
    other_prompts: list[str] | None = None,
    user_answers: str | None = None,
) -> dict:
    """Build the input dict for a fresh run."""
    return {
        "problem": problem,
        "user_answers": user_answers,
        "other_prompts": list(other_prompts or []),
        "questions": None,
        "plan": None,
        "initial_thought": "",
        "solution": "",
        "verification": None,
        "iterations": [],
        "verifications": [],
        "pass_index": 0,
        "consecutive_successes": 0,
        "consecutive_errors": 0,
        "stop_reason": None,
        "awaiting_answers": False,
        "summary": None,
    }
