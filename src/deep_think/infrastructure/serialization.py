"""Serialization utilities for deep-think results and progress events.

Converts result snapshots, agent records and progress events into plain
JSON-serializable dicts.  Output keys use the camelCase spelling expected by
web clients (``finalSolution``, ``totalIterations``...).

Design goals:
- Every ``*_to_dict`` output is JSON-serializable (no enums, no tuples).
- Optional fields that are unset are omitted rather than emitted as ``null``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from deep_think.domain.events import AgentUpdated, ProgressEvent
from deep_think.domain.values import (
    AgentResult,
    DeepThinkResult,
    Iteration,
    Source,
    UltraThinkResult,
    Verification,
)

logger = logging.getLogger(__name__)


# =========================================================================== #
#  Generic helpers                                                             #
# =========================================================================== #

def _enum_val(v: Any) -> Any:
    """Return the ``.value`` if *v* is an enum member, else *v* unchanged."""
    if hasattr(v, "value"):
        return v.value
    return v


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# =========================================================================== #
#  Value objects                                                               #
# =========================================================================== #

def source_to_dict(s: Source) -> dict[str, Any]:
    return _drop_none({"url": s.url, "title": s.title, "content": s.content})


def verification_to_dict(v: Verification) -> dict[str, Any]:
    return {
        "passed": v.passed,
        "bugReport": v.bug_report,
        "goodVerify": v.good_verify,
        "timestamp": v.timestamp,
    }


def iteration_to_dict(it: Iteration) -> dict[str, Any]:
    return {
        "iteration": it.index,
        "solution": it.solution,
        "verification": verification_to_dict(it.verification),
        "status": _enum_val(it.status),
    }


def agent_result_to_dict(a: AgentResult) -> dict[str, Any]:
    return _drop_none({
        "agentId": a.agent_id,
        "approach": a.approach,
        "specificPrompt": a.specific_prompt,
        "status": _enum_val(a.status),
        "progress": a.progress,
        "solution": a.solution,
        "verifications": (
            [verification_to_dict(v) for v in a.verifications]
            if a.verifications is not None
            else None
        ),
        "error": a.error,
    })


# =========================================================================== #
#  Results                                                                     #
# =========================================================================== #

def _sources(sources: tuple[Source, ...] | None) -> list[dict[str, Any]] | None:
    if not sources:
        return None
    return [source_to_dict(s) for s in sources]


def deep_think_result_to_dict(r: DeepThinkResult) -> dict[str, Any]:
    return _drop_none({
        "mode": r.mode,
        "questions": r.questions,
        "userAnswers": r.user_answers,
        "plan": r.plan,
        "initialThought": r.initial_thought,
        "iterations": [iteration_to_dict(it) for it in r.iterations],
        "verifications": [verification_to_dict(v) for v in r.verifications],
        "finalSolution": r.final_solution,
        "summary": r.summary,
        "totalIterations": r.total_iterations,
        "successfulVerifications": r.successful_verifications,
        "sources": _sources(r.sources),
        "knowledgeEnhanced": r.knowledge_enhanced,
        "stopReason": _enum_val(r.stop_reason) if r.stop_reason else None,
        "awaitingAnswers": r.awaiting_answers or None,
    })


def ultra_think_result_to_dict(r: UltraThinkResult) -> dict[str, Any]:
    return _drop_none({
        "mode": r.mode,
        "questions": r.questions,
        "userAnswers": r.user_answers,
        "plan": r.plan,
        "agentResults": [agent_result_to_dict(a) for a in r.agent_results],
        "synthesis": r.synthesis,
        "finalSolution": r.final_solution,
        "summary": r.summary,
        "totalAgents": r.total_agents,
        "completedAgents": r.completed_agents,
        "sources": _sources(r.sources),
        "knowledgeEnhanced": r.knowledge_enhanced,
    })


# =========================================================================== #
#  Events                                                                      #
# =========================================================================== #

def _change_val(v: Any) -> Any:
    if isinstance(v, tuple):
        return [verification_to_dict(x) if isinstance(x, Verification) else x for x in v]
    return _enum_val(v)


def event_to_dict(event: ProgressEvent) -> dict[str, Any]:
    """Flatten a progress event into ``{"type": ..., <fields>}``."""
    data: dict[str, Any] = {"type": event.event_type.value}
    for name, value in vars(event).items():
        if name == "source_id" and not value:
            continue
        if isinstance(event, AgentUpdated) and name == "changes":
            data["updates"] = {_camel(k): _change_val(v) for k, v in value.items()}
            continue
        data[_camel(name)] = _enum_val(value)
    return data


# =========================================================================== #
#  Generic dispatch                                                            #
# =========================================================================== #

def serialize(obj: Any) -> dict[str, Any]:
    """Serialize any supported result, record or event to a dict."""
    if isinstance(obj, DeepThinkResult):
        return deep_think_result_to_dict(obj)
    if isinstance(obj, UltraThinkResult):
        return ultra_think_result_to_dict(obj)
    if isinstance(obj, AgentResult):
        return agent_result_to_dict(obj)
    if isinstance(obj, ProgressEvent):
        return event_to_dict(obj)
    if isinstance(obj, Iteration):
        return iteration_to_dict(obj)
    if isinstance(obj, Verification):
        return verification_to_dict(obj)
    if isinstance(obj, Source):
        return source_to_dict(obj)
    raise TypeError(f"Cannot serialize {type(obj).__name__}")


def to_json(obj: Any, *, indent: int | None = 2) -> str:
    """Serialize *obj* to a JSON string."""
    return json.dumps(serialize(obj), indent=indent, ensure_ascii=False)
