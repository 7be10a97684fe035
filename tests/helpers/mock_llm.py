"""Mock LLM for testing: re-exports from ``deep_think.testing`` plus a
content-routed script for the pipeline prompts."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

from langchain_core.messages import BaseMessage

from deep_think.services import prompts
from deep_think.testing.mock_llm import (
    ScriptedChatModel,
    ScriptedModelFactory,
    prompt_text,
)

__all__ = [
    "ScriptedChatModel",
    "ScriptedModelFactory",
    "StageScript",
    "classify",
    "prompt_text",
    "scripted_factory",
]


DEFAULT_REPLIES: dict[str, Any] = {
    "initial": "**1. Understanding**\nrestated\n\n**2. Deep Dive**\nfirst draft",
    "improvement": "**1. Understanding**\nrestated\n\n**2. Deep Dive**\nimproved draft",
    "critique": "**Summary**\nNo issues.\n\n**Detailed Review**\nAll steps hold.",
    "check": "yes",
    "correction": "**2. Deep Dive**\ncorrected draft",
    "summary": "Final answer for the user",
    "questions": "1. What constraints apply?\n2. What is the deadline?",
    "plan": "Decompose, analyse, conclude",
    "ultra_plan": "Approach A: analytical. Approach B: empirical.",
    "agent_config": (
        '[{"agentId": "agent_01", "approach": "Analytical", "specificPrompt": "Reason from first principles"},'
        ' {"agentId": "agent_02", "approach": "Empirical", "specificPrompt": "Look at measured data"}]'
    ),
    "synthesis": "Synthesized answer",
    "unknown": "",
}


def _text(message: BaseMessage) -> str:
    return message.content if isinstance(message.content, str) else str(message.content)


def classify(messages: list[BaseMessage]) -> str:
    """Name the pipeline call a message list belongs to."""
    last = _text(messages[-1])
    if 'Response in "yes" or "no"' in last:
        return "check"
    if "### Analysis to Review ###" in last:
        return "critique"
    if "<ANALYSIS_RESULT>" in last:
        return "summary"
    if "<AGENT_ANALYSES>" in last:
        return "synthesis"
    if "<PLAN>" in last:
        return "agent_config"
    if "<TASK>" in last:
        return "ultra_plan"
    if "structured thinking plan" in last:
        return "plan"
    if "follow-up questions" in last:
        return "questions"
    if last.startswith(prompts.CORRECTION_PROMPT):
        return "correction"
    if last == prompts.SELF_IMPROVEMENT_PROMPT:
        return "improvement"
    if "### Core Principles ###" in last:
        return "initial"
    return "unknown"


class StageScript:
    """Responder answering each call according to its classified kind.

    Parameters
    ----------
    replies:
        Overrides per kind.  A value may be a string, an ``AIMessage``, an
        exception instance (raised) or a callable taking the messages.
    verdicts:
        Answers consumed in order by the yes/no check calls; once exhausted
        the ``check`` reply is used.
    """

    def __init__(
        self,
        replies: dict[str, Any] | None = None,
        verdicts: Iterable[str] = (),
    ) -> None:
        self.replies = {**DEFAULT_REPLIES, **(replies or {})}
        self._verdicts = list(verdicts)
        self._lock = threading.Lock()
        self.kinds: list[str] = []

    def count(self, kind: str) -> int:
        return self.kinds.count(kind)

    def __call__(self, messages: list[BaseMessage]) -> Any:
        kind = classify(messages)
        with self._lock:
            self.kinds.append(kind)
            if kind == "check" and self._verdicts:
                return self._verdicts.pop(0)
        reply = self.replies[kind]
        if callable(reply):
            return reply(messages)
        return reply


def scripted_factory(
    script: StageScript | None = None,
    **model_kwargs: Any,
) -> tuple[ScriptedModelFactory, StageScript, ScriptedChatModel]:
    """One shared scripted model serving every identifier."""
    script = script or StageScript()
    model = ScriptedChatModel(responder=script, **model_kwargs)
    return ScriptedModelFactory(model), script, model
