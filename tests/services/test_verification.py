"""Tests for solution verification."""

from __future__ import annotations

import pytest

from deep_think.infrastructure.config import ModelStageConfig
from deep_think.infrastructure.llm.router import ModelStageRouter
from deep_think.services.generation import TextGenerationClient
from deep_think.services.verification import (
    SolutionVerifier,
    extract_detailed_solution,
    is_affirmative,
)
from tests.helpers.mock_llm import StageScript, scripted_factory


class TestExtractDetailedSolution:

    def test_after_marker(self) -> None:
        text = "**1. Understanding**\nx\n\n**2. Deep Dive**\n  the details  "
        assert extract_detailed_solution(text) == "**\n  the details"

    def test_after_marker_strips(self) -> None:
        assert extract_detailed_solution("intro Deep Dive\n\nbody\n") == "body"

    def test_missing_marker_after(self) -> None:
        assert extract_detailed_solution("no marker here") == ""

    def test_before_marker(self) -> None:
        critique = "**Summary**\nStep 2 is wrong.\n\nDetailed Review\nwalkthrough"
        assert (
            extract_detailed_solution(critique, "Detailed Review", after=False)
            == "**Summary**\nStep 2 is wrong."
        )

    def test_missing_marker_before_returns_whole_text(self) -> None:
        assert extract_detailed_solution("whole critique", "Detailed Review", after=False) == (
            "whole critique"
        )

    def test_first_occurrence_wins(self) -> None:
        assert extract_detailed_solution("a Deep Dive b Deep Dive c") == "b Deep Dive c"


class TestIsAffirmative:

    @pytest.mark.parametrize("answer", ["yes", "YES.", "Yes, it is correct", "eyes"])
    def test_affirmative(self, answer: str) -> None:
        assert is_affirmative(answer)

    @pytest.mark.parametrize("answer", ["no", "No, there is a gap", ""])
    def test_negative(self, answer: str) -> None:
        assert not is_affirmative(answer)


def _verifier(script: StageScript, **router_kwargs) -> tuple[SolutionVerifier, object, list[str]]:
    factory, script, model = scripted_factory(script)
    router = ModelStageRouter("default-model", model_factory=factory, **router_kwargs)
    return SolutionVerifier(TextGenerationClient(router)), model, factory.requested


class TestSolutionVerifier:

    @pytest.mark.asyncio
    async def test_pass(self) -> None:
        verifier, model, _ = _verifier(StageScript(verdicts=["Yes."]))
        result = await verifier.verify("problem", "**2. Deep Dive**\nanswer 42")
        assert result.passed
        assert result.bug_report == ""
        assert result.good_verify == "Yes."
        # critique call reviews only the detailed section
        critique_call = model.calls[0]
        assert "answer 42" in critique_call[-1].content
        assert "Deep Dive" not in critique_call[-1].content

    @pytest.mark.asyncio
    async def test_fail_extracts_bug_report(self) -> None:
        script = StageScript(
            replies={"critique": "**Summary**\nStep 2 divides by zero.\n\n**Detailed Review**\n..."},
            verdicts=["no"],
        )
        verifier, _, _ = _verifier(script)
        result = await verifier.verify("problem", "Deep Dive x")
        assert not result.passed
        assert result.bug_report == "**Summary**\nStep 2 divides by zero.\n\n**"
        assert result.good_verify == "no"

    @pytest.mark.asyncio
    async def test_two_calls_on_verification_model(self) -> None:
        script = StageScript()
        verifier, _, requested = _verifier(
            script, stages=ModelStageConfig(verification="reviewer")
        )
        await verifier.verify("problem", "Deep Dive x")
        assert script.kinds == ["critique", "check"]
        assert requested == ["reviewer", "reviewer"]

    @pytest.mark.asyncio
    async def test_check_prompt_carries_critique(self) -> None:
        script = StageScript(replies={"critique": "CRITIQUE-TEXT"})
        verifier, model, _ = _verifier(script)
        await verifier.verify("problem", "Deep Dive x")
        assert "CRITIQUE-TEXT" in model.calls[1][-1].content

    @pytest.mark.asyncio
    async def test_model_failure_propagates(self) -> None:
        script = StageScript(replies={"critique": RuntimeError("backend down")})
        verifier, _, _ = _verifier(script)
        with pytest.raises(RuntimeError, match="backend down"):
            await verifier.verify("problem", "Deep Dive x")
