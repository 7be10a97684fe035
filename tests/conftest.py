"""Shared fixtures for the deep-think test suite."""

from __future__ import annotations

import pytest

from deep_think.domain.values import AgentConfig, Verification
from deep_think.infrastructure.config import DeepThinkOptions, UltraThinkOptions
from deep_think.infrastructure.event_bus import EventRecorder, ProgressEmitter

# ---------------------------------------------------------------------------
# Event channel fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def emitter() -> ProgressEmitter:
    return ProgressEmitter()


@pytest.fixture
def recorder(emitter: ProgressEmitter) -> EventRecorder:
    """Recorder subscribed to every event of ``emitter``."""
    rec = EventRecorder()
    emitter.subscribe_all(rec.append)
    return rec


# ---------------------------------------------------------------------------
# Option fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def deep_options() -> DeepThinkOptions:
    return DeepThinkOptions(
        problem_statement="Is 97 prime?",
        thinking_model="test-model",
        max_iterations=5,
        required_successful_verifications=1,
        max_errors_before_give_up=3,
    )


@pytest.fixture
def ultra_options() -> UltraThinkOptions:
    return UltraThinkOptions(
        problem_statement="How should we shard the orders table?",
        thinking_model="test-model",
        max_iterations=3,
        required_successful_verifications=1,
        max_errors_before_give_up=2,
    )


# ---------------------------------------------------------------------------
# Value fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def passing_verification() -> Verification:
    return Verification(passed=True, good_verify="yes")


@pytest.fixture
def failing_verification() -> Verification:
    return Verification(passed=False, bug_report="Step 2 is wrong", good_verify="no")


@pytest.fixture
def agent_configs() -> list[AgentConfig]:
    return [
        AgentConfig(agent_id=f"agent_0{n}", approach=f"Approach {n}", specific_prompt=f"Focus {n}")
        for n in range(1, 6)
    ]
