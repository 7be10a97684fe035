"""Public testing utilities for deep-think.

Provides a scripted chat model for writing self-contained examples and tests
without requiring API keys.
"""

from deep_think.testing.mock_llm import (
    ScriptedChatModel,
    ScriptedModelFactory,
    prompt_text,
)

__all__ = ["ScriptedChatModel", "ScriptedModelFactory", "prompt_text"]
