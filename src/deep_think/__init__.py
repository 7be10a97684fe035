"""Deep Think.

Iterative refinement of answers to hard problems with LangChain chat models:
a single-track explore/verify/correct loop and a multi-agent mode that runs
several strategies concurrently and synthesizes them.
"""

__version__ = "0.1.0"

from deep_think.infrastructure.config import DeepThinkOptions, UltraThinkOptions
from deep_think.infrastructure.event_bus import EventRecorder, ProgressEmitter
from deep_think.services.orchestrator import MultiAgentOrchestrator, run_ultra_think
from deep_think.services.refinement import RefinementEngine, run_deep_think

__all__ = [
    "DeepThinkOptions",
    "UltraThinkOptions",
    "ProgressEmitter",
    "EventRecorder",
    "RefinementEngine",
    "MultiAgentOrchestrator",
    "run_deep_think",
    "run_ultra_think",
]
