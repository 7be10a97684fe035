"""Service layer: generation, verification, the refinement engine and the
multi-agent orchestrator.

The engines are loaded lazily because the graph package imports the stage
services from here.
"""

from deep_think.services.generation import TextGenerationClient
from deep_think.services.sources import SourceCollector
from deep_think.services.stages import RefinementStages
from deep_think.services.verification import (
    SolutionVerifier,
    extract_detailed_solution,
    is_affirmative,
)

__all__ = [
    "TextGenerationClient",
    "SourceCollector",
    "RefinementStages",
    "SolutionVerifier",
    "extract_detailed_solution",
    "is_affirmative",
    "RefinementEngine",
    "MultiAgentOrchestrator",
    "run_deep_think",
    "run_ultra_think",
]

_LAZY = {
    "RefinementEngine": "deep_think.services.refinement",
    "run_deep_think": "deep_think.services.refinement",
    "MultiAgentOrchestrator": "deep_think.services.orchestrator",
    "run_ultra_think": "deep_think.services.orchestrator",
}


def __getattr__(name: str):  # noqa: N807
    if name in _LAZY:
        import importlib

        module = importlib.import_module(_LAZY[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
