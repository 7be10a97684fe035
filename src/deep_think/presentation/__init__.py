"""Presentation layer: rich console output for runs and results."""

from deep_think.presentation.console import ConsoleDashboard

__all__ = ["ConsoleDashboard"]
