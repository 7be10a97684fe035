"""Rich-based console output for deep-think runs.

:class:`ConsoleDashboard` prints live progress events (subscribe its
:meth:`~ConsoleDashboard.on_event` to an emitter) and renders terminal
results as tables and panels.
"""

from __future__ import annotations

import sys
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from deep_think.domain.enums import AgentStatus
from deep_think.domain.events import (
    AgentUpdated,
    Asking,
    CorrectionStarted,
    Failed,
    Init,
    Planning,
    ProgressEvent,
    ProgressMessage,
    SolutionProposed,
    Succeeded,
    Summarizing,
    Thinking,
    VerificationCompleted,
    WaitingForAnswers,
)
from deep_think.domain.values import DeepThinkResult, UltraThinkResult

_STATUS_STYLE = {
    AgentStatus.PENDING: "dim",
    AgentStatus.THINKING: "cyan",
    AgentStatus.VERIFYING: "yellow",
    AgentStatus.COMPLETED: "green",
    AgentStatus.FAILED: "red",
}


def _preview(text: str, width: int = 80) -> str:
    line = " ".join(text.split())
    return line if len(line) <= width else line[: width - 3] + "..."


class ConsoleDashboard:
    """Console presentation of progress events and results.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    color:
        Disable to emit plain text (e.g. when piping).
    verbose:
        Also print solution previews as they are proposed.
    """

    def __init__(self, file: Any = None, color: bool = True, verbose: bool = False) -> None:
        self._console = Console(file=file or sys.stdout, no_color=not color, highlight=False)
        self._verbose = verbose

    @property
    def console(self) -> Console:
        return self._console

    # -- live progress -----------------------------------------------------

    def on_event(self, event: ProgressEvent) -> None:
        """Progress handler; pass to ``ProgressEmitter.subscribe_all``."""
        line = self._format_event(event)
        if line:
            self._console.print(line)

    def _format_event(self, event: ProgressEvent) -> str | None:
        prefix = f"[dim]\\[{escape(event.source_id)}][/dim] " if event.source_id else ""
        if isinstance(event, Init):
            return f"{prefix}[bold]Starting[/bold]"
        if isinstance(event, ProgressMessage):
            return f"{prefix}{escape(event.message)}"
        if isinstance(event, Asking):
            return f"{prefix}[bold]Clarifying questions[/bold]\n{escape(event.questions)}"
        if isinstance(event, WaitingForAnswers):
            return f"{prefix}[yellow]Waiting for answers[/yellow]"
        if isinstance(event, Planning):
            return f"{prefix}[bold]Plan ready[/bold] ({len(event.plan)} chars)"
        if isinstance(event, Thinking):
            return f"{prefix}Thinking: {escape(event.phase)} (iteration {event.iteration})"
        if isinstance(event, SolutionProposed):
            if not self._verbose:
                return None
            preview = escape(_preview(event.solution))
            return f"{prefix}[dim]Solution {event.iteration}: {preview}[/dim]"
        if isinstance(event, VerificationCompleted):
            verdict = "[green]passed[/green]" if event.passed else "[red]failed[/red]"
            return f"{prefix}Verification {verdict} (iteration {event.iteration})"
        if isinstance(event, CorrectionStarted):
            return f"{prefix}Correcting (iteration {event.iteration})"
        if isinstance(event, Summarizing):
            return f"{prefix}{escape(event.message)}"
        if isinstance(event, Succeeded):
            return f"{prefix}[bold green]Success[/bold green] after {event.iterations} iteration(s)"
        if isinstance(event, Failed):
            return f"{prefix}[bold red]Failed:[/bold red] {escape(event.reason)}"
        if isinstance(event, AgentUpdated):
            status = event.changes.get("status")
            if status is None:
                return None
            style = _STATUS_STYLE.get(status, "")
            return f"Agent {escape(event.agent_id)}: [{style}]{status.value}[/{style}]"
        return None

    # -- results -----------------------------------------------------------

    def print_deep_result(self, result: DeepThinkResult) -> None:
        if result.awaiting_answers:
            self._console.print(Panel(escape(result.questions or ""), title="Questions"))
            self._console.print("Re-run with --answers to continue.")
            return

        table = Table(title="Refinement passes")
        table.add_column("Pass", justify="right")
        table.add_column("Status")
        table.add_column("Verified")
        table.add_column("Bug report")
        for it in result.iterations:
            table.add_row(
                str(it.index),
                it.status.value,
                "[green]yes[/green]" if it.verification.passed else "[red]no[/red]",
                escape(_preview(it.verification.bug_report, 60)),
            )
        self._console.print(table)

        stop = result.stop_reason.value if result.stop_reason else "unknown"
        self._console.print(
            f"Stop reason: [bold]{stop}[/bold]   "
            f"passes: {result.total_iterations}   "
            f"consecutive successes: {result.successful_verifications}"
        )
        self._print_solution(result.summary, result.final_solution)
        self._print_sources(result.sources)

    def print_ultra_result(self, result: UltraThinkResult) -> None:
        table = Table(title="Agents")
        table.add_column("Agent")
        table.add_column("Approach")
        table.add_column("Status")
        table.add_column("Progress", justify="right")
        table.add_column("Error")
        for agent in result.agent_results:
            style = _STATUS_STYLE.get(agent.status, "")
            table.add_row(
                escape(agent.agent_id),
                escape(agent.approach),
                f"[{style}]{agent.status.value}[/{style}]",
                f"{agent.progress}%",
                escape(agent.error or ""),
            )
        self._console.print(table)
        self._console.print(
            f"Completed agents: {result.completed_agents}/{result.total_agents}"
        )
        self._print_solution(result.summary, result.final_solution)
        self._print_sources(result.sources)

    def _print_solution(self, summary: str | None, solution: str) -> None:
        body = summary or solution
        if body:
            self._console.print(Panel(Markdown(body), title="Answer"))

    def _print_sources(self, sources: Any) -> None:
        if not sources:
            return
        self._console.print("[bold]Sources[/bold]")
        for source in sources:
            self._console.print(f"  - {escape(source.title or source.url)}: {escape(source.url)}")
