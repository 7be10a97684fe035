"""Streaming boundary: progress events as named wire events.

``to_wire_event`` re-encodes a ``ProgressEvent`` as ``(name, payload)``
where *name* is one of ``progress``, ``solution``, ``success``, ``error`` or
``agent-update``.  ``stream_run`` drives a run and yields ``info``, the wire
events in emission order, then ``result`` and ``done`` (or ``error`` when the
run raises).

Closing the async iterator early closes the emitter and cancels the run task.
In-flight model calls are left to the chat model's own cancellation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from deep_think.domain.events import (
    AgentUpdated,
    CorrectionStarted,
    Failed,
    Init,
    ProgressEvent,
    ProgressMessage,
    SolutionProposed,
    Succeeded,
    Thinking,
    VerificationCompleted,
)
from deep_think.infrastructure.event_bus import ProgressEmitter
from deep_think.infrastructure.serialization import event_to_dict, serialize

logger = logging.getLogger(__name__)

WireEvent = tuple[str, dict[str, Any]]

_DONE = object()


def _data(event: ProgressEvent) -> dict[str, Any]:
    data = event_to_dict(event)
    data.pop("type", None)
    return data


def _progress_message(event: ProgressEvent) -> str:
    if isinstance(event, Init):
        return "Initializing..."
    if isinstance(event, Thinking):
        return f"Thinking (iteration {event.iteration}, phase: {event.phase})"
    if isinstance(event, VerificationCompleted):
        outcome = "passed" if event.passed else "failed"
        return f"Verification {outcome} (iteration {event.iteration})"
    if isinstance(event, CorrectionStarted):
        return f"Correcting solution (iteration {event.iteration})"
    return str(getattr(event, "message", "") or event.event_type.value)


def to_wire_event(event: ProgressEvent) -> WireEvent:
    """Map *event* to its wire name and payload."""
    if isinstance(event, SolutionProposed):
        return "solution", {"iteration": event.iteration, "solution": event.solution}
    if isinstance(event, Succeeded):
        return "success", {"message": "Successfully completed!", "data": _data(event)}
    if isinstance(event, Failed):
        return "error", {"message": f"Failed: {event.reason}", "data": _data(event)}
    if isinstance(event, AgentUpdated):
        return "agent-update", {"agentId": event.agent_id, **_data(event)["updates"]}
    kind = "general" if isinstance(event, ProgressMessage) else event.event_type.value
    return "progress", {
        "type": kind,
        "message": _progress_message(event),
        "data": _data(event),
    }


def _start_message(mode: str, max_agents: int | None) -> str:
    if mode != "ultra-think":
        return "Starting Deep Think..."
    if max_agents:
        return f"Starting Ultra Think with {max_agents} agents..."
    return "Starting Ultra Think with auto-determined agents..."


async def stream_run(
    runner: Callable[[], Awaitable[Any]],
    emitter: ProgressEmitter,
    *,
    mode: str = "deep-think",
    max_agents: int | None = None,
) -> AsyncIterator[WireEvent]:
    """Run *runner* and yield its progress as wire events.

    Parameters
    ----------
    runner:
        Zero-argument coroutine function, e.g. ``engine.run``.  The engine
        must report to *emitter*.
    emitter:
        Progress channel of the run.  Closed when the stream ends.
    mode:
        ``"deep-think"`` or ``"ultra-think"``; echoed in the ``info`` event.
    max_agents:
        Agent cap, used only in the start message.
    """
    from deep_think import __version__

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Any] = asyncio.Queue()
    # Handlers may run off the loop thread
    emitter.subscribe_all(
        lambda event: loop.call_soon_threadsafe(queue.put_nowait, to_wire_event(event))
    )

    yield "info", {"name": "deep-think", "version": __version__, "mode": mode}
    yield "progress", {"type": "init", "message": _start_message(mode, max_agents)}

    task = asyncio.ensure_future(runner())
    task.add_done_callback(lambda _: loop.call_soon(queue.put_nowait, _DONE))
    try:
        while True:
            item = await queue.get()
            if item is _DONE:
                break
            yield item

        if task.cancelled():
            yield "error", {"message": "Run cancelled"}
        elif (exc := task.exception()) is not None:
            logger.error("Run failed: %s: %s", type(exc).__name__, exc)
            yield "error", {"message": str(exc) or type(exc).__name__}
        else:
            yield "result", serialize(task.result())
            yield "done", {"message": "Stream completed"}
    finally:
        emitter.close()
        if not task.done():
            logger.info("Stream closed by consumer; cancelling run")
            task.cancel()


def format_sse(event: WireEvent) -> str:
    """Encode a wire event as a server-sent-events frame."""
    name, payload = event
    return f"event: {name}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


__all__ = [
    "WireEvent",
    "format_sse",
    "stream_run",
    "to_wire_event",
]
