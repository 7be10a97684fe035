"""Progress channel for the deep-think engines.

Provides the ``ProgressEmitter`` (a synchronous pub-sub channel for
``ProgressEvent`` instances) and an in-memory ``EventRecorder`` for replay,
tests and debugging.  A handler that raises is logged and skipped so that a
single failing subscriber never breaks a run.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Sequence

from deep_think.domain.events import ProgressEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
ProgressHandler = Callable[[ProgressEvent], None]


# ===================================================================== #
#  Progress Emitter                                                      #
# ===================================================================== #

class ProgressEmitter:
    """Thread-safe ordered event channel.

    Handlers are invoked **in registration order**, global handlers first.
    Once :meth:`close` is called, further events are dropped; this is how an
    aborted consumer stops receiving output from a run still in flight.

    Usage::

        emitter = ProgressEmitter()
        emitter.subscribe(Thinking, on_thinking)
        emitter.subscribe_all(print)
        emitter.emit(Thinking(iteration=1, phase="initial"))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[type[ProgressEvent], list[ProgressHandler]] = defaultdict(list)
        self._global_handlers: list[ProgressHandler] = []
        self._closed = False

    # -- subscription -------------------------------------------------------

    def subscribe(
        self,
        event_type: type[ProgressEvent],
        handler: ProgressHandler,
    ) -> None:
        """Register *handler* for a specific *event_type*."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: ProgressHandler) -> None:
        """Register *handler* to receive **every** emitted event."""
        with self._lock:
            self._global_handlers.append(handler)

    def unsubscribe(
        self,
        handler: ProgressHandler,
        event_type: type[ProgressEvent] | None = None,
    ) -> bool:
        """Remove *handler*.  Returns ``True`` if found.

        With no *event_type* the handler is removed from the global list.
        """
        with self._lock:
            handlers = (
                self._global_handlers
                if event_type is None
                else self._handlers.get(event_type, [])
            )
            try:
                handlers.remove(handler)
                return True
            except ValueError:
                return False

    # -- emitting -----------------------------------------------------------

    def emit(self, event: ProgressEvent) -> None:
        """Deliver *event* to all matching handlers, in order."""
        with self._lock:
            if self._closed:
                logger.debug("Emitter closed; dropping %s", type(event).__name__)
                return
            global_snapshot = list(self._global_handlers)
            typed_snapshot = list(self._handlers.get(type(event), []))

        for handler in global_snapshot:
            try:
                handler(event)
            except Exception:
                logger.exception("Error in global progress handler %r", handler)

        for handler in typed_snapshot:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Error in handler %r for %s", handler, type(event).__name__
                )

    # -- introspection / lifecycle ------------------------------------------

    def close(self) -> None:
        """Stop delivering events.  Idempotent."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def handler_count(self, event_type: type[ProgressEvent] | None = None) -> int:
        """Return the number of handlers registered.

        If *event_type* is ``None``, returns the total across all types
        plus globals.
        """
        with self._lock:
            if event_type is not None:
                return len(self._handlers.get(event_type, []))
            total = sum(len(hs) for hs in self._handlers.values())
            return total + len(self._global_handlers)


# ===================================================================== #
#  Event Recorder                                                        #
# ===================================================================== #

class EventRecorder:
    """In-memory append-only store of emitted events.

    Wire it to an emitter with ``emitter.subscribe_all(recorder.append)``.
    """

    def __init__(self) -> None:
        self._events: list[ProgressEvent] = []
        self._lock = threading.Lock()

    def append(self, event: ProgressEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(
        self,
        event_type: type[ProgressEvent] | None = None,
        source_id: str | None = None,
    ) -> Sequence[ProgressEvent]:
        """Return recorded events, optionally filtered by type and source."""
        with self._lock:
            result: list[ProgressEvent] = list(self._events)

        if event_type is not None:
            result = [e for e in result if isinstance(e, event_type)]
        if source_id is not None:
            result = [e for e in result if e.source_id == source_id]
        return result

    def types(self) -> list[str]:
        """Return the ``event_type`` values of all events, in order."""
        with self._lock:
            return [e.event_type.value for e in self._events]

    @property
    def latest(self) -> ProgressEvent | None:
        with self._lock:
            return self._events[-1] if self._events else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __bool__(self) -> bool:
        return len(self) > 0

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
