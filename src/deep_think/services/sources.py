"""Run-scoped accumulator of citation records."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from deep_think.domain.values import Source

logger = logging.getLogger(__name__)


class SourceCollector:
    """Append-only, lock-protected list of ``Source`` records.

    One collector belongs to one run.  In a multi-agent run each nested
    engine fills its own collector and the orchestrator merges it into the
    shared one when the agent finishes, so appends from agents finishing at
    the same time are serialized.  No deduplication is performed.
    """

    def __init__(self, sources: Iterable[Source] = ()) -> None:
        self._lock = threading.Lock()
        self._sources: list[Source] = list(sources)

    def extend(self, sources: Iterable[Source]) -> None:
        batch = list(sources)
        if not batch:
            return
        with self._lock:
            self._sources.extend(batch)
        logger.debug("SourceCollector: +%d source(s)", len(batch))

    def merge(self, other: SourceCollector) -> None:
        """Append every record of *other*, in its order."""
        self.extend(other.snapshot())

    def snapshot(self) -> tuple[Source, ...]:
        with self._lock:
            return tuple(self._sources)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def __bool__(self) -> bool:
        return len(self) > 0
