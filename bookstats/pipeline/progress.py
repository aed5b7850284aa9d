"""Batch progress tracking.

Pipelines never touch :class:`ProgressState` directly. They post
:class:`ProgressEvent` objects to a :class:`ProgressAggregator`, whose single
worker thread owns the state, applies events in arrival order and hands an
immutable :class:`ProgressSnapshot` to the configured sink after each one.
"""
from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from tqdm import tqdm

logger = logging.getLogger(__name__)

_QUEUE_SENTINEL = object()


class EventKind(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    kind: EventKind
    key: str
    title: str


@dataclass(frozen=True)
class ProgressSnapshot:
    total_files: int
    completed_titles: Tuple[str, ...]
    in_progress_titles: Tuple[str, ...]
    completed_count: int = 0
    failed_count: int = 0
    in_progress_count: int = 0

    @property
    def finished(self) -> bool:
        return self.completed_count + self.failed_count >= self.total_files

    @property
    def percent(self) -> int:
        if self.total_files <= 0 or self.finished:
            return 100
        return int(self.completed_count / self.total_files * 100)


ProgressSink = Callable[[ProgressSnapshot], None]


class ProgressState:
    """Batch-wide bookkeeping; a title is never in progress and completed at once."""

    def __init__(self, total_files: int) -> None:
        self.total_files = total_files
        self._in_progress: Dict[str, str] = {}
        self._finished_keys: Set[str] = set()
        self.completed: List[str] = []
        self.failed: List[str] = []

    @property
    def in_progress(self) -> List[str]:
        return list(self._in_progress.values())

    def start(self, key: str, title: str) -> None:
        if key in self._in_progress or key in self._finished_keys:
            logger.warning("Ignoring duplicate start for %s", key)
            return
        self._in_progress[key] = title

    def complete(self, key: str, title: str) -> None:
        if key in self._finished_keys:
            logger.warning("Ignoring duplicate completion for %s", key)
            return
        title = self._in_progress.pop(key, title)
        self._finished_keys.add(key)
        self.completed.append(title)

    def fail(self, key: str, title: str) -> None:
        if key in self._finished_keys:
            logger.warning("Ignoring duplicate failure for %s", key)
            return
        title = self._in_progress.pop(key, title)
        self._finished_keys.add(key)
        self.failed.append(title)

    def apply(self, event: ProgressEvent) -> None:
        if event.kind is EventKind.STARTED:
            self.start(event.key, event.title)
        elif event.kind is EventKind.COMPLETED:
            self.complete(event.key, event.title)
        elif event.kind is EventKind.FAILED:
            self.fail(event.key, event.title)
        else:  # pragma: no cover - enum is exhaustive
            raise ValueError(f"Unknown progress event {event.kind}")

    def snapshot(self, completed_window: int = 5, in_progress_window: int = 8) -> ProgressSnapshot:
        in_progress = list(self._in_progress.values())
        return ProgressSnapshot(
            total_files=self.total_files,
            completed_titles=_tail(self.completed, completed_window),
            in_progress_titles=_tail(in_progress, in_progress_window),
            completed_count=len(self.completed),
            failed_count=len(self.failed),
            in_progress_count=len(in_progress),
        )


def _tail(items: List[str], size: int) -> Tuple[str, ...]:
    if size <= 0:
        return ()
    return tuple(items[-size:])


class ProgressAggregator:
    def __init__(
        self,
        total_files: int,
        sink: Optional[ProgressSink] = None,
        *,
        completed_window: int = 5,
        in_progress_window: int = 8,
    ) -> None:
        self._state = ProgressState(total_files)
        self._sink = sink
        self._completed_window = completed_window
        self._in_progress_window = in_progress_window
        self._queue: "queue.Queue[ProgressEvent | object]" = queue.Queue()
        self._latest = self._state.snapshot(completed_window, in_progress_window)
        self._worker = threading.Thread(target=self._run, name="progress-aggregator", daemon=True)
        self._started = False

    # ------------------------------------------------------------------
    def __enter__(self) -> "ProgressAggregator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
        return False

    def start(self) -> None:
        if not self._started:
            self._started = True
            self._worker.start()

    def close(self) -> None:
        if not self._started:
            return
        self._queue.put(_QUEUE_SENTINEL)
        self._worker.join()

    # ------------------------------------------------------------------
    def post(self, event: ProgressEvent) -> None:
        self._queue.put(event)

    def started(self, key: str, title: str) -> None:
        self.post(ProgressEvent(EventKind.STARTED, key, title))

    def completed(self, key: str, title: str) -> None:
        self.post(ProgressEvent(EventKind.COMPLETED, key, title))

    def failed(self, key: str, title: str) -> None:
        self.post(ProgressEvent(EventKind.FAILED, key, title))

    def snapshot(self) -> ProgressSnapshot:
        return self._latest

    @property
    def state(self) -> ProgressState:
        """Owned by the worker thread; read it only after :meth:`close`."""
        return self._state

    # ------------------------------------------------------------------
    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _QUEUE_SENTINEL:
                return
            self._state.apply(item)
            self._latest = self._state.snapshot(self._completed_window, self._in_progress_window)
            self._emit(self._latest)

    def _emit(self, snapshot: ProgressSnapshot) -> None:
        if self._sink is None:
            return
        try:
            self._sink(snapshot)
        except Exception:
            logger.exception("Progress sink failed.")


class LoggingProgressSink:
    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self._log.info(
            "Progress %d%% (%d/%d done, %d failed); in progress: %s",
            snapshot.percent,
            snapshot.completed_count,
            snapshot.total_files,
            snapshot.failed_count,
            ", ".join(snapshot.in_progress_titles) or "-",
        )


class ConsoleProgressSink:
    """Terminal progress bar with the most recently finished books printed above it."""

    def __init__(self, *, unit: str = "book", leave: bool = True) -> None:
        self._unit = unit
        self._leave = leave
        self._bar: Optional[tqdm] = None
        self._reported = 0

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        if self._bar is None:
            self._bar = tqdm(total=snapshot.total_files, desc="Books", unit=self._unit, leave=self._leave)
        new_titles = snapshot.completed_count - self._reported
        if new_titles > 0:
            for title in snapshot.completed_titles[-new_titles:]:
                self._bar.write(f"[OK] {title}")
            self._reported = snapshot.completed_count
        self._bar.n = snapshot.completed_count + snapshot.failed_count
        current = snapshot.in_progress_titles[-1] if snapshot.in_progress_titles else ""
        self._bar.set_postfix_str(current[:40], refresh=False)
        self._bar.refresh()
        if snapshot.finished:
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
