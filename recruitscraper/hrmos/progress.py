"""Push-style progress channel for long scrapes.

Extractors call the ``ProgressTracker`` methods at per-item granularity; every
change emits a fresh ``ProgressSnapshot`` to all registered listeners. The
transport (polling endpoint, websocket, console) is the listener's concern.
"""
from __future__ import annotations
from typing import Callable, List, Optional
import logging
import threading

from .models import ProgressSnapshot
from .settings import SETTINGS

logger = logging.getLogger('progress')

Listener = Callable[[ProgressSnapshot], None]


class ProgressTracker:
    def __init__(self, max_logs: Optional[int] = None):
        self.max_logs = max_logs or SETTINGS.progress_log_max
        self._snapshot = ProgressSnapshot()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot.model_copy(deep=True)

    def reset(self, status: str = '準備中'):
        with self._lock:
            self._snapshot = ProgressSnapshot(status=status)
        self._emit()

    def update(self, **fields):
        with self._lock:
            for k, v in fields.items():
                setattr(self._snapshot, k, v)
        self._emit()

    def log(self, line: str, status: Optional[str] = None):
        with self._lock:
            logs = self._snapshot.logs
            logs.append(line)
            if len(logs) > self.max_logs:
                del logs[: len(logs) - self.max_logs]
            if status is not None:
                self._snapshot.status = status
        self._emit()

    def _emit(self):
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.debug("Progress listener failed", exc_info=True)


class NullProgress(ProgressTracker):
    """Tracker used when the caller does not care about progress."""

    def _emit(self):
        return None
