# treewatch/watch/debounce.py

"""
Per-path debouncing of classified events
"""
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .events import ChangeEvent

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_TIME = 0.05  # seconds


@dataclass(eq=False)
class PendingEvent:
    """Event waiting for its debounce window to elapse"""
    event: ChangeEvent
    deadline: float
    count: int = 1
    timer: Optional[threading.Timer] = field(default=None, repr=False)

    def supersede(self, event: ChangeEvent):
        """Take the latest classification, keep the deadline"""
        self.event = event
        self.count += 1


class DebounceGate:
    """
    Collapses bursts of events for the same path

    The first event for a path opens a window; events for that path
    landing inside the window replace the pending classification without
    moving the deadline. One event per path leaves the gate per window.
    """

    def __init__(self, on_ready: Callable[[ChangeEvent], None],
                 debounce_time: float = DEFAULT_DEBOUNCE_TIME,
                 lock: Optional[threading.RLock] = None):
        """
        Initialize debounce gate

        Args:
            on_ready: Called with each debounced event, holding ``lock``
            debounce_time: Window length in seconds
            lock: Lock serializing gate state with its owner
        """
        self.on_ready = on_ready
        self.debounce_time = debounce_time
        self.lock = lock or threading.RLock()
        self.pending: Dict[str, PendingEvent] = {}

        # Statistics
        self.stats = {
            'total_events': 0,
            'debounced_events': 0,
            'processed_events': 0,
            'dropped_events': 0,
        }

    def push(self, event: ChangeEvent):
        """Add event, opening a window or joining the open one"""
        with self.lock:
            self.stats['total_events'] += 1

            pending = self.pending.get(event.path)
            if pending is not None:
                pending.supersede(event)
                self.stats['debounced_events'] += 1
                logger.debug(f"Debounced {event} (count: {pending.count})")
                return

            pending = PendingEvent(event=event, deadline=time.monotonic() + self.debounce_time)
            pending.timer = threading.Timer(self.debounce_time, self._fire, args=(pending,))
            pending.timer.daemon = True
            self.pending[event.path] = pending
            pending.timer.start()

    def _fire(self, pending: PendingEvent):
        with self.lock:
            # Cancelled while waiting for the lock
            if self.pending.get(pending.event.path) is not pending:
                return
            del self.pending[pending.event.path]
            self.stats['processed_events'] += 1
            self.on_ready(pending.event)

    def _drop(self, paths: List[str]) -> int:
        for path in paths:
            self.pending.pop(path).timer.cancel()
        self.stats['dropped_events'] += len(paths)
        return len(paths)

    def cancel_all(self) -> int:
        """Drop every pending event without emitting"""
        with self.lock:
            return self._drop(list(self.pending))

    def cancel_tree(self, path: str) -> int:
        """
        Drop pending events strictly below ``path``

        Returns:
            Number of events dropped
        """
        prefix = path.rstrip(os.sep) + os.sep
        with self.lock:
            dropped = self._drop([p for p in self.pending if p.startswith(prefix)])
        if dropped:
            logger.debug(f"Dropped {dropped} pending event(s) under {path}")
        return dropped

    def get_stats(self) -> Dict[str, Any]:
        """Get debouncer statistics"""
        with self.lock:
            return {
                **self.stats,
                'active_events': len(self.pending),
                'debounce_time': self.debounce_time,
            }
