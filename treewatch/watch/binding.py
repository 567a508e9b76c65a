# treewatch/watch/binding.py

"""
Primitive watch binding: single path, non-recursive watches on a watchdog observer
"""
import os
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch
from watchdog.observers.polling import PollingObserver

from .errors import WatchArmFailedError
from .events import RawSignal
from .handlers import SignalHandler

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WatchHandle:
    """Owned by exactly one WatchedNode"""
    path: str
    watch: ObservedWatch
    handler: SignalHandler

    @property
    def active(self) -> bool:
        return self.handler.active


class PrimitiveWatchBinding:
    """
    Arms and disarms non-recursive watches on one observer

    Nodes sharing a scheduled directory (a directory and files listed
    inside it, or several listed files of one directory) share the
    underlying watchdog watch; it is unscheduled with its last node.
    """

    def __init__(self, use_polling: bool = False, poll_interval: float = 1.0):
        """
        Initialize binding

        Args:
            use_polling: Use polling instead of OS events
            poll_interval: Polling interval in seconds
        """
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        if use_polling:
            self.observer = PollingObserver(timeout=poll_interval)
            logger.debug(f"Using polling observer (interval: {poll_interval}s)")
        else:
            self.observer = Observer()
            logger.debug("Using OS event observer")

        self._lock = threading.Lock()
        self._refcounts: Dict[ObservedWatch, int] = {}

    @property
    def is_running(self) -> bool:
        return self.observer.is_alive()

    def start(self):
        """Start the observer thread"""
        if not self.observer.is_alive():
            self.observer.start()

    def stop(self, timeout: Optional[float] = 10):
        """Stop the observer thread and every remaining watch"""
        with self._lock:
            self._refcounts.clear()

        if not self.observer.is_alive():
            return
        self.observer.stop()
        if threading.current_thread() is not self.observer:
            self.observer.join(timeout=timeout)

    def arm(self, path: str, on_signal: Callable[[RawSignal], None]) -> WatchHandle:
        """
        Start watching one path

        Args:
            path: Absolute path of a file or directory
            on_signal: Receives RawSignals from the observer thread

        Returns:
            Handle to pass to disarm()

        Raises:
            WatchArmFailedError: if the path is gone or cannot be watched
        """
        if os.path.isdir(path):
            watch_path = path
        elif os.path.exists(path):
            watch_path = os.path.dirname(path)
        else:
            raise WatchArmFailedError(path, "path does not exist")

        handler = SignalHandler(path, watch_path, on_signal)
        with self._lock:
            try:
                watch = self.observer.schedule(handler, watch_path, recursive=False)
            except OSError as e:
                handler.active = False
                raise WatchArmFailedError(path, str(e)) from e
            self._refcounts[watch] = self._refcounts.get(watch, 0) + 1

        logger.debug(f"Armed {path} (observing {watch_path})")
        return WatchHandle(path=path, watch=watch, handler=handler)

    def disarm(self, handle: WatchHandle):
        """Stop watching; calling twice is a no-op"""
        if not handle.handler.active:
            return
        handle.handler.active = False

        with self._lock:
            count = self._refcounts.get(handle.watch, 0) - 1
            try:
                if count > 0:
                    self._refcounts[handle.watch] = count
                    self.observer.remove_handler_for_watch(handle.handler, handle.watch)
                elif count == 0:
                    del self._refcounts[handle.watch]
                    self.observer.unschedule(handle.watch)
            except (KeyError, OSError) as e:
                # The emitter may already be gone when the directory was deleted
                logger.debug(f"Error disarming {handle.path}: {e}")

        logger.debug(f"Disarmed {handle.path}")

    def watch_count(self) -> int:
        """Number of distinct watchdog watches currently scheduled"""
        with self._lock:
            return len(self._refcounts)
