# treewatch/watch/watcher.py

"""
Recursive watcher: the long-lived handle returned to callers
"""
import os
import queue
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from ..utils.logger import log_exception
from .binding import PrimitiveWatchBinding
from .debounce import DEFAULT_DEBOUNCE_TIME, DebounceGate
from .errors import WatchArmFailedError
from .events import ChangeEvent, EventType, RawSignal
from .normalize import normalize
from .registry import WatchRegistry
from .tree import WatchRoot, enumerate_tree, walk_tree

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, str], Any]


class RecursiveWatcher:
    """
    Watches a set of roots, mirroring nested directories with one
    primitive watch each

    Raw signals from the observer thread go through a bounded channel to a
    single worker thread. Classification, debouncing, filtering, directory
    discovery and subscriber dispatch all run under one lock, so callbacks
    are never invoked concurrently and never after close() returns.
    """

    def __init__(self, roots: List[WatchRoot],
                 debounce_time: float = DEFAULT_DEBOUNCE_TIME,
                 max_events: int = 10000,
                 binding: Optional[PrimitiveWatchBinding] = None):
        """
        Initialize recursive watcher

        Args:
            roots: Validated watch roots
            debounce_time: Debounce window in seconds
            max_events: Capacity of the raw signal channel
            binding: Primitive watch binding (a new observer by default)
        """
        self.roots = list(roots)
        self.lock = threading.RLock()
        self.binding = binding or PrimitiveWatchBinding()
        self.registry = WatchRegistry(self.binding, self._enqueue)
        self.gate = DebounceGate(self._emit, debounce_time, self.lock)
        self.signals: "queue.Queue[Optional[RawSignal]]" = queue.Queue(maxsize=max_events)

        self.callbacks: Dict[str, List[ChangeCallback]] = {
            'change': [],
        }

        # State
        self._closed = False
        self._worker: Optional[threading.Thread] = None
        self.stats = {
            'start_time': None,
            'events_emitted': 0,
            'events_filtered': 0,
            'nested_removes_dropped': 0,
            'arm_failures': 0,
        }
        # Observer-thread counters, kept apart from the pipeline lock
        self._signal_counts_lock = threading.Lock()
        self.signal_counts = {
            'signals_received': 0,
            'signals_dropped': 0,
        }

    def start(self) -> 'RecursiveWatcher':
        """Arm every root and begin processing signals"""
        with self.lock:
            if self._closed or self._worker is not None:
                return self

            self._worker = threading.Thread(
                target=self._process_signals,
                name='treewatch-signals',
                daemon=True,
            )
            self._worker.start()
            self.binding.start()

            for root in self.roots:
                for path in enumerate_tree(root):
                    self._arm(path, root)

            self.stats['start_time'] = time.time()

        logger.info(f"Watching {len(self.roots)} root(s) with {len(self.registry)} watch(es)")
        return self

    def close(self):
        """
        Stop watching; idempotent and irreversible

        Pending debounced events are discarded and every primitive watch is
        disarmed before this returns.
        """
        with self.lock:
            if self._closed:
                return
            self._closed = True
            dropped = self.gate.cancel_all()
            self.registry.clear()

        try:
            self.signals.put_nowait(None)
        except queue.Full:
            # The worker checks the closed flag after every signal
            pass
        self.binding.stop()

        logger.info(f"Watcher closed ({dropped} pending event(s) discarded)")

    def is_closed(self) -> bool:
        return self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def register_callback(self, callback_type: str, callback: ChangeCallback):
        """Register a callback"""
        with self.lock:
            if self._closed:
                logger.warning("Ignoring callback registered on a closed watcher")
                return
            if callback_type in self.callbacks:
                self.callbacks[callback_type].append(callback)
            else:
                logger.warning(f"Unknown callback type: {callback_type}")

    def subscribe(self, callback: ChangeCallback):
        """Register ``callback(event_kind, path)`` for change events"""
        self.register_callback('change', callback)

    def watched_paths(self) -> List[str]:
        with self.lock:
            return self.registry.paths()

    def get_stats(self) -> Dict[str, Any]:
        """Get watcher statistics"""
        with self._signal_counts_lock:
            signal_counts = dict(self.signal_counts)
        with self.lock:
            return {
                **self.stats,
                **signal_counts,
                'closed': self._closed,
                'watched_paths': len(self.registry),
                'queue_size': self.signals.qsize(),
                'debounce': self.gate.get_stats(),
            }

    def _arm(self, path: str, root: WatchRoot) -> bool:
        try:
            self.registry.add(path, root)
            return True
        except WatchArmFailedError as e:
            self.stats['arm_failures'] += 1
            logger.warning(f"Skipping {path}: {e}")
            return False

    def _enqueue(self, signal: RawSignal):
        """Called from the observer thread; never blocks"""
        if self._closed:
            return
        with self._signal_counts_lock:
            self.signal_counts['signals_received'] += 1
        try:
            self.signals.put_nowait(signal)
        except queue.Full:
            with self._signal_counts_lock:
                self.signal_counts['signals_dropped'] += 1
            logger.warning(f"Signal queue full, dropping signal: {signal}")

    def _process_signals(self):
        """Worker loop draining the signal channel"""
        while True:
            signal = self.signals.get()
            if signal is None:
                break

            with self.lock:
                if self._closed:
                    break
                try:
                    self._handle_signal(signal)
                except Exception as e:
                    log_exception(logger, e, f"Error handling signal {signal}",
                                  extra={'signal': signal})

    def _handle_signal(self, signal: RawSignal):
        node = self.registry.get(signal.node_path)
        if node is None:
            logger.debug(f"Signal for unwatched path: {signal.node_path}")
            return

        for event in normalize(signal, node):
            if event.event_type is EventType.REMOVE:
                self.registry.remove_tree(event.path)
                self.gate.cancel_tree(event.path)
            self.gate.push(event)

    def _emit(self, event: ChangeEvent):
        """Debounced event: filter, discover, dispatch (lock held)"""
        if self._closed:
            return

        if not event.root.includes(event.path):
            self.stats['events_filtered'] += 1
            logger.debug(f"Filtered {event}")
            return

        if event.event_type is EventType.REMOVE and self._inside_removed_directory(event):
            self.stats['nested_removes_dropped'] += 1
            logger.debug(f"Dropped {event}, an ancestor was removed")
            return

        if event.event_type is EventType.UPDATE:
            self._discover(event)

        self._dispatch(event)

    def _inside_removed_directory(self, event: ChangeEvent) -> bool:
        """Only the topmost path of a deleted subtree is reported"""
        root = event.root
        if not root.is_dir or event.path == root.path:
            return False
        return not os.path.isdir(os.path.dirname(event.path))

    def _discover(self, event: ChangeEvent):
        """Extend the watch tree when a new directory shows up"""
        path, root = event.path, event.root
        is_dir = os.path.isdir(path)

        node = self.registry.get(path)
        if node is not None:
            if node.is_dir and not is_dir:
                # Directory replaced by a file
                self.registry.remove_tree(path)
            return

        if not (is_dir and root.is_dir and root.recursive):
            return
        if not self._arm(path, root):
            return

        logger.debug(f"Discovered directory {path}")
        for child, child_is_dir in walk_tree(path, root.path_filter):
            if child_is_dir:
                self._arm(child, root)
            else:
                self.gate.push(ChangeEvent(EventType.UPDATE, child, root, synthetic=True))

    def _dispatch(self, event: ChangeEvent):
        self.stats['events_emitted'] += 1
        origin = "discovered" if event.synthetic else "observed"
        logger.debug(f"Emitting {event} ({origin})")

        for callback in list(self.callbacks['change']):
            if self._closed:
                break
            try:
                callback(event.event_type.value, event.path)
            except Exception as e:
                log_exception(logger, e, f"Error in change callback for {event.path}",
                              extra={'path': event.path, 'event_kind': event.event_type.value})

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        state = 'closed' if self._closed else 'active'
        return f"<RecursiveWatcher {state} roots={[root.path for root in self.roots]}>"
