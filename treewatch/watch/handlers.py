# treewatch/watch/handlers.py

"""
Watchdog event handler turning observer events into raw signals
"""
import os
import logging
from typing import Callable, List, Optional

from watchdog.events import (
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_OPENED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from .events import RawSignal

logger = logging.getLogger(__name__)

# Access notifications, not changes
IGNORED_EVENT_TYPES = {EVENT_TYPE_OPENED, EVENT_TYPE_CLOSED_NO_WRITE}


class SignalHandler(FileSystemEventHandler):
    """
    Handler attached to one primitive watch

    A directory node forwards every change to the directory or its
    immediate children. A file node is observed through its parent
    directory and forwards only changes naming that file, plus deletion
    of the parent itself.
    """

    def __init__(self, node_path: str, watch_path: str,
                 on_signal: Callable[[RawSignal], None]):
        """
        Initialize signal handler

        Args:
            node_path: Path of the watched node
            watch_path: Directory actually scheduled with the observer
            on_signal: Called with each RawSignal, from the observer thread
        """
        self.node_path = node_path
        self.watch_path = watch_path
        self.on_signal = on_signal
        self.is_file_node = node_path != watch_path
        self.active = True

    def on_any_event(self, event: FileSystemEvent):
        if not self.active or event.event_type in IGNORED_EVENT_TYPES:
            return

        for signal in self._convert_event(event):
            self.on_signal(signal)

    def _convert_event(self, event: FileSystemEvent) -> List[RawSignal]:
        """Convert watchdog event to raw signals for this node"""
        paths = [os.fsdecode(event.src_path)]
        dest_path = getattr(event, 'dest_path', None)
        if dest_path:
            paths.append(os.fsdecode(dest_path))

        signals = []
        for path in paths:
            signal = self._signal_for(path, event.event_type)
            if signal is not None and signal not in signals:
                signals.append(signal)
        return signals

    def _signal_for(self, path: str, event_type: str) -> Optional[RawSignal]:
        if self.is_file_node:
            if path == self.node_path:
                return RawSignal(self.node_path, raw_kind=event_type)
            if path == self.watch_path and event_type == EVENT_TYPE_DELETED:
                return RawSignal(self.node_path, raw_kind=event_type)
            return None

        if path == self.watch_path:
            return RawSignal(self.node_path, raw_kind=event_type)
        if os.path.dirname(path) == self.watch_path:
            return RawSignal(self.node_path, os.path.basename(path), event_type)

        logger.debug(f"Ignoring event outside {self.watch_path}: {path}")
        return None
