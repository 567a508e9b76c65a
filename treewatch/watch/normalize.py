# treewatch/watch/normalize.py

"""
Classification of raw signals into update/remove events
"""
import os
import logging
from typing import List

from .events import ChangeEvent, EventType, RawSignal
from .registry import WatchedNode, list_entries

logger = logging.getLogger(__name__)


def classify(path: str) -> EventType:
    """
    Probe a path after a signal

    The reported raw kind is never trusted: whatever the primitive said,
    an existing path is an update and a missing one is a remove.
    """
    try:
        os.stat(path)
    except OSError:
        # Broken symlinks still count as present
        return EventType.UPDATE if os.path.lexists(path) else EventType.REMOVE
    return EventType.UPDATE


def normalize(signal: RawSignal, node: WatchedNode) -> List[ChangeEvent]:
    """
    Turn one raw signal into classified events

    A signal naming a child resolves to the directory joined with that
    name. A directory signal without a child name is recovered by listing
    the directory and diffing against the node's known entries. The node's
    entry set is kept current as a side effect.

    Args:
        signal: Raw signal from the node's primitive watch
        node: Node the signal was delivered for

    Returns:
        Classified events, possibly empty
    """
    root = node.root

    if signal.child is not None:
        path = os.path.join(node.path, signal.child)
        event_type = classify(path)
        if node.is_dir:
            if event_type is EventType.UPDATE:
                node.entries.add(signal.child)
            else:
                node.entries.discard(signal.child)
        return [ChangeEvent(event_type, path, root)]

    if not node.is_dir:
        return [ChangeEvent(classify(node.path), node.path, root)]

    current = list_entries(node.path)
    if current is None:
        # Listing failed, the directory is gone
        return [ChangeEvent(EventType.REMOVE, node.path, root)]

    added = sorted(current - node.entries)
    removed = sorted(node.entries - current)
    node.entries = current

    events = [ChangeEvent(EventType.REMOVE, os.path.join(node.path, name), root)
              for name in removed]
    events.extend(ChangeEvent(EventType.UPDATE, os.path.join(node.path, name), root)
                  for name in added)
    if events:
        logger.debug(f"Rescan of {node.path}: {len(added)} added, {len(removed)} removed")
    return events
