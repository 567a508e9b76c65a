# treewatch/watch/registry.py

"""
Registry of armed paths, the only owner of primitive watch handles
"""
import os
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from .binding import PrimitiveWatchBinding, WatchHandle
from .events import RawSignal
from .tree import WatchRoot

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WatchedNode:
    """One armed path and its primitive handle"""
    path: str
    root: WatchRoot
    handle: WatchHandle
    is_dir: bool
    entries: Set[str] = field(default_factory=set)


def list_entries(path: str) -> Optional[Set[str]]:
    """Immediate entry names of a directory, None when it cannot be listed"""
    try:
        return set(os.listdir(path))
    except OSError:
        return None


class WatchRegistry:
    """
    Mapping of absolute path to WatchedNode

    Nodes never reference each other; parent/child relations are found by
    path prefix so subtrees can be torn down in any order.
    """

    def __init__(self, binding: PrimitiveWatchBinding,
                 on_signal: Callable[[RawSignal], None]):
        self.binding = binding
        self.on_signal = on_signal
        self.nodes: Dict[str, WatchedNode] = {}

    def add(self, path: str, root: WatchRoot) -> WatchedNode:
        """
        Arm a path, returning the existing node when already armed

        Raises:
            WatchArmFailedError: if the binding cannot watch the path
        """
        node = self.nodes.get(path)
        if node is not None:
            return node

        handle = self.binding.arm(path, self.on_signal)
        is_dir = os.path.isdir(path)
        node = WatchedNode(
            path=path,
            root=root,
            handle=handle,
            is_dir=is_dir,
            entries=(list_entries(path) or set()) if is_dir else set(),
        )
        self.nodes[path] = node
        return node

    def remove(self, path: str) -> bool:
        """Disarm one path; unknown paths are ignored"""
        node = self.nodes.pop(path, None)
        if node is None:
            return False
        self.binding.disarm(node.handle)
        return True

    def remove_tree(self, path: str) -> List[str]:
        """
        Disarm a path and every armed path below it

        Returns:
            Removed paths, deepest first
        """
        prefix = path.rstrip(os.sep) + os.sep
        doomed = [p for p in self.nodes if p == path or p.startswith(prefix)]
        doomed.sort(key=len, reverse=True)
        for p in doomed:
            self.remove(p)
        if doomed:
            logger.debug(f"Removed {len(doomed)} watch(es) under {path}")
        return doomed

    def has(self, path: str) -> bool:
        return path in self.nodes

    def get(self, path: str) -> Optional[WatchedNode]:
        return self.nodes.get(path)

    def paths(self) -> List[str]:
        return sorted(self.nodes)

    def clear(self):
        """Disarm everything"""
        for path in list(self.nodes):
            self.remove(path)

    def __len__(self):
        return len(self.nodes)
