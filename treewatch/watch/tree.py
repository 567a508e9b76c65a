# treewatch/watch/tree.py

"""
Watch roots, path validation and directory enumeration
"""
import os
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple, Union

from .errors import PathNotFoundError
from .patterns import AcceptAll, PathFilter

logger = logging.getLogger(__name__)

PathLike = Union[str, bytes, os.PathLike]


def normalize_path(path: PathLike) -> str:
    """Absolute, normalized string form of a path (symlinks are kept)"""
    return os.path.abspath(os.fsdecode(os.fspath(path)))


@dataclass(frozen=True)
class WatchRoot:
    """One user requested input path"""
    path: str
    is_dir: bool
    recursive: bool = False
    path_filter: PathFilter = field(default_factory=AcceptAll, compare=False)

    def includes(self, path: str) -> bool:
        """
        Check the filter for a path and every ancestor below this root

        The root itself is always included.
        """
        if path == self.path:
            return True

        prefix = self.path.rstrip(os.sep) + os.sep
        if not path.startswith(prefix):
            return self.path_filter.includes(path)

        current = self.path
        for part in path[len(prefix):].split(os.sep):
            current = os.path.join(current, part)
            if not self.path_filter.includes(current):
                return False
        return True


def validate_paths(paths: Sequence[PathLike]) -> List[str]:
    """
    Confirm every requested path exists

    Args:
        paths: Input paths

    Returns:
        Normalized absolute paths, in input order, duplicates removed

    Raises:
        PathNotFoundError: for the first path that does not exist
    """
    validated = []
    for path in paths:
        resolved = normalize_path(path)
        if not os.path.exists(resolved):
            raise PathNotFoundError(resolved)
        if resolved not in validated:
            validated.append(resolved)
    return validated


def walk_tree(start: str, path_filter: PathFilter) -> Iterator[Tuple[str, bool]]:
    """
    Walk everything below a directory, pruning filtered directories

    Symlinked directories are reported but not descended into. Entries
    that vanish or cannot be listed during the walk are skipped.

    Args:
        start: Directory to walk (not yielded itself)
        path_filter: Filter evaluated per entry

    Yields:
        (absolute path, is_directory) pairs, parents before children
    """
    try:
        with os.scandir(start) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        logger.debug(f"Cannot list {start}: {e}")
        return

    for entry in entries:
        path = os.path.join(start, entry.name)
        if not path_filter.includes(path):
            logger.debug(f"Filtered out {path}")
            continue

        try:
            is_dir = entry.is_dir()
            descend = is_dir and not entry.is_symlink()
        except OSError:
            continue

        yield path, is_dir
        if descend:
            yield from walk_tree(path, path_filter)


def enumerate_tree(root: WatchRoot) -> List[str]:
    """
    Paths to arm for a root

    A file root yields only itself. A directory root yields itself and,
    when recursive, every descendant directory that passes the filter.
    """
    if not root.is_dir:
        return [root.path]

    paths = [root.path]
    if root.recursive:
        paths.extend(path for path, is_dir in walk_tree(root.path, root.path_filter) if is_dir)
    return paths
