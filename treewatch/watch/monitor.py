# treewatch/watch/monitor.py

"""
Public construction surface: watch(paths, options, callback)
"""
import os
import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Callable, List, Optional, Sequence, Union

from ..utils.config import Config
from .binding import PrimitiveWatchBinding
from .errors import ConfigError
from .patterns import AcceptAll, PathFilter, PatternFilter, as_filter
from .tree import PathLike, WatchRoot, validate_paths
from .watcher import RecursiveWatcher

logger = logging.getLogger(__name__)


@dataclass
class WatchOptions:
    """
    Options recognized by watch()

    ``None`` means "use the configured default".
    """
    recursive: Optional[bool] = None
    filter: Any = None
    delay: Optional[float] = None

    def __post_init__(self):
        if self.recursive is not None and not isinstance(self.recursive, bool):
            raise ConfigError(f"'recursive' must be a bool, got {self.recursive!r}")
        if self.delay is not None:
            if isinstance(self.delay, bool) or not isinstance(self.delay, (int, float)):
                raise ConfigError(f"'delay' must be a number of seconds, got {self.delay!r}")
            if self.delay < 0:
                raise ConfigError(f"'delay' must not be negative, got {self.delay!r}")

    @classmethod
    def from_value(cls, value) -> 'WatchOptions':
        """Build options from None, a mapping or an existing WatchOptions"""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = sorted(set(value) - known)
            if unknown:
                raise ConfigError(f"Unknown watch option(s): {', '.join(unknown)}")
            return cls(**value)
        raise ConfigError(f"Unsupported options type: {type(value).__name__}")


def _as_path_list(paths) -> List[PathLike]:
    if isinstance(paths, (str, bytes, os.PathLike)):
        return [paths]
    try:
        path_list = list(paths)
    except TypeError:
        raise ConfigError(f"Expected a path or a sequence of paths, got {paths!r}") from None
    if not path_list:
        raise ConfigError("No paths to watch")
    return path_list


def watch(paths: Union[PathLike, Sequence[PathLike]],
          options: Union[WatchOptions, Mapping, Callable, None] = None,
          callback: Optional[Callable[[str, str], Any]] = None,
          *, config: Optional[Config] = None) -> RecursiveWatcher:
    """
    Watch one path or an ordered sequence of paths for changes

    Args:
        paths: File or directory path, or a sequence of them
        options: ``recursive``, ``filter`` and ``delay``; a callable in this
            position is taken as the callback
        callback: Subscribed immediately, called as ``callback(kind, path)``
            with kind ``"update"`` or ``"remove"``
        config: Defaults for options and the observer; Config() if omitted

    Returns:
        The running watcher

    Raises:
        PathNotFoundError: if any path does not exist (nothing is armed)
        ConfigError: if the options are invalid
    """
    if callback is None and callable(options) and not isinstance(options, Mapping):
        options, callback = None, options

    config = config or Config()
    watch_config = config.watch
    opts = WatchOptions.from_value(options)

    path_filter: PathFilter
    if opts.filter is not None:
        path_filter = as_filter(opts.filter)
    elif watch_config.ignore_patterns:
        path_filter = PatternFilter(watch_config.ignore_patterns)
    else:
        path_filter = AcceptAll()

    resolved = validate_paths(_as_path_list(paths))

    recursive = watch_config.recursive if opts.recursive is None else opts.recursive
    delay = watch_config.debounce_time if opts.delay is None else opts.delay

    roots = [
        WatchRoot(path=path, is_dir=os.path.isdir(path), recursive=recursive,
                  path_filter=path_filter)
        for path in resolved
    ]

    watcher = RecursiveWatcher(
        roots,
        debounce_time=delay,
        max_events=watch_config.max_events,
        binding=PrimitiveWatchBinding(
            use_polling=watch_config.use_polling,
            poll_interval=watch_config.poll_interval,
        ),
    )
    if callback is not None:
        watcher.subscribe(callback)

    logger.debug(f"Starting watcher for {resolved} (recursive={recursive}, delay={delay}s)")
    return watcher.start()
