# treewatch/watch/__init__.py

"""
Treewatch Watch Module
Recursive file system watching over single-path primitive watches
"""
from .errors import WatchError, PathNotFoundError, WatchArmFailedError, ConfigError
from .events import EventType, ChangeEvent, RawSignal
from .patterns import PathFilter, AcceptAll, PredicateFilter, RegexFilter, PatternFilter, as_filter
from .tree import WatchRoot, validate_paths, enumerate_tree
from .debounce import DebounceGate, DEFAULT_DEBOUNCE_TIME
from .watcher import RecursiveWatcher
from .monitor import WatchOptions, watch

__all__ = [
    'watch',
    'WatchOptions',
    'RecursiveWatcher',
    'EventType',
    'ChangeEvent',
    'RawSignal',
    'WatchError',
    'PathNotFoundError',
    'WatchArmFailedError',
    'ConfigError',
    'PathFilter',
    'AcceptAll',
    'PredicateFilter',
    'RegexFilter',
    'PatternFilter',
    'as_filter',
    'WatchRoot',
    'validate_paths',
    'enumerate_tree',
    'DebounceGate',
    'DEFAULT_DEBOUNCE_TIME',
]
