# treewatch/watch/patterns.py

"""
Path filters deciding what gets watched and what gets reported
"""
import fnmatch
import os
import re
import logging
from collections import OrderedDict
from typing import Callable, List, Optional, Union
from dataclasses import dataclass, field

from .errors import ConfigError

logger = logging.getLogger(__name__)


class PathFilter:
    """
    Capability deciding whether an absolute path is included
    """

    def includes(self, path: str) -> bool:
        raise NotImplementedError('includes')


class AcceptAll(PathFilter):
    """Default filter, includes everything"""

    def includes(self, path: str) -> bool:
        return True

    def __repr__(self):
        return "AcceptAll()"


class PredicateFilter(PathFilter):
    """Wraps a user supplied ``predicate(path) -> bool``"""

    def __init__(self, predicate: Callable[[str], bool]):
        self.predicate = predicate

    def includes(self, path: str) -> bool:
        return bool(self.predicate(path))

    def __repr__(self):
        return f"PredicateFilter({self.predicate!r})"


class RegexFilter(PathFilter):
    """Includes paths matched by a regular expression"""

    def __init__(self, pattern: Union[str, re.Pattern]):
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"Invalid filter regex '{pattern}': {e}") from e
        self.pattern = pattern

    def includes(self, path: str) -> bool:
        return bool(self.pattern.search(path))

    def __repr__(self):
        return f"RegexFilter({self.pattern.pattern!r})"


# Characters that only make sense in a regex; '[', ']', '?' and '*' are glob syntax too
REGEX_ONLY_CHARS = frozenset('^$(){}|+\\')


def looks_like_regex(pattern: str) -> bool:
    return any(char in REGEX_ONLY_CHARS for char in pattern)


@dataclass
class PatternRule:
    """
    One ignore pattern

    Globs are tried against the final path component and the whole path;
    regexes are searched anywhere in the path. A regex that fails to
    compile is treated as a glob.
    """
    pattern: str
    is_regex: bool = False
    case_sensitive: bool = False
    compiled: Optional[re.Pattern] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if not self.is_regex:
            return
        try:
            self.compiled = re.compile(self.pattern, 0 if self.case_sensitive else re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Pattern '{self.pattern}' is not a valid regex ({e}), matching it as a glob")
            self.is_regex = False

    @classmethod
    def parse(cls, pattern: str, case_sensitive: bool = False) -> 'PatternRule':
        return cls(pattern, looks_like_regex(pattern), case_sensitive)

    def matches(self, path: str) -> bool:
        if self.compiled is not None:
            return self.compiled.search(path) is not None

        glob, name = self.pattern, os.path.basename(path)
        if not self.case_sensitive:
            glob, name, path = glob.lower(), name.lower(), path.lower()
        return fnmatch.fnmatchcase(name, glob) or fnmatch.fnmatchcase(path, glob)


class PatternFilter(PathFilter):
    """
    Includes every path that matches none of the ignore patterns

    Decisions are memoized per path in a bounded LRU table.
    """

    def __init__(self, ignore_patterns: Optional[List[str]] = None,
                 case_sensitive: bool = False, cache_size: int = 10000):
        """
        Initialize pattern filter

        Args:
            ignore_patterns: Glob or regex patterns
            case_sensitive: Match patterns case sensitively
            cache_size: Number of memoized decisions kept
        """
        self.case_sensitive = case_sensitive
        self.rules = [PatternRule.parse(p, case_sensitive) for p in ignore_patterns or []]
        self.cache_size = cache_size
        self._decisions: 'OrderedDict[str, Optional[PatternRule]]' = OrderedDict()

        logger.debug(f"PatternFilter with {len(self.rules)} rule(s)")

    @property
    def ignore_patterns(self) -> List[str]:
        return [rule.pattern for rule in self.rules]

    def includes(self, path: str) -> bool:
        return not self.should_ignore(path)

    def should_ignore(self, path: str) -> bool:
        return self.matching_rule(path) is not None

    def matching_rule(self, path: str) -> Optional[PatternRule]:
        """First rule matching ``path``, or None"""
        if path in self._decisions:
            self._decisions.move_to_end(path)
            return self._decisions[path]

        rule = next((rule for rule in self.rules if rule.matches(path)), None)
        if rule is not None:
            logger.debug(f"Ignoring {path} (pattern: {rule.pattern})")

        self._decisions[path] = rule
        if len(self._decisions) > self.cache_size:
            self._decisions.popitem(last=False)
        return rule

    def add_pattern(self, pattern: str):
        self.rules.append(PatternRule.parse(pattern, self.case_sensitive))
        self._decisions.clear()
        logger.info(f"Added ignore pattern: {pattern}")

    def remove_pattern(self, pattern: str):
        self.rules = [rule for rule in self.rules if rule.pattern != pattern]
        self._decisions.clear()
        logger.info(f"Removed ignore pattern: {pattern}")

    def get_stats(self) -> dict:
        return {
            'total_rules': len(self.rules),
            'regex_rules': sum(1 for rule in self.rules if rule.is_regex),
            'cached_decisions': len(self._decisions),
            'cache_size': self.cache_size,
        }

    def __repr__(self):
        return f"PatternFilter({self.ignore_patterns!r})"


def as_filter(value) -> PathFilter:
    """
    Convert a filter option into a PathFilter

    Args:
        value: None, a PathFilter, a compiled regex, a regex string,
            or a callable taking the absolute path

    Returns:
        PathFilter instance
    """
    if value is None:
        return AcceptAll()
    if isinstance(value, PathFilter) or callable(getattr(value, 'includes', None)):
        return value
    if isinstance(value, (str, re.Pattern)):
        return RegexFilter(value)
    if callable(value):
        return PredicateFilter(value)
    raise ConfigError(f"Unsupported filter type: {type(value).__name__}")
