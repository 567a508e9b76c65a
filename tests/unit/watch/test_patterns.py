import re

import pytest

from treewatch.watch.errors import ConfigError
from treewatch.watch.patterns import (
    AcceptAll,
    PathFilter,
    PatternFilter,
    PatternRule,
    PredicateFilter,
    RegexFilter,
    as_filter,
)


def test_accept_all_includes_everything():
    assert AcceptAll().includes('/any/path')


def test_predicate_filter_wraps_callable():
    f = PredicateFilter(lambda p: 'node_modules' not in p)
    assert f.includes('/home/a/file1')
    assert not f.includes('/home/node_modules/ma')


def test_regex_filter_includes_matches():
    f = RegexFilter(r'\.py$')
    assert f.includes('/src/app.py')
    assert not f.includes('/src/app.txt')


def test_invalid_regex_is_config_error():
    with pytest.raises(ConfigError):
        RegexFilter('(unclosed')


def test_glob_rule_matches_basename_or_full_path():
    rule = PatternRule('*.tmp')
    assert rule.matches('/home/a/scratch.TMP')
    assert not rule.matches('/home/a/scratch.txt')
    assert PatternRule('/home/build/*').matches('/home/build/out')


def test_pattern_filter_ignores_matching_paths():
    f = PatternFilter(['*.swp', 'node_modules', r'^/tmp/.*\.lock$'])
    assert not f.includes('/home/a/.file1.swp')
    assert not f.includes('/home/node_modules')
    assert not f.includes('/tmp/x.lock')
    assert f.includes('/home/a/file1')
    assert f.get_stats()['total_rules'] == 3


def test_pattern_filter_add_and_remove_clear_cache():
    f = PatternFilter([])
    assert f.includes('/home/a/file1')
    f.add_pattern('file1')
    assert not f.includes('/home/a/file1')
    f.remove_pattern('file1')
    assert f.includes('/home/a/file1')


def test_as_filter_conversions():
    assert isinstance(as_filter(None), AcceptAll)
    assert isinstance(as_filter('abc'), RegexFilter)
    assert isinstance(as_filter(re.compile('abc')), RegexFilter)
    assert isinstance(as_filter(lambda p: True), PredicateFilter)
    existing = PatternFilter(['*.tmp'])
    assert as_filter(existing) is existing


def test_as_filter_accepts_duck_typed_capability():
    class OnlyTxt(object):
        def includes(self, path):
            return path.endswith('.txt')

    f = OnlyTxt()
    assert as_filter(f) is f


def test_as_filter_rejects_other_values():
    with pytest.raises(ConfigError):
        as_filter(42)


def test_base_filter_is_abstract():
    with pytest.raises(NotImplementedError):
        PathFilter().includes('/x')


def test_invalid_regex_rule_falls_back_to_glob():
    rule = PatternRule.parse('build(')
    assert not rule.is_regex
    assert rule.matches('/home/build(')


def test_matching_rule_reports_first_match():
    f = PatternFilter(['*.log', 'debug*'])
    assert f.matching_rule('/var/debug.log').pattern == '*.log'
    assert f.matching_rule('/var/app.txt') is None


def test_pattern_filter_cache_is_bounded():
    f = PatternFilter(['*.tmp'], cache_size=2)
    for name in ['a', 'b', 'c']:
        f.includes('/home/' + name)
    stats = f.get_stats()
    assert stats['cached_decisions'] == 2
    assert stats['regex_rules'] == 0
