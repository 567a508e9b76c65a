import json

import pytest
import yaml

from treewatch.utils.config import Config, WatchConfig, load_config
from treewatch.watch.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty cwd and HOME so no real config is picked up"""
    home = tmp_path / 'home'
    home.mkdir()
    work = tmp_path / 'work'
    work.mkdir()
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.chdir(work)
    return work


def test_defaults():
    config = Config()
    assert config.watch == WatchConfig()
    assert config.watch.recursive is False
    assert config.watch.debounce_time == 0.05
    assert config.log_level == 'INFO'
    assert config.log_file is None


def test_no_file_gives_defaults(isolated):
    assert load_config() == Config()
    assert list(isolated.iterdir()) == []


def test_load_yaml_with_nested_watch(isolated):
    (isolated / 'treewatch.yaml').write_text(
        'log_level: DEBUG\n'
        'watch:\n'
        '  recursive: true\n'
        '  debounce_time: 0.2\n'
        '  ignore_patterns: ["*.tmp", node_modules]\n'
    )
    config = load_config()
    assert config.log_level == 'DEBUG'
    assert config.watch.recursive is True
    assert config.watch.debounce_time == 0.2
    assert config.watch.ignore_patterns == ['*.tmp', 'node_modules']


def test_explicit_json_path_wins(isolated, tmp_path):
    (isolated / 'treewatch.yaml').write_text('log_level: DEBUG\n')
    explicit = tmp_path / 'custom.json'
    explicit.write_text(json.dumps({'log_format': 'json', 'recursive': True}))

    config = load_config(explicit)
    assert config.log_format == 'json'
    assert config.log_level == 'INFO'
    assert config.watch.recursive is True


def test_invalid_yaml_raises(isolated):
    (isolated / 'treewatch.yaml').write_text('watch: [unclosed\n')
    with pytest.raises(ConfigError):
        load_config()


def test_non_mapping_raises(isolated):
    (isolated / 'treewatch.yaml').write_text('- a\n- b\n')
    with pytest.raises(ConfigError, match='mapping'):
        load_config()


def test_watch_must_be_mapping():
    with pytest.raises(ConfigError):
        Config().update_from_dict({'watch': 'yes'})


def test_unknown_keys_are_ignored(caplog):
    config = Config()
    config.update_from_dict({'persistent': True})
    assert config == Config()
    assert 'Unknown configuration key: persistent' in caplog.text


@pytest.mark.parametrize('name', ['saved.yaml', 'saved.json'])
def test_save_then_load(tmp_path, name):
    config = Config(log_level='WARNING')
    config.watch.paths = ['/srv/data']
    config.watch.use_polling = True
    path = tmp_path / 'nested' / name

    config.save(path)

    assert load_config(path) == config


def test_to_yaml_is_plain_mapping():
    data = yaml.safe_load(Config().to_yaml())
    assert data['watch']['max_events'] == 10000


@pytest.mark.parametrize('data', [
    {'debounce_time': -1},
    {'max_events': 0},
    {'poll_interval': 'fast'},
    {'log_format': 'xml'},
])
def test_invalid_values_raise(data):
    with pytest.raises(ConfigError):
        Config.from_dict(data)


def test_single_path_string_becomes_list():
    assert Config.from_dict({'watch': {'paths': '/srv/data'}}).watch.paths == ['/srv/data']
