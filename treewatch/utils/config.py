# treewatch/utils/config.py

"""
Configuration management for treewatch
"""
import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')
LOG_FORMATS = ('text', 'json', 'color')


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in YAML_SUFFIXES


@dataclass
class WatchConfig:
    """Defaults for watch() and the observer"""
    paths: List[str] = field(default_factory=list)
    recursive: bool = False
    debounce_time: float = 0.05  # seconds
    max_events: int = 10000  # raw signal channel capacity
    use_polling: bool = False
    poll_interval: float = 1.0  # seconds
    ignore_patterns: List[str] = field(default_factory=list)


@dataclass
class Config:
    """Top-level configuration"""
    watch: WatchConfig = field(default_factory=WatchConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "text"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Config':
        config = cls()
        config.update_from_dict(data or {})
        config.validate()
        return config

    def update_from_dict(self, data: Dict[str, Any]):
        """
        Merge a mapping into this config

        ``watch`` may be a nested mapping; WatchConfig fields are also
        accepted at the top level. Unknown keys are logged and skipped.
        """
        from ..watch.errors import ConfigError

        watch_fields = {f.name for f in fields(WatchConfig)}
        for key, value in data.items():
            if key == 'watch':
                if not isinstance(value, dict):
                    raise ConfigError(f"'watch' must be a mapping, got {value!r}")
                self.update_from_dict(value)
            elif key in watch_fields:
                setattr(self.watch, key, value)
            elif key in ('log_level', 'log_file', 'log_format'):
                setattr(self, key, value)
            else:
                logger.warning(f"Unknown configuration key: {key}")

    def validate(self):
        """
        Raises:
            ConfigError: for values the watcher cannot run with
        """
        from ..watch.errors import ConfigError

        watch = self.watch
        if isinstance(watch.paths, str):
            watch.paths = [watch.paths]
        if not isinstance(watch.debounce_time, (int, float)) or watch.debounce_time < 0:
            raise ConfigError(f"watch.debounce_time must be >= 0, got {watch.debounce_time!r}")
        if not isinstance(watch.max_events, int) or watch.max_events <= 0:
            raise ConfigError(f"watch.max_events must be a positive integer, got {watch.max_events!r}")
        if not isinstance(watch.poll_interval, (int, float)) or watch.poll_interval <= 0:
            raise ConfigError(f"watch.poll_interval must be > 0, got {watch.poll_interval!r}")
        if str(self.log_format).lower() not in LOG_FORMATS:
            raise ConfigError(f"log_format must be one of {', '.join(LOG_FORMATS)}, got {self.log_format!r}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def save(self, path: Union[str, Path]):
        """Write YAML for .yaml/.yml files, JSON otherwise"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_yaml() if _is_yaml(path) else self.to_json(), encoding='utf-8')
        logger.info(f"Configuration saved to {path}")


def get_default_config_paths() -> List[Path]:
    """Locations searched when no explicit config file is given"""
    return [
        Path("treewatch.yaml"),
        Path("treewatch.json"),
        Path.home() / ".config" / "treewatch" / "config.yaml",
    ]


def read_config_file(path: Path) -> Config:
    """
    Parse one YAML or JSON config file

    Raises:
        ConfigError: if the file cannot be read or parsed, is not a mapping,
            or holds invalid values
    """
    from ..watch.errors import ConfigError

    try:
        text = path.read_text(encoding='utf-8')
        data = yaml.safe_load(text) if _is_yaml(path) else json.loads(text)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Error loading configuration from {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")
    return Config.from_dict(data)


def load_config(path: Union[str, Path] = None) -> Config:
    """
    Load the first config file found, or defaults

    Args:
        path: Explicit config file, tried before the default locations

    Raises:
        ConfigError: if the chosen file is invalid
    """
    candidates = [Path(path)] if path else []
    candidates.extend(get_default_config_paths())

    for candidate in candidates:
        if candidate.is_file():
            logger.info(f"Loading configuration from {candidate}")
            return read_config_file(candidate)

    logger.debug("No configuration file found, using defaults")
    return Config()
