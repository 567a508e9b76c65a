# treewatch/utils/__init__.py

"""
Treewatch Utilities
"""
from .config import Config, WatchConfig, load_config
from .logger import setup_logging, get_logger, log_exception

__all__ = [
    'Config', 'WatchConfig', 'load_config',
    'setup_logging', 'get_logger', 'log_exception',
]
