# treewatch/watch/errors.py

"""
Exceptions raised by the watch manager
"""


class WatchError(Exception):
    """Base class for watch manager errors"""


class PathNotFoundError(WatchError, FileNotFoundError):
    """A requested root path does not exist"""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"Path does not exist: {self.path}")


class WatchArmFailedError(WatchError, OSError):
    """The primitive binding could not watch a path"""

    def __init__(self, path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        message = f"Unable to watch {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigError(WatchError, ValueError):
    """Invalid watch options or configuration file"""
