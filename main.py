#main.py

"""
treewatch - log every change under the configured paths
"""
import os
import sys
import time
import logging

from treewatch.utils.config import load_config
from treewatch.utils.logger import setup_logging
from treewatch.watch import ConfigError, PathNotFoundError, watch

logger = logging.getLogger(__name__)


def log_change(event_kind: str, path: str):
    logger.info(f"{event_kind}: {path}")


def main(argv=None) -> int:
    """Main entry point"""
    argv = sys.argv[1:] if argv is None else argv

    try:
        config = load_config(os.environ.get("TREEWATCH_CONFIG"))
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_file, config.log_format)

    paths = argv or config.watch.paths
    if not paths:
        logger.error("No paths to watch: pass them as arguments or set watch.paths")
        return 2

    try:
        watcher = watch(paths, callback=log_change, config=config)
    except PathNotFoundError as e:
        logger.error(str(e))
        return 1

    print(f"Watching {', '.join(watcher.watched_paths())}. Press Ctrl+C to stop.")
    try:
        while not watcher.is_closed():
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        watcher.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
