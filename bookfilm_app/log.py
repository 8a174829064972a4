import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

# Package logger; module loggers under bookfilm_app.* and sources.* propagate here
logger = logging.getLogger("bookfilm")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_PACKAGE_LOGGERS = ('bookfilm', 'bookfilm_app', 'sources')

_configured = False


def configure_logging(level: str = 'INFO', log_file: Optional[str] = None) -> None:
    """
    Attach handlers once: stderr always, a rotating file when `log_file` is set.

    Calling again only adjusts the level.
    """
    global _configured

    for name in _PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(level)

    if _configured:
        return

    handlers = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    handlers.append(stream_handler)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    for name in _PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        for handler in handlers:
            package_logger.addHandler(handler)
        package_logger.propagate = False

    _configured = True


def log(msg: str) -> None:
    """Log an informational service message."""
    logger.info(msg)
