# chronoskit/logging.py
import logging
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Handlers installed by setup_logging; replaced on every call
_installed_handlers: List[logging.Handler] = []


def setup_logging(log_file: Optional[str] = None, level: str = "INFO") -> logging.Logger:
    """Set up logging to stderr and optionally a file.

    Calling it again replaces the handlers from the previous call, so repeated
    setup in one process does not duplicate log lines.
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    while _installed_handlers:
        handler = _installed_handlers.pop()
        logger.removeHandler(handler)
        handler.close()

    # Stream handler
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    _installed_handlers.append(stream_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        logger.addHandler(handler)
    return logger
