"""
Logging - Application logging configuration.

Library modules only create `logging.getLogger(__name__)` loggers; the host
application decides whether and how they are shown by calling
`configure_logging` once at startup.

Loggers here never receive seeds, private keys, passwords or derived keys.
"""

from typing import Optional
import logging


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATEFMT = '%H:%M:%S'


def configure_logging(level: int = logging.INFO, stream: Optional[object] = None) -> None:
    """
    Configure Python logging for the application.

    Sets up a root logger with console output. Does nothing if the root
    logger already has handlers.

    Args:
        level: Logging level (default: INFO)
        stream: Output stream for the console handler (default: stderr)
    """
    root_logger = logging.getLogger()

    # Only configure if not already configured
    if root_logger.handlers:
        return

    root_logger.setLevel(level)

    # Console handler with simple format
    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
