"""Logger access for sqltemplate.

Every library logger sits below the ``sqltemplate`` logger. The library adds
no handlers; applications configure output on that logger.
"""

import logging
from typing import Optional

__all__ = ("ROOT_LOGGER_NAME", "get_logger")

ROOT_LOGGER_NAME = "sqltemplate"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger below the ``sqltemplate`` logger.

    Args:
        name: Logger name, prefixed with ``sqltemplate.`` unless it already is.
            Without a name the ``sqltemplate`` logger itself is returned.

    Returns:
        The logger.
    """
    if name is None or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
