"""Module containing utilities for logging, along with a standard logger."""

import logging
from typing import Any, Optional

# Errors are shown to the user as "slink: <message>"
USER_FORMAT = "%(name)s: %(message)s"

# Debug output includes timestamps to see where time is spent connecting
DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_stderr_output = logging.StreamHandler()


def _get_logger(name: Optional[str] = "slink") -> logging.Logger:
    _stderr_output.setFormatter(logging.Formatter(USER_FORMAT))

    logger = logging.getLogger(name)
    logger.addHandler(_stderr_output)

    return logger


def configure(debug: bool) -> None:
    """Show debug information, or only errors."""
    if debug:
        _stderr_output.setFormatter(logging.Formatter(DEBUG_FORMAT))
        log.setLevel(logging.DEBUG)
    else:
        _stderr_output.setFormatter(logging.Formatter(USER_FORMAT))
        log.setLevel(logging.ERROR)


def summarize(obj: Any, max_length: int = 255) -> str:
    """Return a stringified representation of the object up to the given length."""
    stringified_obj = str(obj)

    if len(stringified_obj) <= max_length:
        return stringified_obj
    else:
        return stringified_obj[: max_length - 3] + "..."


# Default logger
log = _get_logger()
