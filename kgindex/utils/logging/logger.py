"""Process-wide logger configuration.

Every module obtains its logger through ``get_logger(__name__)``. The first
call installs a single stream handler on the ``kgindex`` root logger using
the configured ``LOG_LEVEL``; later calls reuse it.
"""

import logging
import sys

from kgindex.core.config import settings

_ROOT_LOGGER_NAME = "kgindex"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a stdlib logger, configuring the package root on first use.

    Args:
        name: Logger name, normally the calling module's ``__name__``

    Returns:
        logging.Logger instance
    """
    _configure_root()
    return logging.getLogger(name)
