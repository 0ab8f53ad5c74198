__all__ = [
    "Logger",
    "get_logger",
]

from kgindex.utils.logging.default import Logger
from kgindex.utils.logging.logger import get_logger
