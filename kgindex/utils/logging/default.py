import logging

from kgindex.utils.logging.logger import get_logger


class Logger:
    """
    Logger that carries indexing-run context.

    Wraps a stdlib logger and merges a fixed run context (run id, root path)
    into the ``extra`` of every record so that log lines from concurrent runs
    can be told apart.

    Args:
        name (str): The name of the logger instance
        run_context (dict, optional): Context merged into every log entry
    """

    def __init__(self, name: str, run_context: dict = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.run_context = run_context

    def __add_run_context_to_extra(self, extra: dict) -> dict:
        """
        Merges the run context with additional extra information.

        Args:
            extra (dict): Additional context information to be added to the log

        Returns:
            dict: Merged dictionary of run context and extra information
        """
        if not extra:
            return self.run_context

        if not self.run_context:
            return extra

        extra = extra.copy()
        extra.update(self.run_context)
        return extra

    def debug(self, message, extra=None):
        self.base_logger.debug(message, extra=self.__add_run_context_to_extra(extra))

    def info(self, message, extra=None):
        self.base_logger.info(message, extra=self.__add_run_context_to_extra(extra))

    def warning(self, message, extra=None):
        self.base_logger.warning(
            message, extra=self.__add_run_context_to_extra(extra)
        )

    def error(self, message, extra=None):
        self.base_logger.error(message, extra=self.__add_run_context_to_extra(extra))
