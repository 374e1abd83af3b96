# -*- coding: utf-8 -*-

"""
Logging capability handed to every finalize component.

The invoking host decides whether a run failed by looking at whether any
error has been logged, the same way a build task reports ``HasLoggedErrors``.
:class:`Logger` wraps a ``structlog`` logger and counts error events so the
orchestrator can turn "an error was logged somewhere" into a failed run.
"""

import typing as T
import threading

import structlog


class _ErrorCounter:
    def __init__(self):
        self._lock = threading.Lock()
        self._count = 0

    def increment(self):
        with self._lock:
            self._count += 1

    @property
    def count(self) -> int:
        with self._lock:
            return self._count


class Logger:
    """
    :param name: logger name passed to ``structlog.get_logger``.
    :param logger: an already configured structlog logger to wrap instead.

    **Usage Examples**::

        log = Logger()
        log.info("copying_blob", source="a/1.0.0/x.zip", destination="a/Latest/x.zip")
        log.error("copy_failed", source="a/1.0.0/x.zip")
        assert log.has_logged_errors
    """

    def __init__(
        self,
        name: str = "finalize_build",
        logger: T.Optional[T.Any] = None,
        _counter: T.Optional[_ErrorCounter] = None,
    ):
        if logger is None:
            logger = structlog.get_logger(name)
        self._log = logger
        self._counter = _ErrorCounter() if _counter is None else _counter

    def bind(self, **kwargs) -> "Logger":
        """
        Return a logger carrying extra context that shares this logger's
        error count.
        """
        return Logger(logger=self._log.bind(**kwargs), _counter=self._counter)

    def debug(self, event: str, **kwargs):
        self._log.debug(event, **kwargs)

    def info(self, event: str, **kwargs):
        self._log.info(event, **kwargs)

    def warning(self, event: str, **kwargs):
        self._log.warning(event, **kwargs)

    def error(self, event: str, **kwargs):
        self._counter.increment()
        self._log.error(event, **kwargs)

    @property
    def error_count(self) -> int:
        return self._counter.count

    @property
    def has_logged_errors(self) -> bool:
        return self._counter.count > 0
