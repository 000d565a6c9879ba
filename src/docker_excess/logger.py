"""Level-filtered logging facade used by every transport component."""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

LogLevel = Literal["trace", "debug", "info", "warn", "error"]

LOGGER_NAME = "docker_excess"
TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

_STDLIB_LEVELS: dict[LogLevel, int] = {
    "trace": TRACE_LEVEL,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class LoggerProtocol(Protocol):
    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


class BoundLogger:
    """Wraps a logging.Logger (or duck-typed object) with a client-side level gate.

    The gate is independent of the wrapped logger's own level so a single
    application logger can serve several clients with different verbosity.
    """

    def __init__(
        self,
        logger: Any | None = None,
        *,
        level: LogLevel = "info",
    ) -> None:
        self._logger = logger or _default_logger()
        self.level = level

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("trace", msg, args, kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("debug", msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("info", msg, args, kwargs)

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("warn", msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("error", msg, args, kwargs)

    def is_enabled(self, level: LogLevel) -> bool:
        return _STDLIB_LEVELS[level] >= _STDLIB_LEVELS[self.level]

    def child(self, name: str) -> "BoundLogger":
        """Create a child logger (``docker_excess.<name>``) with the same level gate."""
        if isinstance(self._logger, logging.Logger):
            base = self._logger.getChild(name)
        else:
            base = self._logger
        return BoundLogger(base, level=self.level)

    def _emit(self, level: LogLevel, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        if not self.is_enabled(level):
            return
        try:
            if hasattr(self._logger, "log"):
                self._logger.log(_STDLIB_LEVELS[level], msg, *args, **kwargs)
                return
            # Duck-typed loggers expose one method per level
            handler = getattr(self._logger, level, None)
            if handler is not None:
                handler(msg, *args, **kwargs)
        except Exception:
            # Logging failures never reach transport code
            pass


def _default_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(TRACE_LEVEL)
    return logger


def create_logger(*, logger: Any | None = None, level: LogLevel = "info") -> BoundLogger:
    if isinstance(logger, BoundLogger):
        return logger
    return BoundLogger(logger, level=level)


__all__ = ["BoundLogger", "LOGGER_NAME", "LogLevel", "LoggerProtocol", "create_logger"]
