from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    """Strips workspace roots from messages so album paths read relative."""

    def __init__(self, fmt: str, roots: Iterable[Path]) -> None:
        super().__init__(fmt)
        self.roots = sorted((str(root) for root in roots if root), key=len, reverse=True)

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
            message = message.replace(root, ".")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


def configure_logging(
    level: str | int = "INFO",
    roots: Iterable[Path] = (),
    color: bool = True,
    logger_name: str = "anni_workspace",
) -> logging.Handler:
    """Attach a single stream handler to the package logger and return it."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    target = logging.getLogger(logger_name)
    target.setLevel(level)
    for handler in list(target.handlers):
        if getattr(handler, "_anni_workspace", False):
            target.removeHandler(handler)
    handler = logging.StreamHandler()
    formatter_cls = ColorFormatter if color else ShortPathFormatter
    handler.setFormatter(formatter_cls(LOG_FORMAT, list(roots)))
    handler._anni_workspace = True  # type: ignore[attr-defined]
    target.addHandler(handler)
    return handler
