"""Logging for the display controller.

Two output formats share one set of loggers: JSON lines for machines and a
compact text format for people. Structured context travels in the ``extra``
mapping of each call; the display's ``device`` label is promoted to a
top-level JSON key so log pipelines can filter per display.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

from iiyama_display.correlation import get_correlation_id

__all__ = [
    "DisplayLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "get_logger",
    "set_level",
]

_loggers: dict[str, DisplayLogger] = {}


def _context(record: logging.LogRecord) -> dict[str, object]:
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping) and extra_data:
        return dict(cast("Mapping[str, object]", extra_data))
    return {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        context = _context(record)
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        if "device" in context:
            log_data["device"] = context.pop("device")
        if context:
            log_data["context"] = context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time level [module:line] [corr] > message | key=value ...``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[-8:]}]" if correlation_id else "[--------]"

        formatted = super().format(record)
        context = _context(record)
        if context:
            formatted += " | " + " | ".join(f"{k}={v}" for k, v in context.items())
        return formatted


def _open_handler(target: str | Path, fallback: str = "stderr") -> logging.Handler:
    """Stream handler for "stdout"/"stderr", file handler for anything else."""
    if target == "stdout":
        return logging.StreamHandler(sys.stdout)
    if target == "stderr":
        return logging.StreamHandler(sys.stderr)
    try:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError as e:
        print(f"Warning: Failed to open log file {target}: {e}", file=sys.stderr)
        return _open_handler(fallback)


class DisplayLogger:
    """Thin wrapper over a stdlib logger that accepts an ``extra`` mapping.

    Handlers are attached once per logger name; creating a second
    DisplayLogger for the same name reuses them.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stderr",
    ) -> None:
        """
        Args:
            name: Logger name (typically module name)
            log_format: "json", "human" or "both"
            json_file: JSON lines file (JSON output is off without one)
            human_output: "stdout", "stderr" or a file path
        """
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format

        # const is read late; --env reloads it after startup
        from iiyama_display.const import IIYAMA_DEBUG  # noqa: PLC0415

        self.logger.setLevel(logging.DEBUG if IIYAMA_DEBUG else logging.INFO)
        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(self, json_file: str | Path | None, human_output: str | None) -> None:
        outputs: list[tuple[logging.Handler, logging.Formatter]] = []
        if self.log_format in ("json", "both") and json_file:
            outputs.append((_open_handler(json_file), JSONFormatter()))
        if self.log_format in ("human", "both"):
            outputs.append((_open_handler(human_output or "stderr"), HumanReadableFormatter()))

        for handler, formatter in outputs:
            handler.setFormatter(formatter)
            handler.setLevel(self.logger.level)
            self.logger.addHandler(handler)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        payload = {"extra_data": dict(extra)} if extra else None
        self.logger.log(level, msg, *args, extra=payload, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        payload = {"extra_data": dict(extra)} if extra else None
        self.logger.exception(msg, *args, extra=payload, stacklevel=2)

    def set_level(self, level: int) -> None:
        """Set the level on the logger and each of its handlers."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> DisplayLogger:
    """Return the DisplayLogger for ``name``, creating it on first use.

    Unset arguments fall back to ``IIYAMA_LOG_FORMAT``,
    ``IIYAMA_LOG_JSON_FILE`` and ``IIYAMA_LOG_HUMAN_OUTPUT``.
    """
    if name in _loggers:
        return _loggers[name]

    from iiyama_display.const import (  # noqa: PLC0415
        IIYAMA_LOG_FORMAT,
        IIYAMA_LOG_HUMAN_OUTPUT,
        IIYAMA_LOG_JSON_FILE,
    )

    logger = DisplayLogger(
        name=name,
        log_format=log_format or IIYAMA_LOG_FORMAT,
        json_file=json_file or IIYAMA_LOG_JSON_FILE or None,
        human_output=human_output or IIYAMA_LOG_HUMAN_OUTPUT,
    )
    _loggers[name] = logger
    return logger


def set_level(level: int) -> None:
    """Apply ``level`` to every logger handed out by :func:`get_logger`."""
    for logger in _loggers.values():
        logger.set_level(level)
