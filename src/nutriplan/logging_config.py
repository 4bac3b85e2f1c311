"""Logging setup for the nutriplan engine.

Engine modules log through ``get_logger(__name__)``. The returned adapter
stamps every record with whatever request, recipe or plan date is active in
the current context, so a normalization warning can be traced back to the
recipe that produced it.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
recipe_id_ctx: ContextVar[str | None] = ContextVar("recipe_id", default=None)
plan_date_ctx: ContextVar[str | None] = ContextVar("plan_date", default=None)

# Context field -> (variable, label used by the text formatter)
_CONTEXT_FIELDS: dict[str, tuple[ContextVar[str | None], str]] = {
    "request_id": (request_id_ctx, "req"),
    "recipe_id": (recipe_id_ctx, "recipe"),
    "plan_date": (plan_date_ctx, "date"),
}

ENGINE_LOGGERS = (
    "nutriplan",
    "nutriplan.normalize",
    "nutriplan.recipe",
    "nutriplan.audit",
    "nutriplan.plan",
)


def current_context() -> dict[str, str]:
    """Context fields that are currently set, in declaration order."""
    context = {}
    for name, (var, _) in _CONTEXT_FIELDS.items():
        value = var.get()
        if value is not None:
            context[name] = value
    return context


def _record_context(record: logging.LogRecord) -> dict[str, str]:
    # Records from ContextLogger carry a snapshot; plain records read it live
    snapshot = getattr(record, "context", None)
    return dict(snapshot) if snapshot is not None else current_context()


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_record_context(record),
        }
        payload.update(getattr(record, "fields", None) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload["location"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }
        return json.dumps(payload, default=str)


class ContextualFormatter(logging.Formatter):
    """Single-line text output with a bracketed context suffix."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    @staticmethod
    def describe_context(context: dict[str, str]) -> str:
        labels = []
        for name, value in context.items():
            label = _CONTEXT_FIELDS[name][1]
            if name == "request_id":
                value = value[:8]
            labels.append(f"{label}={value}")
        return f" [{', '.join(labels)}]" if labels else ""

    def format(self, record: logging.LogRecord) -> str:
        source = record.name + self.describe_context(_record_context(record))
        line = " | ".join(
            (
                self.formatTime(record, self.datefmt),
                record.levelname.ljust(8),
                source,
                record.getMessage(),
            )
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter that snapshots the logging context onto each record."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), "context": current_context()}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})


def _wants_json(environment: str) -> bool:
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return True
    return environment == "production" and not sys.stdout.isatty()


def configure_logging(
    log_level: str | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    Install engine log handlers on the root logger.

    Args:
        log_level: Level name; defaults to ``LOG_LEVEL`` from settings.
        json_format: Emit JSON lines. When None, JSON is used if
            ``LOG_FORMAT=json`` or when running non-interactively in production.
        log_file: Also write records to this path.
    """
    from nutriplan.config import get_settings

    settings = get_settings()
    level_name = (log_level or settings.log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    if json_format is None:
        json_format = _wants_json(settings.environment)

    formatter = StructuredJsonFormatter() if json_format else ContextualFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        root.addHandler(handler)

    for name in ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(level)

    get_logger(__name__).info(
        f"Logging configured: level={level_name}, format={'json' if json_format else 'text'}"
    )


def set_context(
    request_id: str | None = None,
    recipe_id: str | None = None,
    plan_date: str | None = None,
) -> None:
    """Set context fields for the rest of the current context; None leaves a field as is."""
    values = {"request_id": request_id, "recipe_id": recipe_id, "plan_date": plan_date}
    for name, value in values.items():
        if value is not None:
            _CONTEXT_FIELDS[name][0].set(value)


def clear_context() -> None:
    for var, _ in _CONTEXT_FIELDS.values():
        var.set(None)


class LoggingContext:
    """
    Scope logging context fields to a ``with`` block.

    Fields left as None keep their outer value. On exit every field set by
    the block is restored, so contexts nest.
    """

    def __init__(
        self,
        request_id: str | None = None,
        recipe_id: str | None = None,
        plan_date: str | None = None,
    ):
        self.fields = {
            name: value
            for name, value in (
                ("request_id", request_id),
                ("recipe_id", recipe_id),
                ("plan_date", plan_date),
            )
            if value is not None
        }
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> "LoggingContext":
        for name, value in self.fields.items():
            var = _CONTEXT_FIELDS[name][0]
            self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *exc_info: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
