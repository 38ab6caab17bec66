"""JSON log output with per-request context (request id, user id)."""
from __future__ import annotations

import json
import logging
from contextvars import ContextVar, Token
from logging.config import dictConfig
from typing import Any, Dict

import sentry_sdk

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }
)


def push_request_context(request_id: str) -> Token:
    return _log_context.set({"request_id": request_id, "user_id": None})


def pop_request_context(token: Token) -> None:
    _log_context.reset(token)


def set_user_context(user_id: str | None) -> None:
    context = _log_context.get({})
    if context:
        context["user_id"] = user_id
    else:  # middleware bypassed (tests)
        _log_context.set({"request_id": None, "user_id": user_id})
    sentry_sdk.set_user({"id": user_id} if user_id else None)


class RequestContextFilter(logging.Filter):
    """Copy the current request id and user id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - formatting only
        context = _log_context.get({})
        record.request_id = context.get("request_id")
        record.user_id = context.get("user_id")
        return True


class JSONFormatter(logging.Formatter):
    """Render records as one JSON object per line; ``extra=`` fields go under ``context``."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting only
        data = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, self.datefmt),
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and value is not None
        }
        if extras:
            data["context"] = extras
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Install the JSON handler on the root logger. Safe to call multiple times."""
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_context": {"()": RequestContextFilter},
        },
        "formatters": {
            "json": {
                "()": JSONFormatter,
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "filters": ["request_context"],
                "level": level,
            }
        },
        "root": {
            "handlers": ["default"],
            "level": level,
        },
    }
    dictConfig(config)


__all__ = [
    "JSONFormatter",
    "RequestContextFilter",
    "pop_request_context",
    "push_request_context",
    "set_user_context",
    "setup_logging",
]
