"""Structured logging for the engine.

Log events carry the active wizard session and the pay type being
evaluated, when set. Monetary amounts are Decimals and are rendered as
strings in JSON output.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from decimal import Decimal
from typing import Any

import orjson
import structlog
from structlog.types import Processor

from milpay.core.config import settings

session_id_ctx: ContextVar[str | None] = ContextVar("session_id", default=None)
pay_type_ctx: ContextVar[str | None] = ContextVar("pay_type", default=None)

_ENGINE_CONTEXT = (("session_id", session_id_ctx), ("pay_type", pay_type_ctx))


@contextmanager
def session_context(session_id: str) -> Iterator[None]:
    """Tag log events emitted inside the block with ``session_id``."""
    token = session_id_ctx.set(session_id)
    try:
        yield
    finally:
        session_id_ctx.reset(token)


@contextmanager
def pay_type_context(pay_type: str) -> Iterator[None]:
    """Tag log events emitted inside the block with ``pay_type``."""
    token = pay_type_ctx.set(pay_type)
    try:
        yield
    finally:
        pay_type_ctx.reset(token)


def _add_context_vars(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Copy the engine context variables that are set onto the event."""
    for key, var in _ENGINE_CONTEXT:
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def _json_default(obj: Any) -> str:
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _orjson_serializer(obj: Any, **kwargs: Any) -> str:
    return orjson.dumps(obj, default=_json_default).decode("utf-8")


def _wants_json(log_format: str | None) -> bool:
    """Explicit format wins; otherwise only development logs to the console."""
    if log_format:
        return log_format.lower() == "json"
    return settings.environment != "development"


def _build_processors(use_json: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_context_vars,
    ]
    if use_json:
        processors += [
            structlog.processors.EventRenamer("message"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(serializer=_orjson_serializer),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(log_format: str | None = None, level: int | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_format: ``"json"`` or ``"console"``; defaults to
            ``MILPAY_LOG_FORMAT``, then to the environment's default.
        level: Root log level; defaults to DEBUG when ``MILPAY_DEBUG`` is set.
    """
    use_json = _wants_json(log_format or settings.log_format)
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    structlog.configure(
        processors=_build_processors(use_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally named."""
    return structlog.get_logger(name)
