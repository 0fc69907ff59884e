"""
Logging setup with request context.

Every record carries the current request_id (or "-") so log lines from
concurrent renders can be told apart.
"""

import logging
import sys
from contextvars import ContextVar

from .types import RequestContext

_request_context: ContextVar[RequestContext | None] = ContextVar(
    "printhelper_request_context", default=None
)

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"


class RequestContextFilter(logging.Filter):
    """Stamp request_id onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _request_context.get()
        record.request_id = ctx.request_id if ctx else "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure the root printhelper logger. Safe to call more than once."""
    root = logging.getLogger("printhelper")
    root.setLevel(level.upper())

    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RequestContextFilter())
        root.addHandler(handler)

    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger; module names outside the package are nested under it."""
    if not name.startswith("printhelper"):
        name = f"printhelper.{name}"
    return logging.getLogger(name)


def set_request_context(ctx: RequestContext) -> None:
    _request_context.set(ctx)


def clear_request_context() -> None:
    _request_context.set(None)
