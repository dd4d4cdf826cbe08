"""Logging setup with the active tenant namespace on every record."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

tenant_var: ContextVar[str | None] = ContextVar("tenant", default=None)


class LoggingContextFilter(logging.Filter):
    """Inject the current tenant namespace (or "-") into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.tenant = tenant_var.get() or "-"
        return True


@contextmanager
def bind_tenant(namespace: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``namespace``."""
    token = tenant_var.set(namespace)
    try:
        yield
    finally:
        tenant_var.reset(token)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging with a pipe-separated format and tenant filter."""
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | tenant=%(tenant)s | %(message)s")
    )
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
