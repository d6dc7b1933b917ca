"""Scoped log context for the simulation loop."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog


@contextmanager
def log_context(**fields: object) -> Iterator[None]:
    """Attach *fields* to every record logged inside the block.

    Bindings live in contextvars, so concurrent tasks (the loop, request
    handlers) never see each other's fields.
    """
    structlog.contextvars.bind_contextvars(**fields)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*fields)
