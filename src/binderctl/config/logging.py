"""structlog setup for binderctl.

Everything goes to stderr so stdout stays clean for ``--json`` results:
coloured console lines by default, one JSON object per line with
``--log-json``. Stdlib loggers (``logging.getLogger(__name__)``) share the
same processor chain, so binder context bound with :func:`binder_log_context`
shows up on their records too.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

# Libraries whose DEBUG chatter never reaches the user, even with -v.
_QUIET_LOGGERS = ("sqlalchemy", "pluggy", "asyncio")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        verbose: ``binderctl`` loggers emit DEBUG; otherwise WARNING and up.
        log_json: JSON lines instead of the console renderer.

    Safe to call repeatedly: the root handler is replaced, not stacked.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("binderctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def binder_log_context(binder_id: str, **extra: Any) -> Iterator[None]:
    """Tag every log record emitted inside the block with *binder_id*."""
    with structlog.contextvars.bound_contextvars(binder_id=binder_id, **extra):
        yield
