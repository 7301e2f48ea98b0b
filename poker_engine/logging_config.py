"""Structured logging for the engine process.

Module loggers are plain ``logging.getLogger(__name__)``; structlog sits on the
root handler and renders every record, stdlib or structlog:

- JSON lines when ``json_logs`` is set or ``app_env`` is production
- colored key=value console output otherwise

While a room is being evaluated, ``club_id`` and ``room_id`` are attached to
every record emitted in that scope (see ``room_context``).
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from structlog.types import Processor

# Libraries whose INFO output is not useful at engine level
QUIET_LOGGERS = ("redis", "asyncio")


def _pre_chain(use_json: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    chain.append(structlog.processors.format_exc_info if use_json else structlog.dev.set_exc_info)
    return chain


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    app_env: str = "development",
) -> None:
    """Install the structlog formatter on the root logger.

    Safe to call more than once; the previous root handlers are replaced.
    """
    use_json = json_logs or app_env == "production"
    pre_chain = _pre_chain(use_json)

    renderer: Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structlog logger for key=value events.

    Usage:
        logger = get_logger(__name__)
        logger.info("engine_started", check_interval=2.0)
    """
    return structlog.get_logger(name)


@contextmanager
def room_context(club_id: str, room_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with the room it concerns."""
    with structlog.contextvars.bound_contextvars(club_id=club_id, room_id=room_id):
        yield
