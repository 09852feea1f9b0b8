"""
structlog setup for the CLI jobs.

Production runs emit one JSON object per line for the log shipper;
development runs get the colored console renderer. Service modules log
through structlog with key-value fields, repositories and clients through
stdlib ``logging``; both end up on stdout with the same level.
"""

import logging
import sys
import uuid

import structlog
from structlog.types import Processor

from briefing.config.settings import get_settings

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "openai", "asyncpg")


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and stdlib logging.

    Args:
        level: Override for ``Settings.log_level`` (e.g. ``--debug``)
    """
    settings = get_settings()
    level = level or settings.log_level

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        renderer: list[Processor] = [
            structlog.processors.format_exc_info,
            # Japanese and Korean titles stay readable in the JSON lines
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context(command: str) -> str:
    """
    Tag every structlog event of this process with the job being run.

    Returns:
        The generated run id
    """
    run_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, run_id=run_id)
    return run_id
