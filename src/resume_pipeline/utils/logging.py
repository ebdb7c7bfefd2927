"""Structured logging for pipeline processes.

Each process calls ``configure_logging`` once at startup. Workers handle every
consumed record inside ``record_context``, so all lines logged while the
record is in flight carry its stage and broker position, plus the document
ID once ``bind_document`` has been called.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from uuid import UUID

import structlog
from aiokafka.structs import ConsumerRecord
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

# Libraries that log every rebalance, request or model download at INFO
QUIET_LOGGERS = ("aiokafka", "httpx", "sentence_transformers")


def _renderer(debug: bool) -> Any:
    if debug:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer(sort_keys=True)


def configure_logging(debug: bool = False) -> None:
    """Route structlog through stdlib logging on stdout.

    Production processes emit one JSON object per line; debug mode switches
    to the console renderer and DEBUG level.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(debug),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


@contextmanager
def record_context(stage: str, record: ConsumerRecord) -> Iterator[None]:
    """Tag log lines emitted inside the block with the record's position.

    Context left over from a previous record is discarded on entry and the
    context is cleared again on exit.
    """
    clear_contextvars()
    bind_contextvars(
        stage=stage,
        topic=record.topic,
        partition=record.partition,
        offset=record.offset,
    )
    try:
        yield
    finally:
        clear_contextvars()


def bind_document(document_id: UUID | str) -> None:
    """Add the decoded document ID to the current record context."""
    bind_contextvars(doc_id=str(document_id))
