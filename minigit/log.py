"""Structured logging for minigit using structlog."""

import logging
import os

import structlog
from structlog.types import FilteringBoundLogger


def configure_structlog():
    """Route structlog through stdlib logging on stderr.

    MINIGIT_LOG_FORMAT selects the renderer (pretty or json) and
    MINIGIT_LOG_LEVEL the threshold; the default keeps normal commands quiet.
    """
    log_format = os.getenv('MINIGIT_LOG_FORMAT', 'pretty').lower()
    log_level = os.getenv('MINIGIT_LOG_LEVEL', 'WARNING').upper()

    if log_format == 'json':
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt='iso'),
            ],
        )
    )
    logger = logging.getLogger('minigit')
    logger.handlers = [handler]
    logger.setLevel(getattr(logging, log_level, logging.WARNING))
    logger.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_structlog()


def get_logger(name: str) -> FilteringBoundLogger:
    return structlog.get_logger(name)
