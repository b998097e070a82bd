"""
Process wide setup for applications embedding sqlrows. The library only logs
and reports metrics; configuring where those end up is left to the host,
which can call ``setup_logging`` and ``setup_sentry`` at start up or do its
own thing.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.threading import ThreadingIntegration
from structlog.processors import JSONRenderer
from structlog.types import Processor
from structlog_sentry import SentryProcessor

from sqlrows import settings
from sqlrows.metrics import MetricsWrapper, create_metrics


def _structlog_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        # SentryProcessor needs the level
        structlog.processors.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SentryProcessor(event_level=logging.ERROR),
        JSONRenderer(),
    ]


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure stdlib logging, used by the executors and the pool, and
    structlog, used by the handle cache, to emit at ``level`` or above.
    """
    numeric_level = getattr(logging, (level or settings.LOG_LEVEL).upper())

    logging.basicConfig(level=numeric_level, format=settings.LOG_FORMAT, force=True)
    structlog.configure(
        cache_logger_on_first_use=True,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=_structlog_processors(),
    )


def setup_sentry() -> None:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            LoggingIntegration(event_level=logging.WARNING),
            ThreadingIntegration(propagate_scope=True),
        ],
        traces_sample_rate=settings.SENTRY_TRACE_SAMPLE_RATE,
    )


metrics = MetricsWrapper(create_metrics(), settings.METRICS_PREFIX)
