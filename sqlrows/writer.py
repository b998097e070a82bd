from __future__ import annotations

import logging
from typing import Any

from sqlrows import environment
from sqlrows.errors import DatabaseError
from sqlrows.pool import ConnectionPool, ExecResult, Params
from sqlrows.metrics import MetricsWrapper

logger = logging.getLogger("sqlrows.writer")

metrics = MetricsWrapper(environment.metrics, "writer")


def _report(db: ConnectionPool, error: DatabaseError) -> None:
    metrics.increment("statement_error", tags={"driver": db.driver.name})
    logger.error("Statement failed: %s", error.message, exc_info=True)


def _execute_internal(
    silent: bool, db: ConnectionPool, query: str, args: Params
) -> ExecResult:
    try:
        with db.prepare(query) as statement:
            return statement.execute(args)
    except DatabaseError as e:
        if not silent:
            _report(db, e)
        raise


def execute(db: ConnectionPool, query: str, *args: Any) -> ExecResult:
    """
    Prepare, execute and close a statement. Failures are logged before being
    raised.
    """
    return _execute_internal(False, db, query, args)


def execute_silently(db: ConnectionPool, query: str, *args: Any) -> ExecResult:
    """
    Like ``execute`` but failures are raised without being logged, for
    statements that are expected to fail at times (e.g. ``drop table`` on a
    table that may not exist).
    """
    return _execute_internal(True, db, query, args)


def execute_no_prepare(db: ConnectionPool, query: str, *args: Any) -> ExecResult:
    """
    Execute a statement directly on the handle, without preparing it first.
    """
    try:
        return db.execute(query, args)
    except DatabaseError as e:
        _report(db, e)
        raise
