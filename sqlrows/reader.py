"""
Query executors.

Three ways to consume the rows of a query, all taking the handle, the query
and its positional arguments:

* ``query_rows_map`` streams: the callback sees each row while the cursor is
  still open. Uses the least memory, but the callback must not use the same
  handle in ways that need the cursor's connection to be free.
* ``query_rows_map_buffered`` reads every row first, closes the cursor and
  only then calls the callback, which is free to run more queries.
* ``query_result_data`` / ``query_named_result_data`` return the rows.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Callable, Sequence, Tuple

from sqlrows import environment
from sqlrows.cells import NamedResultData, ResultData, RowMap
from sqlrows.errors import QueryError
from sqlrows.pool import ConnectionPool, Cursor, Params
from sqlrows.scanner import row_to_map, scan_rows_to_arrays, scan_rows_to_maps
from sqlrows.metrics import MetricsWrapper

logger = logging.getLogger("sqlrows.reader")

metrics = MetricsWrapper(environment.metrics, "reader")


def _open_cursor(
    stack: ExitStack, db: ConnectionPool, query: str, args: Params
) -> Cursor:
    """
    Open a cursor whose lifetime is bound to ``stack``. Failing to open it is
    logged and re-raised; failures that happen later (including the ones raised
    by callbacks) are left to the caller.
    """
    try:
        return stack.enter_context(db.query(query, args))
    except QueryError as e:
        metrics.increment("query_error", tags={"driver": db.driver.name})
        logger.error("Query failed: %s", e.message, exc_info=True)
        raise


def query_rows_map(
    db: ConnectionPool, query: str, on_row: Callable[[RowMap], None], *args: Any
) -> None:
    """
    Run a query and call ``on_row`` with every row as it is read. A query
    that matches nothing calls ``on_row`` zero times.
    """
    with ExitStack() as stack:
        cursor = _open_cursor(stack, db, query, args)
        scan_rows_to_maps(cursor, on_row)


def _query_result_data(
    db: ConnectionPool, query: str, retrieve_columns: bool, args: Params
) -> Tuple[ResultData, Sequence[str]]:
    """
    Read every row of a query, optionally along with the column names.
    """
    result_data: ResultData = []
    columns: Sequence[str] = []
    with ExitStack() as stack:
        cursor = _open_cursor(stack, db, query, args)
        if retrieve_columns:
            # Don't pay if you don't want to
            columns = cursor.column_names()
        scan_rows_to_arrays(cursor, result_data.append)
    return result_data, columns


def query_result_data(db: ConnectionPool, query: str, *args: Any) -> ResultData:
    result_data, _ = _query_result_data(db, query, False, args)
    return result_data


def query_named_result_data(
    db: ConnectionPool, query: str, *args: Any
) -> NamedResultData:
    result_data, columns = _query_result_data(db, query, True, args)
    return NamedResultData(columns=columns, data=result_data)


def query_rows_map_buffered(
    db: ConnectionPool, query: str, on_row: Callable[[RowMap], None], *args: Any
) -> None:
    """
    Read every row of a query into memory, then call ``on_row`` with each of
    them. Costs as much memory as the result set, but the cursor is already
    closed when ``on_row`` runs.
    """
    result_data, columns = _query_result_data(db, query, True, args)
    for row in result_data:
        on_row(row_to_map(row, columns))
