"""
Schema agnostic table dumps: read a whole table into a NamedResultData and
write one back. Together they copy a table between two handles, or save and
restore it around a destructive operation.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlrows.cells import NamedResultData
from sqlrows.errors import DatabaseError
from sqlrows.pool import ConnectionPool
from sqlrows.reader import query_named_result_data

logger = logging.getLogger("sqlrows.tables")


def scan_table(db: ConnectionPool, table_name: str) -> NamedResultData:
    return query_named_result_data(db, f"select * from {table_name}")


def write_table(db: ConnectionPool, table_name: str, data: NamedResultData) -> None:
    """
    Upsert every row of ``data`` into ``table_name``, one statement per row.

    A failing row does not stop the others from being written; once every row
    was attempted the last failure is raised.
    """
    if not data.data:
        return
    if not data.columns:
        return

    placeholders = ",".join([db.placeholder] * len(data.columns))
    query = "replace into {} ({}) values ({})".format(
        table_name, ",".join(data.columns), placeholders
    )

    error: Optional[DatabaseError] = None
    with db.prepare(query) as statement:
        for row_data in data.data:
            try:
                statement.execute(row_data.args())
            except DatabaseError as e:
                logger.warning("Failed writing row to %s: %s", table_name, e.message)
                error = e

    if error is not None:
        raise error
