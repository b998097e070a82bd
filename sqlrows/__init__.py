from sqlrows.cells import Cell, NamedResultData, ResultData, RowData, RowMap
from sqlrows.connections import get_db, get_generic_db, get_sqlite_db
from sqlrows.errors import (
    DatabaseError,
    OpenError,
    QueryError,
    SqlRowsError,
    StatementError,
    UnexpectedQueryError,
)
from sqlrows.reader import (
    query_named_result_data,
    query_result_data,
    query_rows_map,
    query_rows_map_buffered,
)
from sqlrows.tables import scan_table, write_table
from sqlrows.writer import execute, execute_no_prepare, execute_silently

__all__ = [
    "Cell",
    "DatabaseError",
    "NamedResultData",
    "OpenError",
    "QueryError",
    "ResultData",
    "RowData",
    "RowMap",
    "SqlRowsError",
    "StatementError",
    "UnexpectedQueryError",
    "execute",
    "execute_no_prepare",
    "execute_silently",
    "get_db",
    "get_generic_db",
    "get_sqlite_db",
    "query_named_result_data",
    "query_result_data",
    "query_rows_map",
    "query_rows_map_buffered",
    "scan_table",
    "write_table",
]
