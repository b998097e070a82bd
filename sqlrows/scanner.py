"""
Turns an open cursor into rows.

Rows are produced lazily, one per record. Consumers ("sinks") are plain
callables; a sink stops the scan by raising, and whatever it raised reaches
the caller untouched. Only failures of the cursor itself are translated into
sqlrows errors.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Sequence

from sqlrows.cells import Cell, RowData, RowMap, transform_value
from sqlrows.errors import SqlRowsError, UnexpectedQueryError
from sqlrows.pool import Cursor


def row_to_array(values: Sequence[Any]) -> RowData:
    """
    Convert the values of one fetched record into a row of cells.
    """
    try:
        return RowData(transform_value(value) for value in values)
    except Exception as e:
        raise UnexpectedQueryError(f"row_to_array unexpected error: {e!r}") from e


def iterate_rows(cursor: Cursor) -> Iterator[RowData]:
    while True:
        try:
            values = cursor.fetch()
        except SqlRowsError:
            raise
        except Exception as e:
            raise UnexpectedQueryError(f"iterate_rows unexpected error: {e!r}") from e
        if values is None:
            return
        yield row_to_array(values)


def scan_rows_to_arrays(cursor: Cursor, on_row: Callable[[RowData], None]) -> None:
    for row in iterate_rows(cursor):
        on_row(row)


def row_to_map(row: Sequence[Cell], columns: Sequence[str]) -> RowMap:
    """
    Pair a row with its column names. Rows and column names read from the
    same cursor always have the same length.
    """
    return RowMap(zip(columns, row))


def scan_rows_to_maps(cursor: Cursor, on_row: Callable[[RowMap], None]) -> None:
    columns = cursor.column_names()
    for row in iterate_rows(cursor):
        on_row(row_to_map(row, columns))
