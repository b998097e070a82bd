"""
JSON wire format for cells and rows.

A present cell is the JSON string of its text, a NULL cell is ``null``, a row
is an array of cells and a result set is an array of rows::

    [["1", "a"], ["2", null]]
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, TypeVar, cast

import rapidjson

from sqlrows.cells import NULL_CELL, Cell, ResultData, RowData

TEncoded = TypeVar("TEncoded")

TDecoded = TypeVar("TDecoded")


class Codec(Generic[TEncoded, TDecoded], ABC):
    @abstractmethod
    def encode(self, value: TDecoded) -> TEncoded:
        raise NotImplementedError

    @abstractmethod
    def decode(self, value: TEncoded) -> TDecoded:
        raise NotImplementedError


def _dumps(value: Any) -> bytes:
    return cast(str, rapidjson.dumps(value)).encode("utf-8")


def cell_to_json(cell: Cell) -> Optional[str]:
    return cell.nullable()


def cell_from_json(value: Any) -> Cell:
    if value is None:
        return NULL_CELL
    if not isinstance(value, str):
        raise ValueError(f"Invalid cell value {value!r}, expected a string or null")
    return Cell.of(value)


def _row_from_json(value: Any) -> RowData:
    if not isinstance(value, list):
        raise ValueError(f"Invalid row value {value!r}, expected an array")
    return RowData(cell_from_json(cell) for cell in value)


class CellCodec(Codec[bytes, Cell]):
    def encode(self, value: Cell) -> bytes:
        return _dumps(cell_to_json(value))

    def decode(self, value: bytes) -> Cell:
        return cell_from_json(rapidjson.loads(value))


class RowDataCodec(Codec[bytes, RowData]):
    def encode(self, value: RowData) -> bytes:
        return _dumps([cell_to_json(cell) for cell in value])

    def decode(self, value: bytes) -> RowData:
        return _row_from_json(rapidjson.loads(value))


class ResultDataCodec(Codec[bytes, ResultData]):
    def encode(self, value: ResultData) -> bytes:
        return _dumps([[cell_to_json(cell) for cell in row] for row in value])

    def decode(self, value: bytes) -> ResultData:
        rows = rapidjson.loads(value)
        if not isinstance(rows, list):
            raise ValueError("Invalid result data, expected an array of rows")
        result: List[RowData] = [_row_from_json(row) for row in rows]
        return result
