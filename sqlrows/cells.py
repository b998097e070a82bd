from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dateutil.tz import tz

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Zero value returned by the time accessors when a cell can not be parsed.
ZERO_TIME = datetime.min.replace(tzinfo=tz.tzutc())

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

# Always used with fullmatch.
_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"\+?[0-9]+")
_DATETIME_RE = re.compile(
    r"([0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2})(?:\.([0-9]{1,6}))?"
)


def parse_int(text: str) -> Optional[int]:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


def parse_uint(text: str) -> Optional[int]:
    if not _UINT_RE.fullmatch(text):
        return None
    value = int(text)
    if value > UINT64_MAX:
        return None
    return value


def parse_datetime(text: str) -> Optional[datetime]:
    """
    Parse ``YYYY-MM-DD HH:MM:SS`` with up to six optional fractional second
    digits. The result is in UTC.
    """
    match = _DATETIME_RE.fullmatch(text)
    if match is None:
        return None
    seconds, fraction = match.groups()
    try:
        value = datetime.strptime(seconds, DATETIME_FORMAT)
    except ValueError:
        return None
    if fraction:
        value = value.replace(microsecond=int(fraction.ljust(6, "0")))
    return value.replace(tzinfo=tz.tzutc())


def transform_datetime(value: datetime) -> str:
    """
    Format a datetime the way the time accessors parse it back. Aware
    datetimes are converted to UTC first, naive ones are assumed to already
    be in UTC. Trailing zeros of the fraction are dropped and a whole second
    has no fraction at all.
    """
    if value.tzinfo is not None:
        value = value.astimezone(tz.tzutc()).replace(tzinfo=None)
    # four digit years, also below 1000
    text = "{:04d}-{:02d}-{:02d} {:02d}:{:02d}:{:02d}".format(
        value.year, value.month, value.day, value.hour, value.minute, value.second
    )
    if value.microsecond:
        text += ".{:06d}".format(value.microsecond).rstrip("0")
    return text


@dataclass(frozen=True)
class Cell:
    """
    The value of one column in one row. The value is kept as text, the way
    the database would print it; ``present`` is False for SQL NULL, in which
    case ``text`` is empty and meaningless.

    The typed views never raise: when the text can not be parsed, or the cell
    is NULL, they return the zero value or the given default.
    """

    text: str = ""
    present: bool = False

    @classmethod
    def null(cls) -> Cell:
        return NULL_CELL

    @classmethod
    def of(cls, text: str) -> Cell:
        return cls(text, True)

    def nullable(self) -> Optional[str]:
        """The value as a statement argument: None for NULL."""
        return self.text if self.present else None

    def to_text(self) -> str:
        return self.text

    def to_int(self, default: int = 0) -> int:
        value = parse_int(self.text) if self.present else None
        return default if value is None else value

    def to_uint(self, default: int = 0) -> int:
        value = parse_uint(self.text) if self.present else None
        return default if value is None else value

    def to_bool(self) -> bool:
        return self.to_int() != 0

    def to_time(self) -> datetime:
        value = parse_datetime(self.text) if self.present else None
        return ZERO_TIME if value is None else value


NULL_CELL = Cell()


def transform_value(value: Any) -> Cell:
    """
    Turn a value returned by a DB-API driver into a Cell.
    """
    if value is None:
        return NULL_CELL
    if isinstance(value, bool):
        return Cell.of("1" if value else "0")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Cell.of(bytes(value).decode("utf-8", errors="replace"))
    if isinstance(value, datetime):
        return Cell.of(transform_datetime(value))
    if isinstance(value, date):
        return Cell.of(value.isoformat())
    return Cell.of(str(value))


class RowData(Tuple[Cell, ...]):
    """
    One row of a result set in column order.
    """

    __slots__ = ()

    def args(self) -> List[Optional[str]]:
        """The row as statement arguments, NULL cells becoming None."""
        return [cell.nullable() for cell in self]


ResultData = List[RowData]

EMPTY_RESULT_DATA: Sequence[RowData] = ()


@dataclass
class NamedResultData:
    """
    A result set together with its column names. When there is any row,
    every row has exactly one cell per column.
    """

    columns: Sequence[str]
    data: ResultData


class RowMap(Dict[str, Cell]):
    """
    One row of a result set keyed by column name, with typed getters.

    Missing keys read as NULL cells, so ``get_int("nope")`` is 0 and
    ``get_string("nope")`` is the default.
    """

    def __cell(self, key: str) -> Cell:
        return self.get(key, NULL_CELL)

    def get_string(self, key: str, default: str = "") -> str:
        if key in self:
            return self[key].text
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        return self.__cell(key).to_int(default)

    def get_nullable_int(self, key: str) -> Optional[int]:
        cell = self.__cell(key)
        return parse_int(cell.text) if cell.present else None

    def get_uint(self, key: str, default: int = 0) -> int:
        return self.__cell(key).to_uint(default)

    def get_bool(self, key: str) -> bool:
        return self.__cell(key).to_bool()

    def get_time(self, key: str) -> datetime:
        return self.__cell(key).to_time()

