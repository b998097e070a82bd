"""
Exceptions raised by sqlrows.

Every sqlrows exception can be turned into a plain dictionary (and from there
into JSON) and re-created as the same class on the other side, e.g. when a
query runs in a worker and its failure is reported by whoever waits on it::

    payload = error.to_json()
    ...
    raise SqlRowsError.from_json(payload)  # a QueryError again

Subclasses must not define their own constructor: additional values such as
the driver error code are passed as keyword arguments and kept in
``extra_data``, which is what makes them serializable.
"""

from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional, Type, TypedDict, cast

import rapidjson

# Every SqlRowsError subclass by name, filled in as the classes are defined.
_ERROR_CLASSES: MutableMapping[str, Type[SqlRowsError]] = {}


class SqlRowsErrorDict(TypedDict):
    type: str
    message: str
    extra_data: Dict[str, Any]
    should_report: bool


class SqlRowsError(Exception):
    def __init__(
        self,
        message: Optional[str] = None,
        should_report: bool = True,
        **extra_data: Any,
    ) -> None:
        self.extra_data = extra_data
        # whether the error is worth reporting to Sentry
        self.should_report = should_report
        self.message = self.format_message(message) if message else ""
        super().__init__(message)

    def __init_subclass__(cls) -> None:
        _ERROR_CLASSES.setdefault(cls.__name__, cls)
        super().__init_subclass__()

    def format_message(self, message: str) -> str:
        return message

    def to_dict(self) -> SqlRowsErrorDict:
        return {
            "type": self.__class__.__name__,
            # unformatted, format_message runs again when the error is rebuilt
            "message": str(self.args[0]) if self.args and self.args[0] else "",
            "extra_data": self.extra_data,
            "should_report": self.should_report,
        }

    @classmethod
    def from_dict(cls, edict: SqlRowsErrorDict) -> SqlRowsError:
        name = edict["type"]
        error_class = _ERROR_CLASSES.get(name)
        if error_class is None:
            # Raised by a newer version of the library: keep the name at least.
            error_class = cast(Type[SqlRowsError], type(name, (SqlRowsError,), {}))
        return error_class(
            edict.get("message", ""),
            should_report=edict.get("should_report", True),
            **edict.get("extra_data", {}),
        )

    def to_json(self) -> str:
        return cast(str, rapidjson.dumps(self.to_dict()))

    @classmethod
    def from_json(cls, payload: str) -> SqlRowsError:
        return cls.from_dict(rapidjson.loads(payload))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, extra_data={self.extra_data!r})"


class DatabaseError(SqlRowsError):
    """
    A failure reported by the database driver. The driver's own error code
    (MySQL error number, SQLite extended result code) is kept as ``code``
    when the driver provides one.
    """

    def format_message(self, message: str) -> str:
        return "Code: {}. {}".format(self.code, message)

    @property
    def code(self) -> int:
        return cast(int, self.extra_data.get("code", -1))


class OpenError(DatabaseError):
    pass


class QueryError(DatabaseError):
    pass


class StatementError(DatabaseError):
    pass


class UnexpectedQueryError(SqlRowsError):
    """
    Anything that went wrong while talking to the driver or scanning its rows
    that is not a driver error, e.g. a driver bug or a value that could not be
    turned into a cell.
    """
