from __future__ import annotations

import logging
import queue
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generator, Mapping, Optional, Sequence, Type

import sentry_sdk

from sqlrows import environment, settings
from sqlrows.drivers import Driver, error_code, get_driver
from sqlrows.errors import (
    DatabaseError,
    OpenError,
    QueryError,
    SqlRowsError,
    StatementError,
    UnexpectedQueryError,
)
from sqlrows.metrics import MetricsWrapper, ThreadSafeGauge

logger = logging.getLogger("sqlrows.pool")

Params = Sequence[Any]

metrics = MetricsWrapper(environment.metrics, "pool")


def _execute(cursor: Any, query: str, params: Params) -> None:
    # Without arguments, format-style drivers must not interpolate the query
    # at all, otherwise a literal % in it would be taken for a placeholder.
    if params:
        cursor.execute(query, tuple(params))
    else:
        cursor.execute(query)


@dataclass(frozen=True)
class ExecResult:
    rows_affected: int
    last_insert_id: Optional[int] = None


class Lease:
    """
    A connection borrowed from the pool. ``broken`` is set when the driver
    reported a disconnect on it, the connection is then dropped instead of
    going back to the pool.
    """

    __slots__ = ("conn", "broken")

    def __init__(self, conn: Any) -> None:
        self.conn = conn
        self.broken = False


class Cursor:
    """
    An open query. Rows are fetched one at a time; a statement that does not
    produce a result set behaves as an empty one.
    """

    def __init__(self, pool: ConnectionPool, lease: Lease, cursor: Any) -> None:
        self.__pool = pool
        self.__lease = lease
        self.__cursor = cursor

    def column_names(self) -> Sequence[str]:
        description = self.__cursor.description
        if description is None:
            return []
        return [column[0] for column in description]

    def fetch(self) -> Optional[Sequence[Any]]:
        if self.__cursor.description is None:
            return None
        with self.__pool.translate_errors(QueryError, self.__lease):
            row: Optional[Sequence[Any]] = self.__cursor.fetchone()
        return row


class PreparedStatement:
    """
    A statement bound to one pooled connection that can be executed any
    number of times with different arguments.
    """

    def __init__(
        self, pool: ConnectionPool, lease: Lease, cursor: Any, query: str
    ) -> None:
        self.__pool = pool
        self.__lease = lease
        self.__cursor = cursor
        self.query = query

    def execute(self, params: Params = ()) -> ExecResult:
        with self.__pool.span(self.query), self.__pool.translate_errors(
            StatementError, self.__lease
        ):
            _execute(self.__cursor, self.query, params)
            return ExecResult(self.__cursor.rowcount, self.__cursor.lastrowid)


class ConnectionPool:
    """
    A database handle: hands out connections of one DB-API driver to one
    database, creating them lazily and keeping up to ``max_pool_size`` of them
    around. A pool can be shared by any number of threads; a thread blocks
    while every connection is in use.
    """

    def __init__(
        self,
        driver: Driver,
        dsn: str,
        max_pool_size: int = settings.MAX_POOL_SIZE,
    ) -> None:
        self.driver = driver
        try:
            self.connect_kwargs: Mapping[str, Any] = driver.parse_dsn(dsn)
        except ValueError as e:
            raise OpenError(f"Invalid {driver.name} DSN: {e}") from e

        self.pool: queue.LifoQueue[Optional[Any]] = queue.LifoQueue(max_pool_size)
        self.__gauge = ThreadSafeGauge(
            metrics, "connections", tags={"driver": driver.name}
        )

        # Fill the queue up so that doing get() on it will block properly
        for _ in range(max_pool_size):
            self.pool.put(None)

    @property
    def placeholder(self) -> str:
        return self.driver.placeholder

    @contextmanager
    def translate_errors(
        self, error_class: Type[DatabaseError], lease: Optional[Lease] = None
    ) -> Generator[None, None, None]:
        """
        Turn driver errors into ``error_class`` and anything else that is not
        already a sqlrows error into ``UnexpectedQueryError``. A driver error
        meaning the connection is gone marks ``lease`` as broken.
        """
        try:
            yield
        except self.driver.error as e:
            if lease is not None and self.driver.is_disconnect(e):
                lease.broken = True
            raise error_class(str(e), code=error_code(e)) from e
        except SqlRowsError:
            raise
        except Exception as e:
            raise UnexpectedQueryError(
                f"{self.driver.name} unexpected error: {e!r}"
            ) from e

    @contextmanager
    def span(self, query: str) -> Generator[None, None, None]:
        with sentry_sdk.start_span(description=query, op="db.query") as span:
            span.set_data(sentry_sdk.consts.SPANDATA.DB_SYSTEM, self.driver.name)
            yield

    def _create_conn(self) -> Any:
        with self.translate_errors(OpenError):
            return self.driver.connect(**self.connect_kwargs)

    @contextmanager
    def connection(self) -> Generator[Lease, None, None]:
        """
        Borrow a connection, creating it if the pool slot is empty. The
        connection goes back to the pool on exit unless the driver reported
        it as disconnected while it was borrowed.
        """
        conn = self.pool.get(block=True)
        lease: Optional[Lease] = None
        try:
            # Lazily create connection instances
            if conn is None:
                conn = self._create_conn()
                self.__gauge.increment()
            lease = Lease(conn)
            yield lease
        finally:
            if lease is not None and lease.broken:
                logger.warning("Discarding disconnected %s connection", self.driver.name)
                self._discard(conn)
                conn = None
            self.pool.put(conn, block=False)

    def _discard(self, conn: Any) -> None:
        self.__gauge.decrement()
        try:
            conn.close()
        except self.driver.error:
            logger.debug("Error closing %s connection", self.driver.name, exc_info=True)

    @contextmanager
    def query(self, query: str, params: Params = ()) -> Generator[Cursor, None, None]:
        """
        Run a query and yield a cursor reading its rows one at a time, with
        the driver's streaming cursor.
        """
        with self.connection() as lease:
            with self.translate_errors(QueryError, lease):
                cursor = self.driver.streaming_cursor(lease.conn)
            try:
                with self.span(query), self.translate_errors(QueryError, lease):
                    _execute(cursor, query, params)
                yield Cursor(self, lease, cursor)
            finally:
                cursor.close()

    def execute(self, query: str, params: Params = ()) -> ExecResult:
        with self.connection() as lease:
            with self.translate_errors(StatementError, lease):
                cursor = lease.conn.cursor()
            try:
                with self.span(query), self.translate_errors(StatementError, lease):
                    _execute(cursor, query, params)
                    return ExecResult(cursor.rowcount, cursor.lastrowid)
            finally:
                cursor.close()

    @contextmanager
    def prepare(self, query: str) -> Generator[PreparedStatement, None, None]:
        with self.connection() as lease:
            with self.translate_errors(StatementError, lease):
                cursor = lease.conn.cursor()
            try:
                yield PreparedStatement(self, lease, cursor, query)
            finally:
                cursor.close()

    def close(self) -> None:
        """
        Close the idle connections. Connections currently borrowed are left
        alone and the pool stays usable.
        """
        drained = 0
        try:
            while True:
                conn = self.pool.get(block=False)
                drained += 1
                if conn is not None:
                    self._discard(conn)
        except queue.Empty:
            pass

        for _ in range(drained):
            self.pool.put(None, block=False)


def open_pool(driver_name: str, dsn: str) -> ConnectionPool:
    """
    Open a handle. Like most DB-API pools this does not connect yet, the
    first connection is made by the first query.
    """
    return ConnectionPool(get_driver(driver_name), dsn)
