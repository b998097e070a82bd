from typing import Any, Mapping
from unittest import mock

import pytest

from sqlrows import settings
from sqlrows.drivers import SQLITE, Driver, get_driver
from sqlrows.errors import OpenError, QueryError, StatementError, UnexpectedQueryError
from sqlrows.metrics import get_recorded_metric_calls
from sqlrows.pool import ConnectionPool, open_pool


class FakeDriverError(Exception):
    pass


def build_fake_pool(
    connect: Any, is_disconnect: bool = False, max_pool_size: int = 2
) -> ConnectionPool:
    def parse_dsn(dsn: str) -> Mapping[str, Any]:
        return {"dsn": dsn}

    driver = Driver(
        name="fake",
        parse_dsn=parse_dsn,
        connect=connect,
        error=FakeDriverError,
        is_disconnect=lambda e: is_disconnect,
    )
    return ConnectionPool(driver, "fake://", max_pool_size=max_pool_size)


def test_connections_are_created_lazily() -> None:
    connect = mock.Mock()
    pool = build_fake_pool(connect)
    connect.assert_not_called()

    pool.execute("select 1")
    pool.execute("select 1")

    connect.assert_called_once_with(dsn="fake://")
    calls = get_recorded_metric_calls("gauge", "sqlrows.pool.connections")
    assert calls is not None
    assert calls[-1].value == 1.0
    assert calls[-1].tags == {"driver": "fake"}


def test_connect_failure() -> None:
    connect = mock.Mock(side_effect=FakeDriverError(2003, "can't connect"))
    pool = build_fake_pool(connect, max_pool_size=1)

    with pytest.raises(OpenError) as e:
        pool.execute("select 1")
    assert e.value.code == 2003

    # the slot went back to the pool, so the next call tries again
    with pytest.raises(OpenError):
        pool.execute("select 1")
    assert connect.call_count == 2


def test_invalid_dsn() -> None:
    with pytest.raises(OpenError):
        open_pool(SQLITE, "")

    with pytest.raises(OpenError):
        open_pool("oracle", "whatever")


def test_disconnected_connection_is_discarded() -> None:
    connection = mock.Mock()
    connection.cursor.return_value.execute.side_effect = FakeDriverError(
        2013, "Lost connection"
    )
    connect = mock.Mock(return_value=connection)
    pool = build_fake_pool(connect, is_disconnect=True, max_pool_size=1)

    with pytest.raises(QueryError):
        with pool.query("select 1"):
            pass

    connection.close.assert_called_once()
    connection.cursor.return_value.close.assert_called_once()
    assert pool.pool.get(block=False) is None


def test_other_errors_keep_the_connection() -> None:
    connection = mock.Mock()
    connection.cursor.return_value.execute.side_effect = FakeDriverError(
        1064, "syntax error"
    )
    pool = build_fake_pool(mock.Mock(return_value=connection), max_pool_size=1)

    with pytest.raises(StatementError) as e:
        pool.execute("selec 1")

    assert e.value.code == 1064
    assert e.value.message.startswith("Code: 1064.")
    connection.close.assert_not_called()
    assert pool.pool.get(block=False) is connection


def test_unexpected_driver_failure() -> None:
    connection = mock.Mock()
    connection.cursor.return_value.execute.side_effect = KeyError("boom")
    pool = build_fake_pool(mock.Mock(return_value=connection))

    with pytest.raises(UnexpectedQueryError):
        pool.execute("select 1")


def test_query_without_result_set(sqlite_db: ConnectionPool) -> None:
    with sqlite_db.query("create table t (id integer)") as cursor:
        assert cursor.column_names() == []
        assert cursor.fetch() is None


def test_query_error(sqlite_db: ConnectionPool) -> None:
    with pytest.raises(QueryError) as e:
        with sqlite_db.query("select * from missing"):
            pass

    assert "no such table" in e.value.message
    assert sqlite_db.pool.qsize() == settings.MAX_POOL_SIZE


def test_cursor_released_on_error(sqlite_db: ConnectionPool) -> None:
    with pytest.raises(ZeroDivisionError):
        with sqlite_db.query("select 1") as cursor:
            cursor.fetch()
            1 / 0

    assert sqlite_db.pool.qsize() == settings.MAX_POOL_SIZE


def test_prepared_statement(sqlite_db: ConnectionPool) -> None:
    sqlite_db.execute("create table t (id integer primary key, name text not null)")

    with sqlite_db.prepare("insert into t (id, name) values (?, ?)") as statement:
        assert statement.execute([1, "a"]).rows_affected == 1
        with pytest.raises(StatementError):
            statement.execute([2, None])
        result = statement.execute([3, "c"])

    assert result.last_insert_id == 3
    with sqlite_db.query("select count(*) from t") as cursor:
        assert cursor.fetch() == (2,)


def test_arguments_are_only_passed_when_given() -> None:
    connection = mock.Mock()
    pool = build_fake_pool(mock.Mock(return_value=connection))
    cursor = connection.cursor.return_value

    pool.execute("select '100%'")
    cursor.execute.assert_called_once_with("select '100%'")

    cursor.reset_mock()
    pool.execute("select %s", ["a"])
    cursor.execute.assert_called_once_with("select %s", ("a",))


def test_close_keeps_pool_usable(sqlite_db: ConnectionPool) -> None:
    sqlite_db.execute("select 1")
    sqlite_db.close()

    assert sqlite_db.pool.qsize() == settings.MAX_POOL_SIZE
    assert sqlite_db.execute("select 1").rows_affected == -1


def test_placeholder() -> None:
    assert open_pool(SQLITE, "x.db").placeholder == "?"
    assert get_driver("mysql").placeholder == "%s"


def test_query_uses_the_streaming_cursor() -> None:
    connection = mock.Mock()
    streaming_cursor = mock.Mock()
    streaming_cursor.fetchone.return_value = None
    driver = Driver(
        name="fake",
        parse_dsn=lambda dsn: {},
        connect=mock.Mock(return_value=connection),
        error=FakeDriverError,
        streaming_cursor=mock.Mock(return_value=streaming_cursor),
    )
    pool = ConnectionPool(driver, "fake://", max_pool_size=1)

    with pool.query("select 1") as cursor:
        assert cursor.fetch() is None

    driver.streaming_cursor.assert_called_once_with(connection)
    streaming_cursor.execute.assert_called_once_with("select 1")
    streaming_cursor.close.assert_called_once()
    connection.cursor.assert_not_called()

    # statements don't need it
    pool.execute("delete from t")
    connection.cursor.assert_called_once_with()
    assert driver.streaming_cursor.call_count == 1


def test_errors_raised_by_the_caller_keep_the_connection() -> None:
    connection = mock.Mock()
    connection.cursor.return_value.fetchone.return_value = None
    pool = build_fake_pool(
        mock.Mock(return_value=connection), is_disconnect=True, max_pool_size=1
    )

    # e.g. a callback whose own query, on another connection, lost its server
    error = QueryError("Lost connection", code=2013)
    error.__cause__ = FakeDriverError(2013, "Lost connection")

    with pytest.raises(QueryError) as e:
        with pool.query("select 1"):
            raise error

    assert e.value is error
    connection.close.assert_not_called()
    assert pool.pool.get(block=False) is connection
