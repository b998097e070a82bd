import os

os.environ.setdefault("SQLROWS_SETTINGS", "test")

from pathlib import Path  # noqa: E402
from typing import Generator  # noqa: E402

import pytest  # noqa: E402

from sqlrows import settings  # noqa: E402
from sqlrows.drivers import SQLITE, get_driver  # noqa: E402
from sqlrows.metrics import clear_recorded_metric_calls  # noqa: E402
from sqlrows.pool import ConnectionPool  # noqa: E402


def pytest_configure() -> None:
    assert (
        settings.TESTING
    ), "settings.TESTING is False, try `SQLROWS_SETTINGS=test`"


@pytest.fixture(autouse=True)
def clear_metrics() -> Generator[None, None, None]:
    clear_recorded_metric_calls()
    yield
    clear_recorded_metric_calls()


@pytest.fixture
def sqlite_db(tmp_path: Path) -> Generator[ConnectionPool, None, None]:
    db = ConnectionPool(get_driver(SQLITE), str(tmp_path / "test.db"))
    yield db
    db.close()


@pytest.fixture
def users_db(sqlite_db: ConnectionPool) -> ConnectionPool:
    sqlite_db.execute(
        "create table users (id integer primary key, name text, created_at text)"
    )
    for params in [
        (1, "alice", "2020-01-02 03:04:05"),
        (2, None, None),
        (3, "carol", "2021-06-07 08:09:10.5"),
    ]:
        sqlite_db.execute(
            "insert into users (id, name, created_at) values (?, ?, ?)", params
        )
    return sqlite_db
