from typing import Any, Mapping


def validate_settings(locals: Mapping[str, Any]) -> None:
    if locals["MAX_POOL_SIZE"] < 1:
        raise ValueError("MAX_POOL_SIZE must be at least 1")

    if locals["MYSQL_CONNECT_TIMEOUT"] <= 0:
        raise ValueError("MYSQL_CONNECT_TIMEOUT must be a positive number of seconds")

    if locals["SQLITE_BUSY_TIMEOUT"] < 0:
        raise ValueError("SQLITE_BUSY_TIMEOUT can not be negative")

    if not 0 <= locals["SENTRY_TRACE_SAMPLE_RATE"] <= 1:
        raise ValueError("SENTRY_TRACE_SAMPLE_RATE must be between 0 and 1")
