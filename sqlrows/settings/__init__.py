from __future__ import annotations

import os
from typing import Any, MutableMapping, Optional

from sqlrows.settings.validation import validate_settings

# All settings must be uppercased and have a default value. Override modules
# selected through SQLROWS_SETTINGS only replace uppercased attributes.

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(message)s"

TESTING = False

SENTRY_DSN: Optional[str] = os.environ.get("SENTRY_DSN")
SENTRY_TRACE_SAMPLE_RATE = float(os.environ.get("SENTRY_TRACE_SAMPLE_RATE", 0))

# Upper bound of live connections held by a single cached handle.
MAX_POOL_SIZE = int(os.environ.get("SQLROWS_MAX_POOL_SIZE", 25))

# Seconds
MYSQL_CONNECT_TIMEOUT = int(os.environ.get("SQLROWS_MYSQL_CONNECT_TIMEOUT", 10))
SQLITE_BUSY_TIMEOUT = float(os.environ.get("SQLROWS_SQLITE_BUSY_TIMEOUT", 5.0))

METRICS_PREFIX = "sqlrows"


def _load_settings(obj: MutableMapping[str, Any] = locals()) -> None:
    """Load settings from the path provided in the SQLROWS_SETTINGS environment
    variable if provided. Users can provide a short name like `test` that will
    be expanded to `settings_test.py` in this package, or they can provide a
    full absolute path such as `/etc/myapp/sqlrows_settings.py`."""

    import importlib
    import importlib.abc
    import importlib.util
    import os

    settings = os.environ.get("SQLROWS_SETTINGS")

    if settings:
        if settings.startswith("/"):
            if not settings.endswith(".py"):
                settings += ".py"

            settings_spec = importlib.util.spec_from_file_location(
                "sqlrows.settings.custom", settings
            )
            assert settings_spec is not None
            settings_module = importlib.util.module_from_spec(settings_spec)
            assert isinstance(settings_spec.loader, importlib.abc.Loader)
            settings_spec.loader.exec_module(settings_module)
        else:
            module_format = (
                ".%s" if settings.startswith("settings_") else ".settings_%s"
            )
            settings_module = importlib.import_module(
                module_format % settings, "sqlrows.settings"
            )

        for attr in dir(settings_module):
            if attr.isupper():
                obj[attr] = getattr(settings_module, attr)


_load_settings()
validate_settings(locals())
