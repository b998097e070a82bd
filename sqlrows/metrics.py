"""
Metrics reported by sqlrows.

Counters and gauges go to a ``MetricsBackend``. The library only ships two of
them: ``DummyMetricsBackend``, which drops everything, and
``TestingMetricsBackend``, which records every call so tests can assert on
it. Host applications plug their own backend into
``sqlrows.environment.metrics``.

Metric names reported by the library (all prefixed with
``settings.METRICS_PREFIX``):

* ``pool.connections`` gauge, live connections of a handle
* ``handle_cache.hit`` / ``handle_cache.miss`` counters
* ``reader.query_error`` / ``writer.statement_error`` counters
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import List, Mapping, MutableMapping, Optional, Union

from sqlrows import settings

Tags = Mapping[str, str]

Value = Union[int, float]


class MetricsBackend(ABC):
    @abstractmethod
    def increment(self, name: str, value: Value = 1, tags: Optional[Tags] = None) -> None:
        """Add ``value`` to a counter."""
        raise NotImplementedError

    @abstractmethod
    def gauge(self, name: str, value: Value, tags: Optional[Tags] = None) -> None:
        """Report the current value of a quantity."""
        raise NotImplementedError


class DummyMetricsBackend(MetricsBackend):
    def increment(self, name: str, value: Value = 1, tags: Optional[Tags] = None) -> None:
        pass

    def gauge(self, name: str, value: Value, tags: Optional[Tags] = None) -> None:
        pass


@dataclass(frozen=True)
class RecordedMetricCall:
    value: Value
    tags: Tags


# metric type -> metric name -> calls
RECORDED_METRIC_CALLS: MutableMapping[str, MutableMapping[str, List[RecordedMetricCall]]] = {}


def clear_recorded_metric_calls() -> None:
    RECORDED_METRIC_CALLS.clear()


def get_recorded_metric_calls(
    mtype: str, name: str
) -> Optional[List[RecordedMetricCall]]:
    return RECORDED_METRIC_CALLS.get(mtype, {}).get(name)


class TestingMetricsBackend(MetricsBackend):
    __test__ = False

    def __record(self, mtype: str, name: str, value: Value, tags: Optional[Tags]) -> None:
        RECORDED_METRIC_CALLS.setdefault(mtype, {}).setdefault(name, []).append(
            RecordedMetricCall(value, tags or {})
        )

    def increment(self, name: str, value: Value = 1, tags: Optional[Tags] = None) -> None:
        self.__record("increment", name, value, tags)

    def gauge(self, name: str, value: Value, tags: Optional[Tags] = None) -> None:
        self.__record("gauge", name, value, tags)


class MetricsWrapper(MetricsBackend):
    """
    Reports to ``backend`` with every name prefixed by ``prefix``, so
    ``MetricsWrapper(backend, "pool").gauge("connections", 1)`` reports
    ``pool.connections``. Wrappers nest.
    """

    def __init__(
        self, backend: MetricsBackend, prefix: str, tags: Optional[Tags] = None
    ) -> None:
        self.__backend = backend
        self.__prefix = prefix
        self.__tags = tags or {}

    def __tags_for(self, tags: Optional[Tags]) -> Tags:
        return {**(tags or {}), **self.__tags}

    def increment(self, name: str, value: Value = 1, tags: Optional[Tags] = None) -> None:
        self.__backend.increment(f"{self.__prefix}.{name}", value, self.__tags_for(tags))

    def gauge(self, name: str, value: Value, tags: Optional[Tags] = None) -> None:
        self.__backend.gauge(f"{self.__prefix}.{name}", value, self.__tags_for(tags))


class ThreadSafeGauge:
    """
    A gauge moved up and down by several threads at once, such as the number
    of live connections of a shared handle. Every change is reported, and so
    is the initial zero.
    """

    def __init__(
        self, metrics: MetricsBackend, name: str, tags: Optional[Tags] = None
    ) -> None:
        self.__metrics = metrics
        self.__name = name
        self.__tags = tags
        self.__lock = Lock()
        self.__value = 0.0

        self.__metrics.gauge(self.__name, self.__value, self.__tags)

    @property
    def value(self) -> float:
        return self.__value

    def __move(self, delta: float) -> None:
        with self.__lock:
            self.__value += delta
            self.__metrics.gauge(self.__name, self.__value, self.__tags)

    def increment(self, value: float = 1.0) -> None:
        self.__move(value)

    def decrement(self, value: float = 1.0) -> None:
        self.__move(-value)


def create_metrics() -> MetricsBackend:
    if settings.TESTING:
        return TestingMetricsBackend()
    return DummyMetricsBackend()
