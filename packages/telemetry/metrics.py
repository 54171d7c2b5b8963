"""In-memory metrics registry for connection and resolution outcomes."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class MetricSample:
    """A single metric observation."""

    name: str
    value: float
    timestamp: float
    kind: str
    tags: Mapping[str, str]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "timestamp": self.timestamp,
            "kind": self.kind,
        }
        if self.tags:
            payload["tags"] = dict(self.tags)
        return payload


@dataclass
class MetricSeries:
    name: str
    kind: str
    description: str | None = None
    samples: list[MetricSample] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(sample.value for sample in self.samples)

    def count_where(self, **tags: str) -> int:
        """Number of samples whose tags include every ``key=value`` given."""

        return sum(
            1
            for sample in self.samples
            if all(sample.tags.get(key) == value for key, value in tags.items())
        )

    def summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {
            "name": self.name,
            "kind": self.kind,
            "count": len(self.samples),
            "total": self.total,
        }
        if self.description:
            summary["description"] = self.description
        if self.samples:
            summary["last"] = self.samples[-1].to_dict()
        return summary


class MetricsRegistry:
    """Thread-safe registry storing metric series in memory."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._series: Dict[str, MetricSeries] = {}

    def emit(
        self,
        name: str,
        value: Any = 1,
        *,
        kind: str | None = None,
        tags: Mapping[str, str] | None = None,
    ) -> MetricSample:
        if not isinstance(name, str) or not name:
            raise ValueError("metric name must be a non-empty string")
        numeric_value = _coerce_value(value)
        catalog = _METRIC_CATALOG.get(name, {})
        metric_kind = kind or catalog.get("kind", "gauge")
        sample = MetricSample(
            name=name,
            value=numeric_value,
            timestamp=time.time(),
            kind=metric_kind,
            tags={str(k): str(v) for k, v in (tags or {}).items()},
        )
        with self._lock:
            series = self._series.get(name)
            if series is None:
                series = MetricSeries(
                    name=name, kind=metric_kind, description=catalog.get("description")
                )
                self._series[name] = series
            series.samples.append(sample)
        return sample

    def get_series(self, name: str) -> MetricSeries | None:
        with self._lock:
            series = self._series.get(name)
            if series is None:
                return None
            return MetricSeries(
                name=series.name,
                kind=series.kind,
                description=series.description,
                samples=list(series.samples),
            )

    def summaries(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {name: series.summary() for name, series in self._series.items()}

    def reset(self) -> None:
        with self._lock:
            self._series.clear()


_METRIC_CATALOG: Dict[str, Dict[str, str]] = {
    "flowtypes.connection.accepted": {
        "kind": "counter",
        "description": "Wires accepted by the connection validator",
    },
    "flowtypes.connection.rejected": {
        "kind": "counter",
        "description": "Wires rejected by the connection validator, tagged by reason",
    },
    "flowtypes.resolution.failed": {
        "kind": "counter",
        "description": "Generic resolutions that failed during a connection attempt",
    },
    "flowtypes.edges.evicted": {
        "kind": "counter",
        "description": "Existing edges removed to make room for a new wire",
    },
}


_REGISTRY = MetricsRegistry()


def emit(
    metric: str,
    value: Any = 1,
    *,
    kind: str | None = None,
    tags: Mapping[str, str] | None = None,
) -> MetricSample:
    """Record ``value`` for ``metric`` in the process-wide registry."""

    return _REGISTRY.emit(metric, value, kind=kind, tags=tags)


def get_registry() -> MetricsRegistry:
    return _REGISTRY


def _coerce_value(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise TypeError(f"metric value for {value!r} must be numeric") from exc
    raise TypeError(f"metric value for {value!r} must be numeric")


__all__ = [
    "MetricSample",
    "MetricSeries",
    "MetricsRegistry",
    "emit",
    "get_registry",
]
