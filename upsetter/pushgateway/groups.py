"""Metrics groups as returned by the Pushgateway Query API.

See https://github.com/prometheus/pushgateway#query-api
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from upsetter.tracking.reconciler import Observation

# Metrics the Pushgateway rewrites itself whenever a group is pushed to.
BOOKKEEPING_METRICS = ("up", "push_time_seconds", "push_failure_time_seconds")

_FRACTION = re.compile(r"(\.\d{6})\d+")
_RFC3339 = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)


class PushgatewayError(Exception):
    """Raised for unexpected Pushgateway responses or payloads."""


@dataclass
class Metric:
    timestamp: datetime


class Metrics(dict[str, Metric]):
    """Metric name -> Metric map of a single group."""

    def without(self, *names: str) -> "Metrics":
        """Return a copy with the named metrics removed."""
        return Metrics({name: m for name, m in self.items() if name not in names})

    def min_timestamp(self) -> datetime | None:
        if not self:
            return None
        return min(m.timestamp for m in self.values())

    def max_timestamp(self) -> datetime | None:
        if not self:
            return None
        return max(m.timestamp for m in self.values())


@dataclass
class MetricsGroup:
    labels: dict[str, str]
    metrics: Metrics = field(default_factory=Metrics)

    def key(self, primary_label: str = "job") -> str:
        """Return a path of label names and values, primary label first.

        Usable as the grouping key part of Pushgateway URLs, e.g.
        ``job/foo/instance/bar``.
        """
        # TODO: emit the label@base64 form for values containing "/".
        if primary_label not in self.labels:
            raise ValueError(f"Missing {primary_label} label: {self.labels}")
        parts = [primary_label, self.labels[primary_label]]
        for name in sorted(n for n in self.labels if n != primary_label):
            parts.extend((name, self.labels[name]))
        return "/".join(parts)

    def label_names_match(self, *names: str) -> bool:
        """True if the group has exactly the given label names."""
        return set(self.labels) == set(names)

    def observe(
        self,
        primary_label: str = "job",
        ignored_metrics: tuple[str, ...] = BOOKKEEPING_METRICS,
    ) -> Observation:
        """Reduce the group to what the reconciler needs for one tick."""
        return Observation(
            key=self.key(primary_label) if primary_label in self.labels else None,
            label_names=frozenset(self.labels),
            timestamp=self.metrics.without(*ignored_metrics).min_timestamp(),
            last_activity=self.metrics.max_timestamp(),
        )


def parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 time_stamp, truncating sub-microsecond digits."""
    if not isinstance(value, str):
        raise PushgatewayError(f"Invalid time_stamp attribute: {value!r}")
    if not _RFC3339.fullmatch(value):
        raise PushgatewayError(f"Invalid time_stamp attribute: {value!r}")
    try:
        ts = datetime.fromisoformat(_FRACTION.sub(r"\1", value).upper().replace("Z", "+00:00"))
    except ValueError as e:
        raise PushgatewayError(f"Invalid time_stamp attribute: {value!r}") from e
    if ts.tzinfo is None:
        raise PushgatewayError(f"time_stamp without UTC offset: {value!r}")
    return ts


def parse_metrics_groups(data: Any) -> list[MetricsGroup]:
    """Dig the metrics groups out of a decoded Query API response."""
    if not isinstance(data, dict) or not isinstance(data.get("status"), str):
        raise PushgatewayError(f"Invalid status attribute: {data!r:.100}")
    if data["status"] != "success":
        raise PushgatewayError(f"Status attribute: {data['status']}")
    items = data.get("data")
    if not isinstance(items, list):
        raise PushgatewayError(f"Invalid data attribute: {items!r:.100}")
    groups = []
    for item in items:
        if not isinstance(item, dict):
            raise PushgatewayError(f"Invalid data array item: {item!r:.100}")
        groups.append(_parse_group(item))
    return groups


def _parse_group(item: dict) -> MetricsGroup:
    labels: dict[str, str] = {}
    metrics = Metrics()
    for name, value in item.items():
        if not isinstance(value, dict):
            continue
        if name == "labels":
            labels = _parse_labels(value)
        else:
            metrics[name] = Metric(timestamp=parse_timestamp(value.get("time_stamp")))
    return MetricsGroup(labels=labels, metrics=metrics)


def _parse_labels(value: dict) -> dict[str, str]:
    if not all(isinstance(v, str) for v in value.values()):
        raise PushgatewayError(f"Invalid labels object: {value!r}")
    return dict(value)
