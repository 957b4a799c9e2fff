"""Prometheus Pushgateway access."""

from upsetter.pushgateway.client import Pushgateway
from upsetter.pushgateway.groups import Metric, Metrics, MetricsGroup, PushgatewayError

__all__ = ["Pushgateway", "Metric", "Metrics", "MetricsGroup", "PushgatewayError"]
