"""
Prometheus request metric series.
"""
from typing import NamedTuple, Optional, Sequence

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Summary

LABEL_NAMES = ("code", "errcode", "method", "url", "handler")


class LabelSet(NamedTuple):
  """Identity of one time series in every request metric."""
  code: str
  errcode: str
  method: str
  url: str
  handler: str


class MetricNames(NamedTuple):
  request_total: str = "http_request_total"
  request_duration: str = "http_request_duration_seconds"
  request_size: str = "http_request_size_bytes"
  response_size: str = "http_response_size_bytes"


DEFAULT_METRIC_NAMES = MetricNames()


def _resolve_names(names: Optional[Sequence[str]]) -> MetricNames:
  if names is None:
    return DEFAULT_METRIC_NAMES
  names = tuple(names)
  if len(names) != len(MetricNames._fields):
    raise ValueError(
      f"Expected {len(MetricNames._fields)} metric names, got {len(names)}")
  return MetricNames(*names)


class MetricRegistry:
  """
  Request counter and latency/size summaries, partitioned by LABEL_NAMES.

  All four series are registered into `registry` on construction. A name
  that is already registered raises ValueError from prometheus_client and
  is left to propagate.
  """

  def __init__(self,
               namespace: str,
               subsystem: str,
               names: Optional[Sequence[str]] = None,
               registry: CollectorRegistry = REGISTRY):
    self.names = _resolve_names(names)
    self.registry = registry
    common = dict(namespace=namespace,
                  subsystem=subsystem,
                  labelnames=LABEL_NAMES,
                  registry=registry)

    self.request_total = Counter(
      self.names.request_total,
      "How many HTTP requests processed, partitioned by status code and HTTP method.",
      **common)
    self.request_duration = Summary(
      self.names.request_duration,
      "The HTTP request latencies in seconds.",
      **common)
    self.request_size = Summary(
      self.names.request_size,
      "The HTTP request sizes in bytes.",
      **common)
    self.response_size = Summary(
      self.names.response_size,
      "The HTTP response sizes in bytes.",
      **common)

  def record(self, labels: Sequence[str], elapsed_seconds: float,
             request_bytes: float, response_bytes: float) -> None:
    """Record one completed request."""
    labels = tuple(labels)
    self.request_total.labels(*labels).inc()
    self.request_size.labels(*labels).observe(request_bytes)
    self.response_size.labels(*labels).observe(response_bytes)
    self.request_duration.labels(*labels).observe(elapsed_seconds)
