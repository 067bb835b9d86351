"""
Prometheus helper for FastAPI/Starlette applications.
"""
from threading import Lock
from typing import Optional, Sequence

from prometheus_client import (CONTENT_TYPE_LATEST, REGISTRY,
                               CollectorRegistry, generate_latest)
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import Response

from .middleware import PromMiddleware
from .services.push_forwarder import PushForwarder
from .services.route_mapping import URLMappingFn, url_mapping
from .services.runtime_metrics import MetricRegistry


class Prom:
  """
  Request metrics for one application.

  Usage:
    prom = Prom("myapp", "api").set_push_gateway(url, "myjob", 15)
    app = FastAPI(middleware=[prom.handler()])
    app.add_api_route("/metrics", prom.metrics())
  """

  def __init__(self,
               namespace: str,
               subsystem: str,
               metric_names: Optional[Sequence[str]] = None,
               registry: Optional[CollectorRegistry] = None):
    self.namespace = namespace
    self.subsystem = subsystem
    self.registry = registry if registry is not None else REGISTRY
    self.request_url_mapping_fn: URLMappingFn = url_mapping
    self.metric_registry = MetricRegistry(namespace,
                                          subsystem,
                                          names=metric_names,
                                          registry=self.registry)
    self._pusher: Optional[PushForwarder] = None
    self._pusher_lock = Lock()

  @property
  def pusher(self) -> Optional[PushForwarder]:
    return self._pusher

  def set_push_gateway(self, push_target_url: str, push_job_name: str,
                       push_interval: float) -> "Prom":
    """
    Push the registry to a Pushgateway every `push_interval` seconds.

    Push stays disabled when the URL or the job name is empty. Calling this
    again replaces the running forwarder.
    """
    pusher = PushForwarder(self.registry, push_target_url, push_job_name,
                           push_interval)
    with self._pusher_lock:
      previous, self._pusher = self._pusher, pusher
      pusher.start()
    if previous is not None:
      previous.stop()
    return self

  def set_request_url_mapping_fn(self, fn: URLMappingFn) -> "Prom":
    self.request_url_mapping_fn = fn
    return self

  def handler(self) -> Middleware:
    """Middleware entry for `FastAPI(middleware=[...])`."""
    return Middleware(PromMiddleware, prom=self)

  def instrument(self, app) -> "Prom":
    app.add_middleware(PromMiddleware, prom=self)
    return self

  def metrics(self):
    """Endpoint serving the registry in the Prometheus text format."""
    registry = self.registry

    async def metrics_endpoint(request: Request) -> Response:
      return Response(content=generate_latest(registry),
                      media_type=CONTENT_TYPE_LATEST)

    return metrics_endpoint

  def close(self) -> None:
    """Stop the push thread, waiting at most STOP_TIMEOUT_SECONDS for it."""
    with self._pusher_lock:
      pusher, self._pusher = self._pusher, None
    if pusher is not None:
      pusher.stop()
