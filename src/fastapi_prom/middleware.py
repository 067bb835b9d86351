"""
ASGI middleware recording request metrics into a Prom instance.
"""
import logging
from time import perf_counter
from typing import TYPE_CHECKING, Any

from starlette.requests import Request

from .services.route_mapping import scope_path_params

if TYPE_CHECKING:
  from .prom import Prom

log = logging.getLogger(__name__)

ERRCODE_STATE_KEY = "errcode"


def set_errcode(request: Request, errcode: int) -> None:
  """Attach an application return code to the request for the `errcode` label."""
  setattr(request.state, ERRCODE_STATE_KEY, int(errcode))


def get_errcode(scope) -> int:
  value = (scope.get("state") or {}).get(ERRCODE_STATE_KEY, 0)
  if isinstance(value, bool) or not isinstance(value, int):
    return 0
  return value


def compute_request_size(scope) -> int:
  """
  Approximate request size in bytes: path, method, protocol, headers and
  the declared body length.
  """
  size = len(scope.get("path", ""))
  size += len(scope.get("method", ""))
  size += len("HTTP/" + scope.get("http_version", "1.1"))

  content_length = -1
  for name, value in scope.get("headers", []):
    size += len(name) + len(value)
    if name.lower() == b"content-length":
      try:
        content_length = int(value)
      except ValueError:
        content_length = -1
  if content_length > 0:
    size += content_length
  return size


def handler_name(scope) -> str:
  endpoint = scope.get("endpoint")
  if endpoint is None:
    return ""
  target = endpoint if hasattr(endpoint, "__qualname__") else type(endpoint)
  return f"{target.__module__}.{target.__qualname__}"


class PromMiddleware:
  """
  Records one observation per completed HTTP request.

  Exceptions from the wrapped app propagate untouched, and a request that
  fails that way is not recorded.
  """

  def __init__(self, app, prom: "Prom"):
    self.app = app
    self.prom = prom

  async def __call__(self, scope, receive, send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    start = perf_counter()
    request_size = compute_request_size(scope)
    # Shared with request.state in downstream handlers.
    scope.setdefault("state", {})

    status_code = 200
    response_size = 0

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code, response_size
      if message["type"] == "http.response.start":
        status_code = message["status"]
      elif message["type"] == "http.response.body":
        response_size += len(message.get("body", b""))
      await send(message)

    try:
      await self.app(scope, receive, send_wrapper)
    except Exception:
      route_obj = scope.get("route")
      log.exception(
        "request_exception method=%s route=%s duration_ms=%.2f",
        scope.get("method", ""),
        getattr(route_obj, "path", None) or scope.get("path", ""),
        (perf_counter() - start) * 1000.0,
      )
      raise

    elapsed = perf_counter() - start
    url = self.prom.request_url_mapping_fn(scope.get("path", ""),
                                           scope_path_params(scope))
    labels = (str(status_code), str(get_errcode(scope)),
              scope.get("method", ""), url, handler_name(scope))
    self.prom.metric_registry.record(labels, elapsed, request_size,
                                     response_size)
    if status_code >= 500:
      log.error("request_error method=%s route=%s status=%s duration_ms=%.2f",
                labels[2], url, status_code, elapsed * 1000.0)
