"""
Route template resolution for the `url` metric label.
"""
from typing import Callable, Optional, Sequence, Tuple

PathParams = Sequence[Tuple[str, str]]
URLMappingFn = Callable[[str, PathParams], str]


def url_mapping(raw_path: str, params: PathParams) -> str:
  """
  Replace matched path parameter values with `:name` placeholders.

  Parameters are applied in the order the router matched them, and each
  one replaces only the first `/<value>` segment it finds, so
  `/users/42/orders/7` with `[("id", "42"), ("orderId", "7")]` becomes
  `/users/:id/orders/:orderId`.
  """
  url = raw_path
  for name, value in params:
    url = url.replace(f"/{value}", f"/:{name}", 1)
  return url


def _raw_segments(scope) -> Optional[dict]:
  route = scope.get("route")
  path_regex = getattr(route, "path_regex", None)
  if path_regex is None:
    return None
  path = scope.get("path", "")
  root_path = scope.get("root_path", "")
  candidates = [path]
  if root_path and path.startswith(root_path):
    candidates.append(path[len(root_path):])
  for candidate in candidates:
    match = path_regex.match(candidate)
    if match:
      return match.groupdict()
  return None


def scope_path_params(scope) -> list[Tuple[str, str]]:
  """
  Matched path parameters of an ASGI scope as ordered (name, value) pairs.

  Values are the literal path segments the route matched, before any
  convertor ran, so `/items/007` on `/items/{id:int}` yields `("id", "007")`.
  Without a matched route the converted `path_params` are used.
  """
  raw = _raw_segments(scope)
  if raw is not None:
    return [(name, value) for name, value in raw.items() if value is not None]
  params = scope.get("path_params") or {}
  return [(str(name), str(value)) for name, value in params.items()]
