from types import SimpleNamespace

from starlette.routing import compile_path

from fastapi_prom.services.route_mapping import scope_path_params, url_mapping


def test_url_mapping_replaces_params_in_match_order():
  assert url_mapping("/users/42/orders/7",
                     [("id", "42"), ("orderId", "7")]) == "/users/:id/orders/:orderId"


def test_url_mapping_without_params_keeps_raw_path():
  assert url_mapping("/users/42", []) == "/users/42"


def test_url_mapping_replaces_only_first_occurrence():
  assert url_mapping("/items/5/copies/5", [("id", "5")]) == "/items/:id/copies/5"


def test_url_mapping_same_value_for_two_params():
  assert url_mapping("/a/1/b/1", [("x", "1"), ("y", "1")]) == "/a/:x/b/:y"


def test_scope_path_params_stringifies_values():
  scope = {"path_params": {"user_id": 42, "slug": "abc"}}
  assert scope_path_params(scope) == [("user_id", "42"), ("slug", "abc")]


def test_scope_path_params_missing():
  assert scope_path_params({}) == []


def _route(path):
  path_regex, _, _ = compile_path(path)
  return SimpleNamespace(path=path, path_regex=path_regex)


def test_scope_path_params_prefers_raw_segments():
  scope = {
    "route": _route("/items/{id:int}/price/{v:float}"),
    "path": "/items/007/price/1.50",
    "path_params": {"id": 7, "v": 1.5},
  }
  assert scope_path_params(scope) == [("id", "007"), ("v", "1.50")]
  assert url_mapping(scope["path"],
                     scope_path_params(scope)) == "/items/:id/price/:v"


def test_scope_path_params_strips_root_path():
  scope = {
    "route": _route("/items/{id:int}"),
    "path": "/api/items/007",
    "root_path": "/api",
    "path_params": {"id": 7},
  }
  assert scope_path_params(scope) == [("id", "007")]
