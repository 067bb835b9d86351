"""
Tests for the instrumented reference service.
"""
import pytest
from fastapi.testclient import TestClient

from fastapi_prom.services.runtime_metrics import LABEL_NAMES
from fastapi_prom.web_api import main


@pytest.fixture
def client():
  with TestClient(main.app) as test_client:
    yield test_client


def _counter_name() -> str:
  parts = [main.settings.namespace, main.settings.subsystem, "http_request"]
  return "_".join(part for part in parts if part) + "_total"


def _count(code, errcode, url, handler) -> float:
  labels = dict(zip(LABEL_NAMES, (code, errcode, "GET", url, handler)))
  value = main.prom.registry.get_sample_value(_counter_name(), labels)
  return value or 0.0


def test_health_check(client):
  response = client.get("/api/health")
  assert response.status_code == 200
  data = response.json()
  assert data["status"] == "healthy"
  assert "version" in data


def test_version_endpoint(client):
  response = client.get("/api/version")
  assert response.status_code == 200
  data = response.json()
  assert data["tag"] == f"v{data['version']}"


def test_user_route_recorded_as_template(client):
  handler = "fastapi_prom.web_api.main.get_user"
  before = _count("200", "0", "/api/users/:user_id", handler)

  response = client.get("/api/users/42")
  assert response.status_code == 200
  assert _count("200", "0", "/api/users/:user_id", handler) == before + 1


def test_negative_user_reports_errcode(client):
  handler = "fastapi_prom.web_api.main.get_user"
  before = _count("400", "1", "/api/users/:user_id", handler)

  response = client.get("/api/users/-1")
  assert response.status_code == 400
  assert _count("400", "1", "/api/users/:user_id", handler) == before + 1


def test_metrics_endpoint(client):
  client.get("/api/health")
  response = client.get("/metrics")
  assert response.status_code == 200
  assert _counter_name() in response.text


def test_push_disabled_without_gateway(client):
  assert main.prom.pusher is not None
  assert main.prom.pusher.running is False


def test_settings_match_validated_environment():
  assert main.load_settings(main._startup_env) == main.settings
