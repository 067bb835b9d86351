"""
Startup configuration helpers for the instrumented service.
"""
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

DEFAULT_PUSH_INTERVAL_SECONDS = 15


def _is_truthy(value: str) -> bool:
  return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_interval(raw: str) -> Optional[int]:
  try:
    return int(raw.strip())
  except ValueError:
    return None


@dataclass(frozen=True)
class PromSettings:
  namespace: str
  subsystem: str
  push_gateway_url: str
  push_job_name: str
  push_interval_seconds: int

  @property
  def push_enabled(self) -> bool:
    return bool(self.push_gateway_url and self.push_job_name)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> PromSettings:
  """Read metric settings from `environ` (default os.environ), falling back to defaults."""
  env = os.environ if environ is None else environ
  interval = _parse_interval(
    env.get("PROM_PUSH_INTERVAL_SECONDS",
            str(DEFAULT_PUSH_INTERVAL_SECONDS)))
  if interval is None or interval <= 0:
    interval = DEFAULT_PUSH_INTERVAL_SECONDS

  return PromSettings(
    namespace=env.get("PROM_NAMESPACE", "").strip(),
    subsystem=env.get("PROM_SUBSYSTEM", "").strip(),
    push_gateway_url=env.get("PROM_PUSH_GATEWAY_URL", "").strip(),
    push_job_name=env.get("PROM_PUSH_JOB_NAME", "").strip(),
    push_interval_seconds=interval,
  )


def validate_startup_configuration(
    environ: Optional[Mapping[str, str]] = None) -> List[str]:
  """
  Validate metric settings.

  Returns warnings that should be logged.
  Raises RuntimeError when strict validation is enabled and the push
  configuration is inconsistent.
  """
  env = os.environ if environ is None else environ
  strict = _is_truthy(env.get("PROM_STRICT_STARTUP_CONFIG", "true"))
  errors: List[str] = []
  warnings: List[str] = []

  push_url = env.get("PROM_PUSH_GATEWAY_URL", "").strip()
  push_job = env.get("PROM_PUSH_JOB_NAME", "").strip()
  raw_interval = env.get("PROM_PUSH_INTERVAL_SECONDS", "").strip()

  if bool(push_url) != bool(push_job):
    errors.append(
      "Both PROM_PUSH_GATEWAY_URL and PROM_PUSH_JOB_NAME must be set together to enable push."
    )
  if raw_interval:
    interval = _parse_interval(raw_interval)
    if interval is None or interval <= 0:
      errors.append(
        f"PROM_PUSH_INTERVAL_SECONDS must be a positive integer, got {raw_interval!r}."
      )

  if not env.get("PROM_NAMESPACE", "").strip():
    warnings.append(
      "PROM_NAMESPACE is empty. Metric names will not be prefixed.")

  if strict and errors:
    raise RuntimeError("Startup configuration validation failed: " + " ".join(errors))

  warnings.extend(errors)
  return warnings
