"""
Periodic best-effort push of a metric registry to a Prometheus Pushgateway.
"""
import logging
import socket
import threading
from typing import Callable, Optional

from prometheus_client import CollectorRegistry, pushadd_to_gateway

log = logging.getLogger(__name__)

PushFn = Callable[..., None]

PUSH_TIMEOUT_SECONDS = 10.0
STOP_TIMEOUT_SECONDS = 1.0


def local_hostname() -> str:
  """Hostname for the `instance` grouping key; empty when lookup fails."""
  try:
    return socket.gethostname()
  except OSError:
    return ""


class PushForwarder:
  """
  Pushes `registry` to `target_url` under `job_name` every `interval` seconds.

  The forwarder is disabled when either the target URL or the job name is
  empty; `start()` then does nothing. Push failures are dropped.
  """

  def __init__(self,
               registry: CollectorRegistry,
               target_url: str,
               job_name: str,
               interval: float,
               push_fn: PushFn = pushadd_to_gateway,
               push_timeout: float = PUSH_TIMEOUT_SECONDS):
    self.registry = registry
    self.target_url = target_url
    self.job_name = job_name
    self.interval = interval
    self._push_fn = push_fn
    self.push_timeout = push_timeout
    self._stopped = threading.Event()
    self._thread: Optional[threading.Thread] = None

    if self.enabled and interval <= 0:
      raise ValueError(f"Push interval must be positive, got {interval}")

  @property
  def enabled(self) -> bool:
    return bool(self.target_url) and bool(self.job_name)

  @property
  def running(self) -> bool:
    return self._thread is not None and self._thread.is_alive()

  def start(self) -> bool:
    """Spawn the push thread. Returns False when push is disabled."""
    if not self.enabled:
      log.debug("push_disabled target_url=%r job=%r", self.target_url,
                self.job_name)
      return False
    if self._thread is not None:
      return True

    grouping_key = {"instance": local_hostname()}
    self._thread = threading.Thread(target=self._run,
                                    args=(grouping_key, ),
                                    name=f"prom-push-{self.job_name}",
                                    daemon=True)
    self._thread.start()
    log.info("push_started target_url=%s job=%s interval=%s",
             self.target_url, self.job_name, self.interval)
    return True

  def stop(self, timeout: Optional[float] = STOP_TIMEOUT_SECONDS) -> None:
    """
    Signal the push thread to exit and wait up to `timeout` seconds for it.

    A push already in flight is not interrupted; the daemon thread finishes
    it in the background and then exits.
    """
    self._stopped.set()
    if self._thread is not None:
      self._thread.join(timeout)

  def push_once(self, grouping_key: dict) -> None:
    try:
      self._push_fn(self.target_url,
                    job=self.job_name,
                    registry=self.registry,
                    grouping_key=grouping_key,
                    timeout=self.push_timeout)
    except Exception:
      log.debug("push_failed target_url=%s job=%s",
                self.target_url,
                self.job_name,
                exc_info=True)

  def _run(self, grouping_key: dict) -> None:
    while not self._stopped.wait(self.interval):
      self.push_once(grouping_key)
