"""
Instrumented FastAPI service entry point.
"""
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from pathlib import Path
from dotenv import load_dotenv
import tomllib
import logging
import os

from fastapi_prom import Prom, set_errcode

# Load environment variables from .env file
load_dotenv()


def _find_pyproject(start_path: Path) -> Path | None:
  for parent in [start_path, *start_path.parents]:
    candidate = parent / "pyproject.toml"
    if candidate.is_file():
      return candidate
  return None


def _read_project_version() -> str:
  pyproject = _find_pyproject(Path(__file__).resolve())
  if not pyproject:
    return "0.0.0"
  try:
    with pyproject.open("rb") as handle:
      data = tomllib.load(handle)
    return data.get("project", {}).get("version", "0.0.0")
  except (OSError, tomllib.TOMLDecodeError):
    return "0.0.0"


PROJECT_VERSION = _read_project_version()


from .startup_config import load_settings, validate_startup_configuration

# Settings and their validation come from one snapshot of the environment.
_startup_env = dict(os.environ)
settings = load_settings(_startup_env)
prom = Prom(settings.namespace, settings.subsystem)


@asynccontextmanager
async def lifespan(app: FastAPI):
  """Lifespan event handler for startup/shutdown"""
  log = logging.getLogger(__name__)

  for warning in validate_startup_configuration(_startup_env):
    log.warning("Startup config: %s", warning)

  prom.set_push_gateway(settings.push_gateway_url, settings.push_job_name,
                        settings.push_interval_seconds)

  yield

  await asyncio.to_thread(prom.close)


app = FastAPI(
  title="Instrumented API",
  description="Example service exporting Prometheus request metrics",
  version=PROJECT_VERSION,
  docs_url="/api/docs",
  redoc_url="/api/redoc",
  lifespan=lifespan,
  middleware=[prom.handler()],
)

app.add_api_route("/metrics", prom.metrics(), methods=["GET"],
                  include_in_schema=False)


@app.get("/api/health")
async def health_check():
  """Health check endpoint"""
  return {"status": "healthy", "version": PROJECT_VERSION}


@app.get("/api/version")
async def version_info():
  """Return project version information."""
  return {"version": PROJECT_VERSION, "tag": f"v{PROJECT_VERSION}"}


@app.get("/api/users/{user_id}")
async def get_user(user_id: int, request: Request):
  """Demo route with a path parameter; negative ids report errcode 1."""
  if user_id < 0:
    set_errcode(request, 1)
    raise HTTPException(status_code=400, detail="user_id must be non-negative")
  return {"user_id": user_id}


if __name__ == "__main__":
  import uvicorn
  uvicorn.run("fastapi_prom.web_api.main:app",
              host="127.0.0.1",
              port=8765,
              reload=True)
