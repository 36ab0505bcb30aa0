"""HTTP entry point: one pipeline run per request."""

import logging
from collections.abc import Callable

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import Settings
from src.pipeline.orchestrator import process_job_alerts
from src.pipeline.runtime import Runtime, build_google_runtime

logger = logging.getLogger(__name__)


def create_app(
    settings_factory: Callable[[], Settings] = Settings.from_env,
    runtime_factory: Callable[[Settings], Runtime] = build_google_runtime,
) -> FastAPI:
    """App with a single route that processes unread job alerts.

    Configuration is read from the environment on every request.
    """
    app = FastAPI(title="LinkedIn Job Alerts", version="0.1.0")

    @app.api_route("/", methods=["GET", "POST"])
    async def process() -> JSONResponse:
        summary = await process_job_alerts(settings_factory, runtime_factory)
        status_code = 200 if summary.success else 500
        return JSONResponse(summary.to_payload(), status_code=status_code)

    return app
