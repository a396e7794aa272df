"""HTTP control surface: trigger runs, list and serve reports."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

import uvicorn
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .errors import LoadReportError
from .pipeline import run_all
from .settings import Settings, get_settings
from .storage import list_reports

logger = logging.getLogger(__name__)

REPORTS_PREFIX = "/reports"

RunFn = Callable[[Settings], Any]


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    run_in_progress: bool


class MessageResponse(BaseModel):
    message: str


class ReportEntry(BaseModel):
    """A generated PDF report."""

    name: str
    path: str
    created: datetime


class ReportListResponse(BaseModel):
    reports: list[ReportEntry] | None = None
    message: str | None = None


def _error_response(error: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(error)})


def _run_in_background(lock: threading.Lock, settings: Settings, run: RunFn) -> None:
    try:
        run(settings)
        logger.info("Tests completed via web request")
    except LoadReportError as e:
        logger.error("Test run failed: %s", e)
    except Exception:
        logger.exception("Test run crashed")
    finally:
        lock.release()


# ------------------------------------------------------------------
# FastAPI app
# ------------------------------------------------------------------


def create_app(settings: Settings | None = None, run: RunFn = run_all) -> FastAPI:
    """Build the control API.

    Args:
        settings: Process settings; read from the environment when omitted.
        run: Callable executing a full test run for the given settings.
    """
    settings = settings or get_settings()
    app = FastAPI(title="Load Test Reporter API", version="1.0.0")
    app.state.settings = settings
    app.state.run_lock = threading.Lock()

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error_response(exc)

    @app.get("/health", response_model=HealthResponse)
    def health_check() -> HealthResponse:
        return HealthResponse(status="ok", run_in_progress=app.state.run_lock.locked())

    @app.get("/run-test", response_model=MessageResponse)
    def run_test(background_tasks: BackgroundTasks) -> MessageResponse | JSONResponse:
        """Start a full run in the background and acknowledge immediately."""
        lock: threading.Lock = app.state.run_lock
        if not lock.acquire(blocking=False):
            return JSONResponse(
                status_code=409, content={"error": "A test run is already in progress"}
            )
        try:
            background_tasks.add_task(_run_in_background, lock, settings, run)
        except Exception as e:
            lock.release()
            logger.exception("Could not schedule test run")
            return _error_response(e)
        return MessageResponse(
            message="Tests started. Check the logs for progress and the reports "
            "directory for results."
        )

    @app.get(REPORTS_PREFIX, response_model=ReportListResponse, response_model_exclude_none=True)
    def get_reports() -> ReportListResponse | JSONResponse:
        """List generated PDF reports, newest first."""
        try:
            files = list_reports(settings.output.reports_dir, url_prefix=REPORTS_PREFIX)
        except OSError as e:
            logger.exception("Could not list reports")
            return _error_response(e)
        if files is None:
            return ReportListResponse(message="No reports found")
        return ReportListResponse(
            reports=[ReportEntry(name=f.name, path=f.path, created=f.created) for f in files]
        )

    # Mounted after the listing route so GET /reports keeps matching it
    app.mount(
        REPORTS_PREFIX,
        StaticFiles(directory=settings.output.reports_dir, check_dir=False),
        name="reports",
    )
    return app


# ------------------------------------------------------------------
# Server helpers
# ------------------------------------------------------------------


def run_api_server(settings: Settings) -> None:
    """Run the API server (blocking)."""
    logger.info("Load test server listening on %s:%d", settings.api.host, settings.api.port)
    logger.info("Visit /run-test to start tests and /reports to view available reports")
    uvicorn.run(create_app(settings), host=settings.api.host, port=settings.api.port)
