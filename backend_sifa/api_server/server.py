"""
FastAPI server — liveness webhook, mute links and target inspection over the
state store, with the alert scheduler running in the background.

The lifespan builds the application context from env settings (unless one was
passed to create_app), starts the scheduler thread, and on shutdown signals it
to stop and waits for the in-flight cycle with a bounded timeout.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend_sifa import __version__
from backend_sifa.api_server.middleware import log_requests
from backend_sifa.api_server.routes import router
from backend_sifa.config import get_settings
from backend_sifa.context import AppContext, build_context
from backend_sifa.core.exceptions import StoreError, TargetNotFoundError
from backend_sifa.scheduler.runner import start_scheduler_thread, stop_scheduler_thread
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Lifespan: context + background scheduler (never blocks API)
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build context if needed, start the scheduler thread; stop and join it on shutdown."""
    owns_context = app.state.context is None
    if owns_context:
        app.state.context = build_context(get_settings())
    context: AppContext = app.state.context

    thread = stop_event = None
    if app.state.run_scheduler:
        thread, stop_event = start_scheduler_thread(context)
        logger.info("api_scheduler_started", check_schedule=context.settings.check_schedule)

    yield

    if thread is not None:
        stop_scheduler_thread(thread, stop_event)
    if owns_context:
        context.close()
        app.state.context = None


# -----------------------------------------------------------------------------
# Error mapping
# -----------------------------------------------------------------------------


async def _target_not_found(request: Request, exc: TargetNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _store_unavailable(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("api_store_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": "State store unavailable"})


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------


def create_app(context: AppContext | None = None, *, run_scheduler: bool = True) -> FastAPI:
    """
    Build the ASGI app. Pass a context (tests, embedding) to skip env-based
    construction; run_scheduler=False serves the API without evaluation loop.
    """
    app = FastAPI(
        title="Sifa",
        description="Dead man's switch: liveness webhooks, overdue alerts, mute links.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.run_scheduler = run_scheduler
    app.middleware("http")(log_requests)
    app.add_exception_handler(TargetNotFoundError, _target_not_found)
    app.add_exception_handler(StoreError, _store_unavailable)
    app.include_router(router)
    return app


app = create_app()
