"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fieldflow.api.router import api_router
from fieldflow.config import get_settings
from fieldflow.errors import (
    DuplicateIdError, GatewayError, GatewayTimeoutError, NotFoundError, PersistenceError,
    RequestInFlightError, StaleRequestError, ValidationError,
)
from fieldflow.services.calendar import get_calendar_tz
from fieldflow.services.requests import RequestTracker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from fieldflow.db.backends import SqlSlotBackend
    from fieldflow.db.engine import async_session_factory, create_tables, engine
    from fieldflow.db.store import WorkOrderStore

    settings = get_settings()
    await create_tables()

    backend = SqlSlotBackend(async_session_factory, settings.storage.slot)
    store = WorkOrderStore(backend, tz=get_calendar_tz(settings.calendar.timezone))
    app.state.storage_error = None
    try:
        await store.load(on_corrupt=settings.storage.on_corrupt)
    except PersistenceError as e:
        # Keep serving so the user can reset storage from the API.
        logger.error(f"Work orders unavailable: {e}")
        app.state.storage_error = str(e)

    app.state.store = store
    app.state.tracker = RequestTracker()
    yield
    await engine.dispose()


app = FastAPI(
    title="FieldFlow",
    description="Work orders for field-service jobs, with AI voice intake, job analysis, and invoice drafting.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


# ── Error mapping ────────────────────────────────────────

@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.as_dicts()})


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DuplicateIdError)
@app.exception_handler(RequestInFlightError)
@app.exception_handler(StaleRequestError)
async def _conflict(request: Request, exc: Exception):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(GatewayError)
async def _gateway_error(request: Request, exc: GatewayError):
    if isinstance(exc, GatewayTimeoutError):
        return JSONResponse(status_code=504, content={"detail": str(exc)})
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def _persistence_error(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=503, content={"detail": str(exc), "actions": ["retry", "reset"]})


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Something went wrong. Try again, or reset stored data.", "actions": ["retry", "reset"]},
    )


@app.get("/health")
async def health(request: Request):
    error = getattr(request.app.state, "storage_error", None)
    return {"status": "degraded" if error else "ok", "storageError": error}
