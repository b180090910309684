"""FastAPI dependency providers for the store, the AI gateway, and settings."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request

from fieldflow.agents.gateway import AIGateway, get_gateway
from fieldflow.config import Settings, get_settings
from fieldflow.db.store import WorkOrderStore
from fieldflow.services.requests import RequestTracker


@lru_cache
def get_settings_dep() -> Settings:
    return get_settings()


def get_raw_store(request: Request) -> WorkOrderStore:
    """The process-wide store, even when its persisted state failed to load."""
    return request.app.state.store


def get_store(request: Request, store: WorkOrderStore = Depends(get_raw_store)) -> WorkOrderStore:
    """The store, refusing service while stored data is corrupt."""
    error = getattr(request.app.state, "storage_error", None)
    if error:
        raise HTTPException(
            503,
            f"Stored work orders could not be loaded ({error}). "
            "POST /api/storage/reset to discard them, or fix the database and restart.",
        )
    return store


def get_tracker(request: Request) -> RequestTracker:
    return request.app.state.tracker


def get_ai_gateway(settings: Settings = Depends(get_settings_dep)) -> AIGateway:
    try:
        return get_gateway(settings)
    except RuntimeError as e:
        raise HTTPException(503, str(e))
