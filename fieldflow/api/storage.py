from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from fieldflow.db.store import WorkOrderStore
from fieldflow.dependencies import get_raw_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/storage", tags=["storage"])


@router.post("/reset")
async def reset_storage(request: Request, store: WorkOrderStore = Depends(get_raw_store)):
    """Discard every stored work order. Also clears a corrupt-storage lockout."""
    discarded = len(store)
    await store.reset()
    request.app.state.storage_error = None
    logger.warning(f"Storage reset; discarded {discarded} loaded work order(s)")
    return {"ok": True, "discarded": discarded}
