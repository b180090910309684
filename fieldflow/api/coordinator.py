from __future__ import annotations

from fastapi import APIRouter, Depends

from fieldflow.agents.gateway import AIGateway
from fieldflow.dependencies import get_ai_gateway
from fieldflow.schemas import CoordinatorAdvice, CoordinatorInput

router = APIRouter(prefix="/api/coordinator", tags=["coordinator"])


@router.post("", response_model=CoordinatorAdvice)
async def coordinate(body: CoordinatorInput, gateway: AIGateway = Depends(get_ai_gateway)):
    """Advisory only: suggests an action, changes nothing."""
    return await gateway.coordinate(body)
