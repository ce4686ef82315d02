from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from shudenout.api import get_breaker_registry
from shudenout.models.schemas import BreakerResetRequest, BreakerResetResponse
from shudenout.storage.breaker_registry import BreakerRegistry

router = APIRouter()


@router.get("/breakers")
def list_breakers(registry: BreakerRegistry = Depends(get_breaker_registry)) -> dict:
    return {"breakers": registry.states()}


@router.post("/breakers/reset", response_model=BreakerResetResponse)
def reset_breakers(
    payload: Optional[BreakerResetRequest] = Body(None),
    registry: BreakerRegistry = Depends(get_breaker_registry),
) -> BreakerResetResponse:
    name = payload.name if payload else None
    if name:
        if not registry.reset(name):
            raise HTTPException(status_code=404, detail=f"Unknown breaker: {name}")
        reset = [name]
    else:
        reset = registry.reset_all()
    return BreakerResetResponse(reset=reset, breakers=registry.states())
