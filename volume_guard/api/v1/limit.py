"""POST /v1/limit - Update the daily limit without a restart"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from volume_guard.api.dependencies import get_guard, get_request_id, verify_gateway
from volume_guard.api.v1.schemas import LimitUpdateRequest, LimitUpdateResponse
from volume_guard.domain.exceptions import ConfigurationError
from volume_guard.services.guard import VolumeGuard

router = APIRouter()


@router.post("/limit", response_model=LimitUpdateResponse, dependencies=[Depends(verify_gateway)])
async def update_limit(
    request_body: LimitUpdateRequest,
    request: Request,
    guard: VolumeGuard = Depends(get_guard),
):
    """Replace the daily limit; the next evaluation tick reads the new value"""
    try:
        config = guard.update_daily_limit(request_body.new_limit)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logging.info(
        f"Daily limit updated via API to {config.daily_limit}",
        extra={"request_id": get_request_id(request)},
    )
    return LimitUpdateResponse(success=True, new_limit=float(config.daily_limit))
