"""GET /v1/stats - Current volume and reschedule counters"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from volume_guard.api.dependencies import get_guard, get_request_id, verify_gateway
from volume_guard.api.v1.schemas import StatsResponse, TickSummaryResponse
from volume_guard.domain.exceptions import InvoiceStoreError
from volume_guard.services.guard import VolumeGuard

router = APIRouter()


@router.get("/stats", response_model=StatsResponse, dependencies=[Depends(verify_gateway)])
async def get_stats(request: Request, guard: VolumeGuard = Depends(get_guard)):
    """Live gross volume for today plus the worker's own counters"""
    try:
        gross_volume = await guard.current_gross_volume()
    except InvoiceStoreError as e:
        logging.error(f"Stats collection failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Stripe unavailable")

    config = guard.config
    return StatsResponse(
        gross_volume=float(gross_volume),
        currency=config.currency,
        current_daily_limit=float(config.daily_limit),
        rescheduled_today=guard.rescheduled_today,
        notified_today=guard.notified_today,
        last_tick=TickSummaryResponse.from_summary(guard.last_summary) if guard.last_summary else None,
    )
