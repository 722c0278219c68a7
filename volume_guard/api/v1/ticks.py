"""POST /v1/ticks - Run one evaluation tick on demand"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from volume_guard.api.dependencies import get_guard, get_request_id, verify_gateway
from volume_guard.api.v1.schemas import TickSummaryResponse
from volume_guard.domain.exceptions import InvoiceStoreError, TickInProgressError
from volume_guard.services.guard import VolumeGuard

router = APIRouter()


@router.post("/ticks", response_model=TickSummaryResponse, dependencies=[Depends(verify_gateway)])
async def run_tick(request: Request, guard: VolumeGuard = Depends(get_guard)):
    """
    Evaluate the limit now and reschedule if breached.

    Honors the configured dry-run flag, so this is safe to rehearse with DRY_RUN=true.
    """
    request_id = get_request_id(request)
    try:
        summary = await guard.run_tick(raise_if_busy=True)
    except TickInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvoiceStoreError as e:
        logging.error(f"Tick failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Stripe unavailable")

    return TickSummaryResponse.from_summary(summary)
