"""
FastAPI router for GST period locks
Project: GST Ledger

Filing a GST return freezes every document dated inside the period:
no edits, no payments, no allocations, no adjustments.
"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Path, Query, status

from gst_ledger.core.deps import CurrentTenant, Ledger
from gst_ledger.schemas.period_lock import DateLockStatus, PeriodLockCreate, PeriodLockRead

# Logger for this module
logger = logging.getLogger(__name__)

# Router with prefix and tag
router = APIRouter(
    prefix="/gst/period-locks",
    tags=["GST"],
)


@router.get(
    "/",
    name="gst_locks_list",
    summary="Filed GST periods",
    response_model=list[PeriodLockRead],
    status_code=status.HTTP_200_OK,
)
async def list_period_locks(ledger: Ledger, ctx: CurrentTenant) -> list[PeriodLockRead]:
    result = await ledger.list_period_locks(ctx)
    return [PeriodLockRead.model_validate(lock) for lock in result.unwrap()]


@router.get(
    "/check",
    name="gst_locks_check",
    summary="Is a date locked",
    response_model=DateLockStatus,
    status_code=status.HTTP_200_OK,
)
async def check_date(
    ledger: Ledger,
    ctx: CurrentTenant,
    day: date = Query(..., description="Date to check (YYYY-MM-DD)"),
) -> DateLockStatus:
    result = await ledger.is_date_locked(ctx, day)
    return DateLockStatus(day=day, is_locked=result.unwrap())


@router.post(
    "/",
    name="gst_locks_file",
    summary="File GST period",
    description="Lock [period_start, period_end]. Periods must not overlap.",
    response_model=PeriodLockRead,
    status_code=status.HTTP_201_CREATED,
)
async def file_gst_period(
    data: PeriodLockCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> PeriodLockRead:
    result = await ledger.file_gst_period(ctx, data.period_start, data.period_end, data.notes)
    return PeriodLockRead.model_validate(result.unwrap())


@router.delete(
    "/{lock_id}",
    name="gst_locks_remove",
    summary="Remove GST period lock",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_period_lock(
    ledger: Ledger,
    ctx: CurrentTenant,
    lock_id: uuid.UUID = Path(..., description="Period lock UUID"),
) -> None:
    result = await ledger.remove_period_lock(ctx, lock_id)
    result.unwrap()
