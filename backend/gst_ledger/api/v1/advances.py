"""
FastAPI router for advances and allocations
Project: GST Ledger

An advance is money received from a customer (or paid to a supplier)
before the matching documents exist. Its remainder is spread over
invoices or bills with an all-or-nothing allocation request.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Path, Query, status

from gst_ledger.core.deps import CurrentTenant, Ledger
from gst_ledger.schemas.ledger import (
    AdvanceCreate,
    AdvanceDetail,
    AdvanceDirection,
    AdvanceRead,
    AllocationRead,
    AllocationRequest,
)
from gst_ledger.services.advance_service import AdvanceView

# Logger for this module
logger = logging.getLogger(__name__)

# Router with prefix and tag
router = APIRouter(
    prefix="/advances",
    tags=["Advances"],
)


def advance_detail(view: AdvanceView) -> AdvanceDetail:
    return AdvanceDetail.model_validate(view.advance).model_copy(
        update={"allocations": [AllocationRead.model_validate(a) for a in view.allocations]}
    )


# -------------------------------------------------------------------
# Advances
# -------------------------------------------------------------------

@router.get(
    "/",
    name="advances_list",
    summary="List advances",
    response_model=list[AdvanceRead],
    status_code=status.HTTP_200_OK,
)
async def list_advances(
    ledger: Ledger,
    ctx: CurrentTenant,
    counterparty_id: Optional[uuid.UUID] = Query(None, description="Filter by counterparty"),
    direction: Optional[AdvanceDirection] = Query(None, description="customer or supplier"),
) -> list[AdvanceRead]:
    result = await ledger.list_advances(
        ctx, counterparty_id, direction.value if direction else None
    )
    return [AdvanceRead.model_validate(a) for a in result.unwrap()]


@router.get(
    "/{advance_id}",
    name="advances_detail",
    summary="Advance detail",
    description="Advance with its active allocations.",
    response_model=AdvanceDetail,
    status_code=status.HTTP_200_OK,
)
async def get_advance(
    ledger: Ledger,
    ctx: CurrentTenant,
    advance_id: uuid.UUID = Path(..., description="Advance UUID"),
) -> AdvanceDetail:
    return advance_detail((await ledger.get_advance(ctx, advance_id)).unwrap())


@router.post(
    "/",
    name="advances_create",
    summary="Record advance",
    response_model=AdvanceRead,
    status_code=status.HTTP_201_CREATED,
)
async def record_advance(
    data: AdvanceCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> AdvanceRead:
    result = await ledger.record_advance(
        ctx,
        counterparty_id=data.counterparty_id,
        amount=data.amount,
        advance_date=data.advance_date,
        direction=data.direction.value,
        currency=data.currency,
        method=data.method.value,
        reference_number=data.reference_number,
        notes=data.notes,
    )
    return AdvanceRead.model_validate(result.unwrap())


@router.delete(
    "/{advance_id}",
    name="advances_delete",
    summary="Delete advance",
    description=(
        "Delete an advance. With allocations still active the request is "
        "refused unless reverse_allocations is set."
    ),
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_advance(
    ledger: Ledger,
    ctx: CurrentTenant,
    advance_id: uuid.UUID = Path(..., description="Advance UUID"),
    reverse_allocations: bool = Query(False, description="Reverse active allocations first"),
) -> None:
    result = await ledger.delete_advance(ctx, advance_id, reverse_allocations)
    result.unwrap()


# -------------------------------------------------------------------
# Allocations
# -------------------------------------------------------------------

@router.post(
    "/{advance_id}/allocations",
    name="advances_allocate",
    summary="Allocate advance",
    description=(
        "Apply the advance remainder to one or more documents. "
        "Either every allocation is applied or none is."
    ),
    response_model=list[AllocationRead],
    status_code=status.HTTP_201_CREATED,
)
async def allocate_advance(
    data: AllocationRequest,
    ledger: Ledger,
    ctx: CurrentTenant,
    advance_id: uuid.UUID = Path(..., description="Advance UUID"),
) -> list[AllocationRead]:
    result = await ledger.allocate_advance(ctx, advance_id, data.allocations)
    return [AllocationRead.model_validate(a) for a in result.unwrap()]


@router.delete(
    "/allocations/{allocation_id}",
    name="advances_reverse_allocation",
    summary="Reverse allocation",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def reverse_allocation(
    ledger: Ledger,
    ctx: CurrentTenant,
    allocation_id: uuid.UUID = Path(..., description="Allocation UUID"),
) -> None:
    result = await ledger.reverse_allocation(ctx, allocation_id)
    result.unwrap()
