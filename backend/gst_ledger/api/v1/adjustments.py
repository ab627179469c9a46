"""
FastAPI router for balance adjustments
Project: GST Ledger

Credit notes, debit notes, discounts and fees that move a document's
amount due without touching its line totals.
"""

import logging
import uuid

from fastapi import APIRouter, Path, status

from gst_ledger.core.deps import CurrentTenant, Ledger
from gst_ledger.schemas.ledger import AdjustmentCreate, AdjustmentRead

# Logger for this module
logger = logging.getLogger(__name__)

# Router with prefix and tag
router = APIRouter(
    prefix="/adjustments",
    tags=["Adjustments"],
)


@router.post(
    "/",
    name="adjustments_create",
    summary="Create adjustment",
    response_model=AdjustmentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_adjustment(
    data: AdjustmentCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> AdjustmentRead:
    result = await ledger.create_adjustment(
        ctx,
        document_id=data.document_id,
        adjustment_type=data.adjustment_type.value,
        amount=data.amount,
        description=data.description,
        adjustment_date=data.adjustment_date,
        reference_number=data.reference_number,
    )
    return AdjustmentRead.model_validate(result.unwrap())


@router.delete(
    "/{adjustment_id}",
    name="adjustments_delete",
    summary="Delete adjustment",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_adjustment(
    ledger: Ledger,
    ctx: CurrentTenant,
    adjustment_id: uuid.UUID = Path(..., description="Adjustment UUID"),
) -> None:
    result = await ledger.delete_adjustment(ctx, adjustment_id)
    result.unwrap()
