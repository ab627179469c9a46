"""
FastAPI router for payments
Project: GST Ledger
"""

import logging
import uuid

from fastapi import APIRouter, Path, Query, status

from gst_ledger.api.v1.advances import advance_detail
from gst_ledger.core.deps import CurrentTenant, Ledger
from gst_ledger.schemas.ledger import AdvanceDetail, PaymentCreate, PaymentRead, ReceiptCreate

# Logger for this module
logger = logging.getLogger(__name__)

# Router with prefix and tag
router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)


@router.get(
    "/",
    name="payments_list",
    summary="Payments of a document",
    response_model=list[PaymentRead],
    status_code=status.HTTP_200_OK,
)
async def list_payments(
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Query(..., description="Document UUID"),
) -> list[PaymentRead]:
    result = await ledger.list_payments(ctx, document_id)
    return [PaymentRead.model_validate(p) for p in result.unwrap()]


@router.post(
    "/",
    name="payments_create",
    summary="Record payment",
    description=(
        "Record a direct payment against a sent document. "
        "The document balance is recomputed in the same transaction."
    ),
    response_model=PaymentRead,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    data: PaymentCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> PaymentRead:
    result = await ledger.record_payment(
        ctx,
        document_id=data.document_id,
        amount=data.amount,
        payment_date=data.payment_date,
        method=data.method.value,
        reference_number=data.reference_number,
        notes=data.notes,
    )
    return PaymentRead.model_validate(result.unwrap())


@router.post(
    "/receipts",
    name="payments_receipt",
    summary="Record receipt across documents",
    description=(
        "Record one receipt and split it across several documents of the same "
        "counterparty. Splits may total less than the receipt; the remainder "
        "stays unallocated and can be applied later like an advance."
    ),
    response_model=AdvanceDetail,
    status_code=status.HTTP_201_CREATED,
)
async def record_receipt(
    data: ReceiptCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> AdvanceDetail:
    result = await ledger.record_receipt(ctx, data)
    return advance_detail(result.unwrap())


@router.delete(
    "/{payment_id}",
    name="payments_delete",
    summary="Delete payment",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_payment(
    ledger: Ledger,
    ctx: CurrentTenant,
    payment_id: uuid.UUID = Path(..., description="Payment UUID"),
) -> None:
    result = await ledger.delete_payment(ctx, payment_id)
    result.unwrap()
