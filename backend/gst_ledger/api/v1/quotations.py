"""
FastAPI router for quotations
Project: GST Ledger
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Body, Path, Query, status

from gst_ledger.api.v1.documents import document_read
from gst_ledger.core.deps import CurrentTenant, Ledger
from gst_ledger.schemas.document import DocumentRead
from gst_ledger.schemas.quotation import (
    QuotationConvert,
    QuotationCreate,
    QuotationRead,
    QuotationStatus,
    QuotationStatusUpdate,
)

# Logger for this module
logger = logging.getLogger(__name__)

# Router with prefix and tag
router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
)


@router.get(
    "/",
    name="quotations_list",
    summary="List quotations",
    response_model=list[QuotationRead],
    status_code=status.HTTP_200_OK,
)
async def list_quotations(
    ledger: Ledger,
    ctx: CurrentTenant,
    status_filter: Optional[QuotationStatus] = Query(None, alias="status"),
) -> list[QuotationRead]:
    result = await ledger.list_quotations(ctx, status_filter.value if status_filter else None)
    return [QuotationRead.model_validate(q) for q in result.unwrap()]


@router.get(
    "/{quotation_id}",
    name="quotations_detail",
    summary="Quotation detail",
    response_model=QuotationRead,
    status_code=status.HTTP_200_OK,
)
async def get_quotation(
    ledger: Ledger,
    ctx: CurrentTenant,
    quotation_id: uuid.UUID = Path(..., description="Quotation UUID"),
) -> QuotationRead:
    result = await ledger.get_quotation(ctx, quotation_id)
    return QuotationRead.model_validate(result.unwrap())


@router.post(
    "/",
    name="quotations_create",
    summary="Create quotation",
    response_model=QuotationRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_quotation(
    data: QuotationCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> QuotationRead:
    result = await ledger.create_quotation(ctx, data)
    return QuotationRead.model_validate(result.unwrap())


@router.patch(
    "/{quotation_id}/status",
    name="quotations_status",
    summary="Change quotation status",
    response_model=QuotationRead,
    status_code=status.HTTP_200_OK,
)
async def update_quotation_status(
    data: QuotationStatusUpdate,
    ledger: Ledger,
    ctx: CurrentTenant,
    quotation_id: uuid.UUID = Path(..., description="Quotation UUID"),
) -> QuotationRead:
    result = await ledger.update_quotation_status(ctx, quotation_id, data.status.value)
    return QuotationRead.model_validate(result.unwrap())


@router.post(
    "/{quotation_id}/convert",
    name="quotations_convert",
    summary="Convert quotation to invoice",
    description="Create a draft invoice from an accepted quotation.",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def convert_quotation(
    ledger: Ledger,
    ctx: CurrentTenant,
    quotation_id: uuid.UUID = Path(..., description="Quotation UUID"),
    options: Optional[QuotationConvert] = Body(None),
) -> DocumentRead:
    result = await ledger.convert_quotation(ctx, quotation_id, options)
    return document_read(result.unwrap())
