"""
FastAPI router for invoices and bills
Project: GST Ledger

Endpoints for the document lifecycle (draft -> sent -> paid | cancelled)
and the read side of the balance: detail with ledger entries, outstanding
list and audit trail.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Path, Query, status

from gst_ledger.core.deps import CurrentTenant, Ledger
from gst_ledger.models import Document
from gst_ledger.models.document import STATUS_DRAFT
from gst_ledger.schemas.document import (
    DocumentCancel,
    DocumentCreate,
    DocumentKind,
    DocumentLinesUpdate,
    DocumentRead,
)
from gst_ledger.schemas.ledger import (
    ActivityRead,
    AdjustmentRead,
    AllocationRead,
    DocumentDetail,
    PaymentRead,
)
from gst_ledger.services.document_service import DocumentView

# Logger for this module
logger = logging.getLogger(__name__)

# Router with prefix and tag
router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
)


def document_read(document: Document, is_locked: Optional[bool] = None) -> DocumentRead:
    """
    Serialise a document with its derived lock flag.

    After a successful mutation the period is known to be open, so the
    flag follows from the status alone unless the caller supplies it.
    """
    if is_locked is None:
        is_locked = document.status != STATUS_DRAFT
    return DocumentRead.model_validate(document).model_copy(update={"is_locked": is_locked})


def document_detail(view: DocumentView) -> DocumentDetail:
    return DocumentDetail.model_validate(view.document).model_copy(
        update={
            "is_locked": view.is_locked,
            "payments": [PaymentRead.model_validate(p) for p in view.payments],
            "allocations": [AllocationRead.model_validate(a) for a in view.allocations],
            "adjustments": [AdjustmentRead.model_validate(a) for a in view.adjustments],
        }
    )


# -------------------------------------------------------------------
# Read endpoints
# -------------------------------------------------------------------

@router.get(
    "/outstanding",
    name="documents_outstanding",
    summary="Outstanding documents",
    description="Sent documents with an amount still due, oldest first.",
    response_model=list[DocumentRead],
    status_code=status.HTTP_200_OK,
)
async def list_outstanding(
    ledger: Ledger,
    ctx: CurrentTenant,
    counterparty_id: Optional[uuid.UUID] = Query(None, description="Filter by counterparty"),
    kind: Optional[DocumentKind] = Query(None, description="invoice or bill"),
) -> list[DocumentRead]:
    result = await ledger.list_outstanding_documents(
        ctx, counterparty_id, kind.value if kind else None
    )
    return [document_read(view.document, view.is_locked) for view in result.unwrap()]


@router.get(
    "/{document_id}",
    name="documents_detail",
    summary="Document detail",
    description="Document with its payments, allocations and adjustments.",
    response_model=DocumentDetail,
    status_code=status.HTTP_200_OK,
)
async def get_document(
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Path(..., description="Document UUID"),
) -> DocumentDetail:
    result = await ledger.get_document(ctx, document_id)
    return document_detail(result.unwrap())


@router.get(
    "/{document_id}/activity",
    name="documents_activity",
    summary="Document audit trail",
    response_model=list[ActivityRead],
    status_code=status.HTTP_200_OK,
)
async def get_document_activity(
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Path(..., description="Document UUID"),
) -> list[ActivityRead]:
    result = await ledger.list_activity(ctx, "document", document_id)
    return [ActivityRead.model_validate(entry) for entry in result.unwrap()]


# -------------------------------------------------------------------
# Lifecycle endpoints
# -------------------------------------------------------------------

@router.post(
    "/",
    name="documents_create",
    summary="Create document",
    description="Create a draft invoice or bill. Totals are computed from the lines.",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    data: DocumentCreate,
    ledger: Ledger,
    ctx: CurrentTenant,
) -> DocumentRead:
    result = await ledger.create_document(ctx, data)
    return document_read(result.unwrap())


@router.put(
    "/{document_id}/lines",
    name="documents_update_lines",
    summary="Replace document lines",
    description="Only drafts outside a filed GST period can be edited.",
    response_model=DocumentRead,
    status_code=status.HTTP_200_OK,
)
async def update_document_lines(
    data: DocumentLinesUpdate,
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Path(..., description="Document UUID"),
) -> DocumentRead:
    result = await ledger.update_document_lines(ctx, document_id, data)
    return document_read(result.unwrap())


@router.post(
    "/{document_id}/send",
    name="documents_send",
    summary="Send document",
    response_model=DocumentRead,
    status_code=status.HTTP_200_OK,
)
async def send_document(
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Path(..., description="Document UUID"),
) -> DocumentRead:
    result = await ledger.send_document(ctx, document_id)
    return document_read(result.unwrap())


@router.post(
    "/{document_id}/cancel",
    name="documents_cancel",
    summary="Cancel document",
    response_model=DocumentRead,
    status_code=status.HTTP_200_OK,
)
async def cancel_document(
    data: DocumentCancel,
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Path(..., description="Document UUID"),
) -> DocumentRead:
    result = await ledger.cancel_document(ctx, document_id, data.reason)
    return document_read(result.unwrap())


@router.delete(
    "/{document_id}",
    name="documents_delete",
    summary="Delete draft document",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_document(
    ledger: Ledger,
    ctx: CurrentTenant,
    document_id: uuid.UUID = Path(..., description="Document UUID"),
) -> None:
    result = await ledger.delete_document(ctx, document_id)
    result.unwrap()
