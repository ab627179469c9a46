"""
Service layer for invoices and supplier bills
Project: GST Ledger

Document lifecycle: create a draft with priced lines, edit it while it is
an unlocked draft, send it, cancel it or delete it. Amount fields are only
written through BalanceService.
"""

import datetime
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Type

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import (
    BusinessValidationError,
    LockedDocumentError,
    NotFoundError,
)
from gst_ledger.core.money import ZERO, money_sum, percent_of, to_money
from gst_ledger.models import Adjustment, Allocation, Document, DocumentLine, Payment
from gst_ledger.models.document import (
    KIND_INVOICE,
    PAYMENT_UNPAID,
    STATUS_DRAFT,
)
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.schemas.document import DocumentCreate, DocumentLinesUpdate, LineItemCreate
from gst_ledger.services import status_machine
from gst_ledger.services.activity_service import ActivityService
from gst_ledger.services.balance import BalanceService
from gst_ledger.services.numbering_service import (
    PREFIX_BILL,
    PREFIX_INVOICE,
    NumberingService,
)
from gst_ledger.services.period_lock_service import PeriodLockService
from gst_ledger.services.policy import LedgerPolicy

# Logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    total_amount: Decimal


@dataclass
class DocumentView:
    """Read model: a document, its derived lock flag and its ledger entries."""

    document: Document
    is_locked: bool
    payments: list[Payment] = field(default_factory=list)
    allocations: list[Allocation] = field(default_factory=list)
    adjustments: list[Adjustment] = field(default_factory=list)


# ------------------------------------------------------------
# Pricing helpers (shared with quotations)
# ------------------------------------------------------------
def price_lines(line_cls: Type, items: Iterable[LineItemCreate]) -> tuple[list, LineTotals]:
    """
    Build priced line rows and the document totals.

    Per line:
        subtotal = quantity * unit_price
        discount = subtotal * discount_percent / 100
        tax      = (subtotal - discount) * tax_rate / 100   (0 when tax exempt)
        total    = subtotal - discount + tax

    Args:
        line_cls: DocumentLine or QuotationLine
        items: validated line inputs

    Returns:
        (line rows numbered from 1, totals)
    """
    lines = []
    for number, item in enumerate(items, start=1):
        unit_price = to_money(item.unit_price)
        subtotal = to_money(item.quantity * unit_price)
        discount_amount = percent_of(subtotal, item.discount_percent)
        taxable = subtotal - discount_amount
        tax_amount = ZERO if item.tax_exempt else percent_of(taxable, item.tax_rate)
        lines.append(
            line_cls(
                line_number=number,
                description=item.description,
                quantity=item.quantity,
                unit_price=unit_price,
                discount_percent=item.discount_percent,
                tax_rate=item.tax_rate,
                tax_exempt=item.tax_exempt,
                subtotal=subtotal,
                discount_amount=discount_amount,
                tax_amount=tax_amount,
                total=taxable + tax_amount,
            )
        )

    totals = LineTotals(
        subtotal=money_sum(line.subtotal for line in lines),
        total_discount=money_sum(line.discount_amount for line in lines),
        total_tax=money_sum(line.tax_amount for line in lines),
        total_amount=money_sum(line.total for line in lines),
    )
    return lines, totals


def resolve_currency(policy: LedgerPolicy, currency: Optional[str]) -> str:
    """
    Raises:
        BusinessValidationError: currency is not supported
    """
    code = (currency or policy.default_currency).upper()
    if code not in policy.supported_currencies:
        raise BusinessValidationError(
            f"Currency {code} is not supported "
            f"(supported: {', '.join(policy.supported_currencies)})"
        )
    return code


def counterparty_label(document: Document) -> str:
    return "customer" if document.kind == KIND_INVOICE else "supplier"


class DocumentService:
    """
    Business logic for invoices and supplier bills.

    Every method runs inside the caller's unit of work and never commits.
    """

    def __init__(
        self,
        policy: LedgerPolicy,
        balance: BalanceService,
        period_locks: PeriodLockService,
        numbering: NumberingService,
        activity: ActivityService,
    ) -> None:
        self.policy = policy
        self.balance = balance
        self.period_locks = period_locks
        self.numbering = numbering
        self.activity = activity

    # ------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------
    async def get_for_update(
        self, uow: UnitOfWork, ctx: TenantContext, document_id: uuid.UUID
    ) -> Document:
        """
        Raises:
            NotFoundError: missing or owned by another team
        """
        document = await uow.documents.get(ctx.team_id, document_id, for_update=True)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    async def get_document(
        self, uow: UnitOfWork, ctx: TenantContext, document_id: uuid.UUID
    ) -> DocumentView:
        document = await uow.documents.get(ctx.team_id, document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")

        period_locked = await self.period_locks.is_date_locked(
            uow, ctx.team_id, document.document_date
        )
        return DocumentView(
            document=document,
            is_locked=status_machine.is_locked(document, period_locked),
            payments=await uow.payments.list_for_document(ctx.team_id, document.id),
            allocations=await uow.allocations.list_for_document(ctx.team_id, document.id),
            adjustments=await uow.adjustments.list_for_document(ctx.team_id, document.id),
        )

    async def list_outstanding(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        counterparty_id: Optional[uuid.UUID] = None,
        kind: Optional[str] = None,
    ) -> list[DocumentView]:
        """Open documents (amount due > 0, not cancelled), oldest first."""
        documents = await uow.documents.list_outstanding(ctx.team_id, counterparty_id, kind)
        locks = await uow.period_locks.list(ctx.team_id)
        return [
            DocumentView(
                document=document,
                is_locked=status_machine.is_locked(
                    document, any(lock.covers(document.document_date) for lock in locks)
                ),
            )
            for document in documents
        ]

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------
    async def create_document(
        self, uow: UnitOfWork, ctx: TenantContext, data: DocumentCreate
    ) -> Document:
        """
        Create a draft invoice or supplier bill.

        Raises:
            BusinessValidationError: unsupported currency
            LockedPeriodError: document date inside a filed GST period
        """
        currency = resolve_currency(self.policy, data.currency)
        kind = data.kind.value

        await self.period_locks.enter_mutation(uow, ctx.team_id)
        await self.period_locks.assert_date_open(uow, ctx.team_id, data.document_date)

        lines, totals = price_lines(DocumentLine, data.lines)
        prefix = PREFIX_INVOICE if kind == KIND_INVOICE else PREFIX_BILL
        number = await self.numbering.next_number(uow, ctx.team_id, prefix, data.document_date)

        document = Document(
            team_id=ctx.team_id,
            kind=kind,
            document_number=number,
            counterparty_id=data.counterparty_id,
            document_date=data.document_date,
            due_date=data.due_date,
            currency=currency,
            subtotal=totals.subtotal,
            total_discount=totals.total_discount,
            total_tax=totals.total_tax,
            total_amount=totals.total_amount,
            amount_paid=ZERO,
            amount_due=totals.total_amount,
            status=STATUS_DRAFT,
            payment_status=PAYMENT_UNPAID,
            notes=data.notes,
            created_by=ctx.actor_id,
            lines=lines,
        )
        await uow.documents.add(document)
        await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action=f"{kind}.created",
            entity_type="document",
            entity_id=document.id,
            description=f"Created {kind} {number} for {totals.total_amount} {currency}",
        )
        logger.info("Created %s %s total=%s", kind, number, totals.total_amount)
        return document

    async def update_lines(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        document_id: uuid.UUID,
        data: DocumentLinesUpdate,
    ) -> Document:
        """
        Replace the lines of a draft and recompute its totals.

        Raises:
            NotFoundError: document missing
            LockedPeriodError: document date inside a filed GST period
            LockedDocumentError: document is no longer a draft
            OverAllocationError: money already applied exceeds the new total
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        document = await self.get_for_update(uow, ctx, document_id)
        await self.period_locks.assert_editable(uow, document)

        lines, totals = price_lines(DocumentLine, data.lines)
        document.lines = lines
        document.subtotal = totals.subtotal
        document.total_discount = totals.total_discount
        document.total_tax = totals.total_tax
        document.total_amount = totals.total_amount
        if data.due_date is not None:
            document.due_date = data.due_date
        if data.notes is not None:
            document.notes = data.notes

        await self.balance.refresh(uow, document)
        await self.activity.record(
            uow,
            ctx,
            action=f"{document.kind}.updated",
            entity_type="document",
            entity_id=document.id,
            description=f"Updated lines of {document.document_number}, new total {totals.total_amount}",
        )
        logger.info("Updated %s total=%s", document.document_number, totals.total_amount)
        return document

    async def send_document(
        self, uow: UnitOfWork, ctx: TenantContext, document_id: uuid.UUID
    ) -> Document:
        """
        draft -> sent.

        Raises:
            NotFoundError: document missing
            LockedPeriodError: document date inside a filed GST period
            InvalidTransitionError: not a draft, no lines, or zero total
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        document = await self.get_for_update(uow, ctx, document_id)
        await self.period_locks.assert_date_open(uow, ctx.team_id, document.document_date)

        status_machine.send(document)
        await self.activity.record(
            uow,
            ctx,
            action=f"{document.kind}.sent",
            entity_type="document",
            entity_id=document.id,
            description=f"Sent {document.document_number}",
        )
        logger.info("Sent %s", document.document_number)
        return document

    async def cancel_document(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        document_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> Document:
        """
        Raises:
            NotFoundError: document missing
            LockedPeriodError: document date inside a filed GST period
            InvalidTransitionError: cancellation not allowed in this state
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        document = await self.get_for_update(uow, ctx, document_id)
        await self.period_locks.assert_date_open(uow, ctx.team_id, document.document_date)

        status_machine.cancel(document, self.policy, reason)
        await self.activity.record(
            uow,
            ctx,
            action=f"{document.kind}.cancelled",
            entity_type="document",
            entity_id=document.id,
            description=f"Cancelled {document.document_number}" + (f": {reason}" if reason else ""),
        )
        logger.info("Cancelled %s", document.document_number)
        return document

    async def delete_document(
        self, uow: UnitOfWork, ctx: TenantContext, document_id: uuid.UUID
    ) -> None:
        """
        Delete a draft that carries no ledger entries.

        Raises:
            NotFoundError: document missing
            LockedPeriodError: document date inside a filed GST period
            LockedDocumentError: document is no longer a draft
            BusinessValidationError: payments, allocations or adjustments exist
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        document = await self.get_for_update(uow, ctx, document_id)
        await self.period_locks.assert_date_open(uow, ctx.team_id, document.document_date)

        if document.status != STATUS_DRAFT:
            raise LockedDocumentError(
                f"Only drafts can be deleted, {document.document_number} is '{document.status}'"
            )

        team_id = ctx.team_id
        if (
            await uow.payments.list_for_document(team_id, document.id)
            or await uow.allocations.list_for_document(team_id, document.id)
            or await uow.adjustments.list_for_document(team_id, document.id)
        ):
            raise BusinessValidationError(
                f"Document {document.document_number} has payments, allocations or "
                f"adjustments; reverse them before deleting"
            )

        number = document.document_number
        await uow.documents.delete(document)
        await self.activity.record(
            uow,
            ctx,
            action=f"{document.kind}.deleted",
            entity_type="document",
            entity_id=document_id,
            description=f"Deleted draft {number}",
        )
        logger.info("Deleted draft %s", number)
