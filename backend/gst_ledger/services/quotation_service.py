"""
Service layer for quotations
Project: GST Ledger

Quotations have no money ledger. An accepted quotation converts into a
new draft invoice whose balance starts from scratch.
"""

import datetime
import logging
import uuid
from typing import Optional

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import InvalidTransitionError, NotFoundError
from gst_ledger.models import Document, Quotation, QuotationLine
from gst_ledger.models.quotation import QUOTE_ACCEPTED, QUOTE_CONVERTED, QUOTE_DRAFT
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.schemas.document import DocumentCreate, DocumentKind, LineItemCreate
from gst_ledger.schemas.quotation import QuotationConvert, QuotationCreate
from gst_ledger.services import status_machine
from gst_ledger.services.activity_service import ActivityService
from gst_ledger.services.document_service import DocumentService, price_lines, resolve_currency
from gst_ledger.services.numbering_service import PREFIX_QUOTATION, NumberingService
from gst_ledger.services.policy import LedgerPolicy

# Logger for this module
logger = logging.getLogger(__name__)


class QuotationService:

    def __init__(
        self,
        policy: LedgerPolicy,
        documents: DocumentService,
        numbering: NumberingService,
        activity: ActivityService,
    ) -> None:
        self.policy = policy
        self.documents = documents
        self.numbering = numbering
        self.activity = activity

    async def _get(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        quotation_id: uuid.UUID,
        for_update: bool = False,
    ) -> Quotation:
        quotation = await uow.quotations.get(ctx.team_id, quotation_id, for_update=for_update)
        if quotation is None:
            raise NotFoundError(f"Quotation {quotation_id} not found")
        return quotation

    async def get_quotation(
        self, uow: UnitOfWork, ctx: TenantContext, quotation_id: uuid.UUID
    ) -> Quotation:
        return await self._get(uow, ctx, quotation_id)

    async def list_quotations(
        self, uow: UnitOfWork, ctx: TenantContext, status: Optional[str] = None
    ) -> list[Quotation]:
        return await uow.quotations.list(ctx.team_id, status)

    async def create_quotation(
        self, uow: UnitOfWork, ctx: TenantContext, data: QuotationCreate
    ) -> Quotation:
        currency = resolve_currency(self.policy, data.currency)
        lines, totals = price_lines(QuotationLine, data.lines)
        number = await self.numbering.next_number(
            uow, ctx.team_id, PREFIX_QUOTATION, data.quotation_date
        )

        quotation = Quotation(
            team_id=ctx.team_id,
            quotation_number=number,
            counterparty_id=data.counterparty_id,
            quotation_date=data.quotation_date,
            valid_until=data.valid_until,
            currency=currency,
            subtotal=totals.subtotal,
            total_discount=totals.total_discount,
            total_tax=totals.total_tax,
            total_amount=totals.total_amount,
            status=QUOTE_DRAFT,
            notes=data.notes,
            created_by=ctx.actor_id,
            lines=lines,
        )
        await uow.quotations.add(quotation)
        await self.activity.record(
            uow,
            ctx,
            action="quotation.created",
            entity_type="quotation",
            entity_id=quotation.id,
            description=f"Created quotation {number} for {totals.total_amount} {currency}",
        )
        logger.info("Created quotation %s", number)
        return quotation

    async def update_status(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        quotation_id: uuid.UUID,
        status: str,
    ) -> Quotation:
        """
        Move a quotation along draft -> sent -> accepted | rejected | expired.

        Raises:
            NotFoundError: quotation missing
            InvalidTransitionError: transition not allowed, or 'converted'
                requested directly
        """
        if status == QUOTE_CONVERTED:
            raise InvalidTransitionError("Use the convert operation to convert a quotation")

        quotation = await self._get(uow, ctx, quotation_id, for_update=True)
        previous = quotation.status
        status_machine.assert_transition(
            status_machine.QUOTATION_TRANSITIONS, previous, status, "Quotation"
        )
        quotation.status = status

        await self.activity.record(
            uow,
            ctx,
            action=f"quotation.{status}",
            entity_type="quotation",
            entity_id=quotation.id,
            description=f"Quotation {quotation.quotation_number}: {previous} -> {status}",
        )
        logger.info("Quotation %s: %s -> %s", quotation.quotation_number, previous, status)
        return quotation

    async def convert_quotation(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        quotation_id: uuid.UUID,
        options: Optional[QuotationConvert] = None,
    ) -> Document:
        """
        Create a draft invoice from an accepted quotation.

        Raises:
            NotFoundError: quotation missing
            InvalidTransitionError: quotation not accepted
            LockedPeriodError: invoice date inside a filed GST period
        """
        options = options or QuotationConvert()
        quotation = await self._get(uow, ctx, quotation_id, for_update=True)
        if quotation.status != QUOTE_ACCEPTED:
            raise InvalidTransitionError(
                f"Only accepted quotations can be converted, "
                f"{quotation.quotation_number} is '{quotation.status}'"
            )

        invoice = await self.documents.create_document(
            uow,
            ctx,
            DocumentCreate(
                kind=DocumentKind.INVOICE,
                counterparty_id=quotation.counterparty_id,
                document_date=options.document_date or datetime.date.today(),
                due_date=options.due_date,
                currency=quotation.currency,
                lines=[
                    LineItemCreate(
                        description=line.description,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        discount_percent=line.discount_percent,
                        tax_rate=line.tax_rate,
                        tax_exempt=line.tax_exempt,
                    )
                    for line in quotation.lines
                ],
                notes=f"Converted from quotation {quotation.quotation_number}",
            ),
        )

        status_machine.assert_transition(
            status_machine.QUOTATION_TRANSITIONS, quotation.status, QUOTE_CONVERTED, "Quotation"
        )
        quotation.status = QUOTE_CONVERTED
        quotation.converted_invoice_id = invoice.id

        await self.activity.record(
            uow,
            ctx,
            action="quotation.converted",
            entity_type="quotation",
            entity_id=quotation.id,
            description=(
                f"Converted quotation {quotation.quotation_number} "
                f"into invoice {invoice.document_number}"
            ),
        )
        logger.info(
            "Quotation %s converted into %s",
            quotation.quotation_number,
            invoice.document_number,
        )
        return invoice
