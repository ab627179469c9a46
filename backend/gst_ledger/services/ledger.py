"""
Ledger facade
Project: GST Ledger

The entry point collaborators (route handlers, jobs) call. Each method
runs one atomic unit of work and returns a tagged Result: business
failures come back as Result.fail(kind, message), infrastructure failures
are logged and come back as retry-safe concurrency/persistence results.
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Awaitable, Callable, Iterable, Optional, TypeVar, Union

from pydantic import ValidationError as SchemaValidationError

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import BUSINESS_ERRORS, INFRASTRUCTURE_ERRORS, ErrorKind
from gst_ledger.core.money import parse_amount
from gst_ledger.core.result import Result
from gst_ledger.models import (
    ActivityLog,
    Adjustment,
    Advance,
    Allocation,
    Document,
    GstPeriodLock,
    Payment,
    Quotation,
)
from gst_ledger.repositories.base import UnitOfWork, UnitOfWorkFactory
from gst_ledger.schemas.document import DocumentCreate, DocumentLinesUpdate
from gst_ledger.schemas.ledger import (
    AdjustmentCreate,
    AdvanceCreate,
    AllocationItem,
    PaymentCreate,
    ReceiptCreate,
)
from gst_ledger.schemas.quotation import QuotationConvert, QuotationCreate
from gst_ledger.services.activity_service import ActivityService
from gst_ledger.services.adjustment_service import AdjustmentService
from gst_ledger.services.advance_service import AdvanceService, AdvanceView
from gst_ledger.services.balance import BalanceService
from gst_ledger.services.document_service import DocumentService, DocumentView
from gst_ledger.services.numbering_service import NumberingService
from gst_ledger.services.payment_service import PaymentService
from gst_ledger.services.period_lock_service import PeriodLockService
from gst_ledger.services.policy import LedgerPolicy
from gst_ledger.services.quotation_service import QuotationService

# Logger for this module
logger = logging.getLogger(__name__)

T = TypeVar("T")

AllocationInput = Union[AllocationItem, dict]


class LedgerFacade:
    """
    Ledger and allocation engine, one method per collaborator operation.

    Usage:
        ledger = LedgerFacade(sqlalchemy_uow_factory(), LedgerPolicy.from_settings(settings))
        result = await ledger.record_payment(ctx, invoice_id, Decimal("400"), date.today())
        if result.is_ok:
            payment = result.success
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, policy: Optional[LedgerPolicy] = None) -> None:
        self.uow_factory = uow_factory
        self.policy = policy or LedgerPolicy()

        self.activity = ActivityService()
        self.numbering = NumberingService()
        self.balance = BalanceService(self.policy)
        self.period_locks = PeriodLockService(self.activity)
        self.documents = DocumentService(
            self.policy, self.balance, self.period_locks, self.numbering, self.activity
        )
        self.payments = PaymentService(
            self.policy, self.balance, self.period_locks, self.documents, self.numbering, self.activity
        )
        self.adjustments = AdjustmentService(
            self.balance, self.period_locks, self.documents, self.activity
        )
        self.advances = AdvanceService(
            self.policy, self.balance, self.period_locks, self.numbering, self.activity
        )
        self.quotations = QuotationService(
            self.policy, self.documents, self.numbering, self.activity
        )

    async def _run(
        self,
        action: str,
        ctx: TenantContext,
        work: Callable[[UnitOfWork], Awaitable[T]],
    ) -> Result[T]:
        """
        Execute `work` in one unit of work and tag the outcome.

        The unit of work commits only when `work` returns; any exception
        rolls back everything it wrote.
        """
        try:
            async with self.uow_factory() as uow:
                value = await work(uow)
        except BUSINESS_ERRORS as e:
            logger.info("%s rejected for team %s: %s", action, ctx.team_id, e.detail)
            return Result.from_exception(e)
        except SchemaValidationError as e:
            logger.info("%s rejected for team %s: %s", action, ctx.team_id, e)
            return Result.fail(ErrorKind.VALIDATION, str(e))
        except INFRASTRUCTURE_ERRORS as e:
            logger.error(
                "%s failed for team %s (actor %s): %s",
                action,
                ctx.team_id,
                ctx.actor_id,
                e.detail,
                exc_info=True,
            )
            return Result.from_exception(e)
        return Result.ok(value)

    # ------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------
    async def record_payment(
        self,
        ctx: TenantContext,
        document_id: uuid.UUID,
        amount: Union[Decimal, int, str],
        payment_date: datetime.date,
        method: str = "cash",
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Result[Payment]:
        async def work(uow: UnitOfWork) -> Payment:
            data = PaymentCreate(
                document_id=document_id,
                amount=parse_amount(amount),
                payment_date=payment_date,
                method=method,
                reference_number=reference_number,
                notes=notes,
            )
            return await self.payments.record_payment(uow, ctx, data)

        return await self._run("record_payment", ctx, work)

    async def delete_payment(self, ctx: TenantContext, payment_id: uuid.UUID) -> Result[None]:
        return await self._run(
            "delete_payment", ctx, lambda uow: self.payments.delete_payment(uow, ctx, payment_id)
        )

    async def list_payments(
        self, ctx: TenantContext, document_id: uuid.UUID
    ) -> Result[list[Payment]]:
        return await self._run(
            "list_payments", ctx, lambda uow: self.payments.list_payments(uow, ctx, document_id)
        )

    # ------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------
    async def create_adjustment(
        self,
        ctx: TenantContext,
        document_id: uuid.UUID,
        adjustment_type: str,
        amount: Union[Decimal, int, str],
        description: str,
        adjustment_date: datetime.date,
        reference_number: Optional[str] = None,
    ) -> Result[Adjustment]:
        async def work(uow: UnitOfWork) -> Adjustment:
            data = AdjustmentCreate(
                document_id=document_id,
                adjustment_type=adjustment_type,
                amount=parse_amount(amount),
                description=description,
                adjustment_date=adjustment_date,
                reference_number=reference_number,
            )
            return await self.adjustments.create_adjustment(uow, ctx, data)

        return await self._run("create_adjustment", ctx, work)

    async def delete_adjustment(
        self, ctx: TenantContext, adjustment_id: uuid.UUID
    ) -> Result[None]:
        return await self._run(
            "delete_adjustment",
            ctx,
            lambda uow: self.adjustments.delete_adjustment(uow, ctx, adjustment_id),
        )

    # ------------------------------------------------------------
    # Advances
    # ------------------------------------------------------------
    async def record_advance(
        self,
        ctx: TenantContext,
        counterparty_id: uuid.UUID,
        amount: Union[Decimal, int, str],
        advance_date: datetime.date,
        direction: str = "customer",
        currency: Optional[str] = None,
        method: str = "bank_transfer",
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Result[Advance]:
        async def work(uow: UnitOfWork) -> Advance:
            data = AdvanceCreate(
                direction=direction,
                counterparty_id=counterparty_id,
                amount=parse_amount(amount),
                advance_date=advance_date,
                currency=currency,
                method=method,
                reference_number=reference_number,
                notes=notes,
            )
            return await self.advances.record_advance(uow, ctx, data)

        return await self._run("record_advance", ctx, work)

    async def record_receipt(
        self, ctx: TenantContext, data: ReceiptCreate
    ) -> Result[AdvanceView]:
        """One receipt split across several documents; the rest stays unallocated."""
        return await self._run(
            "record_receipt", ctx, lambda uow: self.advances.record_receipt(uow, ctx, data)
        )

    async def allocate_advance(
        self,
        ctx: TenantContext,
        advance_id: uuid.UUID,
        allocations: Iterable[AllocationInput],
    ) -> Result[list[Allocation]]:
        async def work(uow: UnitOfWork) -> list[Allocation]:
            items = [
                item if isinstance(item, AllocationItem) else AllocationItem.model_validate(item)
                for item in allocations
            ]
            return await self.advances.allocate_advance(uow, ctx, advance_id, items)

        return await self._run("allocate_advance", ctx, work)

    async def reverse_allocation(
        self, ctx: TenantContext, allocation_id: uuid.UUID
    ) -> Result[None]:
        return await self._run(
            "reverse_allocation",
            ctx,
            lambda uow: self.advances.reverse_allocation(uow, ctx, allocation_id),
        )

    async def delete_advance(
        self,
        ctx: TenantContext,
        advance_id: uuid.UUID,
        reverse_allocations: bool = False,
    ) -> Result[None]:
        return await self._run(
            "delete_advance",
            ctx,
            lambda uow: self.advances.delete_advance(uow, ctx, advance_id, reverse_allocations),
        )

    async def get_advance(self, ctx: TenantContext, advance_id: uuid.UUID) -> Result[AdvanceView]:
        return await self._run(
            "get_advance", ctx, lambda uow: self.advances.get_advance(uow, ctx, advance_id)
        )

    async def list_advances(
        self,
        ctx: TenantContext,
        counterparty_id: Optional[uuid.UUID] = None,
        direction: Optional[str] = None,
    ) -> Result[list[Advance]]:
        return await self._run(
            "list_advances",
            ctx,
            lambda uow: self.advances.list_advances(uow, ctx, counterparty_id, direction),
        )

    # ------------------------------------------------------------
    # GST periods
    # ------------------------------------------------------------
    async def file_gst_period(
        self,
        ctx: TenantContext,
        period_start: datetime.date,
        period_end: datetime.date,
        notes: Optional[str] = None,
    ) -> Result[GstPeriodLock]:
        return await self._run(
            "file_gst_period",
            ctx,
            lambda uow: self.period_locks.file_period(uow, ctx, period_start, period_end, notes),
        )

    async def remove_period_lock(self, ctx: TenantContext, lock_id: uuid.UUID) -> Result[None]:
        return await self._run(
            "remove_period_lock",
            ctx,
            lambda uow: self.period_locks.remove_period_lock(uow, ctx, lock_id),
        )

    async def list_period_locks(self, ctx: TenantContext) -> Result[list[GstPeriodLock]]:
        return await self._run(
            "list_period_locks", ctx, lambda uow: self.period_locks.list_period_locks(uow, ctx)
        )

    async def is_date_locked(self, ctx: TenantContext, day: datetime.date) -> Result[bool]:
        return await self._run(
            "is_date_locked",
            ctx,
            lambda uow: self.period_locks.is_date_locked(uow, ctx.team_id, day),
        )

    # ------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------
    async def create_document(self, ctx: TenantContext, data: DocumentCreate) -> Result[Document]:
        return await self._run(
            "create_document", ctx, lambda uow: self.documents.create_document(uow, ctx, data)
        )

    async def update_document_lines(
        self, ctx: TenantContext, document_id: uuid.UUID, data: DocumentLinesUpdate
    ) -> Result[Document]:
        return await self._run(
            "update_document_lines",
            ctx,
            lambda uow: self.documents.update_lines(uow, ctx, document_id, data),
        )

    async def send_document(self, ctx: TenantContext, document_id: uuid.UUID) -> Result[Document]:
        return await self._run(
            "send_document", ctx, lambda uow: self.documents.send_document(uow, ctx, document_id)
        )

    async def cancel_document(
        self, ctx: TenantContext, document_id: uuid.UUID, reason: Optional[str] = None
    ) -> Result[Document]:
        return await self._run(
            "cancel_document",
            ctx,
            lambda uow: self.documents.cancel_document(uow, ctx, document_id, reason),
        )

    async def delete_document(self, ctx: TenantContext, document_id: uuid.UUID) -> Result[None]:
        return await self._run(
            "delete_document", ctx, lambda uow: self.documents.delete_document(uow, ctx, document_id)
        )

    async def get_document(self, ctx: TenantContext, document_id: uuid.UUID) -> Result[DocumentView]:
        return await self._run(
            "get_document", ctx, lambda uow: self.documents.get_document(uow, ctx, document_id)
        )

    async def list_outstanding_documents(
        self,
        ctx: TenantContext,
        counterparty_id: Optional[uuid.UUID] = None,
        kind: Optional[str] = None,
    ) -> Result[list[DocumentView]]:
        return await self._run(
            "list_outstanding_documents",
            ctx,
            lambda uow: self.documents.list_outstanding(uow, ctx, counterparty_id, kind),
        )

    # ------------------------------------------------------------
    # Quotations
    # ------------------------------------------------------------
    async def create_quotation(self, ctx: TenantContext, data: QuotationCreate) -> Result[Quotation]:
        return await self._run(
            "create_quotation", ctx, lambda uow: self.quotations.create_quotation(uow, ctx, data)
        )

    async def update_quotation_status(
        self, ctx: TenantContext, quotation_id: uuid.UUID, status: str
    ) -> Result[Quotation]:
        return await self._run(
            "update_quotation_status",
            ctx,
            lambda uow: self.quotations.update_status(uow, ctx, quotation_id, status),
        )

    async def convert_quotation(
        self,
        ctx: TenantContext,
        quotation_id: uuid.UUID,
        options: Optional[QuotationConvert] = None,
    ) -> Result[Document]:
        return await self._run(
            "convert_quotation",
            ctx,
            lambda uow: self.quotations.convert_quotation(uow, ctx, quotation_id, options),
        )

    async def get_quotation(self, ctx: TenantContext, quotation_id: uuid.UUID) -> Result[Quotation]:
        return await self._run(
            "get_quotation", ctx, lambda uow: self.quotations.get_quotation(uow, ctx, quotation_id)
        )

    async def list_quotations(
        self, ctx: TenantContext, status: Optional[str] = None
    ) -> Result[list[Quotation]]:
        return await self._run(
            "list_quotations", ctx, lambda uow: self.quotations.list_quotations(uow, ctx, status)
        )

    # ------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------
    async def list_activity(
        self, ctx: TenantContext, entity_type: str, entity_id: uuid.UUID
    ) -> Result[list[ActivityLog]]:
        return await self._run(
            "list_activity",
            ctx,
            lambda uow: self.activity.list_for_entity(uow, ctx, entity_type, entity_id),
        )
