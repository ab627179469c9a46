"""
Service layer for direct payments
Project: GST Ledger
"""

import logging
import uuid

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import BusinessValidationError, NotFoundError, OverAllocationError
from gst_ledger.core.money import ZERO, parse_amount
from gst_ledger.models import Payment
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.schemas.ledger import PaymentCreate
from gst_ledger.services.activity_service import ActivityService
from gst_ledger.services.balance import BalanceService
from gst_ledger.services.document_service import DocumentService
from gst_ledger.services.numbering_service import PREFIX_RECEIPT, NumberingService
from gst_ledger.services.period_lock_service import PeriodLockService
from gst_ledger.services.policy import LedgerPolicy

# Logger for this module
logger = logging.getLogger(__name__)


class PaymentService:
    """
    Records and reverses payments made directly against one document.
    """

    def __init__(
        self,
        policy: LedgerPolicy,
        balance: BalanceService,
        period_locks: PeriodLockService,
        documents: DocumentService,
        numbering: NumberingService,
        activity: ActivityService,
    ) -> None:
        self.policy = policy
        self.balance = balance
        self.period_locks = period_locks
        self.documents = documents
        self.numbering = numbering
        self.activity = activity

    async def record_payment(
        self, uow: UnitOfWork, ctx: TenantContext, data: PaymentCreate
    ) -> Payment:
        """
        Record a payment and recompute the document balance.

        Raises:
            BusinessValidationError: amount not positive
            NotFoundError: document missing
            LockedPeriodError: document date inside a filed GST period
            LockedDocumentError: document cancelled
            OverAllocationError: amount exceeds the amount due
        """
        amount = parse_amount(data.amount)
        if amount <= ZERO:
            raise BusinessValidationError("Payment amount must be greater than zero")

        await self.period_locks.enter_mutation(uow, ctx.team_id)
        document = await self.documents.get_for_update(uow, ctx, data.document_id)
        await self.period_locks.assert_mutable(uow, document)

        if amount > document.amount_due and not self.policy.allow_negative_due:
            raise OverAllocationError(
                f"Payment of {amount} exceeds the amount due on "
                f"{document.document_number} ({document.amount_due})",
                extra={"document_id": str(document.id), "amount_due": str(document.amount_due)},
            )

        receipt_number = await self.numbering.next_number(
            uow, ctx.team_id, PREFIX_RECEIPT, data.payment_date
        )
        payment = Payment(
            team_id=ctx.team_id,
            document_id=document.id,
            receipt_number=receipt_number,
            amount=amount,
            payment_date=data.payment_date,
            method=data.method.value,
            reference_number=data.reference_number,
            notes=data.notes,
            created_by=ctx.actor_id,
        )
        await uow.payments.add(payment)
        await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action="payment.recorded",
            entity_type="payment",
            entity_id=payment.id,
            description=(
                f"Payment {receipt_number} of {amount} {document.currency} "
                f"on {document.document_number}"
            ),
        )
        logger.info(
            "Payment %s: %s on %s, due now %s",
            receipt_number,
            amount,
            document.document_number,
            document.amount_due,
        )
        return payment

    async def delete_payment(
        self, uow: UnitOfWork, ctx: TenantContext, payment_id: uuid.UUID
    ) -> None:
        """
        Delete a payment, restoring the document's amount due.

        Raises:
            NotFoundError: payment missing
            LockedPeriodError: document date inside a filed GST period
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        payment = await uow.payments.get(ctx.team_id, payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")

        document = await self.documents.get_for_update(uow, ctx, payment.document_id)
        await self.period_locks.assert_date_open(uow, ctx.team_id, document.document_date)

        await uow.payments.delete(payment)
        await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action="payment.deleted",
            entity_type="payment",
            entity_id=payment_id,
            description=(
                f"Deleted payment {payment.receipt_number} of {payment.amount} "
                f"on {document.document_number}"
            ),
        )
        logger.info("Deleted payment %s on %s", payment.receipt_number, document.document_number)

    async def list_payments(
        self, uow: UnitOfWork, ctx: TenantContext, document_id: uuid.UUID
    ) -> list[Payment]:
        return await uow.payments.list_for_document(ctx.team_id, document_id)
