"""
Adjustment ledger
Project: GST Ledger

Signed corrections of a document's amount due. Each one is reversible by
deleting it.
"""

import logging
import uuid
from decimal import Decimal

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import BusinessValidationError, NotFoundError
from gst_ledger.core.money import ZERO, parse_amount
from gst_ledger.models import Adjustment
from gst_ledger.models.ledger import (
    ADJ_BANK_CHARGES,
    ADJ_CREDIT_NOTE,
    ADJ_DEBIT_NOTE,
    ADJ_DISCOUNT,
    ADJ_LATE_FEE,
)
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.schemas.ledger import AdjustmentCreate
from gst_ledger.services.activity_service import ActivityService
from gst_ledger.services.balance import BalanceService
from gst_ledger.services.document_service import DocumentService
from gst_ledger.services.period_lock_service import PeriodLockService

# Logger for this module
logger = logging.getLogger(__name__)

REDUCING_TYPES = frozenset({ADJ_CREDIT_NOTE, ADJ_DISCOUNT})
INCREASING_TYPES = frozenset({ADJ_DEBIT_NOTE, ADJ_LATE_FEE, ADJ_BANK_CHARGES})


def signed_amount_for(adjustment_type: str, amount: Decimal) -> Decimal:
    """
    Apply the sign convention of an adjustment type.

    credit_note, discount: always negative
    debit_note, late_fee, bank_charges: always positive
    other: as given

    Raises:
        BusinessValidationError: amount is zero
    """
    value = parse_amount(amount)
    if value == ZERO:
        raise BusinessValidationError("Adjustment amount cannot be zero")
    if adjustment_type in REDUCING_TYPES:
        return -abs(value)
    if adjustment_type in INCREASING_TYPES:
        return abs(value)
    return value


class AdjustmentService:

    def __init__(
        self,
        balance: BalanceService,
        period_locks: PeriodLockService,
        documents: DocumentService,
        activity: ActivityService,
    ) -> None:
        self.balance = balance
        self.period_locks = period_locks
        self.documents = documents
        self.activity = activity

    async def create_adjustment(
        self, uow: UnitOfWork, ctx: TenantContext, data: AdjustmentCreate
    ) -> Adjustment:
        """
        Attach a signed adjustment to a document and recompute its balance.

        Raises:
            BusinessValidationError: amount is zero
            NotFoundError: document missing
            LockedPeriodError: document date inside a filed GST period
            LockedDocumentError: document cancelled
            OverAllocationError: amount due would go negative
        """
        adjustment_type = data.adjustment_type.value
        signed_amount = signed_amount_for(adjustment_type, data.amount)

        await self.period_locks.enter_mutation(uow, ctx.team_id)
        document = await self.documents.get_for_update(uow, ctx, data.document_id)
        await self.period_locks.assert_mutable(uow, document)

        adjustment = Adjustment(
            team_id=ctx.team_id,
            document_id=document.id,
            adjustment_type=adjustment_type,
            signed_amount=signed_amount,
            description=data.description,
            adjustment_date=data.adjustment_date,
            reference_number=data.reference_number,
            created_by=ctx.actor_id,
        )
        await uow.adjustments.add(adjustment)
        await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action="adjustment.created",
            entity_type="adjustment",
            entity_id=adjustment.id,
            description=(
                f"{adjustment_type} of {signed_amount} on {document.document_number}: "
                f"{data.description}"
            ),
        )
        logger.info(
            "Adjustment %s %s on %s, due now %s",
            adjustment_type,
            signed_amount,
            document.document_number,
            document.amount_due,
        )
        return adjustment

    async def delete_adjustment(
        self, uow: UnitOfWork, ctx: TenantContext, adjustment_id: uuid.UUID
    ) -> None:
        """
        Remove an adjustment, restoring the prior amount due.

        Raises:
            NotFoundError: adjustment missing
            LockedPeriodError: document date inside a filed GST period
            LockedDocumentError: document cancelled
            OverAllocationError: amount due would go negative
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        adjustment = await uow.adjustments.get(ctx.team_id, adjustment_id)
        if adjustment is None:
            raise NotFoundError(f"Adjustment {adjustment_id} not found")

        document = await self.documents.get_for_update(uow, ctx, adjustment.document_id)
        await self.period_locks.assert_mutable(uow, document)

        await uow.adjustments.delete(adjustment)
        await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action="adjustment.deleted",
            entity_type="adjustment",
            entity_id=adjustment_id,
            description=(
                f"Reversed {adjustment.adjustment_type} of {adjustment.signed_amount} "
                f"on {document.document_number}"
            ),
        )
        logger.info(
            "Reversed adjustment %s on %s, due now %s",
            adjustment_id,
            document.document_number,
            document.amount_due,
        )

    async def list_adjustments(
        self, uow: UnitOfWork, ctx: TenantContext, document_id: uuid.UUID
    ) -> list[Adjustment]:
        return await uow.adjustments.list_for_document(ctx.team_id, document_id)
