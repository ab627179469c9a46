"""
Advance ledger and allocation engine
Project: GST Ledger

Advances are pre-payments whose remainder is spread over documents later.
An allocation request touching several documents is applied completely
or not at all: every check runs before the first write, and any failure
rolls the whole unit of work back.

Lock order, shared by every method: period guard, advance row, then
document rows in ascending id order.
"""

import datetime
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import (
    BusinessValidationError,
    LockedPeriodError,
    NotFoundError,
    OverAllocationError,
)
from gst_ledger.core.money import ZERO, money_sum, parse_amount, to_money
from gst_ledger.models import Advance, Allocation, Document
from gst_ledger.models.document import KIND_BILL, KIND_INVOICE
from gst_ledger.models.ledger import DIRECTION_CUSTOMER
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.schemas.ledger import AdvanceCreate, AllocationItem, ReceiptCreate
from gst_ledger.services.activity_service import ActivityService
from gst_ledger.services.balance import BalanceService
from gst_ledger.services.document_service import resolve_currency
from gst_ledger.services.numbering_service import (
    PREFIX_CUSTOMER_ADVANCE,
    PREFIX_RECEIPT,
    PREFIX_SUPPLIER_ADVANCE,
    NumberingService,
)
from gst_ledger.services.period_lock_service import PeriodLockService
from gst_ledger.services.policy import LedgerPolicy

# Logger for this module
logger = logging.getLogger(__name__)


@dataclass
class AdvanceView:
    """Read model: an advance with its active allocations."""

    advance: Advance
    allocations: list[Allocation] = field(default_factory=list)


def target_kind(advance: Advance) -> str:
    """Customer advances pay invoices, supplier advances pay bills."""
    return KIND_INVOICE if advance.direction == DIRECTION_CUSTOMER else KIND_BILL


def aggregate_targets(items: Sequence[AllocationItem]) -> dict[uuid.UUID, Decimal]:
    """
    Validate request amounts and merge repeated targets.

    Raises:
        BusinessValidationError: empty request or a non-positive amount
    """
    if not items:
        raise BusinessValidationError("An allocation needs at least one target document")

    per_document: dict[uuid.UUID, Decimal] = {}
    for item in items:
        amount = parse_amount(item.amount)
        if amount <= ZERO:
            raise BusinessValidationError(
                f"Allocation amount for document {item.document_id} must be greater than zero"
            )
        per_document[item.document_id] = per_document.get(item.document_id, ZERO) + amount
    return per_document


class AdvanceService:
    """
    Records advances, allocates them to documents and reverses allocations.
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
    # Advances
    # ------------------------------------------------------------
    async def record_advance(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        data: AdvanceCreate,
        prefix: Optional[str] = None,
    ) -> Advance:
        """
        Record a new advance, fully unallocated.

        prefix overrides the numbering sequence (receipts use RCP).

        Raises:
            BusinessValidationError: amount not positive or unsupported currency
        """
        amount = parse_amount(data.amount)
        if amount <= ZERO:
            raise BusinessValidationError("Advance amount must be greater than zero")
        currency = resolve_currency(self.policy, data.currency)
        direction = data.direction.value

        if prefix is None:
            prefix = (
                PREFIX_CUSTOMER_ADVANCE
                if direction == DIRECTION_CUSTOMER
                else PREFIX_SUPPLIER_ADVANCE
            )
        number = await self.numbering.next_number(uow, ctx.team_id, prefix, data.advance_date)

        advance = Advance(
            team_id=ctx.team_id,
            advance_number=number,
            direction=direction,
            counterparty_id=data.counterparty_id,
            currency=currency,
            total_amount=amount,
            unallocated_amount=amount,
            advance_date=data.advance_date,
            method=data.method.value,
            reference_number=data.reference_number,
            notes=data.notes,
            created_by=ctx.actor_id,
        )
        await uow.advances.add(advance)

        await self.activity.record(
            uow,
            ctx,
            action="advance.recorded",
            entity_type="advance",
            entity_id=advance.id,
            description=f"Recorded {direction} advance {number} of {amount} {currency}",
        )
        logger.info("Advance %s recorded: %s %s", number, amount, currency)
        return advance

    async def get_advance(
        self, uow: UnitOfWork, ctx: TenantContext, advance_id: uuid.UUID
    ) -> AdvanceView:
        advance = await uow.advances.get(ctx.team_id, advance_id)
        if advance is None:
            raise NotFoundError(f"Advance {advance_id} not found")
        allocations = await uow.allocations.list_for_advance(ctx.team_id, advance.id)
        return AdvanceView(advance=advance, allocations=allocations)

    async def list_advances(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        counterparty_id: Optional[uuid.UUID] = None,
        direction: Optional[str] = None,
    ) -> list[Advance]:
        return await uow.advances.list(ctx.team_id, counterparty_id, direction)

    async def _get_advance_for_update(
        self, uow: UnitOfWork, ctx: TenantContext, advance_id: uuid.UUID
    ) -> Advance:
        advance = await uow.advances.get(ctx.team_id, advance_id, for_update=True)
        if advance is None:
            raise NotFoundError(f"Advance {advance_id} not found")
        return advance

    async def record_receipt(
        self, uow: UnitOfWork, ctx: TenantContext, data: ReceiptCreate
    ) -> AdvanceView:
        """
        Record one receipt and split it across several documents.

        The receipt is stored as an advance numbered in the receipt
        sequence and allocated in the same transaction; whatever the
        splits leave over stays unallocated on it.

        Target documents are locked before the receipt number is drawn,
        matching record_payment (document, then sequence).

        Raises:
            OverAllocationError: splits total more than the receipt, or a
                split exceeds its document's amount due
            BusinessValidationError, NotFoundError, LockedPeriodError,
            LockedDocumentError: as for allocate_advance
        """
        amount = parse_amount(data.amount)
        per_document = aggregate_targets(data.allocations)
        requested = money_sum(per_document.values())
        if requested > amount:
            raise OverAllocationError(
                f"Total allocation ({requested}) exceeds payment amount ({amount})",
                extra={"amount": str(amount), "requested": str(requested)},
            )

        await self.period_locks.enter_mutation(uow, ctx.team_id)
        await uow.documents.get_many_for_update(ctx.team_id, sorted(per_document))

        advance = await self.record_advance(
            uow,
            ctx,
            AdvanceCreate(
                direction=data.direction,
                counterparty_id=data.counterparty_id,
                amount=amount,
                advance_date=data.payment_date,
                currency=data.currency,
                method=data.method,
                reference_number=data.reference_number,
                notes=data.notes,
            ),
            prefix=PREFIX_RECEIPT,
        )
        allocations = await self.allocate_advance(uow, ctx, advance.id, data.allocations)
        return AdvanceView(advance=advance, allocations=allocations)

    # ------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------
    async def allocate_advance(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        advance_id: uuid.UUID,
        items: Sequence[AllocationItem],
    ) -> list[Allocation]:
        """
        Spread part of an advance's remainder over one or more documents.

        Steps:
        1. Lock the advance, then re-read its remainder
        2. Lock every target document (ascending id)
        3. Validate everything: totals, ownership, direction, currency, locks, amounts due
        4. Insert allocations, decrement the remainder, recompute every target

        Raises:
            BusinessValidationError: bad amounts, wrong counterparty, direction or currency
            NotFoundError: advance or a document missing
            OverAllocationError: total above the remainder, or a target above its amount due
            LockedPeriodError: a target dated inside a filed GST period
            LockedDocumentError: a target cancelled
        """
        per_document = aggregate_targets(items)
        requested = money_sum(per_document.values())

        await self.period_locks.enter_mutation(uow, ctx.team_id)
        advance = await self._get_advance_for_update(uow, ctx, advance_id)

        if requested > advance.unallocated_amount:
            raise OverAllocationError(
                f"Requested {requested} exceeds the unallocated {advance.unallocated_amount} "
                f"of advance {advance.advance_number}",
                extra={
                    "advance_id": str(advance.id),
                    "unallocated_amount": str(advance.unallocated_amount),
                    "requested": str(requested),
                },
            )

        documents = await uow.documents.get_many_for_update(ctx.team_id, sorted(per_document))
        found = {document.id: document for document in documents}
        missing = [str(doc_id) for doc_id in per_document if doc_id not in found]
        if missing:
            raise NotFoundError(f"Document(s) not found: {', '.join(missing)}")

        expected_kind = target_kind(advance)
        for document in documents:
            await self._check_target(uow, advance, document, expected_kind, per_document[document.id])

        now = datetime.datetime.now(datetime.timezone.utc)
        allocations: list[Allocation] = []
        # Insert in request order so the response mirrors the request
        for document_id, amount in per_document.items():
            allocation = Allocation(
                team_id=ctx.team_id,
                advance_id=advance.id,
                document_id=document_id,
                amount=amount,
                allocated_at=now,
                created_by=ctx.actor_id,
            )
            await uow.allocations.add(allocation)
            allocations.append(allocation)

        advance.unallocated_amount = to_money(advance.unallocated_amount) - requested

        for document in documents:
            await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action="advance.allocated",
            entity_type="advance",
            entity_id=advance.id,
            description=(
                f"Allocated {requested} of {advance.advance_number} to "
                + ", ".join(
                    f"{found[doc_id].document_number} ({amount})"
                    for doc_id, amount in per_document.items()
                )
            ),
        )
        logger.info(
            "Advance %s allocated %s across %d document(s), %s left",
            advance.advance_number,
            requested,
            len(per_document),
            advance.unallocated_amount,
        )
        return allocations

    async def _check_target(
        self,
        uow: UnitOfWork,
        advance: Advance,
        document: Document,
        expected_kind: str,
        amount: Decimal,
    ) -> None:
        if document.kind != expected_kind:
            raise BusinessValidationError(
                f"A {advance.direction} advance cannot be applied to {document.kind} "
                f"{document.document_number}"
            )
        if document.counterparty_id != advance.counterparty_id:
            raise BusinessValidationError(
                f"Document {document.document_number} belongs to a different "
                f"{advance.direction} than advance {advance.advance_number}"
            )
        if document.currency != advance.currency:
            raise BusinessValidationError(
                f"Document {document.document_number} is in {document.currency}, "
                f"advance {advance.advance_number} is in {advance.currency}"
            )
        await self.period_locks.assert_mutable(uow, document)
        if amount > document.amount_due and not self.policy.allow_negative_due:
            raise OverAllocationError(
                f"Allocation of {amount} exceeds the amount due on "
                f"{document.document_number} ({document.amount_due})",
                extra={"document_id": str(document.id), "amount_due": str(document.amount_due)},
            )

    # ------------------------------------------------------------
    # Reversal
    # ------------------------------------------------------------
    async def reverse_allocation(
        self, uow: UnitOfWork, ctx: TenantContext, allocation_id: uuid.UUID
    ) -> None:
        """
        Delete an allocation and give its amount back to the advance.

        Raises:
            NotFoundError: allocation missing
            LockedPeriodError: target dated inside a filed GST period
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        allocation = await uow.allocations.get(ctx.team_id, allocation_id)
        if allocation is None:
            raise NotFoundError(f"Allocation {allocation_id} not found")

        advance = await self._get_advance_for_update(uow, ctx, allocation.advance_id)
        # Re-read under the advance lock: a concurrent reversal may have won
        allocation = await uow.allocations.get(ctx.team_id, allocation_id, for_update=True)
        if allocation is None:
            raise NotFoundError(f"Allocation {allocation_id} not found")
        document = await uow.documents.get(ctx.team_id, allocation.document_id, for_update=True)
        if document is None:
            raise NotFoundError(f"Document {allocation.document_id} not found")
        await self.period_locks.assert_date_open(uow, ctx.team_id, document.document_date)

        await self._undo(uow, advance, allocation)
        await self.balance.refresh(uow, document)

        await self.activity.record(
            uow,
            ctx,
            action="allocation.reversed",
            entity_type="allocation",
            entity_id=allocation_id,
            description=(
                f"Reversed {allocation.amount} of {advance.advance_number} "
                f"from {document.document_number}"
            ),
        )
        logger.info(
            "Reversed allocation %s: %s back to %s",
            allocation_id,
            allocation.amount,
            advance.advance_number,
        )

    async def _undo(self, uow: UnitOfWork, advance: Advance, allocation: Allocation) -> None:
        await uow.allocations.delete(allocation)
        advance.unallocated_amount = to_money(advance.unallocated_amount) + to_money(allocation.amount)

    # ------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------
    async def delete_advance(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        advance_id: uuid.UUID,
        reverse_allocations: bool = False,
    ) -> None:
        """
        Delete an advance.

        Without reverse_allocations the advance must have no allocations.
        With it, every allocation is reversed first in the same transaction;
        allocations on documents inside a filed GST period are reversed only
        when policy allows it.

        Raises:
            NotFoundError: advance missing
            BusinessValidationError: allocations exist and reversal was not requested
            LockedPeriodError: a target is period-locked and policy forbids reversal
        """
        await self.period_locks.enter_mutation(uow, ctx.team_id)
        advance = await self._get_advance_for_update(uow, ctx, advance_id)
        allocations = await uow.allocations.list_for_advance(ctx.team_id, advance.id)

        if allocations and not reverse_allocations:
            raise BusinessValidationError(
                f"Advance {advance.advance_number} has allocations; reverse them first",
                extra={"allocation_count": len(allocations)},
            )

        documents = await uow.documents.get_many_for_update(
            ctx.team_id, sorted({a.document_id for a in allocations})
        )
        for document in documents:
            if await self.period_locks.is_date_locked(uow, ctx.team_id, document.document_date):
                if not self.policy.allow_locked_reversal_on_advance_delete:
                    raise LockedPeriodError(
                        f"Document {document.document_number} is inside a filed GST period; "
                        f"its allocation cannot be reversed"
                    )
                logger.warning(
                    "Reversing allocation on period-locked %s while deleting advance %s",
                    document.document_number,
                    advance.advance_number,
                )

        for allocation in allocations:
            await self._undo(uow, advance, allocation)
        for document in documents:
            await self.balance.refresh(uow, document)

        number = advance.advance_number
        await uow.advances.delete(advance)

        await self.activity.record(
            uow,
            ctx,
            action="advance.deleted",
            entity_type="advance",
            entity_id=advance_id,
            description=(
                f"Deleted advance {number}"
                + (f" after reversing {len(allocations)} allocation(s)" if allocations else "")
            ),
        )
        logger.info("Deleted advance %s (%d allocation(s) reversed)", number, len(allocations))
