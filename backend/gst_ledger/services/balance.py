"""
Document balance model
Project: GST Ledger

recompute_balance() is the only formula for a document's money state,
and BalanceService.refresh() is the only code that writes amount_paid,
amount_due and payment_status.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from gst_ledger.core.exceptions import OverAllocationError
from gst_ledger.core.money import ZERO, money_sum, to_money
from gst_ledger.models import Adjustment, Allocation, Document, Payment
from gst_ledger.models.document import PAYMENT_PAID, PAYMENT_PARTIAL, PAYMENT_UNPAID
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.services.policy import LedgerPolicy
from gst_ledger.services.status_machine import sync_status_with_payment

# Logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceSnapshot:
    """Money state of one document."""

    amount_paid: Decimal
    net_adjustment: Decimal
    amount_due: Decimal
    payment_status: str


def derive_payment_status(amount_paid: Decimal, amount_due: Decimal) -> str:
    """
    paid when nothing is due, partial when something was paid and something
    is still due, unpaid otherwise.
    """
    if amount_due <= ZERO:
        return PAYMENT_PAID
    if amount_paid > ZERO:
        return PAYMENT_PARTIAL
    return PAYMENT_UNPAID


def recompute_balance(
    document: Document,
    payments: Iterable[Payment],
    allocations: Iterable[Allocation],
    adjustments: Iterable[Adjustment],
) -> BalanceSnapshot:
    """
    Compute a document's balance from its ledger entries.

    amount_paid = payments + allocations
    amount_due  = total_amount - amount_paid + sum(signed adjustments)

    Pure: reads its arguments and writes nothing.
    """
    amount_paid = money_sum(p.amount for p in payments) + money_sum(a.amount for a in allocations)
    net_adjustment = money_sum(a.signed_amount for a in adjustments)
    amount_due = to_money(document.total_amount) - amount_paid + net_adjustment
    return BalanceSnapshot(
        amount_paid=amount_paid,
        net_adjustment=net_adjustment,
        amount_due=amount_due,
        payment_status=derive_payment_status(amount_paid, amount_due),
    )


class BalanceService:
    """Persists recomputed balances onto documents."""

    def __init__(self, policy: LedgerPolicy) -> None:
        self.policy = policy

    async def refresh(self, uow: UnitOfWork, document: Document) -> BalanceSnapshot:
        """
        Recompute and store the balance of a locked document.

        Reads the document's current ledger entries through the unit of
        work, so rows added or deleted earlier in the same transaction are
        already reflected.

        Raises:
            OverAllocationError: amount_due would go negative and policy forbids it
        """
        team_id = document.team_id
        payments = await uow.payments.list_for_document(team_id, document.id)
        allocations = await uow.allocations.list_for_document(team_id, document.id)
        adjustments = await uow.adjustments.list_for_document(team_id, document.id)

        snapshot = recompute_balance(document, payments, allocations, adjustments)

        if snapshot.amount_due < ZERO and not self.policy.allow_negative_due:
            raise OverAllocationError(
                f"Document {document.document_number}: amount due would become "
                f"{snapshot.amount_due}",
                extra={"document_id": str(document.id), "amount_due": str(snapshot.amount_due)},
            )

        document.amount_paid = snapshot.amount_paid
        document.amount_due = snapshot.amount_due
        document.payment_status = snapshot.payment_status
        sync_status_with_payment(document)

        logger.debug(
            "Balance %s: paid=%s due=%s status=%s/%s",
            document.document_number,
            snapshot.amount_paid,
            snapshot.amount_due,
            document.status,
            document.payment_status,
        )
        return snapshot
