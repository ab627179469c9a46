"""
Status / lock state machine
Project: GST Ledger

Transition tables for documents and quotations, plus the derived lock flag.
"""

import datetime
import logging

from gst_ledger.core.exceptions import InvalidTransitionError
from gst_ledger.core.money import ZERO
from gst_ledger.models import Document
from gst_ledger.models.document import (
    PAYMENT_PAID,
    STATUS_CANCELLED,
    STATUS_DRAFT,
    STATUS_PAID,
    STATUS_SENT,
)
from gst_ledger.models.quotation import (
    QUOTE_ACCEPTED,
    QUOTE_CONVERTED,
    QUOTE_DRAFT,
    QUOTE_EXPIRED,
    QUOTE_REJECTED,
    QUOTE_SENT,
)
from gst_ledger.services.policy import LedgerPolicy

# Logger for this module
logger = logging.getLogger(__name__)

DOCUMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_DRAFT: frozenset({STATUS_SENT, STATUS_CANCELLED}),
    STATUS_SENT: frozenset({STATUS_PAID, STATUS_CANCELLED}),
    # Reopened when a payment or allocation is reversed
    STATUS_PAID: frozenset({STATUS_SENT}),
    STATUS_CANCELLED: frozenset(),
}

QUOTATION_TRANSITIONS: dict[str, frozenset[str]] = {
    QUOTE_DRAFT: frozenset({QUOTE_SENT}),
    QUOTE_SENT: frozenset({QUOTE_ACCEPTED, QUOTE_REJECTED, QUOTE_EXPIRED}),
    QUOTE_ACCEPTED: frozenset({QUOTE_CONVERTED}),
    QUOTE_REJECTED: frozenset(),
    QUOTE_EXPIRED: frozenset(),
    QUOTE_CONVERTED: frozenset(),
}


def assert_transition(
    transitions: dict[str, frozenset[str]], current: str, target: str, label: str
) -> None:
    """
    Raise InvalidTransitionError unless current -> target is in the table.
    """
    if target not in transitions.get(current, frozenset()):
        raise InvalidTransitionError(
            f"{label} cannot move from '{current}' to '{target}'",
            extra={"from": current, "to": target},
        )


def is_locked(document: Document, period_locked: bool) -> bool:
    """Derived lock flag: inside a filed GST period, or no longer a draft."""
    return period_locked or document.status != STATUS_DRAFT


def send(document: Document) -> None:
    """draft -> sent; needs at least one line and a positive total."""
    assert_transition(DOCUMENT_TRANSITIONS, document.status, STATUS_SENT, "Document")
    if not document.lines or document.total_amount <= ZERO:
        raise InvalidTransitionError(
            "A document needs at least one line and a positive total to be sent"
        )
    document.status = STATUS_SENT
    document.sent_at = datetime.datetime.now(datetime.timezone.utc)
    sync_status_with_payment(document)


def cancel(document: Document, policy: LedgerPolicy, reason: str | None = None) -> None:
    """
    Cancel a draft, or a sent document with nothing paid when policy allows.
    """
    allowed = document.status == STATUS_DRAFT or (
        document.status == STATUS_SENT
        and document.amount_paid == ZERO
        and policy.allow_cancel_sent_unpaid
    )
    if not allowed:
        raise InvalidTransitionError(
            f"Document {document.document_number} in status '{document.status}' "
            f"with {document.amount_paid} paid cannot be cancelled",
            extra={"from": document.status, "to": STATUS_CANCELLED},
        )
    document.status = STATUS_CANCELLED
    document.cancelled_at = datetime.datetime.now(datetime.timezone.utc)
    document.cancel_reason = reason


def sync_status_with_payment(document: Document) -> None:
    """
    Follow payment_status: sent becomes paid when nothing is due, and paid
    goes back to sent when the balance reopens. Drafts and cancelled
    documents keep their status.
    """
    if document.status == STATUS_SENT and document.payment_status == PAYMENT_PAID:
        document.status = STATUS_PAID
        logger.info("Document %s is now paid", document.document_number)
    elif document.status == STATUS_PAID and document.payment_status != PAYMENT_PAID:
        document.status = STATUS_SENT
        logger.info("Document %s reopened", document.document_number)
