"""
Unit tests for the document and quotation state machine.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from gst_ledger.core.exceptions import InvalidTransitionError
from gst_ledger.services import status_machine
from gst_ledger.services.policy import LedgerPolicy


def _document(**kwargs):
    defaults = dict(
        document_number="INV-2025-0001",
        status="draft",
        payment_status="unpaid",
        total_amount=Decimal("100.00"),
        amount_paid=Decimal("0.00"),
        lines=[object()],
        sent_at=None,
        cancelled_at=None,
        cancel_reason=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ============================================================
# TEST GROUP 1: Sending
# ============================================================


class TestSend:

    def test_draft_becomes_sent(self):
        document = _document()

        status_machine.send(document)

        assert document.status == "sent"
        assert document.sent_at is not None

    def test_send_without_lines_rejected(self):
        with pytest.raises(InvalidTransitionError):
            status_machine.send(_document(lines=[]))

    def test_send_zero_total_rejected(self):
        with pytest.raises(InvalidTransitionError):
            status_machine.send(_document(total_amount=Decimal("0.00")))

    def test_send_twice_rejected(self):
        with pytest.raises(InvalidTransitionError):
            status_machine.send(_document(status="sent"))

    def test_prepaid_draft_goes_straight_to_paid(self):
        document = _document(payment_status="paid", amount_paid=Decimal("100.00"))

        status_machine.send(document)

        assert document.status == "paid"


# ============================================================
# TEST GROUP 2: Cancelling
# ============================================================


class TestCancel:

    def test_cancel_draft(self):
        document = _document()

        status_machine.cancel(document, LedgerPolicy(), "duplicate")

        assert document.status == "cancelled"
        assert document.cancel_reason == "duplicate"
        assert document.cancelled_at is not None

    def test_cancel_sent_unpaid_allowed_by_default(self):
        document = _document(status="sent")

        status_machine.cancel(document, LedgerPolicy())

        assert document.status == "cancelled"

    def test_cancel_sent_unpaid_forbidden_by_policy(self):
        with pytest.raises(InvalidTransitionError):
            status_machine.cancel(
                _document(status="sent"), LedgerPolicy(allow_cancel_sent_unpaid=False)
            )

    def test_cancel_with_money_applied_rejected(self):
        with pytest.raises(InvalidTransitionError):
            status_machine.cancel(
                _document(status="sent", amount_paid=Decimal("10.00")), LedgerPolicy()
            )

    @pytest.mark.parametrize("status", ["paid", "cancelled"])
    def test_cancel_terminal_rejected(self, status):
        with pytest.raises(InvalidTransitionError):
            status_machine.cancel(_document(status=status), LedgerPolicy())


# ============================================================
# TEST GROUP 3: Payment-driven status
# ============================================================


class TestSyncStatus:

    def test_sent_becomes_paid(self):
        document = _document(status="sent", payment_status="paid")
        status_machine.sync_status_with_payment(document)
        assert document.status == "paid"

    def test_paid_reopens_to_sent(self):
        document = _document(status="paid", payment_status="partial")
        status_machine.sync_status_with_payment(document)
        assert document.status == "sent"

    @pytest.mark.parametrize("status", ["draft", "cancelled"])
    def test_draft_and_cancelled_untouched(self, status):
        document = _document(status=status, payment_status="paid")
        status_machine.sync_status_with_payment(document)
        assert document.status == status


# ============================================================
# TEST GROUP 4: Lock flag and quotation transitions
# ============================================================


class TestLockFlag:

    def test_unlocked_draft(self):
        assert status_machine.is_locked(_document(), period_locked=False) is False

    def test_period_locked_draft(self):
        assert status_machine.is_locked(_document(), period_locked=True) is True

    def test_sent_is_locked(self):
        assert status_machine.is_locked(_document(status="sent"), period_locked=False) is True


class TestQuotationTransitions:

    @pytest.mark.parametrize(
        "current, target",
        [("draft", "sent"), ("sent", "accepted"), ("sent", "rejected"), ("accepted", "converted")],
    )
    def test_allowed(self, current, target):
        status_machine.assert_transition(
            status_machine.QUOTATION_TRANSITIONS, current, target, "Quotation"
        )

    @pytest.mark.parametrize(
        "current, target",
        [("draft", "accepted"), ("rejected", "sent"), ("converted", "draft"), ("sent", "converted")],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionError):
            status_machine.assert_transition(
                status_machine.QUOTATION_TRANSITIONS, current, target, "Quotation"
            )
