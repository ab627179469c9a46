"""
Tests for direct payments and balance adjustments.

Run through the ledger facade against SQLite, so every call is a real
unit of work that commits or rolls back.
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest

from conftest import document_data, reload
from gst_ledger.core.exceptions import ErrorKind
from gst_ledger.schemas.document import DocumentKind


# ============================================================
# TEST GROUP 1: Recording payments
# ============================================================


class TestRecordPayment:

    async def test_partial_payment(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "1000.00")

        result = await ledger.record_payment(ctx, invoice.id, Decimal("400"), date(2025, 4, 12))

        assert result.is_ok, result.message
        assert result.success.receipt_number == "RCP-2025-0001"
        document = await reload(ledger, ctx, invoice.id)
        assert document.amount_paid == Decimal("400.00")
        assert document.amount_due == Decimal("600.00")
        assert document.payment_status == "partial"
        assert document.status == "sent"

    async def test_full_payment_marks_paid(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "250.00")

        result = await ledger.record_payment(ctx, invoice.id, "250.00", date(2025, 4, 12), method="upi")

        assert result.is_ok
        document = await reload(ledger, ctx, invoice.id)
        assert document.amount_due == Decimal("0.00")
        assert document.payment_status == "paid"
        assert document.status == "paid"

    async def test_overpayment_rejected(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "100.00")

        result = await ledger.record_payment(ctx, invoice.id, "100.01", date(2025, 4, 12))

        assert result.error == ErrorKind.OVER_ALLOCATION
        document = await reload(ledger, ctx, invoice.id)
        assert document.amount_paid == Decimal("0.00")

    async def test_overpayment_allowed_by_policy(
        self, make_ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "100.00")
        lenient = make_ledger(allow_negative_due=True)

        result = await lenient.record_payment(ctx, invoice.id, "120.00", date(2025, 4, 12))

        assert result.is_ok
        document = await reload(lenient, ctx, invoice.id)
        assert document.amount_due == Decimal("-20.00")
        assert document.payment_status == "paid"

    async def test_float_amount_rejected(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id)

        result = await ledger.record_payment(ctx, invoice.id, 10.5, date(2025, 4, 12))

        assert result.error == ErrorKind.VALIDATION

    async def test_sub_cent_amount_rejected(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "100.00")

        result = await ledger.record_payment(ctx, invoice.id, "10.005", date(2025, 4, 12))

        assert result.error == ErrorKind.VALIDATION
        assert (await reload(ledger, ctx, invoice.id)).amount_paid == Decimal("0.00")

    async def test_non_positive_amount_rejected(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id)

        result = await ledger.record_payment(ctx, invoice.id, "0", date(2025, 4, 12))

        assert result.error == ErrorKind.VALIDATION

    async def test_cancelled_document_rejected(self, ledger, ctx, customer_id):
        created = await ledger.create_document(ctx, document_data(customer_id))
        await ledger.cancel_document(ctx, created.success.id, "typo")

        result = await ledger.record_payment(ctx, created.success.id, "10", date(2025, 4, 12))

        assert result.error == ErrorKind.LOCKED_DOCUMENT

    async def test_other_team_sees_not_found(
        self, ledger, ctx, other_ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id)

        result = await ledger.record_payment(other_ctx, invoice.id, "10", date(2025, 4, 12))

        assert result.error == ErrorKind.NOT_FOUND


# ============================================================
# TEST GROUP 2: Deleting payments
# ============================================================


class TestDeletePayment:

    async def test_delete_reopens_paid_document(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "300.00")
        payment = (await ledger.record_payment(ctx, invoice.id, "300", date(2025, 4, 12))).success
        assert (await reload(ledger, ctx, invoice.id)).status == "paid"

        result = await ledger.delete_payment(ctx, payment.id)

        assert result.is_ok
        document = await reload(ledger, ctx, invoice.id)
        assert document.status == "sent"
        assert document.payment_status == "unpaid"
        assert document.amount_due == Decimal("300.00")

    async def test_delete_missing_payment(self, ledger, ctx):
        result = await ledger.delete_payment(ctx, uuid.uuid4())

        assert result.error == ErrorKind.NOT_FOUND

    async def test_list_payments(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "300.00")
        await ledger.record_payment(ctx, invoice.id, "100", date(2025, 4, 12))
        await ledger.record_payment(ctx, invoice.id, "50", date(2025, 4, 13))

        result = await ledger.list_payments(ctx, invoice.id)

        assert [p.amount for p in result.success] == [Decimal("100.00"), Decimal("50.00")]


# ============================================================
# TEST GROUP 3: Adjustments
# ============================================================


class TestAdjustments:

    async def test_debit_note_increases_due(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "1000.00")

        result = await ledger.create_adjustment(
            ctx, invoice.id, "debit_note", "50", "Freight", date(2025, 4, 15)
        )

        assert result.is_ok
        assert result.success.signed_amount == Decimal("50.00")
        assert (await reload(ledger, ctx, invoice.id)).amount_due == Decimal("1050.00")

    async def test_credit_note_settles_bill(self, ledger, ctx, supplier_id, create_sent_document):
        bill = await create_sent_document(supplier_id, "500.00", kind=DocumentKind.BILL)

        result = await ledger.create_adjustment(
            ctx, bill.id, "credit_note", "500", "Goods returned", date(2025, 4, 15)
        )

        assert result.is_ok
        assert result.success.signed_amount == Decimal("-500.00")
        document = await reload(ledger, ctx, bill.id)
        assert document.amount_paid == Decimal("0.00")
        assert document.amount_due == Decimal("0.00")
        assert document.payment_status == "paid"
        assert document.status == "paid"

    async def test_over_credit_rejected(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "100.00")

        result = await ledger.create_adjustment(
            ctx, invoice.id, "credit_note", "100.01", "Too much", date(2025, 4, 15)
        )

        assert result.error == ErrorKind.OVER_ALLOCATION
        assert (await ledger.get_document(ctx, invoice.id)).success.adjustments == []

    async def test_zero_adjustment_rejected(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id)

        result = await ledger.create_adjustment(
            ctx, invoice.id, "other", "0", "Nothing", date(2025, 4, 15)
        )

        assert result.error == ErrorKind.VALIDATION

    async def test_delete_adjustment_restores_due(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "200.00")
        adjustment = (
            await ledger.create_adjustment(
                ctx, invoice.id, "discount", "20", "Loyalty", date(2025, 4, 15)
            )
        ).success
        assert (await reload(ledger, ctx, invoice.id)).amount_due == Decimal("180.00")

        result = await ledger.delete_adjustment(ctx, adjustment.id)

        assert result.is_ok
        assert (await reload(ledger, ctx, invoice.id)).amount_due == Decimal("200.00")

    async def test_removing_debit_note_cannot_drive_due_negative(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "100.00")
        debit = (
            await ledger.create_adjustment(ctx, invoice.id, "late_fee", "10", "Late", date(2025, 5, 1))
        ).success
        await ledger.record_payment(ctx, invoice.id, "110", date(2025, 5, 2))

        result = await ledger.delete_adjustment(ctx, debit.id)

        assert result.error == ErrorKind.OVER_ALLOCATION
        assert (await reload(ledger, ctx, invoice.id)).amount_due == Decimal("0.00")

    @pytest.mark.parametrize("adjustment_type", ["late_fee", "bank_charges"])
    async def test_fees_are_positive(
        self, ledger, ctx, customer_id, create_sent_document, adjustment_type
    ):
        invoice = await create_sent_document(customer_id, "100.00")

        result = await ledger.create_adjustment(
            ctx, invoice.id, adjustment_type, "-5", "Fee", date(2025, 4, 15)
        )

        assert result.success.signed_amount == Decimal("5.00")

    async def test_sub_cent_amount_rejected(self, ledger, ctx, customer_id, create_sent_document):
        invoice = await create_sent_document(customer_id, "100.00")

        result = await ledger.create_adjustment(
            ctx, invoice.id, "discount", "10.005", "Rounding", date(2025, 4, 15)
        )

        assert result.error == ErrorKind.VALIDATION
        assert (await reload(ledger, ctx, invoice.id)).amount_due == Decimal("100.00")

    async def test_recreating_deleted_adjustment_is_idempotent(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "200.00")
        await ledger.record_payment(ctx, invoice.id, "50", date(2025, 4, 12))
        first = (
            await ledger.create_adjustment(ctx, invoice.id, "debit_note", "30", "Freight", date(2025, 4, 15))
        ).success
        original_due = (await reload(ledger, ctx, invoice.id)).amount_due
        assert original_due == Decimal("180.00")

        await ledger.delete_adjustment(ctx, first.id)
        again = await ledger.create_adjustment(
            ctx, invoice.id, "debit_note", "30", "Freight", date(2025, 4, 15)
        )

        assert again.is_ok, again.message
        assert (await reload(ledger, ctx, invoice.id)).amount_due == original_due


# ============================================================
# TEST GROUP 4: Adjustments inside a filed GST period
# ============================================================


class TestAdjustmentPeriodLocks:

    async def test_create_on_period_locked_draft(self, ledger, ctx, customer_id):
        draft = (await ledger.create_document(ctx, document_data(customer_id, "100.00"))).success
        await ledger.file_gst_period(ctx, date(2025, 4, 1), date(2025, 4, 30))

        result = await ledger.create_adjustment(
            ctx, draft.id, "discount", "10", "Loyalty", date(2025, 5, 2)
        )

        assert result.error == ErrorKind.LOCKED_PERIOD
        assert (await ledger.get_document(ctx, draft.id)).success.adjustments == []

    async def test_delete_after_period_filed(self, ledger, ctx, customer_id):
        draft = (await ledger.create_document(ctx, document_data(customer_id, "100.00"))).success
        adjustment = (
            await ledger.create_adjustment(ctx, draft.id, "discount", "10", "Loyalty", date(2025, 4, 15))
        ).success
        await ledger.file_gst_period(ctx, date(2025, 4, 1), date(2025, 4, 30))

        result = await ledger.delete_adjustment(ctx, adjustment.id)

        assert result.error == ErrorKind.LOCKED_PERIOD
        assert (await reload(ledger, ctx, draft.id)).amount_due == Decimal("90.00")
