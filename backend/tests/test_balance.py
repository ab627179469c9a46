"""
Unit tests for the money helpers, the balance formula and line pricing.

Pure functions only: no database, ledger entries are simple stand-ins.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from gst_ledger.core.exceptions import BusinessValidationError
from gst_ledger.core.money import ZERO, money_sum, parse_amount, percent_of, to_money
from gst_ledger.models import DocumentLine
from gst_ledger.schemas.document import LineItemCreate
from gst_ledger.services.adjustment_service import signed_amount_for
from gst_ledger.services.balance import derive_payment_status, recompute_balance
from gst_ledger.services.document_service import price_lines


def _doc(total: str):
    return SimpleNamespace(total_amount=Decimal(total))


def _entries(field: str, *amounts: str):
    return [SimpleNamespace(**{field: Decimal(a)}) for a in amounts]


# ============================================================
# TEST GROUP 1: Money helpers
# ============================================================


class TestMoney:
    """Tests for to_money and friends."""

    def test_quantizes_half_up(self):
        assert to_money(Decimal("10.005")) == Decimal("10.01")
        assert to_money(Decimal("10.004")) == Decimal("10.00")

    def test_accepts_int_and_str(self):
        assert to_money(5) == Decimal("5.00")
        assert to_money(" 12.3 ") == Decimal("12.30")

    def test_rejects_float(self):
        with pytest.raises(BusinessValidationError):
            to_money(0.1)

    def test_rejects_bool(self):
        with pytest.raises(BusinessValidationError):
            to_money(True)

    def test_rejects_garbage(self):
        with pytest.raises(BusinessValidationError):
            to_money("ten")

    def test_rejects_infinity(self):
        with pytest.raises(BusinessValidationError):
            to_money(Decimal("Infinity"))

    def test_parse_amount_keeps_cents(self):
        assert parse_amount("10.50") == Decimal("10.50")
        assert parse_amount(7) == Decimal("7.00")
        assert parse_amount(Decimal("3.1")) == Decimal("3.10")

    @pytest.mark.parametrize("value", ["10.005", Decimal("0.001"), "1e-3"])
    def test_parse_amount_rejects_fractions_of_a_cent(self, value):
        with pytest.raises(BusinessValidationError):
            parse_amount(value)

    def test_money_sum_empty_is_zero(self):
        assert money_sum([]) == ZERO

    def test_percent_of(self):
        assert percent_of(Decimal("100.00"), Decimal("18")) == Decimal("18.00")
        assert percent_of(Decimal("33.33"), Decimal("5")) == Decimal("1.67")


# ============================================================
# TEST GROUP 2: Balance formula
# ============================================================


class TestRecomputeBalance:
    """amount_due = total - (payments + allocations) + signed adjustments."""

    def test_no_entries(self):
        snapshot = recompute_balance(_doc("1000.00"), [], [], [])

        assert snapshot.amount_paid == ZERO
        assert snapshot.amount_due == Decimal("1000.00")
        assert snapshot.payment_status == "unpaid"

    def test_partial_payment(self):
        snapshot = recompute_balance(_doc("1000.00"), _entries("amount", "400"), [], [])

        assert snapshot.amount_paid == Decimal("400.00")
        assert snapshot.amount_due == Decimal("600.00")
        assert snapshot.payment_status == "partial"

    def test_payments_allocations_and_adjustments(self):
        snapshot = recompute_balance(
            _doc("1000.00"),
            _entries("amount", "400"),
            _entries("amount", "650"),
            _entries("signed_amount", "50"),
        )

        assert snapshot.amount_paid == Decimal("1050.00")
        assert snapshot.net_adjustment == Decimal("50.00")
        assert snapshot.amount_due == ZERO
        assert snapshot.payment_status == "paid"

    def test_credit_note_alone_settles_document(self):
        snapshot = recompute_balance(_doc("500.00"), [], [], _entries("signed_amount", "-500"))

        assert snapshot.amount_paid == ZERO
        assert snapshot.amount_due == ZERO
        assert snapshot.payment_status == "paid"

    def test_negative_due_is_reported_as_is(self):
        snapshot = recompute_balance(_doc("100.00"), _entries("amount", "150"), [], [])

        assert snapshot.amount_due == Decimal("-50.00")
        assert snapshot.payment_status == "paid"


class TestDerivePaymentStatus:

    @pytest.mark.parametrize(
        "paid, due, expected",
        [
            ("0", "100", "unpaid"),
            ("10", "90", "partial"),
            ("100", "0", "paid"),
            ("0", "0", "paid"),
            ("120", "-20", "paid"),
        ],
    )
    def test_status(self, paid, due, expected):
        assert derive_payment_status(Decimal(paid), Decimal(due)) == expected


# ============================================================
# TEST GROUP 3: Adjustment signs
# ============================================================


class TestSignedAmount:

    @pytest.mark.parametrize("adjustment_type", ["credit_note", "discount"])
    def test_reducing_types_are_negative(self, adjustment_type):
        assert signed_amount_for(adjustment_type, Decimal("50")) == Decimal("-50.00")
        assert signed_amount_for(adjustment_type, Decimal("-50")) == Decimal("-50.00")

    @pytest.mark.parametrize("adjustment_type", ["debit_note", "late_fee", "bank_charges"])
    def test_increasing_types_are_positive(self, adjustment_type):
        assert signed_amount_for(adjustment_type, Decimal("-25")) == Decimal("25.00")

    def test_other_keeps_sign(self):
        assert signed_amount_for("other", Decimal("-7.5")) == Decimal("-7.50")
        assert signed_amount_for("other", Decimal("7.5")) == Decimal("7.50")

    def test_zero_rejected(self):
        with pytest.raises(BusinessValidationError):
            signed_amount_for("other", Decimal("0.001"))


# ============================================================
# TEST GROUP 4: Line pricing
# ============================================================


class TestPriceLines:

    def test_discount_then_tax(self):
        lines, totals = price_lines(
            DocumentLine,
            [
                LineItemCreate(
                    description="Service",
                    quantity=Decimal("2"),
                    unit_price=Decimal("50.00"),
                    discount_percent=Decimal("10"),
                    tax_rate=Decimal("18"),
                )
            ],
        )

        line = lines[0]
        assert line.line_number == 1
        assert line.subtotal == Decimal("100.00")
        assert line.discount_amount == Decimal("10.00")
        assert line.tax_amount == Decimal("16.20")
        assert line.total == Decimal("106.20")
        assert totals.total_amount == Decimal("106.20")

    def test_tax_exempt_line(self):
        _, totals = price_lines(
            DocumentLine,
            [
                LineItemCreate(
                    description="Exempt",
                    quantity=Decimal("1"),
                    unit_price=Decimal("80.00"),
                    tax_rate=Decimal("12"),
                    tax_exempt=True,
                )
            ],
        )

        assert totals.total_tax == ZERO
        assert totals.total_amount == Decimal("80.00")

    def test_totals_sum_lines(self):
        lines, totals = price_lines(
            DocumentLine,
            [
                LineItemCreate(description="A", quantity=Decimal("1"), unit_price=Decimal("10.00")),
                LineItemCreate(description="B", quantity=Decimal("3"), unit_price=Decimal("5.00")),
            ],
        )

        assert [line.line_number for line in lines] == [1, 2]
        assert totals.subtotal == Decimal("25.00")
        assert totals.total_amount == Decimal("25.00")
