"""
Tests for quotations and their conversion into invoices.
"""

from datetime import date
from decimal import Decimal

import pytest

from gst_ledger.core.exceptions import ErrorKind
from gst_ledger.schemas.document import LineItemCreate
from gst_ledger.schemas.quotation import QuotationConvert, QuotationCreate


def _quotation_data(customer_id, currency=None) -> QuotationCreate:
    return QuotationCreate(
        counterparty_id=customer_id,
        quotation_date=date(2025, 3, 20),
        valid_until=date(2025, 4, 20),
        currency=currency,
        lines=[
            LineItemCreate(
                description="Installation",
                quantity=Decimal("2"),
                unit_price=Decimal("100.00"),
                tax_rate=Decimal("18"),
            )
        ],
    )


@pytest.fixture
def accepted_quotation(ledger, ctx, customer_id):
    async def _create():
        quotation = (await ledger.create_quotation(ctx, _quotation_data(customer_id))).success
        await ledger.update_quotation_status(ctx, quotation.id, "sent")
        result = await ledger.update_quotation_status(ctx, quotation.id, "accepted")
        assert result.is_ok, result.message
        return result.success

    return _create


# ============================================================
# TEST GROUP 1: Quotation lifecycle
# ============================================================


class TestQuotationLifecycle:

    async def test_create_prices_lines(self, ledger, ctx, customer_id):
        result = await ledger.create_quotation(ctx, _quotation_data(customer_id))

        assert result.is_ok, result.message
        quotation = result.success
        assert quotation.quotation_number == "QT-2025-0001"
        assert quotation.status == "draft"
        assert quotation.total_tax == Decimal("36.00")
        assert quotation.total_amount == Decimal("236.00")

    async def test_invalid_transition(self, ledger, ctx, customer_id):
        quotation = (await ledger.create_quotation(ctx, _quotation_data(customer_id))).success

        result = await ledger.update_quotation_status(ctx, quotation.id, "accepted")

        assert result.error == ErrorKind.INVALID_TRANSITION

    async def test_converted_only_through_convert(self, ledger, ctx, accepted_quotation):
        quotation = await accepted_quotation()

        result = await ledger.update_quotation_status(ctx, quotation.id, "converted")

        assert result.error == ErrorKind.INVALID_TRANSITION

    async def test_list_by_status(self, ledger, ctx, customer_id, accepted_quotation):
        accepted = await accepted_quotation()
        await ledger.create_quotation(ctx, _quotation_data(customer_id))

        result = await ledger.list_quotations(ctx, "accepted")

        assert [q.id for q in result.success] == [accepted.id]


# ============================================================
# TEST GROUP 2: Conversion
# ============================================================


class TestConvertQuotation:

    async def test_convert_creates_draft_invoice(self, ledger, ctx, customer_id, accepted_quotation):
        quotation = await accepted_quotation()

        result = await ledger.convert_quotation(
            ctx, quotation.id, QuotationConvert(document_date=date(2025, 4, 2))
        )

        assert result.is_ok, result.message
        invoice = result.success
        assert invoice.kind == "invoice"
        assert invoice.status == "draft"
        assert invoice.counterparty_id == customer_id
        assert invoice.total_amount == Decimal("236.00")
        assert invoice.amount_due == Decimal("236.00")

        stored = (await ledger.get_quotation(ctx, quotation.id)).success
        assert stored.status == "converted"
        assert stored.converted_invoice_id == invoice.id

    async def test_convert_twice_rejected(self, ledger, ctx, accepted_quotation):
        quotation = await accepted_quotation()
        options = QuotationConvert(document_date=date(2025, 4, 2))
        await ledger.convert_quotation(ctx, quotation.id, options)

        result = await ledger.convert_quotation(ctx, quotation.id, options)

        assert result.error == ErrorKind.INVALID_TRANSITION

    async def test_convert_into_locked_period(self, ledger, ctx, accepted_quotation):
        quotation = await accepted_quotation()
        await ledger.file_gst_period(ctx, date(2025, 4, 1), date(2025, 4, 30))

        result = await ledger.convert_quotation(
            ctx, quotation.id, QuotationConvert(document_date=date(2025, 4, 2))
        )

        assert result.error == ErrorKind.LOCKED_PERIOD
        assert (await ledger.get_quotation(ctx, quotation.id)).success.status == "accepted"

    async def test_other_team_cannot_read(self, ledger, ctx, other_ctx, customer_id):
        quotation = (await ledger.create_quotation(ctx, _quotation_data(customer_id))).success

        result = await ledger.get_quotation(other_ctx, quotation.id)

        assert result.error == ErrorKind.NOT_FOUND
