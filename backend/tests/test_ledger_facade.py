"""
End-to-end ledger scenarios and error mapping of the facade.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import document_data, reload
from gst_ledger.core.exceptions import (
    ConcurrencyConflictError,
    ErrorKind,
    LockedPeriodError,
    PersistenceError,
)
from gst_ledger.core.result import Result
from gst_ledger.repositories.sqlalchemy import SqlAlchemyUnitOfWork, translate_db_error
from gst_ledger.schemas.document import DocumentKind
from gst_ledger.services.ledger import LedgerFacade


class _PgError(Exception):
    """Driver error carrying a SQLSTATE, like asyncpg's."""

    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def _mock_session(commit_error=None):
    session = AsyncMock()
    session.bind = None
    session.add = MagicMock()
    session.execute.return_value = MagicMock()
    if commit_error is not None:
        session.commit.side_effect = commit_error
    return session


# ============================================================
# TEST GROUP 1: Reference scenarios
# ============================================================


class TestScenarios:

    async def test_invoice_settled_by_payment_debit_note_and_advance(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "1000.00")

        await ledger.record_payment(ctx, invoice.id, "400", date(2025, 4, 12))
        step = await reload(ledger, ctx, invoice.id)
        assert (step.amount_paid, step.amount_due, step.payment_status) == (
            Decimal("400.00"),
            Decimal("600.00"),
            "partial",
        )

        await ledger.create_adjustment(
            ctx, invoice.id, "debit_note", "50", "Freight", date(2025, 4, 14)
        )
        assert (await reload(ledger, ctx, invoice.id)).amount_due == Decimal("650.00")

        advance = (
            await ledger.record_advance(ctx, customer_id, "650", date(2025, 4, 15))
        ).success
        allocated = await ledger.allocate_advance(
            ctx, advance.id, [{"document_id": invoice.id, "amount": "650"}]
        )
        assert allocated.is_ok, allocated.message

        view = (await ledger.get_document(ctx, invoice.id)).success
        assert view.document.amount_paid == Decimal("1050.00")
        assert view.document.amount_due == Decimal("0.00")
        assert view.document.payment_status == "paid"
        assert view.document.status == "paid"
        assert len(view.payments) == 1
        assert len(view.allocations) == 1
        assert len(view.adjustments) == 1

        advance_view = (await ledger.get_advance(ctx, advance.id)).success
        assert advance_view.advance.unallocated_amount == Decimal("0.00")
        assert advance_view.advance.allocation_state == "fully_allocated"

    async def test_bill_cleared_by_credit_note(
        self, ledger, ctx, supplier_id, create_sent_document
    ):
        bill = await create_sent_document(supplier_id, "500.00", kind=DocumentKind.BILL)

        await ledger.create_adjustment(
            ctx, bill.id, "credit_note", "500", "Returned", date(2025, 4, 20)
        )

        document = await reload(ledger, ctx, bill.id)
        assert document.amount_paid == Decimal("0.00")
        assert document.amount_due == Decimal("0.00")
        assert document.payment_status == "paid"

    async def test_audit_trail_follows_document(self, ledger, ctx, customer_id):
        created = (await ledger.create_document(ctx, document_data(customer_id))).success
        await ledger.send_document(ctx, created.id)

        result = await ledger.list_activity(ctx, "document", created.id)

        assert [entry.action for entry in result.success] == ["invoice.created", "invoice.sent"]
        assert all(entry.actor_id == ctx.actor_id for entry in result.success)

    async def test_failed_operation_leaves_no_audit_row(
        self, ledger, ctx, customer_id, create_sent_document
    ):
        invoice = await create_sent_document(customer_id, "100.00")

        await ledger.record_payment(ctx, invoice.id, "500", date(2025, 4, 12))

        actions = [e.action for e in (await ledger.list_activity(ctx, "document", invoice.id)).success]
        assert actions == ["invoice.created", "invoice.sent"]


# ============================================================
# TEST GROUP 2: Result tagging
# ============================================================


class TestResult:

    def test_ok(self):
        result = Result.ok(5)
        assert result.is_ok
        assert result.unwrap() == 5

    def test_unwrap_raises_matching_exception(self):
        result = Result.from_exception(LockedPeriodError("April is filed"))

        assert result.error == ErrorKind.LOCKED_PERIOD
        with pytest.raises(LockedPeriodError, match="April is filed"):
            result.unwrap()


# ============================================================
# TEST GROUP 3: Infrastructure failures
# ============================================================


class TestInfrastructureErrors:

    def test_integrity_error_is_conflict(self):
        exc = IntegrityError("INSERT", {}, Exception("duplicate key"))
        assert isinstance(translate_db_error(exc), ConcurrencyConflictError)

    @pytest.mark.parametrize("sqlstate", ["40001", "40P01"])
    def test_serialization_failure_is_conflict(self, sqlstate):
        exc = OperationalError("UPDATE", {}, _PgError(sqlstate))
        assert isinstance(translate_db_error(exc), ConcurrencyConflictError)

    def test_other_errors_are_persistence(self):
        exc = OperationalError("SELECT", {}, _PgError("08006"))
        assert isinstance(translate_db_error(exc), PersistenceError)

    async def test_commit_failure_surfaces_as_conflict_result(self, ctx):
        session = _mock_session(commit_error=IntegrityError("INSERT", {}, Exception("dup")))
        facade = LedgerFacade(lambda: SqlAlchemyUnitOfWork(lambda: session))

        result = await facade.list_period_locks(ctx)

        assert result.error == ErrorKind.CONCURRENCY_CONFLICT
        session.close.assert_awaited_once()

    async def test_query_failure_surfaces_as_persistence_result(self, ctx):
        session = _mock_session()
        session.execute.side_effect = OperationalError("SELECT", {}, _PgError("08006"))
        facade = LedgerFacade(lambda: SqlAlchemyUnitOfWork(lambda: session))

        result = await facade.is_date_locked(ctx, date(2025, 4, 1))

        assert result.error == ErrorKind.PERSISTENCE
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
