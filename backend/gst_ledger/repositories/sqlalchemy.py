"""
SQLAlchemy implementation of the repositories
Project: GST Ledger

Every statement filters on team_id. Reads that precede a balance mutation
use SELECT ... FOR UPDATE; on PostgreSQL the period guard and the number
sequences also take transaction-scoped advisory locks.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gst_ledger.core.database import get_session_factory
from gst_ledger.core.exceptions import (
    AppException,
    ConcurrencyConflictError,
    PersistenceError,
)
from gst_ledger.models import (
    ActivityLog,
    Adjustment,
    Advance,
    Allocation,
    Document,
    GstPeriodLock,
    NumberSequence,
    Payment,
    Quotation,
)
from gst_ledger.models.document import STATUS_CANCELLED
from gst_ledger.repositories.base import (
    ActivityRepository,
    AdjustmentRepository,
    AdvanceRepository,
    AllocationRepository,
    DocumentRepository,
    PaymentRepository,
    PeriodLockRepository,
    QuotationRepository,
    SequenceRepository,
    UnitOfWork,
    UnitOfWorkFactory,
)

# Logger for this module
logger = logging.getLogger(__name__)

# Serialization failure, deadlock detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def translate_db_error(exc: SQLAlchemyError) -> AppException:
    """
    Map a SQLAlchemy failure onto the ledger error taxonomy.

    IntegrityError means a concurrent writer won a uniqueness race, and
    serialization failures or deadlocks are retryable conflicts; anything
    else is an infrastructure failure.
    """
    if isinstance(exc, IntegrityError):
        return ConcurrencyConflictError()
    if isinstance(exc, DBAPIError) and _sqlstate(exc) in RETRYABLE_SQLSTATES:
        return ConcurrencyConflictError()
    return PersistenceError()


class _SessionRepository:
    """Shared plumbing: session handle and add/delete with an explicit flush."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def is_postgres(self) -> bool:
        return self.session.bind is not None and self.session.bind.dialect.name == "postgresql"

    async def _add(self, obj):
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def _delete(self, obj) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    async def _advisory_lock(self, key: str, shared: bool = False) -> None:
        """Transaction-scoped advisory lock; a no-op outside PostgreSQL."""
        if not self.is_postgres:
            return
        fn = "pg_advisory_xact_lock_shared" if shared else "pg_advisory_xact_lock"
        await self.session.execute(text(f"SELECT {fn}(hashtext(:key))"), {"key": key})


# ------------------------------------------------------------
# Documents
# ------------------------------------------------------------
class SqlAlchemyDocumentRepository(_SessionRepository, DocumentRepository):

    async def get(
        self, team_id: uuid.UUID, document_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Document]:
        stmt = select(Document).where(
            Document.id == document_id,
            Document.team_id == team_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many_for_update(
        self, team_id: uuid.UUID, document_ids: Sequence[uuid.UUID]
    ) -> list[Document]:
        if not document_ids:
            return []
        stmt = (
            select(Document)
            .where(Document.id.in_(set(document_ids)), Document.team_id == team_id)
            .order_by(Document.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add(self, document: Document) -> Document:
        return await self._add(document)

    async def delete(self, document: Document) -> None:
        await self._delete(document)

    async def list_outstanding(
        self,
        team_id: uuid.UUID,
        counterparty_id: Optional[uuid.UUID] = None,
        kind: Optional[str] = None,
    ) -> list[Document]:
        stmt = select(Document).where(
            Document.team_id == team_id,
            Document.status != STATUS_CANCELLED,
            Document.amount_due > 0,
        )
        if counterparty_id is not None:
            stmt = stmt.where(Document.counterparty_id == counterparty_id)
        if kind is not None:
            stmt = stmt.where(Document.kind == kind)
        stmt = stmt.order_by(Document.document_date.asc(), Document.document_number.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


# ------------------------------------------------------------
# Payments
# ------------------------------------------------------------
class SqlAlchemyPaymentRepository(_SessionRepository, PaymentRepository):

    async def get(self, team_id: uuid.UUID, payment_id: uuid.UUID) -> Optional[Payment]:
        result = await self.session.execute(
            select(Payment).where(Payment.id == payment_id, Payment.team_id == team_id)
        )
        return result.scalar_one_or_none()

    async def add(self, payment: Payment) -> Payment:
        return await self._add(payment)

    async def delete(self, payment: Payment) -> None:
        await self._delete(payment)

    async def list_for_document(
        self, team_id: uuid.UUID, document_id: uuid.UUID
    ) -> list[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.team_id == team_id, Payment.document_id == document_id)
            .order_by(Payment.payment_date, Payment.created_at)
        )
        return list(result.scalars().all())


# ------------------------------------------------------------
# Advances
# ------------------------------------------------------------
class SqlAlchemyAdvanceRepository(_SessionRepository, AdvanceRepository):

    async def get(
        self, team_id: uuid.UUID, advance_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Advance]:
        stmt = select(Advance).where(Advance.id == advance_id, Advance.team_id == team_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, advance: Advance) -> Advance:
        return await self._add(advance)

    async def delete(self, advance: Advance) -> None:
        await self._delete(advance)

    async def list(
        self,
        team_id: uuid.UUID,
        counterparty_id: Optional[uuid.UUID] = None,
        direction: Optional[str] = None,
    ) -> list[Advance]:
        stmt = select(Advance).where(Advance.team_id == team_id)
        if counterparty_id is not None:
            stmt = stmt.where(Advance.counterparty_id == counterparty_id)
        if direction is not None:
            stmt = stmt.where(Advance.direction == direction)
        stmt = stmt.order_by(Advance.advance_date.desc(), Advance.advance_number.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


# ------------------------------------------------------------
# Allocations
# ------------------------------------------------------------
class SqlAlchemyAllocationRepository(_SessionRepository, AllocationRepository):

    async def get(
        self, team_id: uuid.UUID, allocation_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Allocation]:
        stmt = select(Allocation).where(
            Allocation.id == allocation_id,
            Allocation.team_id == team_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, allocation: Allocation) -> Allocation:
        return await self._add(allocation)

    async def delete(self, allocation: Allocation) -> None:
        await self._delete(allocation)

    async def list_for_document(
        self, team_id: uuid.UUID, document_id: uuid.UUID
    ) -> list[Allocation]:
        result = await self.session.execute(
            select(Allocation)
            .where(Allocation.team_id == team_id, Allocation.document_id == document_id)
            .order_by(Allocation.allocated_at)
        )
        return list(result.scalars().all())

    async def list_for_advance(
        self, team_id: uuid.UUID, advance_id: uuid.UUID
    ) -> list[Allocation]:
        result = await self.session.execute(
            select(Allocation)
            .where(Allocation.team_id == team_id, Allocation.advance_id == advance_id)
            .order_by(Allocation.allocated_at)
        )
        return list(result.scalars().all())


# ------------------------------------------------------------
# Adjustments
# ------------------------------------------------------------
class SqlAlchemyAdjustmentRepository(_SessionRepository, AdjustmentRepository):

    async def get(
        self, team_id: uuid.UUID, adjustment_id: uuid.UUID
    ) -> Optional[Adjustment]:
        result = await self.session.execute(
            select(Adjustment).where(
                Adjustment.id == adjustment_id,
                Adjustment.team_id == team_id,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, adjustment: Adjustment) -> Adjustment:
        return await self._add(adjustment)

    async def delete(self, adjustment: Adjustment) -> None:
        await self._delete(adjustment)

    async def list_for_document(
        self, team_id: uuid.UUID, document_id: uuid.UUID
    ) -> list[Adjustment]:
        result = await self.session.execute(
            select(Adjustment)
            .where(Adjustment.team_id == team_id, Adjustment.document_id == document_id)
            .order_by(Adjustment.adjustment_date, Adjustment.created_at)
        )
        return list(result.scalars().all())


# ------------------------------------------------------------
# GST period locks
# ------------------------------------------------------------
class SqlAlchemyPeriodLockRepository(_SessionRepository, PeriodLockRepository):

    async def acquire_guard(self, team_id: uuid.UUID, exclusive: bool = False) -> None:
        await self._advisory_lock(f"gst_period:{team_id}", shared=not exclusive)

    async def get(self, team_id: uuid.UUID, lock_id: uuid.UUID) -> Optional[GstPeriodLock]:
        result = await self.session.execute(
            select(GstPeriodLock).where(
                GstPeriodLock.id == lock_id,
                GstPeriodLock.team_id == team_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_covering(
        self, team_id: uuid.UUID, day: datetime.date
    ) -> Optional[GstPeriodLock]:
        result = await self.session.execute(
            select(GstPeriodLock)
            .where(
                GstPeriodLock.team_id == team_id,
                GstPeriodLock.period_start <= day,
                GstPeriodLock.period_end >= day,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_overlapping(
        self, team_id: uuid.UUID, start: datetime.date, end: datetime.date
    ) -> list[GstPeriodLock]:
        result = await self.session.execute(
            select(GstPeriodLock).where(
                GstPeriodLock.team_id == team_id,
                GstPeriodLock.period_start <= end,
                GstPeriodLock.period_end >= start,
            )
        )
        return list(result.scalars().all())

    async def list(self, team_id: uuid.UUID) -> list[GstPeriodLock]:
        result = await self.session.execute(
            select(GstPeriodLock)
            .where(GstPeriodLock.team_id == team_id)
            .order_by(GstPeriodLock.period_start.desc())
        )
        return list(result.scalars().all())

    async def add(self, lock: GstPeriodLock) -> GstPeriodLock:
        return await self._add(lock)

    async def delete(self, lock: GstPeriodLock) -> None:
        await self._delete(lock)


# ------------------------------------------------------------
# Activity log
# ------------------------------------------------------------
class SqlAlchemyActivityRepository(_SessionRepository, ActivityRepository):

    async def add(self, entry: ActivityLog) -> ActivityLog:
        return await self._add(entry)

    async def list_for_entity(
        self, team_id: uuid.UUID, entity_type: str, entity_id: uuid.UUID
    ) -> list[ActivityLog]:
        result = await self.session.execute(
            select(ActivityLog)
            .where(
                ActivityLog.team_id == team_id,
                ActivityLog.entity_type == entity_type,
                ActivityLog.entity_id == entity_id,
            )
            .order_by(ActivityLog.created_at)
        )
        return list(result.scalars().all())


# ------------------------------------------------------------
# Quotations
# ------------------------------------------------------------
class SqlAlchemyQuotationRepository(_SessionRepository, QuotationRepository):

    async def get(
        self, team_id: uuid.UUID, quotation_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Quotation]:
        stmt = select(Quotation).where(
            Quotation.id == quotation_id,
            Quotation.team_id == team_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, quotation: Quotation) -> Quotation:
        return await self._add(quotation)

    async def list(
        self, team_id: uuid.UUID, status: Optional[str] = None
    ) -> list[Quotation]:
        stmt = select(Quotation).where(Quotation.team_id == team_id)
        if status is not None:
            stmt = stmt.where(Quotation.status == status)
        stmt = stmt.order_by(Quotation.quotation_date.desc(), Quotation.quotation_number.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


# ------------------------------------------------------------
# Number sequences
# ------------------------------------------------------------
class SqlAlchemySequenceRepository(_SessionRepository, SequenceRepository):

    async def next_value(self, team_id: uuid.UUID, prefix: str, year: int) -> int:
        # SELECT FOR UPDATE does not block anything while the row is missing
        await self._advisory_lock(f"seq:{team_id}:{prefix}:{year}")

        result = await self.session.execute(
            select(NumberSequence)
            .where(
                NumberSequence.team_id == team_id,
                NumberSequence.prefix == prefix,
                NumberSequence.year == year,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        sequence = result.scalar_one_or_none()

        if sequence is None:
            sequence = NumberSequence(team_id=team_id, prefix=prefix, year=year, last_value=1)
            self.session.add(sequence)
        else:
            sequence.last_value += 1
        await self.session.flush()
        return sequence.last_value


# ------------------------------------------------------------
# Unit of work
# ------------------------------------------------------------
class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Unit of work over one AsyncSession.

    SQLAlchemy failures raised inside the block, or by the final commit,
    leave through __aexit__ as ConcurrencyConflictError or PersistenceError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self._session_factory()
        self.documents = SqlAlchemyDocumentRepository(self.session)
        self.payments = SqlAlchemyPaymentRepository(self.session)
        self.advances = SqlAlchemyAdvanceRepository(self.session)
        self.allocations = SqlAlchemyAllocationRepository(self.session)
        self.adjustments = SqlAlchemyAdjustmentRepository(self.session)
        self.period_locks = SqlAlchemyPeriodLockRepository(self.session)
        self.activity = SqlAlchemyActivityRepository(self.session)
        self.quotations = SqlAlchemyQuotationRepository(self.session)
        self.sequences = SqlAlchemySequenceRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        except SQLAlchemyError as e:
            logger.debug("Transaction end failed: %s", e)
            raise translate_db_error(e) from e
        if isinstance(exc, SQLAlchemyError):
            raise translate_db_error(exc) from exc

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def close(self) -> None:
        await self.session.close()


def sqlalchemy_uow_factory(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> UnitOfWorkFactory:
    """
    Build a factory of SQLAlchemy units of work.

    Args:
        session_factory: session factory to use (default: the application one)
    """

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory or get_session_factory())

    return factory
