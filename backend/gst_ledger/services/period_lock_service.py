"""
Period lock guard
Project: GST Ledger

Filing a GST return freezes every document dated inside the period.
Balance mutations take the team's period guard shared before they read
anything; filing takes it exclusive, so the two never interleave.
"""

import datetime
import logging
import uuid

from gst_ledger.core.context import TenantContext
from gst_ledger.core.exceptions import (
    BusinessValidationError,
    LockedDocumentError,
    LockedPeriodError,
    NotFoundError,
)
from gst_ledger.models import Document, GstPeriodLock
from gst_ledger.models.document import STATUS_CANCELLED, STATUS_DRAFT
from gst_ledger.repositories.base import UnitOfWork
from gst_ledger.services.activity_service import ActivityService

# Logger for this module
logger = logging.getLogger(__name__)


class PeriodLockService:
    """
    GST period filing and the checks every mutation runs against it.
    """

    def __init__(self, activity: ActivityService) -> None:
        self.activity = activity

    # ------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------
    async def enter_mutation(self, uow: UnitOfWork, team_id: uuid.UUID) -> None:
        """Take the period guard shared; call before any row lock."""
        await uow.period_locks.acquire_guard(team_id, exclusive=False)

    async def is_date_locked(
        self, uow: UnitOfWork, team_id: uuid.UUID, day: datetime.date
    ) -> bool:
        return await uow.period_locks.find_covering(team_id, day) is not None

    async def assert_date_open(
        self, uow: UnitOfWork, team_id: uuid.UUID, day: datetime.date
    ) -> None:
        """
        Raises:
            LockedPeriodError: day falls inside a filed period
        """
        lock = await uow.period_locks.find_covering(team_id, day)
        if lock is not None:
            raise LockedPeriodError(
                f"{day.isoformat()} falls inside the GST period "
                f"{lock.period_start.isoformat()} to {lock.period_end.isoformat()}, already filed",
                extra={"period_lock_id": str(lock.id)},
            )

    async def assert_mutable(self, uow: UnitOfWork, document: Document) -> None:
        """
        Check that money may still move on a document.

        Raises:
            LockedPeriodError: the document date is inside a filed period
            LockedDocumentError: the document is cancelled
        """
        await self.assert_date_open(uow, document.team_id, document.document_date)
        if document.status == STATUS_CANCELLED:
            raise LockedDocumentError(
                f"Document {document.document_number} is cancelled"
            )

    async def assert_editable(self, uow: UnitOfWork, document: Document) -> None:
        """
        Check that lines and totals may still change (draft, not period-locked).

        Raises:
            LockedPeriodError: the document date is inside a filed period
            LockedDocumentError: the document is no longer a draft
        """
        await self.assert_date_open(uow, document.team_id, document.document_date)
        if document.status != STATUS_DRAFT:
            raise LockedDocumentError(
                f"Document {document.document_number} is '{document.status}' "
                f"and can no longer be edited"
            )

    # ------------------------------------------------------------
    # Filing
    # ------------------------------------------------------------
    async def file_period(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        period_start: datetime.date,
        period_end: datetime.date,
        notes: str | None = None,
    ) -> GstPeriodLock:
        """
        Record a filed GST return.

        Raises:
            BusinessValidationError: end before start, or overlap with a filed period
        """
        if period_end < period_start:
            raise BusinessValidationError("period_end must not be before period_start")

        await uow.period_locks.acquire_guard(ctx.team_id, exclusive=True)

        overlapping = await uow.period_locks.find_overlapping(ctx.team_id, period_start, period_end)
        if overlapping:
            existing = overlapping[0]
            raise BusinessValidationError(
                f"Period overlaps the filed GST period "
                f"{existing.period_start.isoformat()} to {existing.period_end.isoformat()}",
                extra={"period_lock_id": str(existing.id)},
            )

        lock = GstPeriodLock(
            team_id=ctx.team_id,
            period_start=period_start,
            period_end=period_end,
            filed_at=datetime.datetime.now(datetime.timezone.utc),
            filed_by=ctx.actor_id,
            notes=notes,
        )
        await uow.period_locks.add(lock)
        await self.activity.record(
            uow,
            ctx,
            action="gst_period.filed",
            entity_type="gst_period_lock",
            entity_id=lock.id,
            description=f"Filed GST period {period_start.isoformat()} to {period_end.isoformat()}",
        )
        logger.info(
            "Team %s filed GST period %s..%s", ctx.team_id, period_start, period_end
        )
        return lock

    async def remove_period_lock(
        self, uow: UnitOfWork, ctx: TenantContext, lock_id: uuid.UUID
    ) -> None:
        """Owner correction path: unfreeze a filed period."""
        await uow.period_locks.acquire_guard(ctx.team_id, exclusive=True)
        lock = await uow.period_locks.get(ctx.team_id, lock_id)
        if lock is None:
            raise NotFoundError(f"GST period lock {lock_id} not found")

        await uow.period_locks.delete(lock)
        await self.activity.record(
            uow,
            ctx,
            action="gst_period.unlocked",
            entity_type="gst_period_lock",
            entity_id=lock_id,
            description=(
                f"Removed GST period lock {lock.period_start.isoformat()} "
                f"to {lock.period_end.isoformat()}"
            ),
        )
        logger.warning(
            "Team %s removed GST period lock %s..%s",
            ctx.team_id,
            lock.period_start,
            lock.period_end,
        )

    async def list_period_locks(
        self, uow: UnitOfWork, ctx: TenantContext
    ) -> list[GstPeriodLock]:
        return await uow.period_locks.list(ctx.team_id)
