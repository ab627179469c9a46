"""
Repository and unit-of-work interfaces
Project: GST Ledger

One repository per entity, each scoped by team_id. A lookup for a row
owned by another team returns None, exactly like a missing row.

Row locks: methods taking `for_update=True` hold the row until the unit
of work ends. Callers lock the advance first, then documents in id order.
"""

from __future__ import annotations

import datetime
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from gst_ledger.models import (
    ActivityLog,
    Adjustment,
    Advance,
    Allocation,
    Document,
    GstPeriodLock,
    Payment,
    Quotation,
)


class DocumentRepository(ABC):

    @abstractmethod
    async def get(
        self, team_id: uuid.UUID, document_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Document]:
        ...

    @abstractmethod
    async def get_many_for_update(
        self, team_id: uuid.UUID, document_ids: Sequence[uuid.UUID]
    ) -> list[Document]:
        """Lock the documents in ascending id order and return them in that order."""

    @abstractmethod
    async def add(self, document: Document) -> Document:
        ...

    @abstractmethod
    async def delete(self, document: Document) -> None:
        ...

    @abstractmethod
    async def list_outstanding(
        self,
        team_id: uuid.UUID,
        counterparty_id: Optional[uuid.UUID] = None,
        kind: Optional[str] = None,
    ) -> list[Document]:
        """Non-cancelled documents with amount_due > 0, oldest first."""


class PaymentRepository(ABC):

    @abstractmethod
    async def get(self, team_id: uuid.UUID, payment_id: uuid.UUID) -> Optional[Payment]:
        ...

    @abstractmethod
    async def add(self, payment: Payment) -> Payment:
        ...

    @abstractmethod
    async def delete(self, payment: Payment) -> None:
        ...

    @abstractmethod
    async def list_for_document(
        self, team_id: uuid.UUID, document_id: uuid.UUID
    ) -> list[Payment]:
        ...


class AdvanceRepository(ABC):

    @abstractmethod
    async def get(
        self, team_id: uuid.UUID, advance_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Advance]:
        ...

    @abstractmethod
    async def add(self, advance: Advance) -> Advance:
        ...

    @abstractmethod
    async def delete(self, advance: Advance) -> None:
        ...

    @abstractmethod
    async def list(
        self,
        team_id: uuid.UUID,
        counterparty_id: Optional[uuid.UUID] = None,
        direction: Optional[str] = None,
    ) -> list[Advance]:
        ...


class AllocationRepository(ABC):

    @abstractmethod
    async def get(
        self, team_id: uuid.UUID, allocation_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Allocation]:
        ...

    @abstractmethod
    async def add(self, allocation: Allocation) -> Allocation:
        ...

    @abstractmethod
    async def delete(self, allocation: Allocation) -> None:
        ...

    @abstractmethod
    async def list_for_document(
        self, team_id: uuid.UUID, document_id: uuid.UUID
    ) -> list[Allocation]:
        ...

    @abstractmethod
    async def list_for_advance(
        self, team_id: uuid.UUID, advance_id: uuid.UUID
    ) -> list[Allocation]:
        ...


class AdjustmentRepository(ABC):

    @abstractmethod
    async def get(
        self, team_id: uuid.UUID, adjustment_id: uuid.UUID
    ) -> Optional[Adjustment]:
        ...

    @abstractmethod
    async def add(self, adjustment: Adjustment) -> Adjustment:
        ...

    @abstractmethod
    async def delete(self, adjustment: Adjustment) -> None:
        ...

    @abstractmethod
    async def list_for_document(
        self, team_id: uuid.UUID, document_id: uuid.UUID
    ) -> list[Adjustment]:
        ...


class PeriodLockRepository(ABC):

    @abstractmethod
    async def acquire_guard(self, team_id: uuid.UUID, exclusive: bool = False) -> None:
        """
        Serialise balance mutations against period filing for one team.

        Mutations take the guard shared, filing takes it exclusive, so a
        period cannot be filed while a mutation inside it is in flight.
        """

    @abstractmethod
    async def get(self, team_id: uuid.UUID, lock_id: uuid.UUID) -> Optional[GstPeriodLock]:
        ...

    @abstractmethod
    async def find_covering(
        self, team_id: uuid.UUID, day: datetime.date
    ) -> Optional[GstPeriodLock]:
        ...

    @abstractmethod
    async def find_overlapping(
        self, team_id: uuid.UUID, start: datetime.date, end: datetime.date
    ) -> list[GstPeriodLock]:
        ...

    @abstractmethod
    async def list(self, team_id: uuid.UUID) -> list[GstPeriodLock]:
        ...

    @abstractmethod
    async def add(self, lock: GstPeriodLock) -> GstPeriodLock:
        ...

    @abstractmethod
    async def delete(self, lock: GstPeriodLock) -> None:
        ...


class ActivityRepository(ABC):

    @abstractmethod
    async def add(self, entry: ActivityLog) -> ActivityLog:
        ...

    @abstractmethod
    async def list_for_entity(
        self, team_id: uuid.UUID, entity_type: str, entity_id: uuid.UUID
    ) -> list[ActivityLog]:
        ...


class QuotationRepository(ABC):

    @abstractmethod
    async def get(
        self, team_id: uuid.UUID, quotation_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Quotation]:
        ...

    @abstractmethod
    async def add(self, quotation: Quotation) -> Quotation:
        ...

    @abstractmethod
    async def list(
        self, team_id: uuid.UUID, status: Optional[str] = None
    ) -> list[Quotation]:
        ...


class SequenceRepository(ABC):

    @abstractmethod
    async def next_value(self, team_id: uuid.UUID, prefix: str, year: int) -> int:
        """Reserve and return the next number for (team, prefix, year), starting at 1."""


class UnitOfWork(ABC):
    """
    One atomic ledger transaction.

    Usage:
        async with uow_factory() as uow:
            document = await uow.documents.get(team_id, document_id, for_update=True)
            ...

    Leaving the block normally commits; leaving it with an exception rolls
    back everything written inside it.
    """

    documents: DocumentRepository
    payments: PaymentRepository
    advances: AdvanceRepository
    allocations: AllocationRepository
    adjustments: AdjustmentRepository
    period_locks: PeriodLockRepository
    activity: ActivityRepository
    quotations: QuotationRepository
    sequences: SequenceRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self.close()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...

    async def close(self) -> None:
        """Release resources held by the unit of work."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
