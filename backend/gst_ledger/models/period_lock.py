"""
SQLAlchemy model for filed GST periods
Project: GST Ledger
"""

import datetime
import uuid

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gst_ledger.models import Base
from gst_ledger.models.mixins import TeamScopedMixin, TimestampMixin, UUIDMixin


class GstPeriodLock(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    A filed GST return period.

    Documents dated inside [period_start, period_end] are frozen for every
    balance-affecting operation. Periods of the same team never overlap.
    """

    __tablename__ = "gst_period_locks"

    period_start: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    period_end: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    filed_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    filed_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def covers(self, day: datetime.date) -> bool:
        """True if `day` falls inside the period (bounds included)."""
        return self.period_start <= day <= self.period_end

    __table_args__ = (
        Index("ix_gst_period_locks_team_start", "team_id", "period_start"),
        CheckConstraint(
            "period_end >= period_start",
            name="ck_gst_period_locks_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<GstPeriodLock(team={self.team_id}, {self.period_start}..{self.period_end})>"
