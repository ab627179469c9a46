"""
SQLAlchemy model for the audit trail
Project: GST Ledger
"""

import uuid

from sqlalchemy import Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gst_ledger.models import Base
from gst_ledger.models.mixins import TeamScopedMixin, TimestampMixin, UUIDMixin


class ActivityLog(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """
    Immutable record of one ledger mutation.

    Written in the same transaction as the change it describes, so a
    rolled-back operation leaves no trace here either.
    """

    __tablename__ = "activity_logs"

    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="e.g. payment.recorded, advance.allocated",
    )

    entity_type: Mapped[str] = mapped_column(String(30), nullable=False)

    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("ix_activity_logs_team_entity", "team_id", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(action={self.action}, entity={self.entity_id})>"
