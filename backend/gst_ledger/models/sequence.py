"""
SQLAlchemy model for per-team document numbering
Project: GST Ledger
"""

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from gst_ledger.models import Base
from gst_ledger.models.mixins import TeamScopedMixin, TimestampMixin, UUIDMixin


class NumberSequence(Base, UUIDMixin, TimestampMixin, TeamScopedMixin):
    """Last number issued for one (team, prefix, year)."""

    __tablename__ = "number_sequences"

    prefix: Mapped[str] = mapped_column(String(10), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    last_value: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index(
            "ix_number_sequences_team_prefix_year",
            "team_id",
            "prefix",
            "year",
            unique=True,
        ),
    )
