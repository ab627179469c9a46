"""
Persistence boundary
Project: GST Ledger

The services only talk to the abstract repositories in `base`; the
SQLAlchemy implementation lives in `sqlalchemy`.
"""

from gst_ledger.repositories.base import UnitOfWork, UnitOfWorkFactory

__all__ = ["UnitOfWork", "UnitOfWorkFactory"]
