"""
Pytest configuration and fixtures for the ledger tests.

Service and facade tests run against an in-memory SQLite database through
the real SQLAlchemy repositories. SQLite ignores FOR UPDATE and advisory
locks, so the concurrency tests live in test_concurrency.py and need a
PostgreSQL URL.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gst_ledger.core.context import TenantContext
from gst_ledger.models import Base
from gst_ledger.repositories.sqlalchemy import sqlalchemy_uow_factory
from gst_ledger.schemas.document import DocumentCreate, DocumentKind, LineItemCreate
from gst_ledger.services.ledger import LedgerFacade
from gst_ledger.services.policy import LedgerPolicy


# ============================================================
# Database fixtures
# ============================================================


@pytest.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def uow_factory(session_factory):
    return sqlalchemy_uow_factory(session_factory)


@pytest.fixture
def policy():
    """Default policy; tests override it with make_ledger()."""
    return LedgerPolicy()


@pytest.fixture
def ledger(uow_factory, policy):
    return LedgerFacade(uow_factory, policy)


@pytest.fixture
def make_ledger(uow_factory):
    """Build a facade over the same database with a custom policy."""

    def _make(**overrides) -> LedgerFacade:
        return LedgerFacade(uow_factory, LedgerPolicy(**overrides))

    return _make


# ============================================================
# Tenant fixtures
# ============================================================


@pytest.fixture
def ctx():
    return TenantContext(team_id=uuid.uuid4(), actor_id=uuid.uuid4())


@pytest.fixture
def other_ctx():
    """A second, unrelated team."""
    return TenantContext(team_id=uuid.uuid4(), actor_id=uuid.uuid4())


@pytest.fixture
def customer_id():
    return uuid.uuid4()


@pytest.fixture
def supplier_id():
    return uuid.uuid4()


# ============================================================
# Document builders
# ============================================================


def document_data(
    counterparty_id: uuid.UUID,
    amount: str = "1000.00",
    kind: DocumentKind = DocumentKind.INVOICE,
    document_date: date = date(2025, 4, 10),
    currency: Optional[str] = None,
) -> DocumentCreate:
    """One untaxed line worth `amount`."""
    return DocumentCreate(
        kind=kind,
        counterparty_id=counterparty_id,
        document_date=document_date,
        currency=currency,
        lines=[LineItemCreate(description="Consulting", quantity=Decimal("1"), unit_price=Decimal(amount))],
    )


@pytest.fixture
def create_sent_document(ledger, ctx):
    """Create and send a document, returning the sent row."""

    async def _create(counterparty_id: uuid.UUID, amount: str = "1000.00", **kwargs):
        created = await ledger.create_document(ctx, document_data(counterparty_id, amount, **kwargs))
        assert created.is_ok, created.message
        sent = await ledger.send_document(ctx, created.success.id)
        assert sent.is_ok, sent.message
        return sent.success

    return _create


async def reload(ledger: LedgerFacade, ctx: TenantContext, document_id: uuid.UUID):
    """Read a document back in a fresh unit of work."""
    result = await ledger.get_document(ctx, document_id)
    assert result.is_ok, result.message
    return result.success.document
