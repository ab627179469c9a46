"""
Dependency injection for the API
Project: GST Ledger

Resolves the caller's tenant context from the bearer token and hands out
the ledger facade.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gst_ledger.core.config import get_settings
from gst_ledger.core.context import TenantContext
from gst_ledger.core.security import decode_token
from gst_ledger.repositories.base import UnitOfWorkFactory
from gst_ledger.repositories.sqlalchemy import sqlalchemy_uow_factory
from gst_ledger.services.ledger import LedgerFacade
from gst_ledger.services.policy import LedgerPolicy

# Bearer scheme - reads the token from the Authorization header
bearer_scheme = HTTPBearer(auto_error=False)


async def get_tenant_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TenantContext:
    """
    Build the tenant context from the JWT.

    Args:
        credentials: bearer credentials from the Authorization header

    Returns:
        TenantContext for the caller

    Raises:
        HTTPException 401: token missing, invalid, not an access token, or with malformed ids
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(credentials.credentials)

    if token_data.type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh tokens are not valid for this operation",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return TenantContext(team_id=UUID(token_data.team_id), actor_id=UUID(token_data.sub))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user or team id in token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_uow_factory() -> UnitOfWorkFactory:
    """Unit of work factory bound to the application database."""
    return sqlalchemy_uow_factory()


def get_ledger(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> LedgerFacade:
    return LedgerFacade(uow_factory, LedgerPolicy.from_settings(get_settings()))


# Type aliases for route signatures
CurrentTenant = Annotated[TenantContext, Depends(get_tenant_context)]
Ledger = Annotated[LedgerFacade, Depends(get_ledger)]


# Export
__all__ = [
    "bearer_scheme",
    "get_tenant_context",
    "get_uow_factory",
    "get_ledger",
    "CurrentTenant",
    "Ledger",
]
