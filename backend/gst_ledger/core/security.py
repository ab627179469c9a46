"""
JWT identity module
Project: GST Ledger

Decodes the bearer tokens issued by the authentication service. Issuing
tokens is not done here; the ledger only reads `sub` and `team_id`.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from pydantic import BaseModel

from gst_ledger.core.config import settings


class TokenPayload(BaseModel):
    """Claims the ledger relies on."""

    sub: str
    team_id: str
    exp: Optional[datetime] = None
    type: str = "access"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate a JWT.

    Args:
        token: encoded JWT

    Returns:
        TokenPayload with the caller identity

    Raises:
        HTTPException 401: token invalid, expired or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise _unauthorized(f"Invalid or expired token: {e}")

    if not payload.get("sub"):
        raise _unauthorized("Invalid token: missing subject")
    if not payload.get("team_id"):
        raise _unauthorized("Invalid token: missing team_id")

    exp = payload.get("exp")
    return TokenPayload(
        sub=str(payload["sub"]),
        team_id=str(payload["team_id"]),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None,
        type=payload.get("type", "access"),
    )


# Export
__all__ = [
    "TokenPayload",
    "decode_token",
]
