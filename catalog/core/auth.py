"""Operator identity carried by bearer tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from catalog.config import settings


@dataclass(frozen=True)
class Operator:
    """The signed-in operator a request acts on behalf of."""

    id: UUID
    email: str | None = None


def create_operator_token(
    operator_id: UUID,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT identifying an operator.

    Tokens are normally minted by the identity provider in front of this
    service; this helper exists for tooling and tests.

    Args:
        operator_id: Operator UUID, stored in the 'sub' claim
        email: Optional email claim
        expires_delta: Optional custom expiration time. If not provided, uses default from settings

    Returns:
        Encoded JWT token string

    Example:
        ```python
        from catalog.core.auth import create_operator_token

        token = create_operator_token(uuid4(), email="ops@example.com")
        ```
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    claims: dict[str, Any] = {
        "sub": str(operator_id),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_operator_token(token: str) -> Operator | None:
    """Decode and verify an operator token.

    Args:
        token: JWT token string to decode

    Returns:
        The Operator, or None if the token is invalid, expired or has no UUID subject
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    try:
        operator_id = UUID(str(payload.get("sub")))
    except ValueError:
        return None
    return Operator(id=operator_id, email=payload.get("email"))
