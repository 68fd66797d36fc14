"""Shared FastAPI dependencies."""

from typing import Annotated, Generator

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog.config import settings
from catalog.core.auth import Operator, decode_operator_token
from catalog.core.storage import ObjectStore, get_storage

bearer_scheme = HTTPBearer()


def get_current_operator(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> Operator:
    """Resolve the operator from the bearer token.

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    operator = decode_operator_token(credentials.credentials)
    if operator is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return operator


def get_object_store() -> ObjectStore:
    """Dependency wrapper around the storage singleton."""
    return get_storage()


def get_http_client() -> Generator[httpx.Client, None, None]:
    """HTTP client used to fetch signed URLs during promotion."""
    with httpx.Client(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
        yield client
