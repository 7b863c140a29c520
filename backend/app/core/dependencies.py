"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with bearer
credentials verified by the identity provider.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from backend.app.core.exceptions import AuthenticationError
from backend.app.core.identity import IdentityVerifier, Principal, get_identity_verifier
from backend.app.core.redis_client import get_redis
from backend.app.services.entity_lock import EntityLock

# HTTP Bearer security scheme (missing header is reported as 401, not 403)
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> Principal:
    """
    FastAPI dependency resolving the verified caller.

    Args:
        credentials: HTTP Bearer token from request header
        verifier: Identity provider used to validate the token

    Returns:
        Principal carrying the verified email

    Raises:
        AuthenticationError: 401 if the credential is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    email = await verifier.verify(credentials.credentials)
    return Principal(email=email)


async def get_entity_lock(redis=Depends(get_redis)) -> EntityLock:
    """FastAPI dependency providing per-entity mutation locks."""
    return EntityLock(redis)
