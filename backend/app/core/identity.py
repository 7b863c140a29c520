"""
Identity verification.

The platform does not own credentials: a bearer token is handed to an
``IdentityVerifier`` which returns the verified email of the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from backend.app.core.exceptions import AuthenticationError
from backend.app.core.jwt import decode_access_token


@dataclass(frozen=True)
class Principal:
    """Verified caller, passed explicitly to operations that need it."""

    email: str


class IdentityVerifier(ABC):
    """Abstract identity provider interface."""

    @abstractmethod
    async def verify(self, token: str) -> str:
        """Return the verified email for ``token`` or raise AuthenticationError."""
        ...


class JWTIdentityVerifier(IdentityVerifier):
    """Verifies signed JWTs that carry an ``email`` claim."""

    async def verify(self, token: str) -> str:
        payload = decode_access_token(token)
        if payload is None:
            raise AuthenticationError()

        email = payload.get("email")
        if not email:
            raise AuthenticationError()

        return email


_verifier = JWTIdentityVerifier()


def get_identity_verifier() -> IdentityVerifier:
    """FastAPI dependency returning the active identity verifier."""
    return _verifier
