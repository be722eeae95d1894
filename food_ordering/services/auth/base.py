"""
Authentication Service Abstract Base Class

Defines the interface the rest of the application relies on for
password handling and bearer-token authentication. The order workflow
only ever sees the Principal returned by authenticate().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request."""
    user_id: int


@dataclass
class IssuedToken:
    """
    A freshly signed access token.

    Attributes:
        access_token: Opaque bearer credential
        token_type: Always "bearer"
        expires_at: Moment the token stops being accepted
    """
    access_token: str
    expires_at: datetime
    token_type: str = "bearer"


class BaseAuthService(ABC):
    """Abstract base class for authentication services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def hash_password(self, password: str) -> str:
        """Return a salted hash suitable for storage."""
        pass

    @abstractmethod
    def verify_password(self, password: str, password_hash: str) -> bool:
        """Check a plaintext password against a stored hash."""
        pass

    @abstractmethod
    def issue_token(self, user_id: int) -> IssuedToken:
        """Sign a bearer token for the given user."""
        pass

    @abstractmethod
    def authenticate(self, token: str) -> Principal:
        """
        Resolve a bearer token to a Principal.

        Raises:
            Unauthenticated: If the token is missing, malformed or expired
        """
        pass
