"""
JWT Authentication Service

Signs HS256 bearer tokens with PyJWT and hashes passwords with bcrypt.
"""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from food_ordering.core.exceptions import Unauthenticated
from food_ordering.services.auth.base import BaseAuthService, IssuedToken, Principal

logger = logging.getLogger(__name__)


class JWTAuthService(BaseAuthService):
    """
    Stateless token authentication.

    Example:
        >>> service = JWTAuthService(secret="s3cret")
        >>> token = service.issue_token(42)
        >>> service.authenticate(token.access_token)
        Principal(user_id=42)
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_days: int = 7,
        bcrypt_rounds: int = 12,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")

        self.secret = secret
        self.algorithm = algorithm
        self.expire_days = expire_days
        self.bcrypt_rounds = bcrypt_rounds

    @property
    def provider_name(self) -> str:
        return "jwt"

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.warning("Rejected login against a malformed password hash")
            return False

    def issue_token(self, user_id: int) -> IssuedToken:
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(days=self.expire_days)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return IssuedToken(access_token=token, expires_at=expires_at)

    def authenticate(self, token: str) -> Principal:
        if not token:
            raise Unauthenticated("Access token required")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token expired")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid token: {e}")
            raise Unauthenticated("Invalid token")

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise Unauthenticated("Invalid token")

        return Principal(user_id=user_id)
