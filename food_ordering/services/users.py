"""
User Service

Registration, login and profile lookup. Passwords and tokens are handled
by the configured authentication service.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select

from food_ordering.core.exceptions import NotFoundError, Unauthenticated, ValidationError
from food_ordering.database import Database
from food_ordering.models import INTEGER_MAX, User
from food_ordering.services.auth.base import BaseAuthService, IssuedToken, Principal

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedUser:
    """A user together with a freshly issued token."""
    user: User
    token: IssuedToken


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Account management on top of an authentication service."""

    def __init__(self, database: Database, auth: BaseAuthService):
        self.database = database
        self.auth = auth

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> AuthenticatedUser:
        """
        Create an account and log it in.

        Raises:
            ValidationError: If the email is already registered
        """
        email = normalize_email(email)
        # Hashing runs in a worker thread
        password_hash = await asyncio.to_thread(self.auth.hash_password, password)

        async with self.database.transaction() as session:
            existing = await session.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                raise ValidationError("User with this email already exists")

            user = User(
                name=name.strip(),
                email=email,
                password_hash=password_hash,
                phone=phone,
                address=address,
            )
            session.add(user)
            await session.flush()
            await session.refresh(user)

        logger.info(f"User #{user.id} registered")
        return AuthenticatedUser(user=user, token=self.auth.issue_token(user.id))

    async def login(self, email: str, password: str) -> AuthenticatedUser:
        """
        Check credentials and issue a token.

        Raises:
            Unauthenticated: Unknown email or wrong password (same message for both)
        """
        async with self.database.session() as session:
            result = await session.execute(
                select(User).where(User.email == normalize_email(email))
            )
            user = result.scalar_one_or_none()

        if user is None or not await asyncio.to_thread(
            self.auth.verify_password, password, user.password_hash
        ):
            logger.info("Failed login attempt")
            raise Unauthenticated("Invalid email or password")

        return AuthenticatedUser(user=user, token=self.auth.issue_token(user.id))

    async def get_user(self, user_id: int) -> User:
        """
        Raises:
            NotFoundError: If the user does not exist
        """
        if not 1 <= user_id <= INTEGER_MAX:
            raise NotFoundError("User not found")

        async with self.database.session() as session:
            user = await session.get(User, user_id)

        if user is None:
            raise NotFoundError("User not found")
        return user

    async def resolve_principal(self, token: str) -> Principal:
        """
        Authenticate a bearer token and make sure its user still exists.

        Raises:
            Unauthenticated: Bad token, or the account has been deleted
        """
        principal = self.auth.authenticate(token)
        try:
            await self.get_user(principal.user_id)
        except NotFoundError:
            raise Unauthenticated("User not found")
        return principal
