"""
Authentication Service Factory

Returns the configured authentication service.

Usage:
    from food_ordering.services.auth import get_auth_service

    principal = get_auth_service().authenticate(token)
"""

import logging
from functools import lru_cache

from food_ordering.core.config import get_settings
from food_ordering.services.auth.base import BaseAuthService, IssuedToken, Principal
from food_ordering.services.auth.jwt import JWTAuthService

logger = logging.getLogger(__name__)


@lru_cache()
def get_auth_service() -> BaseAuthService:
    """Get the configured authentication service."""
    settings = get_settings()

    logger.info(f"Auth Service: Using JWTAuthService ({settings.jwt_algorithm})")
    return JWTAuthService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.jwt_expire_days,
        bcrypt_rounds=settings.bcrypt_rounds,
    )


def reset_auth_service() -> None:
    """Clear the cached service instance."""
    get_auth_service.cache_clear()


__all__ = [
    "get_auth_service",
    "reset_auth_service",
    "BaseAuthService",
    "IssuedToken",
    "JWTAuthService",
    "Principal",
]
