"""
Authentication and Authorization

FastAPI dependencies that validate admin JWTs issued by /auth/login and
enforce the admin role on staff endpoints.

SECURITY NOTE:
- Development test tokens are accepted ONLY when PYTHON_ENV=development
- Staging and production never accept them, whatever the settings say
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for admin authentication",
)

# Roles allowed on admin endpoints
ADMIN_ROLES = {"admin", "super_admin"}


@dataclass
class AdminUser:
    """
    Authenticated staff member, populated from JWT claims.

    Attributes:
        id: Admin's unique identifier
        email: Admin's email address
        role: Admin role (admin or super_admin)
        name: Display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"AdminUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """Development auth is on only if settings AND the raw env var agree."""
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = AdminUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="admin@sam.dev",
    role="super_admin",
    name="Development Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> AdminUser:
    """
    Validate a JWT and build the AdminUser from its claims.

    Raises:
        HTTPException 401: If the token is invalid, expired, not an access
            token, or missing claims
    """
    if _DEVELOPMENT_MODE and token in ("dev-token", "test-token"):
        logger.debug("Development mode: Using test token")
        return _DEV_ADMIN

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        subject = payload.get("sub")
        if not subject:
            raise ValueError("Missing 'sub' claim in token")

        return AdminUser(
            id=UUID(subject),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_admin_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AdminUser:
    """
    Dependency for admin endpoints.

    Usage:
        @router.get("/applications")
        async def list_applications(admin: AdminUser = Depends(get_current_admin_user)):
            ...

    Raises:
        HTTPException 401: Missing, invalid or expired token
        HTTPException 403: Authenticated user is not an admin
    """
    user = await _validate_jwt_token(credentials.credentials)

    if user.role not in ADMIN_ROLES:
        logger.warning(f"Access denied: User {user.id} has role '{user.role}'")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id}")
    return user


__all__ = [
    "ADMIN_ROLES",
    "AdminUser",
    "get_current_admin_user",
]
