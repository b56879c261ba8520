"""Authentication router: admin login and profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.core.rate_limit import client_key, enforce_rate_limit
from app.core.security import create_access_token, create_refresh_token, verify_password
from app.modules.admins.repository import AdminRepository
from app.modules.auth.schemas import AdminResponse, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_LOGIN = (10, 60)  # 10 attempts per minute per client


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid email or password.",
        },
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate an admin and return JWT tokens.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
        HTTPException 429: Too many attempts
    """
    await enforce_rate_limit(client_key(request, "login"), *RATE_LIMIT_LOGIN)

    admin = await AdminRepository.get_by_email(db, credentials.email)

    if not admin:
        logger.warning("Login attempt for unknown admin email")
        raise _invalid_credentials()

    if not verify_password(credentials.password, admin.password_hash):
        logger.warning(f"Invalid password for admin {admin.id}")
        raise _invalid_credentials()

    if not admin.is_active:
        logger.warning(f"Login attempt for inactive admin {admin.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ACCOUNT_INACTIVE",
                "message": "Your account has been deactivated.",
            },
        )

    access_token = create_access_token(
        subject=str(admin.id),
        additional_claims={
            "email": admin.email,
            "role": admin.role.value,
            "name": admin.name,
        },
    )
    refresh_token = create_refresh_token(subject=str(admin.id))

    logger.info(f"Admin logged in: {admin.id} (role: {admin.role.value})")

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        admin=AdminResponse(
            id=str(admin.id),
            email=admin.email,
            name=admin.name,
            role=admin.role.value,
        ),
    )


@router.get("/me", response_model=AdminResponse)
async def me(admin: AdminUser = Depends(get_current_admin_user)) -> AdminResponse:
    """Return the authenticated admin's profile."""
    return AdminResponse(id=str(admin.id), email=admin.email, name=admin.name, role=admin.role)
