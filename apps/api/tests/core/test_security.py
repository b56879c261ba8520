"""
Unit tests for password hashing, JWTs and the admin auth dependency.
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.core.auth import get_current_admin_user
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)


class TestTokens:
    def test_access_token_round_trip(self):
        subject = str(uuid4())

        token = create_access_token(subject, {"email": "admin@x.com", "role": "admin"})
        payload = decode_token(token)

        assert payload["sub"] == subject
        assert payload["type"] == "access"
        assert payload["role"] == "admin"

    def test_expired_token_decodes_to_none(self):
        token = create_access_token("someone", expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None

    def test_tampered_token_decodes_to_none(self):
        header, _, signature = create_access_token("someone").split(".")
        _, payload, _ = create_access_token("someone-else").split(".")

        assert decode_token(f"{header}.{payload}.{signature}") is None


class TestGetCurrentAdminUser:
    """Tests for the admin auth dependency."""

    @pytest.mark.asyncio
    async def test_valid_admin_token(self):
        admin_id = uuid4()
        token = create_access_token(
            str(admin_id), {"email": "admin@x.com", "role": "super_admin", "name": "Registrar"}
        )

        user = await get_current_admin_user(_credentials(token))

        assert user.id == admin_id
        assert user.role == "super_admin"
        assert user.name == "Registrar"

    @pytest.mark.asyncio
    async def test_refresh_token_is_rejected(self):
        token = create_refresh_token(str(uuid4()))

        with pytest.raises(HTTPException) as exc_info:
            await get_current_admin_user(_credentials(token))

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"

    @pytest.mark.asyncio
    async def test_non_admin_role_is_forbidden(self):
        token = create_access_token(str(uuid4()), {"role": "student"})

        with pytest.raises(HTTPException) as exc_info:
            await get_current_admin_user(_credentials(token))

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_garbage_token_is_unauthorized(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_admin_user(_credentials("not-a-jwt"))

        assert exc_info.value.status_code == 401
