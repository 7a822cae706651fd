"""Tests for the account profile endpoints."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from hivcare.config import settings
from hivcare.db import db_manager, BackendError


def test_get_profile(client, login_as, patient_user):
    login_as(patient_user)
    profile = {"full_name": "Budi Santoso", "phone": "081234567890"}

    with patch.object(db_manager, "fetch_one", new=AsyncMock(return_value=profile)):
        response = client.get("/api/v1/profile")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "full_name": "Budi Santoso",
        "phone": "081234567890",
        "email": "pasien@example.com",
    }


def test_update_name_and_phone_keeps_session(client, login_as, patient_user):
    login_as(patient_user)
    update = AsyncMock(return_value=[{}])
    update_session = AsyncMock()

    with patch.object(db_manager, "update", new=update), \
            patch.object(db_manager, "update_user_session", new=update_session):
        response = client.put("/api/v1/profile", json={
            "full_name": "Budi S", "phone": "", "email": "pasien@example.com", "password": "",
        })

    assert response.status_code == 200
    assert response.json()["data"]["signed_out"] is False
    update.assert_awaited_once()
    assert update.await_args.args[1] == {"full_name": "Budi S", "phone": None}
    update_session.assert_not_awaited()


def test_new_password_signs_out(client, login_as, patient_user):
    login_as(patient_user)
    update_session = AsyncMock()
    sign_out = AsyncMock()

    with patch.object(db_manager, "update", new=AsyncMock(return_value=[{}])), \
            patch.object(db_manager, "update_user_session", new=update_session), \
            patch.object(db_manager, "sign_out", new=sign_out):
        response = client.put("/api/v1/profile", json={
            "full_name": "Budi Santoso", "email": "baru@example.com", "password": "rahasia1",
        })

    assert response.status_code == 200
    assert response.json()["data"]["signed_out"] is True
    update_session.assert_awaited_once_with(
        "patient-token", {"email": "baru@example.com", "password": "rahasia1"}
    )
    body = response.json()
    assert body["message"].startswith("Profile updated. Confirm the change")
    assert body["data"]["profile"]["email"] == "pasien@example.com"
    sign_out.assert_awaited_once_with("patient-token")


def test_duplicate_phone_message(client, login_as, patient_user):
    login_as(patient_user)
    error = BackendError("duplicate key value violates unique constraint", code="23505")

    with patch.object(db_manager, "update", new=AsyncMock(side_effect=error)):
        response = client.put("/api/v1/profile", json={
            "full_name": "Budi Santoso", "phone": "081234567890",
        })

    assert response.status_code == 400
    assert response.json()["error"] == "Phone number is already used by another account"


def test_invalid_phone_rejected_before_backend(client, login_as, patient_user):
    login_as(patient_user)

    response = client.put("/api/v1/profile", json={"full_name": "Budi", "phone": "12345"})

    assert response.status_code == 422
    assert response.json()["error"] == "Invalid phone number format. Use 08xxxxxxxx"


def test_password_only_change_keeps_email_message(client, login_as, patient_user):
    login_as(patient_user)
    update_session = AsyncMock()

    with patch.object(db_manager, "update", new=AsyncMock(return_value=[{}])), \
            patch.object(db_manager, "update_user_session", new=update_session), \
            patch.object(db_manager, "sign_out", new=AsyncMock()):
        response = client.put("/api/v1/profile", json={
            "full_name": "Budi Santoso", "email": "pasien@example.com", "password": "rahasia1",
        })

    assert response.status_code == 200
    assert response.json()["message"] == "Profile updated successfully"
    assert response.json()["data"]["signed_out"] is True


class TestSessionUpdate:

    @pytest.mark.asyncio
    async def test_puts_attributes_with_user_token(self):
        response = Mock(status_code=200)
        put = AsyncMock(return_value=response)

        with patch.object(settings, "supabase_url", "https://example.supabase.co/"), \
                patch.object(settings, "supabase_anon_key", "anon"), \
                patch.object(httpx.AsyncClient, "put", new=put):
            await db_manager.update_user_session("user-token", {"email": "baru@example.com"})

        assert put.await_args.args[0] == "https://example.supabase.co/auth/v1/user"
        assert put.await_args.kwargs["json"] == {"email": "baru@example.com"}
        assert put.await_args.kwargs["headers"] == {"apikey": "anon", "Authorization": "Bearer user-token"}
        assert put.await_args.kwargs["params"] == {"redirect_to": settings.app_base_url}

    @pytest.mark.asyncio
    async def test_auth_error_becomes_backend_error(self):
        response = Mock(status_code=422)
        response.json.return_value = {"code": 422, "error_code": "email_exists", "msg": "Email address already registered"}

        with patch.object(httpx.AsyncClient, "put", new=AsyncMock(return_value=response)):
            with pytest.raises(BackendError) as exc_info:
                await db_manager.update_user_session("user-token", {"email": "dipakai@example.com"})

        assert exc_info.value.message == "Email address already registered"
        assert exc_info.value.code == "email_exists"

    @pytest.mark.asyncio
    async def test_network_failure(self):
        error = httpx.ConnectError("connection refused")
        with patch.object(httpx.AsyncClient, "put", new=AsyncMock(side_effect=error)):
            with pytest.raises(BackendError):
                await db_manager.update_user_session("user-token", {"password": "rahasia1"})
