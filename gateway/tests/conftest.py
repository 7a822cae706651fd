"""Shared fixtures for gateway tests."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from hivcare.main import app
from hivcare.models.common import UserRole
from hivcare.security import User, get_current_user, get_optional_user
from hivcare.services.maintenance import maintenance_guard


@pytest.fixture(autouse=True)
def maintenance_off():
    """Keep the maintenance gate open unless a test says otherwise."""
    maintenance_guard.reset()
    with patch.object(maintenance_guard, "is_enabled", new=AsyncMock(return_value=False)):
        yield
    maintenance_guard.reset()


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def patient_user():
    return User(
        id=str(uuid.uuid4()),
        email="pasien@example.com",
        role=UserRole.PATIENT,
        full_name="Budi Santoso",
        access_token="patient-token",
    )


@pytest.fixture
def admin_user():
    return User(
        id=str(uuid.uuid4()),
        email="perawat@example.com",
        role=UserRole.ADMIN,
        full_name="Siti Rahma",
        access_token="admin-token",
    )


@pytest.fixture
def login_as():
    """Authenticate every request as the given user."""
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_optional_user] = lambda: user
        return user
    return _login
