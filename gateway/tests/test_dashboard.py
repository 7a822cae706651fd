"""Tests for navigation helpers and the dashboard endpoint."""

from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import pytest

from hivcare.db import db_manager
from hivcare.models.common import UserRole
from hivcare.services.navigation import (
    control_status, greeting, long_date, menu_for, navigation_for, role_label, schedule_card,
)


class TestNavigation:

    def test_patient_navigation(self):
        hrefs = [item.href for item in navigation_for(UserRole.PATIENT)]
        assert hrefs == [
            "/dashboard", "/education", "/medications", "/health-log",
            "/lab-results", "/control-schedule", "/profile",
        ]

    def test_admin_navigation(self):
        hrefs = [item.href for item in navigation_for(UserRole.ADMIN)]
        assert hrefs == [
            "/dashboard", "/patients", "/education", "/manage-schedules", "/staff", "/profile",
        ]

    def test_menus_and_labels(self):
        assert [card.href for card in menu_for(UserRole.PATIENT)] == [
            "/medications", "/health-log", "/lab-results", "/control-schedule",
        ]
        assert [card.href for card in menu_for(UserRole.ADMIN)] == [
            "/patients", "/manage-schedules", "/education", "/staff",
        ]
        assert role_label(UserRole.ADMIN) == "Tenaga Medis"
        assert role_label(UserRole.PATIENT) == "Pasien"

    @pytest.mark.parametrize("hour,expected", [
        (0, "Selamat Pagi"), (11, "Selamat Pagi"), (12, "Selamat Siang"),
        (14, "Selamat Siang"), (15, "Selamat Sore"), (17, "Selamat Sore"), (18, "Selamat Malam"),
    ])
    def test_greeting(self, hour, expected):
        assert greeting(hour) == expected

    def test_control_status(self):
        today = date(2024, 5, 1)
        assert control_status("2024-05-01", today) == "today"
        assert control_status("2024-04-30", today) == "past"
        assert control_status("2024-05-02", today) == "upcoming"

    def test_schedule_cards(self):
        med = schedule_card(
            "med",
            {"medication_name": "TLD", "dosage": "1 tablet", "schedule_time": "08:00:00"},
            "Budi",
        )
        assert med.title == "TLD"
        assert med.subtitle == "08:00 • 1 tablet"
        assert med.patient_name == "Budi"

        control = schedule_card(
            "control",
            {"scheduled_date": "2024-05-02", "scheduled_time": "09:30:00", "location": "Poli VCT"},
            "Budi",
        )
        assert control.subtitle == "09:30"
        assert control.location == "Poli VCT"
        assert control.title == "2 Mei 2024"


class TestDashboardEndpoint:

    def test_requires_authentication(self, client):
        response = client.get("/api/v1/dashboard")
        assert response.status_code in (401, 403)

    def test_patient_dashboard(self, client, login_as, patient_user):
        login_as(patient_user)
        fetch = AsyncMock(side_effect=[
            [{"id": "s1"}, {"id": "s2"}],
            [{"id": "l1"}],
            [{"scheduled_date": "2099-01-10", "scheduled_time": "09:00:00"}],
            [],
        ])

        with patch.object(db_manager, "fetch", new=fetch), \
                patch("hivcare.routers.dashboard.local_now", return_value=datetime(2024, 5, 1, 9, 0)):
            response = client.get("/api/v1/dashboard")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["greeting"] == "Selamat Pagi"
        assert data["full_name"] == "Budi Santoso"
        assert data["admin_stats"] is None
        assert data["patient_stats"] == {
            "total_meds": 2,
            "today_meds_taken": 1,
            "upcoming_control": "2099-01-10 09:00:00",
            "today_log_exists": False,
        }
        assert len(data["menu"]) == 4

    def test_admin_dashboard(self, client, login_as, admin_user):
        login_as(admin_user)
        fetch = AsyncMock(side_effect=[
            [{"id": "r1"}, {"id": "r2"}, {"id": "r3"}],
            [{"id": "a1"}],
            [],
        ])

        with patch.object(db_manager, "fetch", new=fetch):
            response = client.get("/api/v1/dashboard")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["admin_stats"] == {"total_patients": 3, "total_articles": 1, "pending_controls": 0}
        assert data["menu"][0]["href"] == "/patients"


@pytest.mark.parametrize("value,expected", [
    ("2024-01-05", "5 Januari 2024"),
    ("2024-08-17", "17 Agustus 2024"),
    ("2024-12-31", "31 Desember 2024"),
])
def test_long_date_uses_indonesian_months(value, expected):
    assert long_date(value) == expected
