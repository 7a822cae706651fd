"""Tests for form validation rules."""

from datetime import date

import pytest
from pydantic import ValidationError

from hivcare.models.auth import ResetPasswordRequest, SignInRequest, SignUpRequest
from hivcare.models.common import youtube_video_id
from hivcare.models.education import ArticleForm, VideoForm
from hivcare.models.patients import ProfileUpdate
from hivcare.models.records import HealthLog
from hivcare.models.schedules import ControlScheduleCreate, MedicationScheduleCreate


def first_message(exc_info) -> str:
    return exc_info.value.errors()[0]["msg"]


class TestAccountForms:

    def test_sign_in_rejects_invalid_email(self):
        with pytest.raises(ValidationError):
            SignInRequest(email="not-an-email", password="secret1")

    def test_short_password(self):
        with pytest.raises(ValidationError) as exc_info:
            SignUpRequest(full_name="Budi", email="budi@example.com", password="12345")
        assert "at least 6 characters" in first_message(exc_info)

    def test_full_name_bounds(self):
        with pytest.raises(ValidationError):
            SignUpRequest(full_name="B", email="budi@example.com", password="secret1")
        with pytest.raises(ValidationError):
            SignUpRequest(full_name="B" * 101, email="budi@example.com", password="secret1")

        form = SignUpRequest(full_name="  Budi  ", email="budi@example.com", password="secret1")
        assert form.full_name == "Budi"

    def test_reset_password_must_match(self):
        with pytest.raises(ValidationError) as exc_info:
            ResetPasswordRequest(password="secret1", confirm_password="secret2")
        assert "must match" in first_message(exc_info)

        form = ResetPasswordRequest(password="secret1", confirm_password="secret1")
        assert form.password == "secret1"


class TestProfileForm:

    @pytest.mark.parametrize("phone", ["0812345678", "081234567890", "0812345678901"])
    def test_valid_phone(self, phone):
        assert ProfileUpdate(full_name="Budi", phone=phone).phone == phone

    @pytest.mark.parametrize("phone", ["0712345678", "081234", "08123456789012", "+62812345678"])
    def test_invalid_phone(self, phone):
        with pytest.raises(ValidationError) as exc_info:
            ProfileUpdate(full_name="Budi", phone=phone)
        assert "08xxxxxxxx" in first_message(exc_info)

    def test_blank_phone_and_password_are_cleared(self):
        form = ProfileUpdate(full_name="Budi", phone="  ", password="")
        assert form.phone is None
        assert form.password is None


class TestScheduleForms:

    def test_medication_requires_time_format(self):
        with pytest.raises(ValidationError) as exc_info:
            MedicationScheduleCreate(
                patient_id="p1", medication_name="ARV", dosage="1 tablet", schedule_time="8 pagi"
            )
        assert "HH:MM" in first_message(exc_info)

    def test_medication_requires_name(self):
        with pytest.raises(ValidationError):
            MedicationScheduleCreate(
                patient_id="p1", medication_name=" ", dosage="1 tablet", schedule_time="08:00"
            )

    def test_control_schedule(self):
        form = ControlScheduleCreate(
            patient_id="p1", scheduled_date="2024-05-02", scheduled_time="09:30", location=""
        )
        assert form.scheduled_date == date(2024, 5, 2)
        assert form.location is None

        with pytest.raises(ValidationError):
            ControlScheduleCreate(patient_id="p1", scheduled_date="02/05/2024", scheduled_time="09:30")


class TestEducationForms:

    def test_article_requires_title_and_content(self):
        with pytest.raises(ValidationError):
            ArticleForm(title="", content="isi")
        assert ArticleForm(title="Judul", content="Isi", image_url="").image_url is None

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://youtube.com/shorts/dQw4w9WgXcQ",
    ])
    def test_youtube_urls(self, url):
        assert youtube_video_id(url) == "dQw4w9WgXcQ"
        assert VideoForm(title="Video", youtube_url=url).youtube_url == url

    def test_rejects_non_youtube_url(self):
        with pytest.raises(ValidationError) as exc_info:
            VideoForm(title="Video", youtube_url="https://vimeo.com/12345")
        assert "YouTube" in first_message(exc_info)


def test_health_log_symptom_labels():
    log = HealthLog(
        id="h1", log_date="2024-05-01", has_nausea=True, has_dizziness=None, has_skin_rash=True
    )
    assert log.has_dizziness is False
    assert log.active_symptoms == ["Mual", "Ruam Kulit"]
