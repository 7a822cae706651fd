"""Tests for lab result upload endpoints."""

import io
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from hivcare.config import settings
from hivcare.db import db_manager
from hivcare.routers.lab_results import storage_path, upload_lab_result


PUBLIC_URL = "https://example.supabase.co/storage/v1/object/public/lab-results/u1/1714521600000.png"


def test_storage_path_from_public_url():
    assert storage_path(PUBLIC_URL) == "u1/1714521600000.png"
    assert storage_path(PUBLIC_URL + "?") == "u1/1714521600000.png"


def test_list_empty(client, login_as, patient_user):
    login_as(patient_user)

    with patch.object(db_manager, "fetch", new=AsyncMock(return_value=[])):
        response = client.get("/api/v1/lab-results")

    body = response.json()
    assert body["total"] == 0
    assert body["empty_message"] == "No lab results yet"


class TestUpload:

    def test_upload_and_record(self, client, login_as, patient_user):
        login_as(patient_user)
        upload = AsyncMock(return_value=PUBLIC_URL)
        insert = AsyncMock(return_value={
            "id": "r1", "patient_id": patient_user.id, "image_url": PUBLIC_URL,
            "description": "CD4", "test_date": "2024-05-01",
        })

        with patch.object(db_manager, "upload_file", new=upload), \
                patch.object(db_manager, "insert", new=insert):
            response = client.post(
                "/api/v1/lab-results",
                files={"file": ("hasil.png", b"\x89PNG data", "image/png")},
                data={"test_date": "2024-05-01", "description": "CD4"},
            )

        assert response.status_code == 201
        bucket, path, content, content_type = upload.await_args.args
        assert bucket == settings.lab_results_bucket
        assert path.startswith(f"{patient_user.id}/") and path.endswith(".png")
        assert content_type == "image/png"
        assert insert.await_args.args[1]["image_url"] == PUBLIC_URL

    def test_missing_file(self, client, login_as, patient_user):
        login_as(patient_user)
        response = client.post("/api/v1/lab-results", data={"description": "CD4"})

        assert response.status_code == 400
        assert response.json()["error"] == "Please choose a file first"

    def test_rejects_wrong_type(self, client, login_as, patient_user):
        login_as(patient_user)
        response = client.post(
            "/api/v1/lab-results",
            files={"file": ("hasil.pdf", b"%PDF", "application/pdf")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "File must be JPG, PNG or WEBP"

    def test_rejects_large_file(self, client, login_as, patient_user):
        login_as(patient_user)
        content = b"0" * (settings.lab_upload_max_bytes + 1)
        response = client.post(
            "/api/v1/lab-results",
            files={"file": ("hasil.jpg", content, "image/jpeg")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Maximum file size is 5MB"

    @pytest.mark.asyncio
    async def test_oversized_upload_read_is_bounded(self, patient_user):
        body = b"0" * (settings.lab_upload_max_bytes * 3)
        upload = UploadFile(io.BytesIO(body), filename="hasil.jpg", headers=Headers({"content-type": "image/jpeg"}))
        upload.read = AsyncMock(wraps=upload.read)

        with pytest.raises(HTTPException) as exc_info:
            await upload_lab_result(file=upload, test_date=None, description=None, current_user=patient_user)

        assert exc_info.value.status_code == 400
        upload.read.assert_awaited_once_with(settings.lab_upload_max_bytes + 1)

    @pytest.mark.asyncio
    async def test_declared_size_rejected_before_reading(self, patient_user):
        body = b"0" * (settings.lab_upload_max_bytes + 10)
        upload = UploadFile(
            io.BytesIO(body), size=len(body), filename="hasil.jpg",
            headers=Headers({"content-type": "image/jpeg"}),
        )
        upload.read = AsyncMock(wraps=upload.read)

        with pytest.raises(HTTPException) as exc_info:
            await upload_lab_result(file=upload, test_date=None, description=None, current_user=patient_user)

        assert exc_info.value.detail == "Maximum file size is 5MB"
        upload.read.assert_not_awaited()


class TestDelete:

    def test_owner_deletes_file_and_row(self, client, login_as, patient_user):
        login_as(patient_user)
        row = {"id": "r1", "patient_id": patient_user.id, "image_url": PUBLIC_URL}
        remove = AsyncMock()
        delete = AsyncMock()

        with patch.object(db_manager, "fetch_one", new=AsyncMock(return_value=row)), \
                patch.object(db_manager, "remove_files", new=remove), \
                patch.object(db_manager, "delete", new=delete):
            response = client.delete("/api/v1/lab-results/r1")

        assert response.status_code == 200
        remove.assert_awaited_once_with(settings.lab_results_bucket, ["u1/1714521600000.png"])
        delete.assert_awaited_once()

    def test_other_patients_result_forbidden(self, client, login_as, patient_user):
        login_as(patient_user)
        row = {"id": "r1", "patient_id": "someone-else", "image_url": PUBLIC_URL}
        remove = AsyncMock()

        with patch.object(db_manager, "fetch_one", new=AsyncMock(return_value=row)), \
                patch.object(db_manager, "remove_files", new=remove):
            response = client.delete("/api/v1/lab-results/r1")

        assert response.status_code == 403
        remove.assert_not_awaited()
