"""Lab result upload endpoints (Hasil Lab)."""

import time
from datetime import date
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from ..config import settings, TABLES
from ..db import db_manager, BackendError
from ..security import require_patient, User
from ..timeutils import today
from ..models.common import BaseResponse, blank_to_none
from ..models.records import LabResult, LabResultListResponse, LabResultResponse

logger = structlog.get_logger()
router = APIRouter()


CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def check_upload(content_type: Optional[str], size: int) -> None:
    """Raise 400 when a lab image is too large or of the wrong type."""
    if size > settings.lab_upload_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum file size is {settings.lab_upload_max_bytes // (1024 * 1024)}MB"
        )
    if content_type not in settings.lab_upload_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be JPG, PNG or WEBP"
        )


def file_extension(filename: Optional[str], content_type: str) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return CONTENT_TYPE_EXTENSIONS.get(content_type, "bin")


def storage_path(image_url: str) -> str:
    """Object path inside the bucket: the last two URL segments."""
    return "/".join(image_url.split("?", 1)[0].rstrip("/").split("/")[-2:])


@router.get("", response_model=LabResultListResponse)
async def list_lab_results(current_user: User = Depends(require_patient)):
    try:
        rows = await db_manager.fetch(
            TABLES["lab_results"],
            eq={"patient_id": current_user.id},
            order="test_date",
            descending=True,
        )
    except BackendError as e:
        logger.error("Failed to load lab results", user_id=current_user.id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load lab results"
        )

    return LabResultListResponse(
        data=[LabResult(**row) for row in rows],
        total=len(rows),
        empty_message=None if rows else "No lab results yet",
    )


@router.post("", response_model=LabResultResponse, status_code=status.HTTP_201_CREATED)
async def upload_lab_result(
    file: Optional[UploadFile] = File(None),
    test_date: Optional[date] = Form(None),
    description: Optional[str] = Form(None),
    current_user: User = Depends(require_patient),
):
    """Upload a lab image and record it."""
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please choose a file first")

    if file.size is not None:
        check_upload(file.content_type, file.size)
    # Never buffer more than one byte past the limit
    content = await file.read(settings.lab_upload_max_bytes + 1)
    check_upload(file.content_type, len(content))

    path = f"{current_user.id}/{int(time.time() * 1000)}.{file_extension(file.filename, file.content_type)}"

    try:
        public_url = await db_manager.upload_file(
            settings.lab_results_bucket, path, content, file.content_type
        )
        row = await db_manager.insert(
            TABLES["lab_results"],
            {
                "patient_id": current_user.id,
                "image_url": public_url,
                "description": blank_to_none(description),
                "test_date": (test_date or today()).isoformat(),
            },
        )
    except BackendError as e:
        logger.error("Failed to upload lab result", user_id=current_user.id, path=path, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload lab result"
        )

    logger.info("Lab result uploaded", user_id=current_user.id, path=path)

    return LabResultResponse(message="Lab result uploaded", data=LabResult(**row))


@router.delete("/{result_id}", response_model=BaseResponse)
async def delete_lab_result(result_id: str, current_user: User = Depends(require_patient)):
    """Remove the stored image and its record; owners only."""
    try:
        row = await db_manager.fetch_one(
            TABLES["lab_results"],
            columns="id, patient_id, image_url",
            eq={"id": result_id},
        )
        if not row:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lab result not found")
        if not current_user.can_access_patient(row["patient_id"]):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed to delete this lab result"
            )

        await db_manager.remove_files(settings.lab_results_bucket, [storage_path(row["image_url"])])
        await db_manager.delete(TABLES["lab_results"], eq={"id": result_id})
    except BackendError as e:
        logger.error("Failed to delete lab result", result_id=result_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete lab result"
        )

    return BaseResponse(message="Lab result deleted")
