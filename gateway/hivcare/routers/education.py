"""Education content endpoints: articles and videos."""

from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import TABLES
from ..db import db_manager, BackendError
from ..security import get_optional_user, require_admin, User
from ..models.common import BaseResponse, youtube_video_id
from ..models.education import (
    Article, ArticleForm, ArticleListResponse, ArticleResponse,
    Video, VideoForm, VideoListResponse, VideoResponse,
)

logger = structlog.get_logger()
router = APIRouter()


def empty_hint(user: Optional[User], kind: str) -> str:
    if user is not None and user.is_admin:
        return f"Start adding educational {kind} for patients"
    return f"Educational {kind} will appear here"


def to_video(row: Dict[str, Any]) -> Video:
    video_id = youtube_video_id(row["youtube_url"])
    return Video(
        **row,
        video_id=video_id,
        embed_url=f"https://www.youtube.com/embed/{video_id}" if video_id else None,
    )


# ----------------------------------------------------------------------
# Articles
# ----------------------------------------------------------------------

@router.get("/articles", response_model=ArticleListResponse)
async def list_articles(current_user: Optional[User] = Depends(get_optional_user)):
    """All articles, newest first."""
    try:
        rows = await db_manager.fetch(
            TABLES["education_articles"], order="created_at", descending=True
        )
    except BackendError as e:
        logger.error("Failed to load articles", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load articles"
        )

    return ArticleListResponse(
        data=[Article(**row) for row in rows],
        total=len(rows),
        empty_message=None if rows else empty_hint(current_user, "articles"),
    )


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str):
    try:
        row = await db_manager.fetch_one(TABLES["education_articles"], eq={"id": article_id})
    except BackendError as e:
        logger.error("Failed to load article", article_id=article_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load article"
        )

    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")

    return ArticleResponse(data=Article(**row))


@router.post("/articles", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(form: ArticleForm, current_user: User = Depends(require_admin)):
    try:
        row = await db_manager.insert(
            TABLES["education_articles"],
            {**form.model_dump(), "author_id": current_user.id},
        )
    except BackendError as e:
        logger.error("Failed to create article", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add article"
        )

    logger.info("Article created", article_id=row.get("id"), author_id=current_user.id)

    return ArticleResponse(message="Article added", data=Article(**row))


@router.put("/articles/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    form: ArticleForm,
    current_user: User = Depends(require_admin)
):
    try:
        rows = await db_manager.update(
            TABLES["education_articles"], form.model_dump(), eq={"id": article_id}
        )
    except BackendError as e:
        logger.error("Failed to update article", article_id=article_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update article"
        )

    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")

    return ArticleResponse(message="Article updated", data=Article(**rows[0]))


@router.delete("/articles/{article_id}", response_model=BaseResponse)
async def delete_article(article_id: str, current_user: User = Depends(require_admin)):
    try:
        await db_manager.delete(TABLES["education_articles"], eq={"id": article_id})
    except BackendError as e:
        logger.error("Failed to delete article", article_id=article_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete article"
        )

    return BaseResponse(message="Article deleted")


# ----------------------------------------------------------------------
# Videos
# ----------------------------------------------------------------------

@router.get("/videos", response_model=VideoListResponse)
async def list_videos(current_user: Optional[User] = Depends(get_optional_user)):
    try:
        rows = await db_manager.fetch(
            TABLES["education_videos"], order="created_at", descending=True
        )
    except BackendError as e:
        logger.error("Failed to load videos", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load videos"
        )

    return VideoListResponse(
        data=[to_video(row) for row in rows],
        total=len(rows),
        empty_message=None if rows else empty_hint(current_user, "videos"),
    )


@router.post("/videos", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(form: VideoForm, current_user: User = Depends(require_admin)):
    try:
        row = await db_manager.insert(
            TABLES["education_videos"],
            {**form.model_dump(), "author_id": current_user.id},
        )
    except BackendError as e:
        logger.error("Failed to create video", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add video"
        )

    return VideoResponse(message="Video added", data=to_video(row))


@router.delete("/videos/{video_id}", response_model=BaseResponse)
async def delete_video(video_id: str, current_user: User = Depends(require_admin)):
    try:
        await db_manager.delete(TABLES["education_videos"], eq={"id": video_id})
    except BackendError as e:
        logger.error("Failed to delete video", video_id=video_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete video"
        )

    return BaseResponse(message="Video deleted")
