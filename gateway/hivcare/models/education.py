"""Education content Pydantic models."""

from typing import Optional, List

from pydantic import BaseModel, field_validator

from .common import BaseResponse, CommonValidators, TimestampMixin, blank_to_none, youtube_video_id


class Article(TimestampMixin):
    """Row of `education_articles`."""
    id: str
    title: str
    content: str
    image_url: Optional[str] = None
    author_id: Optional[str] = None


class ArticleForm(BaseModel):
    """Create/edit form for an article."""
    title: str
    content: str
    image_url: Optional[str] = None

    @field_validator("title", "content")
    @classmethod
    def validate_required(cls, v):
        return CommonValidators.validate_required_text(v)

    @field_validator("image_url")
    @classmethod
    def normalize_image_url(cls, v):
        return blank_to_none(v)


class ArticleResponse(BaseResponse):
    data: Article


class ArticleListResponse(BaseResponse):
    data: List[Article]
    total: int
    empty_message: Optional[str] = None


class Video(TimestampMixin):
    """Row of `education_videos` with embed information."""
    id: str
    title: str
    description: Optional[str] = None
    youtube_url: str
    author_id: Optional[str] = None
    video_id: Optional[str] = None
    embed_url: Optional[str] = None


class VideoForm(BaseModel):
    title: str
    description: Optional[str] = None
    youtube_url: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return CommonValidators.validate_required_text(v)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v):
        return blank_to_none(v)

    @field_validator("youtube_url")
    @classmethod
    def validate_youtube_url(cls, v):
        if youtube_video_id(v) is None:
            raise ValueError("Enter a valid YouTube URL")
        return v.strip()


class VideoResponse(BaseResponse):
    data: Video


class VideoListResponse(BaseResponse):
    data: List[Video]
    total: int
    empty_message: Optional[str] = None
