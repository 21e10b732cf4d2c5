from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field, field_validator
from app.models.video import ModerationStatus, VideoStatus


class UploaderSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str

    class Config:
        from_attributes = True


class VideoResponse(BaseModel):
    id: str
    title: str
    description: str | None
    file_name: str
    file_size: int
    duration: float | None
    thumbnail_path: str | None
    stream_path: str | None
    status: str
    moderation_status: str
    sensitivity_analysis: dict[str, Any] | None
    uploaded_by: UploaderSummary | None
    organization_id: str | None
    tags: list[str]
    technical_metadata: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VideoUpdate(BaseModel):
    """Owner edit. Omitted fields are left untouched."""
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    tags: list[str] | str | None = None  # list or comma separated string
    status: VideoStatus | None = None

    @field_validator("tags")
    @classmethod
    def _split_tags(cls, v):
        if v is None:
            return None
        return parse_tags(v)


class ModerateRequest(BaseModel):
    moderation_status: ModerationStatus

    @field_validator("moderation_status")
    @classmethod
    def _not_pending(cls, v: ModerationStatus) -> ModerationStatus:
        if v == ModerationStatus.PENDING:
            raise ValueError("moderation_status must be approved, rejected or flagged")
        return v


class StreamInfoResponse(BaseModel):
    video_id: str
    stream_url: str
    thumbnail_url: str | None
    duration: float | None
    metadata: dict[str, Any] | None
    moderation_status: str


class ProcessingJobResponse(BaseModel):
    id: str
    video_id: str
    state: str
    error_message: str | None
    created_at: datetime
    started_at: datetime | None
    finished_at: datetime | None

    class Config:
        from_attributes = True


def parse_tags(value: list[str] | str | None) -> list[str]:
    """Accept a list or a comma separated string; trim and drop empty entries."""
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [t.strip() for t in items if t and t.strip()]
