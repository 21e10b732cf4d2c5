"""
Uploaded video and its lifecycle.
status: uploading -> processing -> completed | failed (see ALLOWED_TRANSITIONS).
moderation_status starts pending and is set by the pipeline or a moderator.
Paths (file_path, stream_path, thumbnail_path) are relative to the uploads root.
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship
from app.database import Base


class VideoStatus(str, enum.Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ModerationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"


ALLOWED_TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    # uploading -> failed only happens when marking the record processing fails
    VideoStatus.UPLOADING: frozenset({VideoStatus.PROCESSING, VideoStatus.FAILED}),
    VideoStatus.PROCESSING: frozenset({VideoStatus.COMPLETED, VideoStatus.FAILED}),
    VideoStatus.COMPLETED: frozenset(),
    VideoStatus.FAILED: frozenset(),
}


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from {current} to {requested}")
        self.current = current
        self.requested = requested


def can_transition(current: VideoStatus | str, new: VideoStatus | str) -> bool:
    return VideoStatus(new) in ALLOWED_TRANSITIONS[VideoStatus(current)]


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (
        Index("ix_videos_uploaded_by_status", "uploaded_by_id", "status"),
        Index("ix_videos_organization_status", "organization_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    file_name = Column(String(255), nullable=False)  # original client filename
    file_path = Column(String(512), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    duration = Column(Float, nullable=True)  # seconds
    thumbnail_path = Column(String(512), nullable=True)
    stream_path = Column(String(512), nullable=True)  # set only together with status=completed
    status = Column(String(20), nullable=False, default=VideoStatus.UPLOADING.value, index=True)
    moderation_status = Column(String(20), nullable=False, default=ModerationStatus.PENDING.value, index=True)
    # {score, text_score, flags, detected_content, analyzed_at}
    sensitivity_analysis = Column(JSON, nullable=True)
    uploaded_by_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    # {resolution, format, codec, bitrate}
    technical_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    uploaded_by = relationship("User", lazy="joined")

    def transition_to(self, new: VideoStatus) -> None:
        """Advance status, refusing any edge outside ALLOWED_TRANSITIONS."""
        if not can_transition(self.status, new):
            raise InvalidStatusTransition(self.status, VideoStatus(new).value)
        self.status = VideoStatus(new).value

    @property
    def is_stream_ready(self) -> bool:
        return self.status == VideoStatus.COMPLETED.value and bool(self.stream_path)
