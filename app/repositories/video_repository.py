"""
Video persistence. All operations are sync (used from sync endpoints and the
pipeline worker thread). Writes commit; there is no cross-record transaction.
"""
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.models.video import ModerationStatus, Video, VideoStatus

UPDATABLE_FIELDS = frozenset({
    "title", "description", "tags", "status", "moderation_status", "sensitivity_analysis",
    "stream_path", "thumbnail_path", "duration", "technical_metadata", "organization_id",
})


def create_video(db: Session, **fields) -> Video:
    """Insert a new record with status=uploading and moderation_status=pending."""
    fields["status"] = VideoStatus.UPLOADING.value
    fields["moderation_status"] = ModerationStatus.PENDING.value
    fields.setdefault("tags", [])
    video = Video(**fields)
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def get_video(db: Session, video_id: str) -> Video | None:
    return db.query(Video).filter(Video.id == video_id).first()


def list_videos(
    db: Session,
    page: int = 1,
    limit: int = 10,
    uploaded_by_id: str | None = None,
) -> tuple[list[Video], int]:
    """One page (1-indexed), newest first, plus the total matching count."""
    q = db.query(Video)
    if uploaded_by_id is not None:
        q = q.filter(Video.uploaded_by_id == uploaded_by_id)
    total = q.count()
    items = (
        q.order_by(desc(Video.created_at), desc(Video.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def update_video(db: Session, video: Video, **partial) -> Video:
    """Merge the provided fields; fields not passed are left untouched."""
    unknown = set(partial) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown video fields: {', '.join(sorted(unknown))}")
    for key, value in partial.items():
        setattr(video, key, value)
    db.commit()
    db.refresh(video)
    return video


def delete_video(db: Session, video: Video) -> None:
    db.delete(video)
    db.commit()
