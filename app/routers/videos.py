"""
Video upload, listing, owner edits, moderation overrides and HLS streaming.
Upload returns as soon as the record exists; moderation and transcoding run in
the background (app.services.pipeline) and are visible through `status`.
"""
import logging
from pathlib import Path
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from app.auth import get_current_user, require_permissions, restrict_to
from app.database import get_db
from app.errors import Forbidden, NotFound, ValidationFailed
from app.models.organization import Organization
from app.models.user import User
from app.models.video import InvalidStatusTransition, ModerationStatus, Video, VideoStatus, can_transition
from app.permissions import MODERATION_ROLES, Permission
from app.repositories import video_repository
from app.schemas.common import paginate_meta, success_response
from app.schemas.video import (
    ModerateRequest,
    ProcessingJobResponse,
    StreamInfoResponse,
    VideoResponse,
    VideoUpdate,
    parse_tags,
)
from app.services.pipeline import VideoPipeline, get_video_pipeline, latest_job
from app.services.video_upload import (
    processed_dir,
    relative_to_root,
    remove_video_files,
    save_video_upload,
)

router = APIRouter(prefix="/api/videos", tags=["videos"])
logger = logging.getLogger(__name__)

REJECTED_MESSAGE = "This video has been rejected by moderation and cannot be streamed."
# Set only by the processing pipeline
PIPELINE_STATUSES = (VideoStatus.PROCESSING, VideoStatus.COMPLETED)


def _get_video_or_404(db: Session, video_id: str) -> Video:
    video = video_repository.get_video(db, video_id)
    if not video:
        raise NotFound("Video not found")
    return video


def _require_owner(video: Video, user: User, action: str) -> None:
    if video.uploaded_by_id != user.id:
        raise Forbidden(f"Not authorized to {action} this video")


def _video_list_response(items: list[Video], page: int, limit: int, total: int) -> dict:
    return success_response({
        "videos": [VideoResponse.model_validate(v) for v in items],
        "pagination": paginate_meta(page, limit, total),
    })


def _safe_stream_file_path(video_id: str, filename: str) -> Path | None:
    """Resolve filename under processed/<video_id>. Return None if invalid (path traversal)."""
    base = processed_dir(video_id).resolve()
    if not base.is_dir():
        return None
    try:
        full = (base / filename).resolve()
        full.relative_to(base)  # raises ValueError if path escaped
    except (ValueError, OSError):
        return None
    if not full.is_file():
        return None
    return full


def _media_type_for_filename(filename: str) -> str:
    """Return media type for HLS playlist, segment and thumbnail files."""
    lower = filename.lower()
    if lower.endswith(".m3u8"):
        return "application/vnd.apple.mpegurl"
    if lower.endswith(".ts"):
        return "video/MP2T"
    if lower.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    return "application/octet-stream"


# ---------- Upload & list ----------


@router.post("", status_code=status.HTTP_201_CREATED)
def upload_video(
    background_tasks: BackgroundTasks,
    video: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=200),
    description: str | None = Form(None, max_length=1000),
    tags: str | None = Form(None),
    organization_id: str | None = Form(None),
    user: User = Depends(require_permissions(Permission.VIDEO_CREATE)),
    db: Session = Depends(get_db),
    pipeline: VideoPipeline = Depends(get_video_pipeline),
):
    """
    Store the file, create the record (uploading/pending) and queue processing.
    The response does not wait for processing.
    """
    if organization_id:
        org = db.query(Organization).filter(Organization.id == organization_id).first()
        if not org:
            raise NotFound("Organization not found")
        if not org.is_member(user.id):
            raise Forbidden("Not a member of this organization")

    video_id, path, size = save_video_upload(video)
    try:
        record = video_repository.create_video(
            db,
            id=video_id,
            title=title.strip(),
            description=description,
            file_name=video.filename or path.name,
            file_path=relative_to_root(path),
            file_size=size,
            uploaded_by_id=user.id,
            organization_id=organization_id or None,
            tags=parse_tags(tags),
        )
    except Exception:
        path.unlink(missing_ok=True)
        raise
    job = pipeline.enqueue(db, record)
    background_tasks.add_task(pipeline.run, record.id, job.id)
    logger.info("Video %s uploaded by %s (%s bytes); job %s queued", record.id, user.id, size, job.id)

    return success_response(
        {"video": VideoResponse.model_validate(record), "job_id": job.id},
        message="Video uploaded successfully",
    )


@router.get("")
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _user: User = Depends(require_permissions(Permission.VIDEO_READ)),
    db: Session = Depends(get_db),
):
    """All videos, newest first."""
    items, total = video_repository.list_videos(db, page=page, limit=limit)
    return _video_list_response(items, page, limit, total)


@router.get("/my-videos")
def list_my_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_permissions(Permission.VIDEO_READ)),
    db: Session = Depends(get_db),
):
    """Videos uploaded by the caller, newest first."""
    items, total = video_repository.list_videos(db, page=page, limit=limit, uploaded_by_id=user.id)
    return _video_list_response(items, page, limit, total)


# ---------- Single record ----------


@router.get("/{video_id}")
def get_video(
    video_id: str,
    _user: User = Depends(require_permissions(Permission.VIDEO_READ)),
    db: Session = Depends(get_db),
):
    video = _get_video_or_404(db, video_id)
    return success_response({"video": VideoResponse.model_validate(video)})


@router.put("/{video_id}")
def update_video(
    video_id: str,
    body: VideoUpdate,
    user: User = Depends(require_permissions(Permission.VIDEO_UPDATE)),
    db: Session = Depends(get_db),
):
    """Owner edit of title/description/tags/status. Omitted or null fields are kept."""
    video = _get_video_or_404(db, video_id)
    _require_owner(video, user, "update")

    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    new_status = changes.pop("status", None)
    if new_status is not None and VideoStatus(new_status).value != video.status:
        if new_status in PIPELINE_STATUSES:
            raise ValidationFailed(f"Status {VideoStatus(new_status).value} can only be set by processing")
        if not can_transition(video.status, new_status):
            raise ValidationFailed(str(InvalidStatusTransition(video.status, VideoStatus(new_status).value)))
        changes["status"] = VideoStatus(new_status).value

    video = video_repository.update_video(db, video, **changes)
    return success_response({"video": VideoResponse.model_validate(video)}, message="Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    user: User = Depends(require_permissions(Permission.VIDEO_DELETE)),
    db: Session = Depends(get_db),
):
    """Owner-only. Removes the record and its files; a running pipeline stops at its next write."""
    video = _get_video_or_404(db, video_id)
    _require_owner(video, user, "delete")
    file_path = video.file_path
    video_repository.delete_video(db, video)
    remove_video_files(video_id, file_path)
    logger.info("Video %s deleted by %s", video_id, user.id)
    return success_response(message="Video deleted successfully")


@router.get("/{video_id}/processing")
def get_processing_job(
    video_id: str,
    _user: User = Depends(require_permissions(Permission.VIDEO_READ)),
    db: Session = Depends(get_db),
):
    """Latest pipeline run for the video (queued/running/done/failed)."""
    job = latest_job(db, video_id)
    if not job:
        raise NotFound("No processing job for this video")
    return success_response({"job": ProcessingJobResponse.model_validate(job)})


# ---------- Moderation override ----------


@router.put("/{video_id}/moderate")
def moderate_video(
    video_id: str,
    body: ModerateRequest,
    user: User = Depends(restrict_to(*MODERATION_ROLES)),
    db: Session = Depends(get_db),
):
    video = _get_video_or_404(db, video_id)
    video = video_repository.update_video(db, video, moderation_status=body.moderation_status.value)
    logger.info("Video %s moderated to %s by %s", video_id, video.moderation_status, user.id)
    return success_response({"video": VideoResponse.model_validate(video)}, message="Moderation status updated")


# ---------- Streaming (Bearer) ----------


@router.get("/{video_id}/stream")
def get_stream(
    video_id: str,
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stream URL and playback metadata. 403 if rejected, 404 until processing completed."""
    video = _get_video_or_404(db, video_id)
    if video.moderation_status == ModerationStatus.REJECTED.value:
        raise Forbidden(REJECTED_MESSAGE)
    if not video.is_stream_ready:
        raise NotFound("Stream not available. Video is still processing or processing failed.")
    base = f"/api/videos/{video.id}/stream"
    info = StreamInfoResponse(
        video_id=video.id,
        stream_url=f"{base}/{Path(video.stream_path).name}",
        thumbnail_url=f"{base}/{Path(video.thumbnail_path).name}" if video.thumbnail_path else None,
        duration=video.duration,
        metadata=video.technical_metadata,
        moderation_status=video.moderation_status,
    )
    return success_response(info)


@router.get("/{video_id}/stream/{filename}")
def stream_file(
    video_id: str,
    filename: str,
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Serve the HLS playlist, its segments and the thumbnail."""
    video = _get_video_or_404(db, video_id)
    if video.moderation_status == ModerationStatus.REJECTED.value:
        raise Forbidden(REJECTED_MESSAGE)
    if not video.is_stream_ready:
        raise NotFound("Stream not available. Video is still processing or processing failed.")
    file_path = _safe_stream_file_path(video_id, filename)
    if not file_path:
        raise NotFound("Stream file not found")
    return FileResponse(
        file_path,
        media_type=_media_type_for_filename(file_path.name),
        headers={"Content-Disposition": "inline"},
    )
