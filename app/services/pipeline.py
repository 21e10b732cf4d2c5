"""
Moderation / processing pipeline for one uploaded video.

The upload endpoint creates a queued ProcessingJob and schedules run() with
FastAPI BackgroundTasks, so the HTTP response is sent before processing starts.
run() uses its own session and never raises: failures end with the video in
status=failed and the job in state=failed. There is no retry; a failed video
must be uploaded again.
"""
import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import SessionLocal
from app.models.processing_job import ACTIVE_JOB_STATES, JobState, ProcessingJob
from app.models.video import Video, VideoStatus
from app.services.sensitivity import (
    ContentClassifier,
    RandomContentClassifier,
    analyze_text,
    determine_moderation_status,
)
from app.services.transcoder import Transcoder, get_transcoder
from app.services.video_upload import processed_dir, relative_to_root, remove_video_files, uploads_root

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (VideoStatus.COMPLETED.value, VideoStatus.FAILED.value)
VIDEO_DELETED_MESSAGE = "video deleted"
INTERRUPTED_MESSAGE = "interrupted by restart"


class VideoDeleted(Exception):
    """The video row disappeared while its pipeline run was in progress."""


class VideoPipeline:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        classifier: ContentClassifier,
        transcoder: Transcoder,
    ):
        self.session_factory = session_factory
        self.classifier = classifier
        self.transcoder = transcoder

    def enqueue(self, db: Session, video: Video) -> ProcessingJob:
        """Record a queued run for `video`. Commits; the caller schedules run()."""
        job = ProcessingJob(video_id=video.id, state=JobState.QUEUED.value)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    def run(self, video_id: str, job_id: str | None = None) -> None:
        db = self.session_factory()
        try:
            job = db.query(ProcessingJob).filter(ProcessingJob.id == job_id).first() if job_id else None
            if job is None:
                job = ProcessingJob(video_id=video_id)
                db.add(job)
            job.state = JobState.RUNNING.value
            job.started_at = datetime.utcnow()
            db.commit()
            logger.info("Pipeline started for video %s (job %s)", video_id, job.id)

            try:
                self._process(db, video_id)
            except VideoDeleted:
                db.rollback()
                logger.warning("Video %s was deleted during processing; stopping", video_id)
                # the delete may have run before the transcoder wrote its output
                remove_video_files(video_id, None)
                self._finish_job(db, job.id, JobState.FAILED, VIDEO_DELETED_MESSAGE)
            except Exception as e:
                db.rollback()
                logger.exception("Pipeline failed for video %s", video_id)
                self._mark_failed(db, video_id)
                self._finish_job(db, job.id, JobState.FAILED, f"{type(e).__name__}: {e}")
            else:
                self._finish_job(db, job.id, JobState.DONE)
                logger.info("Pipeline completed for video %s", video_id)
        except Exception:
            # Bookkeeping itself failed (e.g. database unavailable); nothing left to update
            logger.exception("Pipeline bookkeeping failed for video %s", video_id)
        finally:
            db.close()

    def _require_video(self, db: Session, video_id: str) -> Video:
        video = db.query(Video).filter(Video.id == video_id).first()
        if video is None:
            raise VideoDeleted(video_id)
        return video

    def _process(self, db: Session, video_id: str) -> None:
        # 1. processing
        video = self._require_video(db, video_id)
        video.transition_to(VideoStatus.PROCESSING)
        db.commit()
        source_path = uploads_root() / video.file_path
        title, description = video.title, video.description

        # 2. text scan; recorded for reference but not part of the verdict
        text_score = analyze_text(f"{title} {description or ''}")
        logger.info("Text sensitivity score for video %s: %s", video_id, text_score)

        # 3. content scan
        analysis = self.classifier.analyze(source_path, {"title": title, "file_size": video.file_size})

        # 4. verdict
        verdict = determine_moderation_status(analysis.score)
        logger.info(
            "Video %s scored %s by %s -> %s",
            video_id, analysis.score, self.classifier.name, verdict.value,
        )

        # 5. transcode
        result = self.transcoder.transcode(video_id, source_path, processed_dir(video_id))

        # 6. write back
        video = self._require_video(db, video_id)
        video.transition_to(VideoStatus.COMPLETED)
        video.moderation_status = verdict.value
        video.sensitivity_analysis = {**analysis.to_dict(), "text_score": text_score}
        video.stream_path = relative_to_root(result.stream_path)
        video.thumbnail_path = relative_to_root(result.thumbnail_path)
        video.duration = result.duration
        video.technical_metadata = result.metadata
        db.commit()

    def _mark_failed(self, db: Session, video_id: str) -> None:
        """status=failed unless already terminal. moderation_status is left as is."""
        video = db.query(Video).filter(Video.id == video_id).first()
        if video is None or video.status in TERMINAL_STATUSES:
            return
        video.transition_to(VideoStatus.FAILED)
        db.commit()

    def _finish_job(self, db: Session, job_id: str, state: JobState, error: str | None = None) -> None:
        job = db.query(ProcessingJob).filter(ProcessingJob.id == job_id).first()
        if job is None:
            return
        job.state = state.value
        job.error_message = error
        job.finished_at = datetime.utcnow()
        db.commit()


def recover_interrupted_jobs(db: Session) -> int:
    """
    Fail jobs left queued/running by a previous process, and their videos.
    Returns the number of jobs recovered.
    """
    jobs = db.query(ProcessingJob).filter(ProcessingJob.state.in_(ACTIVE_JOB_STATES)).all()
    now = datetime.utcnow()
    for job in jobs:
        job.state = JobState.FAILED.value
        job.error_message = INTERRUPTED_MESSAGE
        job.finished_at = now
        video = db.query(Video).filter(Video.id == job.video_id).first()
        if video is not None and video.status not in TERMINAL_STATUSES:
            video.transition_to(VideoStatus.FAILED)
        logger.warning("Recovered interrupted job %s for video %s", job.id, job.video_id)
    db.commit()
    return len(jobs)


def latest_job(db: Session, video_id: str) -> ProcessingJob | None:
    return (
        db.query(ProcessingJob)
        .filter(ProcessingJob.video_id == video_id)
        .order_by(ProcessingJob.created_at.desc())
        .first()
    )


def get_video_pipeline() -> VideoPipeline:
    """FastAPI dependency; tests override it with their own session factory."""
    return VideoPipeline(
        session_factory=SessionLocal,
        classifier=RandomContentClassifier(),
        transcoder=get_transcoder(get_settings()),
    )
