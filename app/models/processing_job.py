"""
One row per pipeline run, stored apart from the video so a restart can find
runs that never finished (queued/running) and fail them explicitly.
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from app.database import Base


class JobState(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


ACTIVE_JOB_STATES = (JobState.QUEUED.value, JobState.RUNNING.value)


class ProcessingJob(Base):
    __tablename__ = "processing_jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # No FK: the video may be deleted while its job row is kept for inspection
    video_id = Column(String(36), nullable=False, index=True)
    state = Column(String(20), nullable=False, default=JobState.QUEUED.value, index=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
