"""Unit tests for the moderation / processing pipeline."""
import pytest

from app.models import JobState, ProcessingJob, Video
from app.repositories import video_repository
from app.services.pipeline import VideoPipeline, recover_interrupted_jobs
from app.services.transcoder import PlaceholderTranscoder, TranscodeError, Transcoder
from app.services.video_upload import processed_dir


class BrokenTranscoder(Transcoder):
    @property
    def name(self) -> str:
        return "broken"

    def transcode(self, video_id, source_path, output_dir):
        raise TranscodeError("codec exploded")


class DeletingTranscoder(PlaceholderTranscoder):
    """Deletes the video row mid-run, like an owner deleting during processing."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def transcode(self, video_id, source_path, output_dir):
        result = super().transcode(video_id, source_path, output_dir)
        db = self.session_factory()
        try:
            db.query(Video).filter(Video.id == video_id).delete()
            db.commit()
        finally:
            db.close()
        return result


@pytest.fixture
def owner(make_user):
    return make_user()


@pytest.fixture
def queued_video(db, owner, upload_root, pipeline):
    source = upload_root / "videos" / "clip.mp4"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"\x00" * 64)
    video = video_repository.create_video(
        db,
        title="Holiday violence",
        description="explicit",
        file_name="clip.mp4",
        file_path="videos/clip.mp4",
        file_size=64,
        uploaded_by_id=owner.id,
    )
    job = pipeline.enqueue(db, video)
    return video, job


def _reload(db, video_id, job_id):
    db.expire_all()
    video = db.query(Video).filter(Video.id == video_id).first()
    job = db.query(ProcessingJob).filter(ProcessingJob.id == job_id).first()
    return video, job


@pytest.mark.parametrize("score,verdict", [(10, "approved"), (50, "flagged"), (85, "rejected")])
def test_run_completes_with_verdict(db, pipeline, set_score, queued_video, upload_root, score, verdict):
    video, job = queued_video
    set_score(score)

    pipeline.run(video.id, job.id)

    video, job = _reload(db, video.id, job.id)
    assert video.status == "completed"
    assert video.moderation_status == verdict
    assert video.sensitivity_analysis["score"] == score
    assert video.stream_path == f"processed/{video.id}/{video.id}-stream.m3u8"
    assert video.thumbnail_path == f"processed/{video.id}/{video.id}-thumb.jpg"
    assert (upload_root / video.stream_path).is_file()
    assert video.duration == 120
    assert video.technical_metadata["resolution"] == "1920x1080"
    assert job.state == JobState.DONE.value
    assert job.started_at is not None and job.finished_at is not None


def test_text_score_recorded_but_not_used_for_verdict(db, pipeline, set_score, queued_video):
    video, job = queued_video
    set_score(5)

    pipeline.run(video.id, job.id)

    video, _ = _reload(db, video.id, job.id)
    assert video.sensitivity_analysis["text_score"] == 40
    assert video.moderation_status == "approved"


def test_random_score_verdict_is_consistent(db, pipeline, queued_video):
    video, job = queued_video

    pipeline.run(video.id, job.id)

    video, _ = _reload(db, video.id, job.id)
    score = video.sensitivity_analysis["score"]
    assert 0 <= score < 100
    expected = "approved" if score < 30 else "rejected" if score >= 70 else "flagged"
    assert video.moderation_status == expected


def test_transcode_failure_marks_video_failed(db, session_factory, classifier, queued_video):
    video, job = queued_video
    pipeline = VideoPipeline(session_factory, classifier, BrokenTranscoder())

    pipeline.run(video.id, job.id)

    video, job = _reload(db, video.id, job.id)
    assert video.status == "failed"
    assert video.moderation_status == "pending"
    assert video.stream_path is None
    assert job.state == JobState.FAILED.value
    assert "codec exploded" in job.error_message


def test_video_deleted_mid_run(db, session_factory, classifier, queued_video):
    video, job = queued_video
    video_id = video.id
    pipeline = VideoPipeline(session_factory, classifier, DeletingTranscoder(session_factory))

    pipeline.run(video_id, job.id)

    video, job = _reload(db, video_id, job.id)
    assert video is None
    assert job.state == JobState.FAILED.value
    assert job.error_message == "video deleted"
    assert not processed_dir(video_id).exists()


def test_missing_video_fails_job(db, pipeline):
    job = ProcessingJob(video_id="does-not-exist", state=JobState.QUEUED.value)
    db.add(job)
    db.commit()

    pipeline.run("does-not-exist", job.id)

    db.expire_all()
    assert job.state == JobState.FAILED.value
    assert job.error_message == "video deleted"


def test_rerun_on_completed_video_leaves_it_untouched(db, pipeline, set_score, queued_video):
    video, job = queued_video
    set_score(10)
    pipeline.run(video.id, job.id)

    set_score(90)
    second = pipeline.enqueue(db, video)
    pipeline.run(video.id, second.id)

    video, second = _reload(db, video.id, second.id)
    assert video.status == "completed"
    assert video.moderation_status == "approved"
    assert second.state == JobState.FAILED.value
    assert "InvalidStatusTransition" in second.error_message


def test_recover_interrupted_jobs(db, queued_video):
    video, job = queued_video
    video_repository.update_video(db, video, status="processing")

    assert recover_interrupted_jobs(db) == 1

    video, job = _reload(db, video.id, job.id)
    assert video.status == "failed"
    assert job.state == JobState.FAILED.value
    assert job.error_message == "interrupted by restart"
    assert recover_interrupted_jobs(db) == 0
