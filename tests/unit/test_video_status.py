"""Unit tests for the video status state machine."""
import pytest

from app.models.video import InvalidStatusTransition, Video, VideoStatus, can_transition


@pytest.mark.parametrize(
    "current,new",
    [
        (VideoStatus.UPLOADING, VideoStatus.PROCESSING),
        (VideoStatus.UPLOADING, VideoStatus.FAILED),
        (VideoStatus.PROCESSING, VideoStatus.COMPLETED),
        (VideoStatus.PROCESSING, VideoStatus.FAILED),
    ],
)
def test_allowed_transitions(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [
        (VideoStatus.UPLOADING, VideoStatus.COMPLETED),
        (VideoStatus.PROCESSING, VideoStatus.UPLOADING),
        (VideoStatus.COMPLETED, VideoStatus.PROCESSING),
        (VideoStatus.COMPLETED, VideoStatus.FAILED),
        (VideoStatus.FAILED, VideoStatus.PROCESSING),
        (VideoStatus.FAILED, VideoStatus.COMPLETED),
    ],
)
def test_rejected_transitions(current, new):
    assert not can_transition(current, new)


def test_transition_accepts_plain_strings():
    assert can_transition("uploading", "processing")


def test_transition_to_updates_status():
    video = Video(status=VideoStatus.UPLOADING.value)
    video.transition_to(VideoStatus.PROCESSING)
    assert video.status == "processing"


def test_transition_to_refuses_invalid_edge():
    video = Video(status=VideoStatus.COMPLETED.value)
    with pytest.raises(InvalidStatusTransition) as exc:
        video.transition_to(VideoStatus.FAILED)
    assert exc.value.current == "completed"
    assert exc.value.requested == "failed"
    assert video.status == "completed"


def test_stream_ready_requires_completed_and_path():
    assert not Video(status="processing", stream_path="processed/x/x-stream.m3u8").is_stream_ready
    assert not Video(status="completed", stream_path=None).is_stream_ready
    assert Video(status="completed", stream_path="processed/x/x-stream.m3u8").is_stream_ready
