"""Unit tests for video persistence and pagination."""
from datetime import datetime, timedelta

import pytest

from app.repositories import video_repository
from app.schemas.common import paginate_meta, success_response
from app.schemas.video import VideoResponse, parse_tags


@pytest.fixture
def owner(make_user):
    return make_user()


def _create(db, owner, title, created_at=None, **fields):
    return video_repository.create_video(
        db,
        title=title,
        file_name=f"{title}.mp4",
        file_path=f"videos/{title}.mp4",
        file_size=10,
        uploaded_by_id=owner.id,
        created_at=created_at or datetime.utcnow(),
        **fields,
    )


def _create_many(db, owner, count):
    base = datetime(2024, 1, 1)
    return [_create(db, owner, f"video-{i}", created_at=base + timedelta(minutes=i)) for i in range(1, count + 1)]


def test_create_forces_initial_state(db, owner):
    video = _create(db, owner, "first", status="completed", moderation_status="approved")
    assert video.status == "uploading"
    assert video.moderation_status == "pending"
    assert video.tags == []
    assert video.stream_path is None


def test_list_newest_first_with_pages(db, owner):
    _create_many(db, owner, 12)

    items, total = video_repository.list_videos(db, page=2, limit=5)

    assert total == 12
    # newest first: page 1 is video-12..video-8, page 2 is video-7..video-3
    assert [v.title for v in items] == ["video-7", "video-6", "video-5", "video-4", "video-3"]
    assert paginate_meta(2, 5, total).pages == 3


def test_list_last_page_and_beyond(db, owner):
    _create_many(db, owner, 12)

    items, _ = video_repository.list_videos(db, page=3, limit=5)
    assert [v.title for v in items] == ["video-2", "video-1"]

    items, total = video_repository.list_videos(db, page=4, limit=5)
    assert items == []
    assert total == 12


def test_list_filtered_by_uploader(db, owner, make_user):
    other = make_user()
    _create(db, owner, "mine")
    _create(db, other, "theirs")

    items, total = video_repository.list_videos(db, uploaded_by_id=owner.id)

    assert total == 1
    assert items[0].title == "mine"


def test_update_merges_only_given_fields(db, owner):
    video = _create(db, owner, "original", description="keep me", tags=["a"])

    video = video_repository.update_video(db, video, title="renamed")

    assert video.title == "renamed"
    assert video.description == "keep me"
    assert video.tags == ["a"]


def test_update_rejects_unknown_fields(db, owner):
    video = _create(db, owner, "original")
    with pytest.raises(ValueError):
        video_repository.update_video(db, video, file_path="elsewhere.mp4")


def test_delete(db, owner):
    video = _create(db, owner, "gone")
    video_id = video.id
    video_repository.delete_video(db, video)
    assert video_repository.get_video(db, video_id) is None


def test_response_serializes_metadata_alias(db, owner):
    video = _create(db, owner, "meta")
    video = video_repository.update_video(db, video, technical_metadata={"format": "mp4"})

    body = success_response({"video": VideoResponse.model_validate(video)})

    data = body["data"]["video"]
    assert data["metadata"] == {"format": "mp4"}
    assert "technical_metadata" not in data
    assert data["uploaded_by"]["id"] == owner.id


@pytest.mark.parametrize(
    "total,limit,pages",
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (12, 5, 3)],
)
def test_paginate_meta_pages(total, limit, pages):
    assert paginate_meta(1, limit, total).pages == pages


def test_parse_tags():
    assert parse_tags(" a, b ,,c ") == ["a", "b", "c"]
    assert parse_tags(["x", " ", "y "]) == ["x", "y"]
    assert parse_tags(None) == []
