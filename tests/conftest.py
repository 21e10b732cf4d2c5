"""
Pytest configuration and shared fixtures.

Each test gets its own SQLite file and uploads directory. The API runs with
get_db and get_video_pipeline overridden, so the background pipeline writes to
the same test database through its own sessions.
"""
import os
import random
from pathlib import Path

# Set test environment before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.auth import create_access_token, hash_password
from app.config import get_settings
from app.database import Base, get_db
from app.models import Role, User
from app.permissions import RoleName
from app.services.pipeline import VideoPipeline, get_video_pipeline
from app.services.roles import ensure_default_roles
from app.services.sensitivity import ContentClassifier, RandomContentClassifier, analysis_for_score
from app.services.transcoder import PlaceholderTranscoder

TEST_PASSWORD = "secret123"
SAMPLE_VIDEO = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024


class FixedScoreClassifier(ContentClassifier):
    """Deterministic classifier for verdict-dependent tests."""

    def __init__(self, score: int):
        self.score = score

    @property
    def name(self) -> str:
        return "fixed"

    def analyze(self, video_path, metadata=None):
        return analysis_for_score(self.score)


@pytest.fixture
def upload_root(tmp_path, monkeypatch) -> Path:
    root = tmp_path / "uploads"
    root.mkdir()
    monkeypatch.setattr(get_settings(), "upload_dir", str(root))
    return root


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def roles(db) -> dict[str, Role]:
    return {r.name: r for r in ensure_default_roles(db)}


@pytest.fixture
def make_user(db, roles):
    counter = {"n": 0}

    def _make(role: RoleName = RoleName.USER, email: str | None = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            first_name="Test",
            last_name=f"User{counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password=hash_password(TEST_PASSWORD),
            role_id=roles[role.value].id,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id, user.email, user.role_name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def classifier() -> ContentClassifier:
    return RandomContentClassifier(random.Random(1234))


@pytest.fixture
def pipeline(session_factory, classifier, upload_root) -> VideoPipeline:
    return VideoPipeline(
        session_factory=session_factory,
        classifier=classifier,
        transcoder=PlaceholderTranscoder(),
    )


@pytest.fixture
def set_score(pipeline):
    """Make the pipeline's content scan return a fixed score."""

    def _set(score: int) -> None:
        pipeline.classifier = FixedScoreClassifier(score)

    return _set


@pytest.fixture
def client(session_factory, pipeline, upload_root, roles):
    """TestClient with the test database and pipeline wired in."""
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_video_pipeline] = lambda: pipeline

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def upload_video(client, auth_headers):
    def _upload(user: User, title: str = "Demo", filename: str = "clip.mp4",
                content_type: str = "video/mp4", content: bytes = SAMPLE_VIDEO, **form):
        return client.post(
            "/api/videos",
            headers=auth_headers(user),
            data={"title": title, **form},
            files={"video": (filename, content, content_type)},
        )

    return _upload
