import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ASSETS_ROOT", tempfile.mkdtemp(prefix="assets-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401 - register tables
from app.auth import create_access_token
from app.config import Settings, get_settings
from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.models.video import Video
from app.services.aspect_ratio import get_video_classifier
from app.services.storage import get_s3_client


class FakeS3:
    """Records put_object calls; raise `error` instead when set."""

    def __init__(self):
        self.calls = []
        self.error = None

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        body = kwargs["Body"]
        self.calls.append({**kwargs, "data": body.read(), "path": body.name})


class FakeClassifier:
    def __init__(self, result="landscape"):
        self.result = result
        self.error = None
        self.paths = []
        self.existed = []

    def __call__(self, path):
        self.paths.append(path)
        self.existed.append(path.exists())
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        s3_bucket="test-bucket",
        s3_region="us-west-2",
        port="8091",
        assets_root=str(tmp_path / "assets"),
    )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def client(settings, db_session, fake_s3, classifier):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_s3_client] = lambda: fake_s3
    app.dependency_overrides[get_video_classifier] = lambda: classifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email):
    user = User(email=email, password="not-a-real-hash")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db_session):
    return make_user(db_session, "owner@example.com")


@pytest.fixture
def other_user(db_session):
    return make_user(db_session, "other@example.com")


@pytest.fixture
def video(db_session, owner):
    v = Video(user_id=owner.id, title="Boots demo", description="unchanged")
    db_session.add(v)
    db_session.commit()
    db_session.refresh(v)
    return v


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email, settings)}"}
    return _headers
