"""Pytest configuration and fixtures."""
import os
from unittest.mock import MagicMock
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

# Keep startup from touching the configured database
os.environ["TESTING"] = "1"

from tubely.core.config import Settings, get_settings
from tubely.core.database import get_db
from tubely.main import app
from tubely.models.video import Base
from tubely.processing.media import get_media_tool
from tubely.services.aws import S3Client, get_s3_client
from tubely.tests.factories import (
    TEST_SECRET,
    FakeMediaTool,
    TestSessionLocal,
    create_user,
)


@pytest.fixture
def test_db(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'tubely.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    TestSessionLocal.configure(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        jwt_secret=TEST_SECRET,
        assets_root=str(tmp_path / "assets"),
        api_host="localhost",
        port="8091",
        s3_bucket="tubely-test",
        aws_region="us-east-2",
        s3_cf_distribution=None,
        video_url_mode="presigned",
        presigned_url_ttl=60,
        faststart_enabled=True,
        aspect_ratio_tolerance=0.0,
    )


@pytest.fixture
def mock_s3_client():
    mock = MagicMock(spec=S3Client)
    mock.bucket = "tubely-test"
    mock.uploaded = {}

    def upload_file(file_obj, s3_key, content_type):
        mock.uploaded[s3_key] = (file_obj.read(), content_type)
        return True

    def generate_presigned_url(bucket, s3_key, expiration):
        return f"https://{bucket}.s3.amazonaws.com/{s3_key}?X-Amz-Expires={expiration}&X-Amz-Signature=abc"

    mock.upload_file.side_effect = upload_file
    mock.generate_presigned_url.side_effect = generate_presigned_url
    return mock


@pytest.fixture
def media_tool():
    return FakeMediaTool()


@pytest.fixture
def client(test_db, test_settings, mock_s3_client, media_tool):
    def override_get_db():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_s3_client] = lambda: mock_s3_client
    app.dependency_overrides[get_media_tool] = lambda: media_tool
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner(test_db):
    return create_user()


@pytest.fixture
def stranger(test_db):
    return create_user()
