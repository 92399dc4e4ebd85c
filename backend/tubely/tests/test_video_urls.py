import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock
import pytest
from tubely.core.config import Settings
from tubely.models.video import Video
from tubely.services.aws import S3Client
from tubely.services.video_urls import (
    SigningError,
    present_video,
    sign_video,
    split_bucket_key,
    stored_video_location,
)


def make_settings(**overrides):
    values = dict(s3_bucket="tubely-test", aws_region="us-east-2", presigned_url_ttl=60)
    values.update(overrides)
    return Settings(**values)


def make_video(video_url=None):
    now = datetime.now(timezone.utc)
    return Video(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        title="Boots",
        video_url=video_url,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def signer():
    mock = MagicMock(spec=S3Client)
    mock.generate_presigned_url.return_value = "https://signed.example.com/landscape/abc.mp4?X-Amz-Expires=60"
    return mock


@pytest.mark.parametrize(
    "mode,expected",
    [
        ("bucket_key", "tubely-test,landscape/abc.mp4"),
        ("presigned", "tubely-test,landscape/abc.mp4"),
        ("regional", "https://tubely-test.s3.us-east-2.amazonaws.com/landscape/abc.mp4"),
    ],
)
def test_stored_video_location(mode, expected):
    assert stored_video_location(make_settings(video_url_mode=mode), "landscape/abc.mp4") == expected


def test_stored_video_location_cdn():
    settings = make_settings(video_url_mode="cdn", s3_cf_distribution="cdn.example.com")
    assert stored_video_location(settings, "portrait/x.mp4") == "https://cdn.example.com/portrait/x.mp4"


def test_stored_video_location_cdn_requires_distribution():
    with pytest.raises(ValueError):
        stored_video_location(make_settings(video_url_mode="cdn", s3_cf_distribution=None), "k.mp4")


def test_split_bucket_key():
    assert split_bucket_key("bucket,other/k.mp4") == ("bucket", "other/k.mp4")
    assert split_bucket_key("https://cdn.example.com/k.mp4") is None
    assert split_bucket_key(None) is None
    assert split_bucket_key(",k.mp4") is None


def test_sign_video_replaces_pair_without_touching_record(signer):
    video = make_video("tubely-test,landscape/abc.mp4")

    response = sign_video(video, signer, 60)

    assert response.video_url.startswith("https://signed.example.com/")
    assert video.video_url == "tubely-test,landscape/abc.mp4"
    signer.generate_presigned_url.assert_called_once_with("tubely-test", "landscape/abc.mp4", 60)


def test_sign_video_passes_through_without_pair(signer):
    assert sign_video(make_video(None), signer, 60).video_url is None
    url = "https://cdn.example.com/k.mp4"
    assert sign_video(make_video(url), signer, 60).video_url == url
    signer.generate_presigned_url.assert_not_called()


def test_sign_video_failure(signer):
    signer.generate_presigned_url.return_value = None
    with pytest.raises(SigningError):
        sign_video(make_video("tubely-test,k.mp4"), signer, 60)


def test_present_video_only_signs_in_presigned_mode(signer):
    video = make_video("tubely-test,k.mp4")

    plain = present_video(video, make_settings(video_url_mode="bucket_key"), signer)
    signed = present_video(video, make_settings(video_url_mode="presigned", presigned_url_ttl=30), signer)

    assert plain.video_url == "tubely-test,k.mp4"
    assert signed.video_url != plain.video_url
    signer.generate_presigned_url.assert_called_once_with("tubely-test", "k.mp4", 30)
