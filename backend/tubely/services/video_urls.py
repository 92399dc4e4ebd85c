"""
Where an uploaded video lives, and how that location is handed to clients.

Depending on ``video_url_mode`` the record stores a ``bucket,key`` pair or an
absolute URL. In ``presigned`` mode the pair is swapped for a short-lived
signed URL on the way out; the signed URL is never written back.
"""
import logging
from typing import Optional, Tuple
from tubely.core.config import Settings
from tubely.models.video import Video
from tubely.schemas.video import VideoResponse
from tubely.services.aws import S3Client

logger = logging.getLogger(__name__)

PAIR_SEPARATOR = ","


class SigningError(RuntimeError):
    pass


def stored_video_location(settings: Settings, key: str) -> str:
    mode = settings.video_url_mode
    if mode == "regional":
        return f"https://{settings.s3_bucket}.s3.{settings.aws_region}.amazonaws.com/{key}"
    if mode == "cdn":
        if not settings.s3_cf_distribution:
            raise ValueError("video_url_mode is cdn but s3_cf_distribution is not set")
        return f"https://{settings.s3_cf_distribution}/{key}"
    return PAIR_SEPARATOR.join([settings.s3_bucket, key])


def split_bucket_key(location: Optional[str]) -> Optional[Tuple[str, str]]:
    if not location:
        return None
    parts = location.split(PAIR_SEPARATOR, 1)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def sign_video(video: Video, s3: S3Client, ttl: int) -> VideoResponse:
    """Response copy of ``video`` with a ``bucket,key`` location presigned."""
    response = VideoResponse.model_validate(video)
    pair = split_bucket_key(response.video_url)
    if pair is None:
        return response

    bucket, key = pair
    url = s3.generate_presigned_url(bucket, key, ttl)
    if url is None:
        raise SigningError(f"could not presign s3://{bucket}/{key}")
    return response.model_copy(update={"video_url": url})


def present_video(video: Video, settings: Settings, s3: S3Client) -> VideoResponse:
    if settings.video_url_mode == "presigned":
        return sign_video(video, s3, settings.presigned_url_ttl)
    return VideoResponse.model_validate(video)
