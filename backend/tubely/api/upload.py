import asyncio
import contextlib
import logging
import os
import tempfile
import uuid
from typing import Iterator
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from starlette.datastructures import FormData, UploadFile
from tubely.core.auth import authenticate_request
from tubely.core.config import Settings, get_settings
from tubely.core.database import get_db, get_video, update_video
from tubely.models.video import Video
from tubely.processing.aspect_ratio import get_video_prefix
from tubely.processing.keys import thumbnail_file_name, video_object_key
from tubely.processing.media import (
    PROCESSED_SUFFIX,
    MediaProcessingError,
    MediaTool,
    get_media_tool,
)
from tubely.processing.validation import (
    UnsupportedMediaTypeError,
    extension_for,
    validate_thumbnail_type,
    validate_video_type,
)
from tubely.schemas.video import VideoResponse
from tubely.services.aws import S3Client, get_s3_client
from tubely.services.video_urls import SigningError, present_video, stored_video_location

logger = logging.getLogger(__name__)
router = APIRouter()

CHUNK_SIZE = 1024 * 1024  # 1 MB


def parse_video_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        logger.warning(f"Invalid video ID: {raw!r}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID")


def load_owned_video(db: Session, video_id: uuid.UUID, user_id: uuid.UUID) -> Video:
    """Fetch the record and make sure the caller owns it."""
    try:
        video = get_video(db, video_id)
    except Exception as e:
        logger.error(f"Database error loading video {video_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not get video data",
        )
    if video is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Video {video_id} not found",
        )
    if video.user_id != user_id:
        logger.warning(f"User {user_id} is not the owner of video {video_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized user")
    return video


def form_file(form: FormData, field: str) -> UploadFile:
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        logger.warning(f"Multipart form has no file field {field!r}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to parse form file",
        )
    return upload


def check_content_length(request: Request, limit: int) -> None:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"Request body exceeds {limit} bytes",
        )


def save_record(db: Session, video: Video) -> Video:
    try:
        return update_video(db, video)
    except Exception as e:
        logger.error(f"Database error updating video {video.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not save video data to database",
        )


async def copy_upload(upload: UploadFile, destination, limit: int) -> int:
    """Stream the upload into ``destination``, enforcing the size limit."""
    written = 0
    while chunk := await upload.read(CHUNK_SIZE):
        written += len(chunk)
        if written > limit:
            raise HTTPException(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                detail=f"File size exceeds {limit} bytes",
            )
        await asyncio.to_thread(destination.write, chunk)
    return written


@contextlib.contextmanager
def faststart_copy(media_tool: MediaTool, path: str, enabled: bool) -> Iterator[str]:
    """
    Yield the path that should be uploaded: a fast-start remux of ``path``
    when enabled, otherwise ``path`` itself. The remuxed file is removed on
    exit, including any partial output left by a failed ffmpeg run.
    """
    if not enabled:
        yield path
        return

    processed_path = f"{path}{PROCESSED_SUFFIX}"
    try:
        processed_path = media_tool.remux_faststart(path)
        yield processed_path
    finally:
        if os.path.exists(processed_path):
            os.unlink(processed_path)
            logger.debug(f"Removed processed video: {processed_path}")


def write_file(path: str, content: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)


def upload_path_to_s3(s3: S3Client, path: str, key: str, content_type: str) -> bool:
    with open(path, "rb") as f:
        return s3.upload_file(f, key, content_type)


@router.post("/videos/{video_id}/thumbnail", response_model=VideoResponse)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Store a PNG/JPEG thumbnail on local disk and point the record at it."""
    video_uuid = parse_video_id(video_id)
    user_id = authenticate_request(request, settings)
    logger.info(f"Uploading thumbnail for video {video_uuid} by user {user_id}")

    async with request.form(max_files=1) as form:
        upload = form_file(form, "thumbnail")

        try:
            media_type = validate_thumbnail_type(upload.content_type)
        except UnsupportedMediaTypeError as e:
            logger.warning(f"Rejected thumbnail: {e}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported file type")

        content = await upload.read(settings.max_thumbnail_bytes + 1)
        if len(content) > settings.max_thumbnail_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_CONTENT_TOO_LARGE,
                detail=f"File size exceeds {settings.max_thumbnail_bytes // (1024*1024)}MB",
            )

    video = load_owned_video(db, video_uuid, user_id)

    file_name = thumbnail_file_name(extension_for(media_type))
    thumbnail_path = os.path.join(settings.assets_root, file_name)
    try:
        await asyncio.to_thread(write_file, thumbnail_path, content)
    except OSError as e:
        logger.error(f"Could not write thumbnail {thumbnail_path}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create file",
        )
    logger.info(f"Created thumbnail file at: {thumbnail_path}")

    video.thumbnail_url = f"{settings.assets_base_url}/{file_name}"
    try:
        video = save_record(db, video)
    except HTTPException:
        # Don't leave an unreferenced file behind
        with contextlib.suppress(OSError):
            os.unlink(thumbnail_path)
        raise

    return VideoResponse.model_validate(video)


@router.post("/videos/{video_id}/video", response_model=VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    s3: S3Client = Depends(get_s3_client),
    media_tool: MediaTool = Depends(get_media_tool),
):
    """
    Store an MP4 in the bucket under an aspect-ratio prefix.

    The upload is buffered to a temp file so ffprobe/ffmpeg can read it, and
    optionally remuxed for fast start before it is sent to S3. If the record
    update fails afterwards the object stays in the bucket.
    """
    check_content_length(request, settings.max_video_bytes)
    user_id = authenticate_request(request, settings)
    video_uuid = parse_video_id(video_id)
    video = load_owned_video(db, video_uuid, user_id)
    logger.info(f"Uploading video file for video {video_uuid} by user {user_id}")

    async with request.form(max_files=1) as form:
        upload = form_file(form, "video")

        try:
            media_type = validate_video_type(upload.content_type)
        except UnsupportedMediaTypeError as e:
            logger.warning(f"Rejected video: {e}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid media file")

        with tempfile.NamedTemporaryFile(prefix="tubely-upload-", suffix=".mp4") as temp_file:
            try:
                await copy_upload(upload, temp_file, settings.max_video_bytes)
                temp_file.flush()
                temp_file.seek(0)
            except OSError as e:
                logger.error(f"Error saving upload to temp file: {e}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Error saving file",
                )

            try:
                prefix = await asyncio.to_thread(
                    get_video_prefix, media_tool, temp_file.name, settings.aspect_ratio_tolerance
                )
            except MediaProcessingError as e:
                logger.error(f"Unable to classify video {video_uuid}: {e}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Unable to generate bucket key",
                )
            key = video_object_key(prefix)

            try:
                with faststart_copy(media_tool, temp_file.name, settings.faststart_enabled) as source_path:
                    uploaded = await asyncio.to_thread(
                        upload_path_to_s3, s3, source_path, key, media_type
                    )
            except MediaProcessingError as e:
                logger.error(f"Error creating processed video for {video_uuid}: {e}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Error creating processed video",
                )
            if not uploaded:
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Error putting video in bucket",
                )

    try:
        video.video_url = stored_video_location(settings, key)
    except ValueError as e:
        logger.error(f"Cannot build video location: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to build video URL",
        )
    video = save_record(db, video)

    try:
        return present_video(video, settings, s3)
    except SigningError as e:
        logger.error(f"Could not sign video {video.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not sign video",
        )
