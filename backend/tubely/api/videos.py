import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from tubely.api.upload import parse_video_id
from tubely.core.auth import get_current_user_id
from tubely.core.config import Settings, get_settings
from tubely.core.database import create_video, get_db, get_video, list_videos
from tubely.schemas.video import VideoCreate, VideoResponse
from tubely.services.aws import S3Client, get_s3_client
from tubely.services.video_urls import SigningError, present_video

logger = logging.getLogger(__name__)
router = APIRouter()


def _present(video, settings: Settings, s3: S3Client) -> VideoResponse:
    try:
        return present_video(video, settings, s3)
    except SigningError as e:
        logger.error(f"Could not sign video {video.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not sign video",
        )


@router.post("/videos", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_draft_video(
    payload: VideoCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create an empty video record owned by the caller."""
    try:
        video = create_video(db, user_id, payload.title, payload.description)
    except Exception as e:
        logger.error(f"Database error creating video: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Couldn't create video",
        )
    return VideoResponse.model_validate(video)


@router.get("/videos", response_model=list[VideoResponse])
async def get_videos(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    s3: S3Client = Depends(get_s3_client),
):
    return [_present(video, settings, s3) for video in list_videos(db, user_id)]


@router.get("/videos/{video_id}", response_model=VideoResponse)
async def get_video_by_id(
    video_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    s3: S3Client = Depends(get_s3_client),
):
    """Get a video record; presigned deployments get a fresh signed URL."""
    video = get_video(db, parse_video_id(video_id))
    if video is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Video {video_id} not found",
        )
    return _present(video, settings, s3)
