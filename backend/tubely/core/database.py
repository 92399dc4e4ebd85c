"""
Database access for video records.
Lazily builds the engine so importing the app never opens a connection.
"""
import logging
import uuid
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from tubely.core.config import settings
from tubely.models.video import Video, Base
from tubely.models.user import User  # Import to ensure table is created

logger = logging.getLogger(__name__)

_engine = None
_SessionLocal = None


def get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(settings.db_url)
    return _engine


def get_session_local():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def init_db(engine=None):
    """Create tables that don't exist yet."""
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")


def get_db():
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_video(db: Session, video_id: uuid.UUID) -> Optional[Video]:
    return db.query(Video).filter(Video.id == video_id).first()


def list_videos(db: Session, user_id: uuid.UUID) -> list[Video]:
    return (
        db.query(Video)
        .filter(Video.user_id == user_id)
        .order_by(Video.created_at.desc())
        .all()
    )


def create_video(
    db: Session, user_id: uuid.UUID, title: str, description: Optional[str] = None
) -> Video:
    video = Video(user_id=user_id, title=title, description=description)
    try:
        db.add(video)
        db.commit()
        db.refresh(video)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Video record created: {video.id} for user {user_id}")
    return video


def update_video(db: Session, video: Video) -> Video:
    """Persist changes to an already loaded record; last write wins."""
    try:
        db.add(video)
        db.commit()
        db.refresh(video)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Video record updated: {video.id}")
    return video
