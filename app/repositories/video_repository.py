"""
Video record store. All operations are sync and take the request's Session.
Ownership checks are the caller's job; this module only reads and writes rows.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.video import Video

logger = logging.getLogger(__name__)


class VideoNotFound(LookupError):
    pass


class VideoUpdateError(RuntimeError):
    pass


def get_video(db: Session, video_id: str) -> Video:
    """Fetch one video by id. Raises VideoNotFound if there is no such row."""
    video = db.query(Video).filter(Video.id == video_id).first()
    if video is None:
        raise VideoNotFound(f"video {video_id} not found")
    return video


def update_video(db: Session, video: Video) -> Video:
    """Persist changes made to `video`. Rolls back and raises VideoUpdateError on failure."""
    try:
        db.add(video)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Updating video %s failed: %s", video.id, e)
        raise VideoUpdateError(str(e)) from e
    db.refresh(video)
    return video


def create_video(db: Session, user_id: str, title: str, description: str | None = None) -> Video:
    video = Video(user_id=user_id, title=title, description=description)
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def list_videos_for_user(db: Session, user_id: str) -> list[Video]:
    return (
        db.query(Video)
        .filter(Video.user_id == user_id)
        .order_by(Video.created_at.desc())
        .all()
    )


def delete_video(db: Session, video: Video) -> None:
    db.delete(video)
    db.commit()
