"""Video records: create a draft, list/read/delete your own. Uploads live in routers/uploads.py."""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from app.auth import get_current_user_id
from app.database import get_db
from app.errors import AuthError
from app.models.video import Video
from app.repositories.video_repository import (
    VideoNotFound,
    create_video,
    delete_video,
    get_video,
    list_videos_for_user,
)
from app.schemas.video import VideoCreate, VideoResponse

router = APIRouter(prefix="/api/videos", tags=["videos"])


def _own_video_or_404(db: Session, video_id: str, user_id: str) -> Video:
    try:
        video = get_video(db, video_id)
    except VideoNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found.")
    if video.user_id != user_id:
        raise AuthError("Unauthorized: must be video's owner")
    return video


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
def create_video_draft(
    body: VideoCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create an empty video record; thumbnail and video are uploaded afterwards."""
    if not body.title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
    return create_video(db, user_id, body.title.strip(), body.description)


@router.get("", response_model=list[VideoResponse])
def list_my_videos(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return list_videos_for_user(db, user_id)


@router.get("/{video_id}", response_model=VideoResponse)
def get_my_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return _own_video_or_404(db, video_id, user_id)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete the record only. Stored thumbnail/video objects are left in place."""
    video = _own_video_or_404(db, video_id, user_id)
    delete_video(db, video)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
