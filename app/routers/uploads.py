"""
Owner-only uploads for a video record:
- thumbnail: png/jpeg written to the local assets folder, served under /assets.
- video: mp4 probed with ffprobe, stored in S3 under {landscape|portrait|other}/.
Each step either completes or aborts the request before the record is touched.
"""
import logging
import uuid
from pathlib import Path
from typing import Any, BinaryIO

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from app.auth import get_bearer_token, validate_jwt
from app.config import Settings, get_settings
from app.database import get_db
from app.errors import AuthError, ClientInputError, DependencyError, PersistenceConflict
from app.models.video import Video
from app.repositories.video_repository import VideoNotFound, VideoUpdateError, get_video, update_video
from app.schemas.video import VideoResponse
from app.services.aspect_ratio import Classifier, ProbeError, get_video_classifier
from app.services.storage import StorageError, get_s3_client, object_url, put_object
from app.services.uploads import (
    THUMBNAIL_EXTENSIONS,
    VIDEO_CONTENT_TYPE,
    assets_dir,
    limit_body,
    parse_media_type,
    random_video_key,
    save_thumbnail,
    spooled_temp_copy,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


def _parse_video_id(raw: str, message: str) -> str:
    try:
        return str(uuid.UUID(raw))
    except ValueError as e:
        raise ClientInputError(message, e) from e


def _authenticate(request: Request, settings: Settings) -> str:
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings.secret_key, settings.algorithm)


def _get_owned_video(db: Session, video_id: str, user_id: str) -> Video:
    try:
        video = get_video(db, video_id)
    except (VideoNotFound, SQLAlchemyError) as e:
        raise DependencyError("Unable to get video metadata", e) from e
    if video.user_id != user_id:
        raise AuthError("Unauthorized: must be video's owner")
    return video


def _form_file(form: Any, field: str, message: str) -> UploadFile:
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        raise ClientInputError(message)
    return upload


def _save_video_record(db: Session, video: Video) -> Video:
    try:
        return update_video(db, video)
    except VideoUpdateError as e:
        raise PersistenceConflict("Error updating video metadata", e) from e


def _store_video(
    src: BinaryIO,
    media_type: str,
    settings: Settings,
    s3_client: Any,
    classify: Classifier,
) -> str:
    """Spool to a temp file, classify, upload to S3. Returns the object key."""
    with spooled_temp_copy(src, settings.max_video_upload_bytes) as tmp:
        try:
            classification = classify(Path(tmp.name))
        except ProbeError as e:
            raise DependencyError("Couldn't get video's aspect ratio", e) from e

        key = random_video_key(classification)
        try:
            put_object(s3_client, settings.s3_bucket, key, tmp, media_type)
        except StorageError as e:
            raise DependencyError("Couldn't put object into s3", e) from e
    return key


@router.post("/video_upload/{video_id}", response_model=VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
    s3_client: Any = Depends(get_s3_client),
    classify: Classifier = Depends(get_video_classifier),
):
    """Upload the mp4 for a video (form field `video`, max 1 GiB). Owner only."""
    vid = _parse_video_id(video_id, "Couldn't get video ID")
    user_id = _authenticate(request, settings)
    video = await run_in_threadpool(_get_owned_video, db, vid, user_id)

    request = limit_body(request, settings.max_video_upload_bytes, "Couldn't parse video file")
    async with request.form() as form:
        upload = _form_file(form, "video", "Couldn't parse video file")
        media_type = parse_media_type(upload.content_type)
        if media_type != VIDEO_CONTENT_TYPE:
            raise ClientInputError("Wrong media type. Video files must be .mp4")
        key = await run_in_threadpool(_store_video, upload.file, media_type, settings, s3_client, classify)

    video.video_url = object_url(settings.s3_bucket, settings.s3_region, key)
    video = await run_in_threadpool(_save_video_record, db, video)
    logger.info("Video %s uploaded by user %s to %s", vid, user_id, key)
    return video


@router.post("/thumbnail_upload/{video_id}", response_model=VideoResponse)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """Upload a png/jpeg thumbnail (form field `thumbnail`, max 10 MiB). Owner only."""
    vid = _parse_video_id(video_id, "Invalid ID")
    user_id = _authenticate(request, settings)
    video = await run_in_threadpool(_get_owned_video, db, vid, user_id)

    request = limit_body(request, settings.max_thumbnail_upload_bytes, "Unable to parse multipart form")
    async with request.form() as form:
        upload = _form_file(form, "thumbnail", "Unable to parse form file")
        media_type = parse_media_type(upload.content_type)
        extension = THUMBNAIL_EXTENSIONS.get(media_type)
        if extension is None:
            raise ClientInputError("Wrong media type")
        file_name = await run_in_threadpool(
            save_thumbnail,
            upload.file,
            assets_dir(settings),
            extension,
            settings.max_thumbnail_upload_bytes,
        )

    video.thumbnail_url = f"http://localhost:{settings.port}/assets/{file_name}"
    video = await run_in_threadpool(_save_video_record, db, video)
    logger.info("Thumbnail for video %s uploaded by user %s: %s", vid, user_id, file_name)
    return video
