"""Shared helpers for the thumbnail and video upload endpoints."""
import logging
import re
import secrets
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from starlette.requests import Request
from starlette.types import Message

from app.config import Settings
from app.errors import ClientInputError, DependencyError

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"
THUMBNAIL_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
}
CHUNK_SIZE = 1024 * 1024  # 1 MB

# RFC 2045 media type: type/subtype followed by `; attribute=value` pairs
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_QUOTED = r'"(?:[^"\\]|\\.)*"'
_MEDIA_TYPE_RE = re.compile(
    rf"^\s*({_TOKEN})/({_TOKEN})\s*"
    rf"(?:;\s*{_TOKEN}\s*=\s*(?:{_TOKEN}|{_QUOTED})\s*)*"
    r"(?:;\s*)?$"
)


class UploadTooLarge(ClientInputError):
    pass


def assets_dir(settings: Settings) -> Path:
    if settings.assets_root:
        return Path(settings.assets_root)
    return Path(__file__).resolve().parent.parent.parent / "assets"


def parse_media_type(header: str | None) -> str:
    """`type/subtype` of a Content-Type header, lower-cased. Parameters are checked, then dropped."""
    m = _MEDIA_TYPE_RE.match(header or "")
    if not m:
        raise ClientInputError("Error parsing media type")
    return f"{m.group(1)}/{m.group(2)}".lower()


def limit_body(request: Request, max_bytes: int, message: str) -> Request:
    """
    Request whose body reads fail with UploadTooLarge once more than max_bytes arrive.
    Applies to chunked bodies too, so the form parser never spools past the cap.
    """
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > max_bytes:
        raise UploadTooLarge(message)

    receive = request.receive
    received = 0

    async def limited_receive() -> Message:
        nonlocal received
        msg = await receive()
        if msg["type"] == "http.request":
            received += len(msg.get("body", b""))
            if received > max_bytes:
                logger.warning("Request body over %s bytes rejected: %s", max_bytes, request.url.path)
                raise UploadTooLarge(message)
        return msg

    return Request(request.scope, receive=limited_receive)


def random_video_key(classification: str) -> str:
    """`{classification}/{64 hex chars}.mp4`"""
    return f"{classification}/{secrets.token_hex(32)}.mp4"


def random_thumbnail_name(extension: str) -> str:
    """32 random bytes, unpadded base64url, plus extension."""
    return f"{secrets.token_urlsafe(32)}{extension}"


def copy_with_limit(src: BinaryIO, dst: BinaryIO, max_bytes: int) -> int:
    """Copy src to dst in chunks. Raises UploadTooLarge once more than max_bytes were read."""
    total = 0
    while chunk := src.read(CHUNK_SIZE):
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLarge(f"Upload exceeds {max_bytes} bytes")
        dst.write(chunk)
    return total


@contextmanager
def spooled_temp_copy(src: BinaryIO, max_bytes: int, suffix: str = ".mp4") -> Iterator[BinaryIO]:
    """
    Copy an upload into a named temporary file and yield it rewound.
    The file is closed and removed when the block exits, whatever happens inside it.
    """
    try:
        tmp = tempfile.NamedTemporaryFile(prefix="video-upload-", suffix=suffix, delete=False)
    except OSError as e:
        raise DependencyError("Couldn't create temp file", e) from e
    path = Path(tmp.name)
    try:
        try:
            copy_with_limit(src, tmp, max_bytes)
            tmp.flush()
        except OSError as e:
            raise DependencyError("Couldn't write temp file", e) from e
        try:
            tmp.seek(0)
        except OSError as e:
            raise DependencyError("Couldn't reset temp file's file pointer", e) from e
        yield tmp
    finally:
        tmp.close()
        path.unlink(missing_ok=True)


def save_thumbnail(src: BinaryIO, directory: Path, extension: str, max_bytes: int) -> str:
    """Write a thumbnail under a fresh random name in directory. Returns the file name."""
    file_name = random_thumbnail_name(extension)
    path = directory / file_name
    try:
        directory.mkdir(parents=True, exist_ok=True)
        f = path.open("xb")
    except OSError as e:
        raise DependencyError("Error creating thumbnail file", e) from e
    try:
        with f:
            copy_with_limit(src, f, max_bytes)
    except OSError as e:
        path.unlink(missing_ok=True)
        raise DependencyError("Error writing content into file", e) from e
    except UploadTooLarge:
        path.unlink(missing_ok=True)
        raise
    logger.info("Saved thumbnail %s", path)
    return file_name
