"""
Aspect-ratio classification of uploaded videos via ffprobe.
The first stream's width/height decide the S3 key prefix: landscape, portrait or other.
"""
import json
import logging
import subprocess
from functools import partial
from pathlib import Path
from typing import Any, Callable

from fastapi import Depends

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

LANDSCAPE = "landscape"
PORTRAIT = "portrait"
OTHER = "other"

Prober = Callable[[Path], list[dict[str, Any]]]
Classifier = Callable[[Path], str]


class ProbeError(RuntimeError):
    """ffprobe failed or its output cannot be classified."""


def probe_streams(
    file_path: Path,
    ffprobe_path: str = "ffprobe",
    timeout: float | None = None,
) -> list[dict[str, Any]]:
    """Run ffprobe on file_path and return the `streams` list from its JSON output."""
    cmd = [
        ffprobe_path,
        "-v", "error",
        "-print_format", "json",
        "-show_streams",
        str(file_path),
    ]

    try:
        result = subprocess.run(cmd, check=True, capture_output=True, timeout=timeout)
    except subprocess.CalledProcessError as e:
        logger.error("ffprobe failed for %s: %s", file_path, e.stderr and e.stderr.decode(errors="replace") or e)
        raise ProbeError(f"ffprobe exited with status {e.returncode}") from e
    except subprocess.TimeoutExpired as e:
        logger.error("ffprobe timed out for %s", file_path)
        raise ProbeError(f"ffprobe timed out after {timeout}s") from e
    except FileNotFoundError as e:
        logger.error("ffprobe not found; install FFmpeg to enable aspect-ratio detection")
        raise ProbeError("ffprobe not found") from e

    try:
        data = json.loads(result.stdout)
    except ValueError as e:
        raise ProbeError("ffprobe output is not valid JSON") from e

    streams = data.get("streams") if isinstance(data, dict) else None
    if not isinstance(streams, list):
        raise ProbeError("ffprobe output has no streams list")
    return streams


def classify_dimensions(width: Any, height: Any) -> str:
    """
    Truncating integer division, as the stored keys have always been computed:
    width // height == 16 // 9 (== 1) is landscape, else height // width == 1 is portrait.
    A square frame therefore counts as landscape.
    """
    for value in (width, height):
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ProbeError(f"invalid stream dimensions {width!r}x{height!r}")
    if width // height == 16 // 9:
        return LANDSCAPE
    if height // width == 16 // 9:
        return PORTRAIT
    return OTHER


def classify_video(file_path: Path, prober: Prober = probe_streams) -> str:
    """Classify a local video file by its first stream. Raises ProbeError on any failure."""
    streams = prober(file_path)
    if not streams:
        raise ProbeError("ffprobe reported no streams")
    first = streams[0]
    if not isinstance(first, dict):
        raise ProbeError("malformed stream descriptor")
    classification = classify_dimensions(first.get("width"), first.get("height"))
    logger.info("Classified %s as %s (%sx%s)", file_path, classification, first.get("width"), first.get("height"))
    return classification


def get_video_classifier(settings: Settings = Depends(get_settings)) -> Classifier:
    """FastAPI dependency: classify_video bound to the configured ffprobe binary and timeout."""
    prober = partial(
        probe_streams,
        ffprobe_path=settings.ffprobe_path,
        timeout=settings.ffprobe_timeout_seconds or None,
    )
    return partial(classify_video, prober=prober)
