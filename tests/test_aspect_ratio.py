import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from app.services.aspect_ratio import (
    LANDSCAPE,
    OTHER,
    PORTRAIT,
    ProbeError,
    classify_dimensions,
    classify_video,
    get_video_classifier,
    probe_streams,
)


def _completed(stdout: bytes, returncode: int = 0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=b"")


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (1920, 1080, LANDSCAPE),
        (1280, 720, LANDSCAPE),
        (1080, 1920, PORTRAIT),
        (720, 1280, PORTRAIT),
        # Truncating division: anything with width // height == 1 is landscape, squares included.
        (100, 100, LANDSCAPE),
        (1000, 999, LANDSCAPE),
        (999, 1000, PORTRAIT),
        (4000, 1000, OTHER),
        (1000, 2500, OTHER),
    ],
)
def test_classify_dimensions(width, height, expected):
    assert classify_dimensions(width, height) == expected


@pytest.mark.parametrize("width, height", [(0, 1080), (1920, 0), (None, 1080), (1920.0, 1080), (True, 1)])
def test_classify_dimensions_rejects_invalid(width, height):
    with pytest.raises(ProbeError):
        classify_dimensions(width, height)


class TestClassifyVideo:
    def test_uses_first_stream_only(self):
        streams = [{"width": 1080, "height": 1920}, {"width": 1920, "height": 1080}]
        assert classify_video(Path("x.mp4"), prober=lambda p: streams) == PORTRAIT

    def test_empty_stream_list_is_an_error(self):
        with pytest.raises(ProbeError):
            classify_video(Path("x.mp4"), prober=lambda p: [])

    def test_stream_without_dimensions_is_an_error(self):
        with pytest.raises(ProbeError):
            classify_video(Path("x.mp4"), prober=lambda p: [{"codec_type": "audio"}])

    def test_passes_path_to_prober(self):
        seen = []

        def prober(path):
            seen.append(path)
            return [{"width": 1920, "height": 1080}]

        classify_video(Path("/tmp/a.mp4"), prober=prober)
        assert seen == [Path("/tmp/a.mp4")]


class TestProbeStreams:
    def test_runs_ffprobe_and_returns_streams(self):
        out = json.dumps({"streams": [{"width": 1920, "height": 1080}]}).encode()
        with patch("app.services.aspect_ratio.subprocess.run", return_value=_completed(out)) as run:
            streams = probe_streams(Path("/tmp/v.mp4"), ffprobe_path="/usr/bin/ffprobe", timeout=5)

        assert streams == [{"width": 1920, "height": 1080}]
        args, kwargs = run.call_args
        assert args[0] == [
            "/usr/bin/ffprobe", "-v", "error", "-print_format", "json", "-show_streams", "/tmp/v.mp4",
        ]
        assert kwargs["check"] is True
        assert kwargs["timeout"] == 5

    def test_non_zero_exit(self):
        err = subprocess.CalledProcessError(1, ["ffprobe"], output=b"", stderr=b"Invalid data found")
        with patch("app.services.aspect_ratio.subprocess.run", side_effect=err):
            with pytest.raises(ProbeError):
                probe_streams(Path("bad.mp4"))

    def test_missing_binary(self):
        with patch("app.services.aspect_ratio.subprocess.run", side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(ProbeError):
                probe_streams(Path("v.mp4"))

    def test_timeout(self):
        with patch("app.services.aspect_ratio.subprocess.run", side_effect=subprocess.TimeoutExpired("ffprobe", 1)):
            with pytest.raises(ProbeError):
                probe_streams(Path("v.mp4"), timeout=1)

    @pytest.mark.parametrize("stdout", [b"not json", b"[]", b'{"format": {}}', b'{"streams": {}}'])
    def test_unexpected_output(self, stdout):
        with patch("app.services.aspect_ratio.subprocess.run", return_value=_completed(stdout)):
            with pytest.raises(ProbeError):
                probe_streams(Path("v.mp4"))


def test_get_video_classifier_uses_settings(settings):
    settings.ffprobe_path = "/opt/ffmpeg/bin/ffprobe"
    settings.ffprobe_timeout_seconds = 12
    out = json.dumps({"streams": [{"width": 720, "height": 1280}]}).encode()
    classify = get_video_classifier(settings)

    with patch("app.services.aspect_ratio.subprocess.run", return_value=_completed(out)) as run:
        assert classify(Path("/tmp/v.mp4")) == PORTRAIT

    args, kwargs = run.call_args
    assert args[0][0] == "/opt/ffmpeg/bin/ffprobe"
    assert kwargs["timeout"] == 12
