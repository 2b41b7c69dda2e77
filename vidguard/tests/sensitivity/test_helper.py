import math

import ffmpeg
import pytest

from vidguard.exceptions import ProbeException
from vidguard.video_pipeline.utils.helper import get_video_duration, make_run_directory_name, remove_directory


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00" * 64)
    return str(path)


def fake_ffprobe(result):
    def ffprobe(path, *args, **kwargs):
        if isinstance(result, Exception):
            raise result
        return result
    return ffprobe


@pytest.mark.parametrize(
    "ffprobe_output,expected",
    [
        ({"format": {"duration": "12.480000"}}, 12.48),
        ({"format": {"duration": "N/A"}}, 0.0),
        ({"format": {"duration": ""}}, 0.0),
        ({"format": {}}, 0.0),
        ({}, 0.0),
        ({"format": {"duration": "inf"}}, 0.0),
        ({"format": {"duration": "nan"}}, 0.0),
        ({"format": {"duration": "-3"}}, 0.0),
    ],
)
async def test_get_video_duration(monkeypatch, video_file, ffprobe_output, expected):
    monkeypatch.setattr(ffmpeg, "probe", fake_ffprobe(ffprobe_output))

    duration = await get_video_duration(video_file)

    assert math.isfinite(duration)
    assert duration == pytest.approx(expected)


async def test_unparsable_duration_raises(monkeypatch, video_file):
    monkeypatch.setattr(ffmpeg, "probe", fake_ffprobe({"format": {"duration": "twelve"}}))

    with pytest.raises(ProbeException) as exc_info:
        await get_video_duration(video_file)
    assert exc_info.value.error_code == "PROBE_FAILED"


async def test_ffprobe_error_becomes_probe_exception(monkeypatch, video_file):
    error = ffmpeg.Error("ffprobe", b"", b"moov atom not found")
    monkeypatch.setattr(ffmpeg, "probe", fake_ffprobe(error))

    with pytest.raises(ProbeException) as exc_info:
        await get_video_duration(video_file)
    assert "moov atom not found" in str(exc_info.value)
    assert exc_info.value.details["original_exception"] == "Error"


async def test_missing_ffprobe_binary_becomes_probe_exception(monkeypatch, video_file):
    monkeypatch.setattr(ffmpeg, "probe", fake_ffprobe(FileNotFoundError("ffprobe")))

    with pytest.raises(ProbeException):
        await get_video_duration(video_file)


async def test_remove_directory(tmp_path):
    run_dir = make_run_directory_name(str(tmp_path))
    (tmp_path / run_dir).mkdir()
    (tmp_path / run_dir / "frame_000_0ms.jpg").write_bytes(b"x")

    assert await remove_directory(run_dir)
    assert list(tmp_path.iterdir()) == []
    assert await remove_directory(run_dir)


def test_run_directory_names_are_unique(tmp_path):
    names = {make_run_directory_name(str(tmp_path)) for _ in range(50)}

    assert len(names) == 50
    assert all(name.startswith(str(tmp_path)) for name in names)
