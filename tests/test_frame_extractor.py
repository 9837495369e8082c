"""Tests for frame sampling from GIFs and videos."""

import json
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image

from groupwarden.datatypes.verdict_datatypes import MediaKind
from groupwarden.media import frame_extractor
from groupwarden.media.frame_extractor import (
    DEFAULT_DURATION,
    FrameExtractor,
    frame_timestamps,
    sample_indices,
)
from groupwarden.util.errors import FrameExtractionError


def make_gif(frames: int, size=(64, 32)) -> bytes:
    images = [Image.new("RGB", size, (i * 10 % 255, 0, 0)) for i in range(frames)]
    buffer = BytesIO()
    images[0].save(buffer, format="GIF", save_all=True, append_images=images[1:], duration=50, loop=0)
    return buffer.getvalue()


def write_jpeg(path: Path) -> None:
    Image.new("RGB", (1280, 720), (0, 128, 0)).save(path, format="JPEG")


def is_jpeg(data: bytes) -> bool:
    return data[:2] == b"\xff\xd8"


class TestSampling:
    def test_frame_timestamps_are_interior(self):
        assert frame_timestamps(10.0, 4) == pytest.approx([2.0, 4.0, 6.0, 8.0])

    def test_every_step_frame_first(self):
        assert sample_indices(40, 4, 5) == [0, 5, 10, 15]

    def test_even_spacing_when_steps_run_out(self):
        assert sample_indices(12, 4, 5) == [0, 3, 6, 9]

    def test_short_animation_returns_every_frame(self):
        assert sample_indices(3, 4, 5) == [0, 1, 2]

    def test_degenerate_inputs(self):
        assert sample_indices(0, 4, 5) == []
        assert sample_indices(10, 0, 5) == []
        assert sample_indices(1, 4, 5) == [0]


class TestStillAndGif:
    @pytest.mark.asyncio
    async def test_image_returns_single_frame(self):
        buffer = BytesIO()
        Image.new("RGB", (2000, 1000), (10, 20, 30)).save(buffer, format="PNG")

        frames = await FrameExtractor().extract(buffer.getvalue(), MediaKind.IMAGE)

        assert len(frames) == 1
        with Image.open(BytesIO(frames[0])) as img:
            assert img.format == "JPEG"
            assert img.size == (512, 256)

    @pytest.mark.asyncio
    async def test_undecodable_image_yields_nothing(self):
        assert await FrameExtractor().extract(b"not an image", MediaKind.IMAGE) == []

    @pytest.mark.asyncio
    async def test_empty_data(self):
        assert await FrameExtractor().extract(b"", MediaKind.VIDEO) == []

    @pytest.mark.asyncio
    async def test_gif_frames_are_sampled_with_pillow(self):
        extractor = FrameExtractor(frame_count=4, gif_frame_step=5)

        frames = await extractor.extract(make_gif(20), MediaKind.GIF)

        assert len(frames) == 4
        assert all(is_jpeg(frame) for frame in frames)

    @pytest.mark.asyncio
    async def test_mp4_gif_falls_back_to_video_path(self):
        extractor = FrameExtractor()
        with patch.object(extractor, "extract_video_frames", AsyncMock(return_value=[b"frame"])) as video:
            frames = await extractor.extract(b"\x00\x00\x00\x18ftypmp42", MediaKind.GIF)

        assert frames == [b"frame"]
        video.assert_awaited_once()


class TestVideo:
    @pytest.fixture
    def workdir(self, tmp_path):
        path = tmp_path / "work"
        path.mkdir()
        with patch.object(frame_extractor.tempfile, "mkdtemp", return_value=str(path)):
            yield path

    @pytest.mark.asyncio
    async def test_timestamp_sampling(self, workdir):
        extractor = FrameExtractor(frame_count=4)
        calls = []

        async def fake_run(cmd):
            calls.append(cmd)
            if cmd[0] == "ffprobe":
                return 0, json.dumps({"format": {"duration": "10.0"}}).encode(), b""
            write_jpeg(Path(cmd[-1]))
            return 0, b"", b""

        with patch.object(extractor, "_run", side_effect=fake_run):
            frames = await extractor.extract(b"video-bytes", MediaKind.VIDEO)

        assert len(frames) == 4
        assert all(is_jpeg(frame) for frame in frames)
        seeks = [cmd[cmd.index("-ss") + 1] for cmd in calls if "-ss" in cmd]
        assert seeks == ["2.000", "4.000", "6.000", "8.000"]
        assert not workdir.exists()

    @pytest.mark.asyncio
    async def test_falls_back_to_fixed_interval(self, workdir):
        extractor = FrameExtractor(frame_count=4)
        interval_cmds = []

        async def fake_run(cmd):
            if cmd[0] == "ffprobe":
                return 0, json.dumps({"format": {"duration": "12.0"}}).encode(), b""
            if "-ss" in cmd:
                write_jpeg(Path(cmd[-1]))  # partial output from the failed attempt
                return 1, b"", b"seek failed"
            interval_cmds.append(cmd)
            outdir = Path(cmd[-1]).parent
            assert list(outdir.iterdir()) == []
            for index in range(1, 5):
                write_jpeg(outdir / f"frame_{index:03d}.jpg")
            return 0, b"", b""

        with patch.object(extractor, "_run", side_effect=fake_run):
            frames = await extractor.extract(b"video-bytes", MediaKind.VIDEO)

        assert len(frames) == 4
        assert interval_cmds[0][interval_cmds[0].index("-vf") + 1] == "fps=1/3"
        assert not workdir.exists()

    @pytest.mark.asyncio
    async def test_both_attempts_failing_yields_nothing(self, workdir):
        extractor = FrameExtractor()

        async def fake_run(cmd):
            if cmd[0] == "ffprobe":
                raise FrameExtractionError("cannot start ffprobe")
            return 1, b"", b"broken"

        with patch.object(extractor, "_run", side_effect=fake_run):
            assert await extractor.extract(b"video-bytes", MediaKind.VIDEO) == []
        assert not workdir.exists()

    @pytest.mark.asyncio
    async def test_probe_duration_defaults(self, tmp_path):
        extractor = FrameExtractor()
        with patch.object(extractor, "_run", AsyncMock(return_value=(0, b"{}", b""))):
            assert await extractor.probe_duration(tmp_path / "x") == DEFAULT_DURATION
        with patch.object(extractor, "_run", AsyncMock(return_value=(1, b"", b"err"))):
            assert await extractor.probe_duration(tmp_path / "x") == DEFAULT_DURATION

    @pytest.mark.asyncio
    async def test_missing_binary_raises_extraction_error(self):
        extractor = FrameExtractor(ffmpeg_path="/nonexistent/ffmpeg-binary")
        with pytest.raises(FrameExtractionError):
            await extractor._run(["/nonexistent/ffmpeg-binary", "-version"])
