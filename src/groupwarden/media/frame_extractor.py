"""
Frame sampling for videos and animated images.

Videos go through the ``ffprobe`` / ``ffmpeg`` binaries in a private
temporary directory; animated images are decoded with Pillow. Every sampled
frame is re-encoded as a JPEG no larger than 512 px on its longest side.

Extraction never raises: any failure is logged and yields an empty list, and
the temporary directory is removed on every exit path.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import tempfile
from io import BytesIO
from pathlib import Path
from typing import List, Sequence, Tuple

from PIL import Image, ImageSequence, UnidentifiedImageError

from groupwarden.datatypes.verdict_datatypes import MediaKind
from groupwarden.util.errors import FrameExtractionError
from groupwarden.util.image_utils import MAX_SIDE, encode_jpeg, prepare_still_image
from groupwarden.util.logger import get_logger

logger = get_logger("frame_extractor")

DEFAULT_DURATION = 5.0
SUBPROCESS_TIMEOUT = 60.0

__all__ = ["FrameExtractor", "prepare_still_image", "sample_indices"]


def frame_timestamps(duration: float, count: int) -> List[float]:
    """Evenly spaced interior timestamps: ``duration / (count + 1) * i`` for i in 1..count."""
    interval = duration / (count + 1)
    return [interval * i for i in range(1, count + 1)]


def sample_indices(total: int, count: int, step: int) -> List[int]:
    """
    Pick frame indices from an animation of ``total`` frames.

    Every ``step``-th frame is taken first; when that reaches fewer than
    ``count`` frames, evenly spaced indices over the whole animation are used.
    """
    if total <= 0 or count <= 0:
        return []
    stepped = list(range(0, total, max(1, step)))[:count]
    if len(stepped) >= count or total <= len(stepped):
        return stepped
    if total <= count:
        return list(range(total))
    spacing = total / count
    return sorted({int(i * spacing) for i in range(count)})


def _decode_animation(data: bytes, count: int, step: int, max_side: int) -> List[bytes]:
    with Image.open(BytesIO(data)) as img:
        total = getattr(img, "n_frames", 1)
        wanted = set(sample_indices(total, count, step))
        frames: List[bytes] = []
        for index, frame in enumerate(ImageSequence.Iterator(img)):
            if index in wanted:
                frames.append(encode_jpeg(frame, max_side))
            if len(frames) == len(wanted):
                break
    return frames


def _read_frames(paths: Sequence[Path], max_side: int) -> List[bytes]:
    frames: List[bytes] = []
    for path in paths:
        with Image.open(path) as img:
            frames.append(encode_jpeg(img, max_side))
    return frames


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("[FRAMES] Failed to remove temporary directory %s: %s", path, exc)


class FrameExtractor:
    """
    Samples a fixed number of frames from videos and GIFs.

    Args:
        frame_count: Frames to return per media item.
        gif_frame_step: Take every N-th frame of an animation.
        ffmpeg_path: ``ffmpeg`` binary.
        ffprobe_path: ``ffprobe`` binary.
        max_side: Longest side of the returned JPEG frames.
    """

    def __init__(
        self,
        frame_count: int = 4,
        gif_frame_step: int = 5,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        max_side: int = MAX_SIDE,
    ) -> None:
        self.frame_count = frame_count
        self.gif_frame_step = gif_frame_step
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.max_side = max_side

    async def extract(self, data: bytes, media_kind: MediaKind) -> List[bytes]:
        """Dispatch on ``media_kind``; still images come back as a single frame."""
        if not data:
            return []
        if media_kind is MediaKind.IMAGE:
            image = await self.prepare_image(data)
            return [image] if image else []
        if media_kind is MediaKind.GIF:
            return await self.extract_gif_frames(data)
        return await self.extract_video_frames(data)

    async def prepare_image(self, data: bytes) -> bytes | None:
        return await asyncio.to_thread(prepare_still_image, data, self.max_side)

    # ------------------------------------------------------------------
    # Animated images
    # ------------------------------------------------------------------

    async def extract_gif_frames(self, data: bytes) -> List[bytes]:
        """
        Sample frames from an animated image with Pillow.

        Chat apps often deliver "GIFs" as short MP4 clips; data Pillow cannot
        decode is handed to the video path instead.
        """
        try:
            frames = await asyncio.to_thread(
                _decode_animation, data, self.frame_count, self.gif_frame_step, self.max_side
            )
        except UnidentifiedImageError:
            logger.debug("[FRAMES] Not a Pillow-readable animation, trying ffmpeg")
            return await self.extract_video_frames(data)
        except Exception as exc:
            logger.error("[FRAMES] Failed to decode animation: %s", exc)
            return []

        logger.debug("[FRAMES] Sampled %d frames from animation", len(frames))
        return frames

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def extract_video_frames(self, data: bytes) -> List[bytes]:
        """
        Sample frames from a video.

        The first attempt seeks to evenly spaced timestamps. If it fails or
        yields nothing, its directory is wiped and a fixed-rate ``fps`` filter
        is tried in a fresh directory.
        """
        workdir = Path(tempfile.mkdtemp(prefix="groupwarden-frames-"))
        try:
            source = workdir / "input.media"
            await asyncio.to_thread(source.write_bytes, data)

            duration = await self.probe_duration(source)

            primary_dir = workdir / "timestamps"
            try:
                paths = await self._extract_at_timestamps(source, primary_dir, duration)
            except FrameExtractionError as exc:
                logger.info("[FRAMES] Timestamp sampling failed (%s), using fixed interval", exc)
                paths = []

            if not paths:
                _remove_tree(primary_dir)
                fallback_dir = workdir / "interval"
                try:
                    paths = await self._extract_at_interval(source, fallback_dir, duration)
                except FrameExtractionError as exc:
                    logger.warning("[FRAMES] Fixed-interval sampling failed: %s", exc)
                    return []

            frames = await asyncio.to_thread(_read_frames, paths[: self.frame_count], self.max_side)
            logger.debug("[FRAMES] Sampled %d frames from %.1fs video", len(frames), duration)
            return frames
        except Exception as exc:
            logger.error("[FRAMES] Video frame extraction failed: %s", exc)
            return []
        finally:
            _remove_tree(workdir)

    async def probe_duration(self, source: Path) -> float:
        """Duration in seconds from ``ffprobe``; ``DEFAULT_DURATION`` when unknown."""
        try:
            code, stdout, stderr = await self._run([
                self.ffprobe_path,
                "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                str(source),
            ])
        except FrameExtractionError as exc:
            logger.debug("[FRAMES] ffprobe unavailable: %s", exc)
            return DEFAULT_DURATION

        if code != 0:
            return DEFAULT_DURATION
        try:
            duration = float(json.loads(stdout or b"{}").get("format", {}).get("duration") or 0)
        except (ValueError, TypeError, AttributeError):
            return DEFAULT_DURATION
        return duration if duration > 0 else DEFAULT_DURATION

    async def _extract_at_timestamps(self, source: Path, outdir: Path, duration: float) -> List[Path]:
        outdir.mkdir()
        paths: List[Path] = []
        for index, timestamp in enumerate(frame_timestamps(duration, self.frame_count), start=1):
            target = outdir / f"frame_{index:03d}.jpg"
            code, _, stderr = await self._run([
                self.ffmpeg_path,
                "-hide_banner", "-loglevel", "error",
                "-ss", f"{timestamp:.3f}",
                "-i", str(source),
                "-frames:v", "1",
                "-q:v", "2",
                "-y", str(target),
            ])
            if code != 0:
                raise FrameExtractionError(stderr.decode(errors="replace").strip() or f"ffmpeg exit {code}")
            if target.exists() and target.stat().st_size > 0:
                paths.append(target)
        return paths

    async def _extract_at_interval(self, source: Path, outdir: Path, duration: float) -> List[Path]:
        outdir.mkdir()
        interval = max(1, int(duration // self.frame_count))
        code, _, stderr = await self._run([
            self.ffmpeg_path,
            "-hide_banner", "-loglevel", "error",
            "-i", str(source),
            "-vf", f"fps=1/{interval}",
            "-frames:v", str(self.frame_count),
            "-q:v", "2",
            "-y", str(outdir / "frame_%03d.jpg"),
        ])
        if code != 0:
            raise FrameExtractionError(stderr.decode(errors="replace").strip() or f"ffmpeg exit {code}")
        return sorted(outdir.glob("frame_*.jpg"))

    async def _run(self, cmd: List[str]) -> Tuple[int, bytes, bytes]:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise FrameExtractionError(f"cannot start {cmd[0]}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=SUBPROCESS_TIMEOUT)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise FrameExtractionError(f"{cmd[0]} timed out") from exc
        return proc.returncode if proc.returncode is not None else -1, stdout, stderr
