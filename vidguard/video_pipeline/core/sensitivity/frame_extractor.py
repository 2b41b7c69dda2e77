import asyncio
import math
import os
import re
from typing import List, Optional

import ffmpeg
from loguru import logger

from vidguard.config.settings import SensitivityConfig
from vidguard.exceptions import ExtractionException, ProbeException
from vidguard.models import FrameSample
from vidguard.video_pipeline.utils.helper import get_video_duration

_FRAME_NAME = re.compile(r"^frame_\d+_(\d+)ms$")


def build_timestamps(
    duration: Optional[float],
    interval_seconds: float,
    max_frames: int,
    fallback_seconds: float = 1.0,
) -> List[float]:
    """
    Sample timestamps at 0, interval, 2*interval, ...

    The count is floor(duration / interval) clamped to [1, max_frames].
    A zero, unknown or non-finite duration yields a single timestamp at fallback_seconds.
    """
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")
    if max_frames < 1:
        raise ValueError("max_frames must be at least 1")

    if duration is None or not math.isfinite(duration) or duration <= 0:
        return [float(fallback_seconds)]

    count = max(1, min(max_frames, int(math.floor(duration / interval_seconds))))
    return [i * float(interval_seconds) for i in range(count)]


class FrameExtractor:
    """
    Samples a bounded set of still frames from a video with ffmpeg.

    - Probes the duration with ffprobe
    - Builds the timestamp list (see build_timestamps)
    - Grabs one JPEG per timestamp into output_dir
    - Returns whatever frame files ended up in output_dir

    The extractor never deletes what it writes; the caller owns output_dir.
    """

    def __init__(self, config: Optional[SensitivityConfig] = None) -> None:
        self.config = config or SensitivityConfig()

    async def probe_duration(self, video_path: str) -> float:
        return await get_video_duration(video_path)

    async def extract_frames(
        self,
        video_path: str,
        output_dir: str,
        interval_seconds: Optional[float] = None,
    ) -> List[FrameSample]:
        interval = self.config.frame_interval_seconds if interval_seconds is None else interval_seconds

        try:
            duration = await self.probe_duration(video_path)
        except ProbeException as e:
            raise ExtractionException(f"Failed to probe video: {e}", original=e) from e

        timestamps = build_timestamps(
            duration,
            interval,
            self.config.max_frames,
            self.config.fallback_timestamp_seconds,
        )
        logger.info(
            f"FrameExtractor: {os.path.basename(video_path)} | "
            f"duration={duration:.2f}s interval={interval}s frames={len(timestamps)}"
        )

        os.makedirs(output_dir, exist_ok=True)
        await self.capture_frames(video_path, timestamps, output_dir)

        loop = asyncio.get_running_loop()
        frames = await loop.run_in_executor(None, self.collect_frames, output_dir)
        logger.info(f"FrameExtractor: extracted {len(frames)} frames -> {output_dir}")
        return frames

    async def capture_frames(self, video_path: str, timestamps: List[float], output_dir: str) -> None:
        """Write one image per timestamp into output_dir."""
        for index, ts in enumerate(timestamps):
            out_path = os.path.join(output_dir, self.frame_filename(index, ts))
            args = (
                ffmpeg.input(video_path, ss=f"{ts:.3f}")
                .output(out_path, vframes=1, **{"q:v": 2})
                .global_args("-nostdin", "-loglevel", "error")
                .overwrite_output()
                .compile()
            )
            await self._run_ffmpeg(args)

    def frame_filename(self, index: int, timestamp: float) -> str:
        return f"frame_{index:03d}_{int(round(timestamp * 1000))}ms{self.config.frame_extension}"

    def collect_frames(self, output_dir: str) -> List[FrameSample]:
        """
        List extracted frames. Filesystem order is not timestamp order and
        callers must treat the result as a set.
        """
        frames: List[FrameSample] = []
        for name in os.listdir(output_dir):
            stem, ext = os.path.splitext(name)
            if ext.lower() != self.config.frame_extension:
                continue
            path = os.path.join(output_dir, name)
            if not os.path.isfile(path):
                continue
            match = _FRAME_NAME.match(stem)
            frames.append(
                FrameSample(
                    path=path,
                    timestamp_seconds=int(match.group(1)) / 1000.0 if match else None,
                    size_bytes=os.path.getsize(path),
                )
            )
        return frames

    async def _run_ffmpeg(self, args: List[str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExtractionException(f"Frame extraction failed: {e}", original=e) from e

        try:
            _, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.config.extraction_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            await self._kill(proc)
            raise ExtractionException(
                f"Frame extraction timed out after {self.config.extraction_timeout_seconds}s",
                original=e,
            ) from e
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            raise ExtractionException(
                f"Frame extraction failed: {message or f'ffmpeg exited with {proc.returncode}'}",
                details={"returncode": proc.returncode},
            )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                return
            await proc.wait()
