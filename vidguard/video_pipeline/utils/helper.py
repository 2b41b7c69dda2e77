"""
Helper functions for the sensitivity pipeline: probing and temp-directory lifecycle.
"""

import asyncio
import math
import os
import secrets
import shutil
import time
from typing import Any, Dict

import ffmpeg
from loguru import logger

from vidguard.exceptions import ProbeException


def _probe(video_path: str) -> Dict[str, Any]:
    return ffmpeg.probe(video_path)


async def get_video_duration(video_path: str) -> float:
    """
    Get video duration in seconds using ffprobe.

    Args:
        video_path: Path to the video file

    Returns:
        float: Video duration in seconds, 0.0 when the container reports none

    Raises:
        ProbeException: If ffprobe fails or the duration cannot be parsed
    """
    if not os.path.isfile(video_path):
        raise ProbeException(f"Video not found: {video_path}", error_code="PROBE_FAILED")

    loop = asyncio.get_running_loop()
    try:
        probe = await loop.run_in_executor(None, _probe, video_path)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else str(e)
        raise ProbeException(
            f"Failed to probe video: {stderr}",
            error_code="PROBE_FAILED",
            details={"original_exception": type(e).__name__},
        ) from e
    except OSError as e:
        # ffprobe binary missing or not executable
        raise ProbeException(
            f"Failed to probe video: {e}",
            error_code="PROBE_FAILED",
            details={"original_exception": type(e).__name__},
        ) from e

    raw = (probe.get("format") or {}).get("duration")
    if raw in (None, "", "N/A"):
        return 0.0
    try:
        duration = float(raw)
    except (TypeError, ValueError) as e:
        raise ProbeException(f"Error parsing video duration: {raw!r}", error_code="PROBE_FAILED") from e

    if not math.isfinite(duration):
        logger.warning(f"Non-finite duration {raw!r} reported for {video_path}; treating as unknown")
        return 0.0

    logger.debug(f"Video duration: {duration:.2f} seconds")
    return max(duration, 0.0)


def make_run_directory_name(temp_root: str) -> str:
    """Return a unique, not yet created, frames directory under temp_root."""
    return os.path.join(
        os.path.abspath(temp_root),
        f"frames_{int(time.time() * 1000)}_{secrets.token_hex(4)}",
    )


async def remove_directory(path: str) -> bool:
    """
    Remove a run's temp directory and everything in it, off the event loop.

    Errors are logged, never raised. Returns True when the directory is gone.
    """
    if not path or not os.path.exists(path):
        return True
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, shutil.rmtree, path)
        logger.debug(f"Removed temp directory {path}")
        return True
    except OSError as e:
        logger.warning(f"Could not remove temp directory {path}: {e}")
        return False
