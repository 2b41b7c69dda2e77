import asyncio
import math
import os
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import cv2
import numpy as np
from loguru import logger

from vidguard.config.settings import SensitivityConfig
from vidguard.models import FrameScore


class FrameScorer(ABC):
    """Scores a single still frame. Implementations must never raise."""

    @abstractmethod
    async def score_frame(self, frame_path: str) -> float:
        """Return a risk score in [0, 1]; 0 on any internal error."""
        pass

    def close(self) -> None:
        """Release any worker resources."""
        pass


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


class HeuristicFrameScorer(FrameScorer):
    """
    Pixel-statistics heuristic standing in for a real classifier.

    Risk peaks for mid brightness, high contrast, strongly coloured and
    large (detailed) frames. Fully deterministic.

    Decoding and statistics are CPU bound and run on a bounded thread pool
    so the event loop keeps serving I/O.
    """

    BRIGHTNESS_WEIGHT = 0.3
    CONTRAST_WEIGHT = 0.3
    COLOR_WEIGHT = 0.2
    SIZE_WEIGHT = 0.2

    def __init__(self, config: Optional[SensitivityConfig] = None, executor: Optional[ThreadPoolExecutor] = None):
        self.config = config or SensitivityConfig()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.config.scoring_workers, thread_name_prefix="frame-scorer"
        )

    async def score_frame(self, frame_path: str) -> float:
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(self._executor, self.analyze_frame, frame_path)
        except RuntimeError as e:
            # executor already shut down
            logger.warning(f"Could not score frame {frame_path}: {e}")
            return 0.0
        return result.score

    def analyze_frame(self, frame_path: str) -> FrameScore:
        """Compute the score and its sub-scores; returns a zero score on failure."""
        try:
            size_bytes = os.path.getsize(frame_path)
            image = cv2.imread(frame_path, cv2.IMREAD_COLOR)
            if image is None:
                raise ValueError("image could not be decoded")
            return self.score_pixels(image, size_bytes)
        except Exception as e:
            logger.warning(f"Frame analysis failed for {frame_path}: {e}")
            return FrameScore(score=0.0)

    def score_pixels(self, image: np.ndarray, size_bytes: int) -> FrameScore:
        """Score a decoded 3-channel uint8 image."""
        if image.ndim != 3 or image.shape[2] != 3 or image.size == 0:
            raise ValueError(f"Expected HxWx3 image, got shape {image.shape}")

        mean, stddev = cv2.meanStdDev(image)
        means = mean.flatten() / 255.0
        stds = stddev.flatten() / 255.0

        brightness = float(np.mean(means))
        contrast = float(np.mean(stds))
        a, b, c = (float(m) for m in means)
        color_variance = ((a - b) ** 2 + (a - c) ** 2 + (b - c) ** 2) / 3.0

        brightness_risk = _clamp(1.0 - abs(brightness - 0.5) * 2.0)
        contrast_risk = min(1.0, contrast * 2.0)
        color_risk = min(1.0, math.sqrt(color_variance) * 2.0)
        size_risk = self.size_risk(size_bytes)

        score = (
            brightness_risk * self.BRIGHTNESS_WEIGHT
            + contrast_risk * self.CONTRAST_WEIGHT
            + color_risk * self.COLOR_WEIGHT
            + size_risk * self.SIZE_WEIGHT
        )
        return FrameScore(
            score=_clamp(score),
            brightness_risk=brightness_risk,
            contrast_risk=contrast_risk,
            color_risk=color_risk,
            size_risk=size_risk,
        )

    def size_risk(self, size_bytes: int) -> float:
        """Step function over the configured byte-size breakpoints."""
        for upper_bound, risk in self.config.size_risk_table:
            if size_bytes < upper_bound:
                return risk
        return self.config.size_risk_cap

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
