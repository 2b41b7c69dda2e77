"""
Pytest configuration for vidguard tests.

Frame extraction is stubbed so the suite runs without ffmpeg: the stub
reports a fixed duration and draws frames with OpenCV.
"""

import asyncio
import os
from typing import List, Optional

import cv2
import numpy as np
import pytest

from vidguard.config.settings import SensitivityConfig
from vidguard.models import ProgressEventType
from vidguard.providers.base import ProgressSink
from vidguard.providers.custom_providers import InMemoryVideoStore, LocalStorageProvider
from vidguard.video_pipeline import JobRegistry, SensitivityPipeline
from vidguard.video_pipeline.core.sensitivity.frame_extractor import FrameExtractor
from vidguard.video_pipeline.core.sensitivity.frame_scorer import FrameScorer

TENANT = "tenant-a"


def gray_image(value: int = 128, size=(48, 64)) -> np.ndarray:
    return np.full((size[0], size[1], 3), value, dtype=np.uint8)


def checkerboard(size=(48, 64)) -> np.ndarray:
    image = np.zeros((size[0], size[1], 3), dtype=np.uint8)
    image[::2, ::2] = 255
    image[1::2, 1::2] = 255
    return image


class RecordingSink(ProgressSink):
    def __init__(self):
        self.events = []

    async def publish(self, tenant_id, event):
        self.events.append((tenant_id, event))

    def types(self) -> List[str]:
        return [ProgressEventType(e.event).value for _, e in self.events]

    def last(self):
        return self.events[-1][1] if self.events else None


class StubExtractor(FrameExtractor):
    """FrameExtractor with ffprobe/ffmpeg replaced by a fixed duration and OpenCV writes."""

    def __init__(
        self,
        config: Optional[SensitivityConfig] = None,
        duration=10.0,
        image: Optional[np.ndarray] = None,
        fail_with: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        super().__init__(config)
        self.duration = duration
        self.image = gray_image() if image is None else image
        self.fail_with = fail_with
        self.gate = gate
        self.calls: List[List[float]] = []
        self.output_dirs: List[str] = []

    async def probe_duration(self, video_path: str) -> float:
        if isinstance(self.duration, Exception):
            raise self.duration
        return self.duration

    async def capture_frames(self, video_path, timestamps, output_dir):
        self.calls.append(list(timestamps))
        self.output_dirs.append(output_dir)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            # leave a partial frame behind so cleanup has something to remove
            cv2.imwrite(os.path.join(output_dir, self.frame_filename(0, timestamps[0])), self.image)
            raise self.fail_with
        for index, ts in enumerate(timestamps):
            cv2.imwrite(os.path.join(output_dir, self.frame_filename(index, ts)), self.image)


class ConstantScorer(FrameScorer):
    def __init__(self, score: float = 0.2):
        self.score = score
        self.scored: List[str] = []
        self.closed = False

    async def score_frame(self, frame_path: str) -> float:
        self.scored.append(frame_path)
        if isinstance(self.score, Exception):
            raise self.score
        return self.score

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sensitivity_config():
    return SensitivityConfig(scoring_workers=2)


@pytest.fixture
def storage(tmp_path):
    return LocalStorageProvider({"base_path": str(tmp_path / "uploads")})


@pytest.fixture
def video_store():
    return InMemoryVideoStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def temp_root(tmp_path):
    path = tmp_path / "temp"
    path.mkdir()
    return path


@pytest.fixture
async def stored_video(storage, video_store):
    data = b"\x00" * 2048
    key = await storage.save_upload(TENANT, "clip.mp4", data)
    return await video_store.create(
        TENANT,
        title="Clip",
        original_filename="clip.mp4",
        storage_path=key,
        mime_type="video/mp4",
        size=len(data),
    )


@pytest.fixture
async def make_pipeline(video_store, storage, sensitivity_config, temp_root):
    created = []

    def factory(extractor=None, scorer=None, config=None):
        config = config or sensitivity_config
        pipeline = SensitivityPipeline(
            video_store=video_store,
            storage=storage,
            config=config,
            registry=JobRegistry(),
            extractor=extractor or StubExtractor(config),
            scorer=scorer or ConstantScorer(),
            temp_dir=str(temp_root),
        )
        created.append(pipeline)
        return pipeline

    yield factory
    for pipeline in created:
        await pipeline.close()
