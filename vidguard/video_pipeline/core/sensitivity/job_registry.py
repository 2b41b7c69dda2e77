from typing import Dict, Iterator, Optional

from loguru import logger

from vidguard.models import PipelineJob


class JobRegistry:
    """
    In-memory map of in-flight runs keyed by video id.

    Last write wins. Nothing is persisted: a restart mid-run leaves the video
    in `processing` with no registry entry.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, PipelineJob] = {}

    def upsert(self, job: PipelineJob) -> PipelineJob:
        self._jobs[job.video_id] = job
        return job

    def get(self, video_id: str) -> Optional[PipelineJob]:
        return self._jobs.get(video_id)

    def remove(self, video_id: str) -> Optional[PipelineJob]:
        return self._jobs.pop(video_id, None)

    def snapshot(self, video_id: str) -> Optional[dict]:
        job = self._jobs.get(video_id)
        return job.snapshot() if job else None

    def clear(self) -> None:
        if self._jobs:
            logger.info(f"JobRegistry: dropping {len(self._jobs)} in-flight jobs")
        self._jobs.clear()

    def __contains__(self, video_id: str) -> bool:
        return video_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[PipelineJob]:
        return iter(list(self._jobs.values()))
