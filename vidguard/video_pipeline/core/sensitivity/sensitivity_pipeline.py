import asyncio
import math
from typing import Annotated, Any, Dict, List, Optional

from vidguard.config.settings import SensitivityConfig
from vidguard.exceptions import (
    PersistenceException,
    PipelineBusyException,
    ProbeException,
    ResourceNotFoundException,
    VidGuardException,
)
from vidguard.models import (
    FrameSample,
    JobStatus,
    PipelineJob,
    ProgressEvent,
    ProgressEventType,
    SafetyStatus,
    VideoStatus,
)
from vidguard.providers.base import ProgressSink, StorageProvider, VideoStoreProvider
from vidguard.utils.execution_timer import ExecutionTimer
from vidguard.utils.logging_config import log_manager
from vidguard.video_pipeline.core.sensitivity.frame_extractor import FrameExtractor
from vidguard.video_pipeline.core.sensitivity.frame_scorer import FrameScorer, HeuristicFrameScorer
from vidguard.video_pipeline.core.sensitivity.job_registry import JobRegistry
from vidguard.video_pipeline.core.sensitivity.verdict import VerdictPolicy, aggregate_verdict
from vidguard.video_pipeline.utils.helper import make_run_directory_name, remove_directory


class SensitivityPipeline:
    """
    SensitivityPipeline runs the frame-based content sensitivity check for one video at a time.

    Stages are strictly sequential and each advances the job's progress:

    ========  ========  ==========================================================
    stage     progress  action
    ========  ========  ==========================================================
    start     0 -> 10   register job, mark video `processing`, emit start
    metadata  10 -> 30  probe duration (0 on probe failure), persist it
    analysis  30 -> 80  extract frames, score them in parallel, aggregate verdict
    finalize  80 -> 100 mark video `processed` with the verdict, emit completion
    ========  ========  ==========================================================

    Any failure marks the video `failed` (best effort) and emits a failure
    event. The job is deregistered and the run's frame directory removed on
    every exit path, including cancellation.

    At most one run per video id is active. A second trigger while a run is
    in flight is rejected: `run` raises PipelineBusyException and
    `start_pipeline` returns None.

    Example Usage:
    ---------------
    >>> pipeline = SensitivityPipeline(video_store=store, storage=storage)
    >>> task = pipeline.start_pipeline(video_id, tenant_id, progress_sink=hub)
    >>> pipeline.get_job_snapshot(video_id)
    {'status': 'processing', 'progress': 50}
    """

    def __init__(
        self,
        video_store: Annotated[VideoStoreProvider, "Record store updated with status, duration and verdict"],
        storage: Annotated[StorageProvider, "Resolves a video's storage key to a local path"],
        config: Annotated[Optional[SensitivityConfig], "Sampling, scoring and threshold settings"] = None,
        registry: Annotated[Optional[JobRegistry], "Registry of in-flight jobs"] = None,
        extractor: Annotated[Optional[FrameExtractor], "Frame extraction backend"] = None,
        scorer: Annotated[Optional[FrameScorer], "Per-frame risk scorer"] = None,
        temp_dir: Annotated[str, "Root under which each run creates its own frames directory"] = "./temp",
    ):
        self.config = config or SensitivityConfig()
        self.video_store = video_store
        self.storage = storage
        self.registry = registry if registry is not None else JobRegistry()
        self.extractor = extractor or FrameExtractor(self.config)
        self.scorer = scorer or HeuristicFrameScorer(self.config)
        self.policy = VerdictPolicy.from_config(self.config)
        self.temp_dir = temp_dir
        self.logger = log_manager.get_logger()

        # video_id -> detached task (None while a directly awaited run holds the claim)
        self._active: Dict[str, Optional[asyncio.Task]] = {}
        self._closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def is_active(self, video_id: str) -> bool:
        return video_id in self._active

    def get_job_snapshot(self, video_id: str) -> Optional[dict]:
        """Point-in-time {status, progress} for polling clients."""
        return self.registry.snapshot(video_id)

    def _claim(self, video_id: str) -> None:
        if self._closed:
            raise VidGuardException("Pipeline is closed", error_code="PIPELINE_CLOSED")
        if video_id in self._active:
            raise PipelineBusyException(
                f"Sensitivity analysis already running for video {video_id}",
                error_code="PIPELINE_BUSY",
            )
        self._active[video_id] = None

    def _release(self, video_id: str) -> None:
        self._active.pop(video_id, None)

    async def run(
        self, video_id: str, tenant_id: str, progress_sink: Optional[ProgressSink] = None
    ) -> Optional[SafetyStatus]:
        """
        Run the pipeline to completion.

        Returns the verdict, or None when the run failed (the failure has
        already been recorded on the video and emitted to the sink).

        Raises:
            PipelineBusyException: If a run for this video is already active
        """
        self._claim(video_id)
        try:
            return await self._execute(video_id, tenant_id, progress_sink)
        finally:
            self._release(video_id)

    def start_pipeline(
        self, video_id: str, tenant_id: str, progress_sink: Optional[ProgressSink] = None
    ) -> Optional[asyncio.Task]:
        """
        Dispatch a detached run and return its task, or None if the video
        already has an active run. Must be called from within the event loop.
        """
        try:
            self._claim(video_id)
        except PipelineBusyException:
            self.logger.warning(f"Ignoring trigger for video {video_id}: run already active")
            return None

        task = asyncio.create_task(
            self._run_detached(video_id, tenant_id, progress_sink),
            name=f"sensitivity:{video_id}",
        )
        self._active[video_id] = task
        return task

    async def _run_detached(
        self, video_id: str, tenant_id: str, progress_sink: Optional[ProgressSink]
    ) -> Optional[SafetyStatus]:
        # error boundary: nothing escapes a background run
        try:
            return await self._execute(video_id, tenant_id, progress_sink)
        except asyncio.CancelledError:
            self.logger.info(f"Sensitivity run for video {video_id} cancelled")
            raise
        except Exception as e:
            self.logger.opt(exception=True).error(f"Unhandled error in sensitivity run for {video_id}: {e}")
            return None
        finally:
            self._release(video_id)

    def cancel(self, video_id: str) -> bool:
        """Cancel a detached run. Returns False when there is nothing to cancel."""
        task = self._active.get(video_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def close(self) -> None:
        """Cancel detached runs, wait for their cleanup, release the scorer and registry."""
        self._closed = True
        tasks = [t for t in self._active.values() if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.scorer.close()
        self.registry.clear()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    async def _execute(
        self, video_id: str, tenant_id: str, sink: Optional[ProgressSink]
    ) -> Optional[SafetyStatus]:
        job = self.registry.upsert(PipelineJob(video_id=video_id, tenant_id=tenant_id))
        run_dir: Optional[str] = None

        with ExecutionTimer() as timer:
            try:
                # start
                video = await self.video_store.get(video_id, tenant_id)
                if video is None:
                    raise ResourceNotFoundException(f"Video not found: {video_id}")

                await self._persist(video_id, tenant_id, {"status": VideoStatus.PROCESSING})
                job.advance(10, JobStatus.PROCESSING)
                await self._emit(sink, tenant_id, ProgressEvent(
                    event=ProgressEventType.START, video_id=video_id,
                    status=VideoStatus.PROCESSING.value, progress=job.progress,
                ))

                # metadata
                video_path = self.storage.resolve_path(video.storage_path)
                duration = await self._probe_duration(video_path)
                job.advance(30)
                await self._emit(sink, tenant_id, ProgressEvent(
                    event=ProgressEventType.PROGRESS, video_id=video_id,
                    status=VideoStatus.PROCESSING.value, progress=job.progress,
                    message="Extracting video metadata...",
                ))
                await self._persist(video_id, tenant_id, {"duration": duration})

                # analysis
                job.advance(50)
                await self._emit(sink, tenant_id, ProgressEvent(
                    event=ProgressEventType.PROGRESS, video_id=video_id,
                    status=VideoStatus.PROCESSING.value, progress=job.progress,
                    message="Analyzing content sensitivity...",
                ))
                run_dir = make_run_directory_name(self.temp_dir)
                frames = await self.extractor.extract_frames(
                    video_path, run_dir, self.config.frame_interval_seconds
                )
                scores = await self._score_frames(frames)
                verdict = aggregate_verdict(scores, self.policy)
                self.logger.info(
                    f"Video {video_id}: {len(scores)} frames scored, "
                    f"max={max(scores, default=0.0):.3f} verdict={verdict.value}"
                )
                job.advance(80)
                job.safety_status = verdict
                await self._emit(sink, tenant_id, ProgressEvent(
                    event=ProgressEventType.PROGRESS, video_id=video_id,
                    status=VideoStatus.PROCESSING.value, progress=job.progress,
                    message="Finalizing results...",
                ))

                # finalize
                await self._persist(
                    video_id, tenant_id,
                    {"status": VideoStatus.PROCESSED, "safety_status": verdict},
                )
                job.advance(100, JobStatus.COMPLETED)
                await self._emit(sink, tenant_id, ProgressEvent(
                    event=ProgressEventType.COMPLETED, video_id=video_id,
                    status=VideoStatus.PROCESSED.value, progress=job.progress,
                    safety_status=verdict, duration=duration,
                ))
                self.logger.info(
                    f"Sensitivity run for video {video_id} completed in "
                    f"{timer.get_execution_time():.2f}s: {verdict.value}"
                )
                return verdict

            except asyncio.CancelledError:
                await self._fail(video_id, tenant_id, sink, job, "Processing cancelled")
                raise
            except Exception as e:
                self.logger.opt(exception=True).error(f"Error processing video {video_id}: {e}")
                await self._fail(video_id, tenant_id, sink, job, str(e) or "Processing failed")
                return None
            finally:
                self.registry.remove(video_id)
                if run_dir is not None:
                    await remove_directory(run_dir)

    async def _probe_duration(self, video_path: str) -> int:
        try:
            duration = await self.extractor.probe_duration(video_path)
        except ProbeException as e:
            self.logger.warning(f"Probe failed for {video_path}, using duration 0: {e}")
            return 0
        if not math.isfinite(duration) or duration < 0:
            self.logger.warning(f"Probe reported duration {duration!r} for {video_path}, using 0")
            return 0
        return int(round(duration))

    async def _score_frames(self, frames: List[FrameSample]) -> List[float]:
        """Score every frame with at most `scoring_workers` in flight."""
        semaphore = asyncio.Semaphore(self.config.scoring_workers)

        async def score_one(frame: FrameSample) -> float:
            async with semaphore:
                try:
                    score = float(await self.scorer.score_frame(frame.path))
                except Exception as e:
                    self.logger.warning(f"Scoring failed for {frame.path}, treating as 0: {e}")
                    return 0.0
            if score != score:  # NaN
                return 0.0
            return max(0.0, min(1.0, score))

        return list(await asyncio.gather(*(score_one(f) for f in frames)))

    async def _persist(self, video_id: str, tenant_id: str, fields: Dict[str, Any]) -> None:
        try:
            updated = await self.video_store.update_status(video_id, tenant_id, fields)
        except VidGuardException:
            raise
        except Exception as e:
            raise PersistenceException(
                f"Failed to update video {video_id}: {e}",
                error_code="PERSISTENCE_FAILED",
                details={"original_exception": type(e).__name__},
            ) from e
        if updated is None:
            raise PersistenceException(f"Video not found while updating: {video_id}", error_code="PERSISTENCE_FAILED")

    async def _fail(
        self,
        video_id: str,
        tenant_id: str,
        sink: Optional[ProgressSink],
        job: PipelineJob,
        message: str,
    ) -> None:
        job.status = JobStatus.FAILED
        job.safety_status = None
        try:
            await self._persist(
                video_id, tenant_id,
                {"status": VideoStatus.FAILED, "safety_status": SafetyStatus.UNKNOWN},
            )
        except Exception as e:
            self.logger.error(f"Failed to update video status for {video_id}: {e}")
        await self._emit(sink, tenant_id, ProgressEvent(
            event=ProgressEventType.FAILED, video_id=video_id,
            status=VideoStatus.FAILED.value, error=message,
        ))

    async def _emit(self, sink: Optional[ProgressSink], tenant_id: str, event: ProgressEvent) -> None:
        if sink is None:
            return
        try:
            await sink.publish(tenant_id, event)
        except Exception as e:
            self.logger.warning(f"Progress sink rejected {event.event} for {event.video_id}: {e}")
