from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class VideoStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class SafetyStatus(str, Enum):
    UNKNOWN = "unknown"
    SAFE = "safe"
    FLAGGED = "flagged"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AssignmentMode(str, Enum):
    REPLACE = "replace"
    ADD = "add"
    REMOVE = "remove"


class ProgressEventType(str, Enum):
    START = "processing:start"
    PROGRESS = "processing:progress"
    COMPLETED = "processing:completed"
    FAILED = "processing:failed"


class VideoAsset(BaseModel):
    """A stored video and its processing state, scoped to one tenant."""
    model_config = ConfigDict(validate_assignment=True)

    id: str
    tenant_id: str
    owner_id: Optional[str] = None
    assigned_to: List[str] = Field(default_factory=list, description="Users granted access besides the owner")
    title: str
    description: Optional[str] = None
    original_filename: str
    storage_path: str = Field(..., description="Storage key relative to the upload root")
    mime_type: str
    size: int = Field(..., ge=0)
    duration: Optional[int] = Field(default=None, ge=0, description="Whole seconds, set by the pipeline")
    status: VideoStatus = VideoStatus.UPLOADED
    safety_status: SafetyStatus = SafetyStatus.UNKNOWN
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class FrameSample:
    """An extracted still image owned by a single pipeline run."""
    path: str
    timestamp_seconds: Optional[float]
    size_bytes: int


@dataclass(frozen=True)
class FrameScore:
    """Heuristic risk of one frame, with the sub-scores that produced it."""
    score: float
    brightness_risk: float = 0.0
    contrast_risk: float = 0.0
    color_risk: float = 0.0
    size_risk: float = 0.0


@dataclass
class PipelineJob:
    """Transient progress cursor for one run, keyed by video id."""
    video_id: str
    tenant_id: str
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    safety_status: Optional[SafetyStatus] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def advance(self, progress: int, status: Optional[JobStatus] = None) -> None:
        # progress never moves backwards within a run
        self.progress = max(self.progress, progress)
        if status is not None:
            self.status = status

    def snapshot(self) -> dict:
        return {"status": self.status.value, "progress": self.progress}


class ProgressEvent(BaseModel):
    """Payload fanned out to a tenant channel while a run progresses."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    event: ProgressEventType = Field(..., exclude=True)
    video_id: str
    status: str
    progress: Optional[int] = None
    message: Optional[str] = None
    safety_status: Optional[SafetyStatus] = None
    duration: Optional[int] = None
    error: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
