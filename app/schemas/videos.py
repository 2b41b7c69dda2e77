from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vidguard.models import JobStatus, SafetyStatus, VideoAsset, VideoStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoResponse(_CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    original_filename: str
    mime_type: str
    size: int
    duration: Optional[int] = None
    status: VideoStatus
    safety_status: SafetyStatus
    owner_id: Optional[str] = None
    assigned_to: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_asset(cls, video: VideoAsset) -> "VideoResponse":
        return cls.model_validate(video.model_dump(exclude={"tenant_id", "storage_path"}))


class VideoUpdateRequest(_CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None


class AssignmentRequest(_CamelModel):
    user_ids: List[str] = Field(..., min_length=1, examples=[["user-1", "user-2"]])


class VideoListResponse(_CamelModel):
    videos: List[VideoResponse]


class ProcessingStatusResponse(_CamelModel):
    video_id: str
    status: JobStatus
    progress: int = Field(..., ge=0, le=100)


class ProcessingTriggerResponse(_CamelModel):
    video_id: str
    message: str = Field(..., examples=["Processing started"])


class MessageResponse(BaseModel):
    message: str
