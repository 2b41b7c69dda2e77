import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from vidguard.exceptions import ValidationException
from vidguard.models import AssignmentMode, SafetyStatus, VideoAsset, VideoStatus
from vidguard.providers.base import VideoStoreProvider


class InMemoryVideoStore(VideoStoreProvider):
    """
    Process-local video record store.

    Records are only visible under the tenant that owns them. Every call
    returns a copy so callers cannot mutate stored state behind the lock.
    """

    # assignees change only through update_assignees
    _READ_ONLY_FIELDS = {"id", "tenant_id", "created_at", "assigned_to"}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self._records: Dict[str, VideoAsset] = {}
        self._lock = asyncio.Lock()

    async def create(self, tenant_id: str, **fields: Any) -> VideoAsset:
        fields.pop("status", None)
        fields.pop("safety_status", None)
        fields.pop("assigned_to", None)
        try:
            video = VideoAsset(id=fields.pop("id", None) or uuid.uuid4().hex, tenant_id=tenant_id, **fields)
        except ValidationError as e:
            raise ValidationException(f"Invalid video record: {e}") from e

        async with self._lock:
            self._records[video.id] = video
        logger.info(f"Created video {video.id} for tenant {tenant_id}")
        return video.model_copy(deep=True)

    async def get(self, video_id: str, tenant_id: str) -> Optional[VideoAsset]:
        async with self._lock:
            video = self._records.get(video_id)
            if video is None or video.tenant_id != tenant_id:
                return None
            return video.model_copy(deep=True)

    async def update_status(
        self, video_id: str, tenant_id: str, fields: Dict[str, Any]
    ) -> Optional[VideoAsset]:
        unknown = set(fields) - set(VideoAsset.model_fields)
        if unknown or set(fields) & self._READ_ONLY_FIELDS:
            raise ValidationException(f"Cannot update fields: {sorted(unknown | (set(fields) & self._READ_ONLY_FIELDS))}")

        async with self._lock:
            video = self._records.get(video_id)
            if video is None or video.tenant_id != tenant_id:
                return None
            data = video.model_dump()
            data.update(fields)
            data["updated_at"] = datetime.now(timezone.utc)
            try:
                updated = VideoAsset(**data)
            except ValidationError as e:
                raise ValidationException(f"Invalid update for video {video_id}: {e}") from e
            self._records[video_id] = updated
            return updated.model_copy(deep=True)

    async def update_assignees(
        self, video_id: str, tenant_id: str, user_ids: Sequence[str], mode: AssignmentMode
    ) -> Optional[VideoAsset]:
        requested = [uid for uid in dict.fromkeys(user_ids) if uid]
        async with self._lock:
            video = self._records.get(video_id)
            if video is None or video.tenant_id != tenant_id:
                return None
            if mode == AssignmentMode.REPLACE:
                assignees = requested
            elif mode == AssignmentMode.ADD:
                assignees = video.assigned_to + [uid for uid in requested if uid not in video.assigned_to]
            else:
                assignees = [uid for uid in video.assigned_to if uid not in requested]
            updated = video.model_copy(
                update={"assigned_to": assignees, "updated_at": datetime.now(timezone.utc)}, deep=True
            )
            self._records[video_id] = updated
        logger.info(f"Assignees of video {video_id} ({mode.value}): {assignees}")
        return updated.model_copy(deep=True)

    async def delete(self, video_id: str, tenant_id: str) -> bool:
        async with self._lock:
            video = self._records.get(video_id)
            if video is None or video.tenant_id != tenant_id:
                return False
            del self._records[video_id]
        logger.info(f"Deleted video {video_id} for tenant {tenant_id}")
        return True

    async def list(
        self,
        tenant_id: str,
        status: Optional[VideoStatus] = None,
        safety_status: Optional[SafetyStatus] = None,
        owner_id: Optional[str] = None,
        search: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> List[VideoAsset]:
        needle = search.strip().casefold() if search else ""
        from_date = _as_utc(from_date)
        to_date = _as_utc(to_date)

        def matches(v: VideoAsset) -> bool:
            if v.tenant_id != tenant_id:
                return False
            if status is not None and v.status != status:
                return False
            if safety_status is not None and v.safety_status != safety_status:
                return False
            if owner_id is not None and v.owner_id != owner_id:
                return False
            if needle and needle not in v.title.casefold() and needle not in (v.description or "").casefold():
                return False
            created = _as_utc(v.created_at)
            if from_date is not None and created < from_date:
                return False
            if to_date is not None and created > to_date:
                return False
            return True

        async with self._lock:
            videos = [v.model_copy(deep=True) for v in self._records.values() if matches(v)]
        return sorted(videos, key=lambda v: v.created_at, reverse=True)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
