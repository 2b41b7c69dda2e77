from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from vidguard.models import AssignmentMode, SafetyStatus, VideoAsset, VideoStatus


class VideoStoreProvider(ABC):
    """Abstract base class for tenant-scoped video records."""

    @abstractmethod
    async def create(self, tenant_id: str, **fields: Any) -> VideoAsset:
        """Create a record in `uploaded` / `unknown` state with no assignees."""
        pass

    @abstractmethod
    async def get(self, video_id: str, tenant_id: str) -> Optional[VideoAsset]:
        """Fetch a record, or None when it does not exist under this tenant."""
        pass

    @abstractmethod
    async def update_status(
        self, video_id: str, tenant_id: str, fields: Dict[str, Any]
    ) -> Optional[VideoAsset]:
        """Apply a partial update; None when the record is not found."""
        pass

    @abstractmethod
    async def update_assignees(
        self, video_id: str, tenant_id: str, user_ids: Sequence[str], mode: AssignmentMode
    ) -> Optional[VideoAsset]:
        """Replace, extend or shrink the assignee list; None when the record is not found."""
        pass

    @abstractmethod
    async def delete(self, video_id: str, tenant_id: str) -> bool:
        """Delete a record; False when it did not exist."""
        pass

    @abstractmethod
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
        """
        List a tenant's records, newest first.

        `search` matches title or description case-insensitively; the date
        bounds are inclusive and apply to `created_at`.
        """
        pass
