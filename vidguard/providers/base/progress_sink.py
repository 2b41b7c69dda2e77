from abc import ABC, abstractmethod

from vidguard.models import ProgressEvent


class ProgressSink(ABC):
    """Receives pipeline progress events for a tenant channel."""

    @abstractmethod
    async def publish(self, tenant_id: str, event: ProgressEvent) -> None:
        """Fire-and-forget delivery; callers do not wait on subscribers."""
        pass
