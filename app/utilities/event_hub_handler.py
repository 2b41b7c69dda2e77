import asyncio
import json
from collections import defaultdict
from typing import Dict, Optional, Set

from loguru import logger

from vidguard.models import ProgressEvent, ProgressEventType
from vidguard.providers.base import ProgressSink


class TenantEventHub(ProgressSink):
    """
    In-process fan-out of pipeline events, one channel per tenant.

    Subscribers get a bounded queue; a slow subscriber loses its oldest
    events instead of blocking the pipeline. The last event of each channel
    is kept so late subscribers can start from a snapshot.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subs: Dict[str, Set[asyncio.Queue]] = defaultdict(set)
        self._last: Dict[str, dict] = {}

    @staticmethod
    def channel(tenant_id: str) -> str:
        return f"tenant:{tenant_id}"

    def subscribe(self, tenant_id: str) -> asyncio.Queue:
        q = asyncio.Queue(maxsize=self.queue_size)
        self._subs[self.channel(tenant_id)].add(q)
        return q

    def unsubscribe(self, tenant_id: str, q: asyncio.Queue) -> None:
        key = self.channel(tenant_id)
        subs = self._subs.get(key)
        if subs and q in subs:
            subs.remove(q)
            if not subs:
                self._subs.pop(key, None)

    def subscriber_count(self, tenant_id: str) -> int:
        return len(self._subs.get(self.channel(tenant_id), ()))

    async def publish(self, tenant_id: str, event: ProgressEvent) -> None:
        key = self.channel(tenant_id)
        message = {"event": ProgressEventType(event.event).value, "data": event.to_payload()}
        self._last[key] = message
        for q in list(self._subs.get(key, ())):
            try:
                q.put_nowait(message)
            except asyncio.QueueFull:
                # drop the oldest event for this subscriber
                try:
                    q.get_nowait()
                except asyncio.QueueEmpty:
                    pass
                q.put_nowait(message)
                logger.debug(f"Subscriber on {key} is lagging; dropped oldest event")

    def last(self, tenant_id: str) -> Optional[dict]:
        return self._last.get(self.channel(tenant_id))


def sse_format(message: dict) -> str:
    """Render a hub message as a Server-Sent Events frame."""
    return f"event: {message['event']}\ndata: {json.dumps(message['data'], ensure_ascii=False)}\n\n"
