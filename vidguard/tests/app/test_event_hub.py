import json

from app.utilities.event_hub_handler import TenantEventHub, sse_format
from vidguard.models import ProgressEvent, ProgressEventType, SafetyStatus


def _event(progress=10, event=ProgressEventType.PROGRESS):
    return ProgressEvent(event=event, video_id="v1", status="processing", progress=progress)


async def test_publish_reaches_only_the_tenant_channel():
    hub = TenantEventHub()
    acme = hub.subscribe("acme")
    globex = hub.subscribe("globex")

    await hub.publish("acme", _event(30))

    assert acme.get_nowait() == {
        "event": "processing:progress",
        "data": {"videoId": "v1", "status": "processing", "progress": 30},
    }
    assert globex.empty()
    assert hub.last("globex") is None


async def test_slow_subscriber_keeps_newest_events():
    hub = TenantEventHub(queue_size=2)
    q = hub.subscribe("acme")

    for progress in (10, 30, 50):
        await hub.publish("acme", _event(progress))

    assert [q.get_nowait()["data"]["progress"] for _ in range(2)] == [30, 50]


async def test_last_event_survives_unsubscribe():
    hub = TenantEventHub()
    q = hub.subscribe("acme")
    completed = ProgressEvent(
        event=ProgressEventType.COMPLETED, video_id="v1", status="processed",
        progress=100, safety_status=SafetyStatus.SAFE, duration=12,
    )

    await hub.publish("acme", completed)
    hub.unsubscribe("acme", q)

    assert hub.subscriber_count("acme") == 0
    assert hub.last("acme")["data"]["safetyStatus"] == "safe"


def test_sse_format():
    frame = sse_format({"event": "processing:failed", "data": {"videoId": "v1", "error": "boom"}})

    assert frame.startswith("event: processing:failed\ndata: ")
    assert frame.endswith("\n\n")
    assert json.loads(frame.split("data: ", 1)[1]) == {"videoId": "v1", "error": "boom"}
