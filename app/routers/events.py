import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from app.dependencies import AppContext, get_context, get_tenant_id
from app.utilities.event_hub_handler import sse_format

router = APIRouter(tags=["events"])

KEEPALIVE_SECONDS = 20


@router.get("/events")
async def tenant_events(
    request: Request,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    """Server-Sent Events stream of processing progress for the caller's tenant."""
    q = ctx.hub.subscribe(tenant_id)

    async def event_stream():
        try:
            # replay the last known event so late subscribers see current state
            last = ctx.hub.last(tenant_id)
            if last:
                yield sse_format(last)
            else:
                yield sse_format({"event": "hello", "data": {"tenantId": tenant_id}})

            while True:
                try:
                    item = await asyncio.wait_for(q.get(), timeout=KEEPALIVE_SECONDS)
                    yield sse_format(item)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                if await request.is_disconnected():
                    break
        finally:
            ctx.hub.unsubscribe(tenant_id, q)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
