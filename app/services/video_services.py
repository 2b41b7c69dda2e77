import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException, UploadFile
from loguru import logger

from vidguard.models import AssignmentMode, SafetyStatus, VideoAsset, VideoStatus
from app.dependencies import AppContext


async def upload_video(
    ctx: AppContext,
    tenant_id: str,
    file: UploadFile,
    title: str,
    description: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> VideoAsset:
    """Store an uploaded video, create its record and start the sensitivity run."""
    if not title or not title.strip():
        raise HTTPException(400, "Title is required")
    if not (file.content_type or "").startswith("video/"):
        raise HTTPException(400, "Only video files are allowed")

    data = await file.read()
    max_bytes = ctx.config.storage.max_upload_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise HTTPException(413, f"File exceeds {ctx.config.storage.max_upload_mb} MB limit")

    filename = os.path.basename(file.filename or "video")
    storage_key = await ctx.storage.save_upload(tenant_id, filename, data)
    try:
        video = await ctx.video_store.create(
            tenant_id,
            owner_id=owner_id,
            title=title.strip(),
            description=description,
            original_filename=filename,
            storage_path=storage_key,
            mime_type=file.content_type,
            size=len(data),
        )
    except Exception:
        await ctx.storage.delete_file(storage_key)
        raise

    ctx.pipeline.start_pipeline(video.id, tenant_id, progress_sink=ctx.hub)
    logger.info(f"Upload {video.id} stored as {storage_key}; sensitivity run dispatched")
    return video


async def list_videos(
    ctx: AppContext,
    tenant_id: str,
    status: Optional[VideoStatus] = None,
    safety_status: Optional[SafetyStatus] = None,
    owner_id: Optional[str] = None,
    search: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
) -> List[VideoAsset]:
    return await ctx.video_store.list(
        tenant_id,
        status=status,
        safety_status=safety_status,
        owner_id=owner_id,
        search=search,
        from_date=from_date,
        to_date=to_date,
    )


async def list_my_videos(ctx: AppContext, tenant_id: str, user_id: str) -> List[VideoAsset]:
    return await ctx.video_store.list(tenant_id, owner_id=user_id)


async def get_video(ctx: AppContext, tenant_id: str, video_id: str) -> VideoAsset:
    video = await ctx.video_store.get(video_id, tenant_id)
    if video is None:
        raise HTTPException(404, "Video not found")
    return video


async def trigger_processing(ctx: AppContext, tenant_id: str, video_id: str) -> None:
    """Re-run the sensitivity check; 409 when a run for the video is already active."""
    await get_video(ctx, tenant_id, video_id)
    task = ctx.pipeline.start_pipeline(video_id, tenant_id, progress_sink=ctx.hub)
    if task is None:
        raise HTTPException(409, "Video is already being processed")


def get_processing_status(ctx: AppContext, video_id: str) -> dict:
    snapshot = ctx.pipeline.get_job_snapshot(video_id)
    if snapshot is None:
        raise HTTPException(404, "No active processing job for this video")
    return {"video_id": video_id, **snapshot}


async def delete_video(ctx: AppContext, tenant_id: str, video_id: str) -> None:
    video = await get_video(ctx, tenant_id, video_id)
    if ctx.pipeline.cancel(video_id):
        logger.info(f"Cancelled active sensitivity run for deleted video {video_id}")
    await ctx.storage.delete_file(video.storage_path)
    await ctx.video_store.delete(video_id, tenant_id)


async def update_video(ctx: AppContext, tenant_id: str, video_id: str, changes: Dict[str, Any]) -> VideoAsset:
    """Edit title and description; a blank title leaves the current one in place."""
    fields = {}
    title = changes.get("title")
    if title and title.strip():
        fields["title"] = title.strip()
    if "description" in changes:
        fields["description"] = changes["description"]
    if not fields:
        return await get_video(ctx, tenant_id, video_id)

    video = await ctx.video_store.update_status(video_id, tenant_id, fields)
    if video is None:
        raise HTTPException(404, "Video not found")
    return video


async def assign_users(
    ctx: AppContext, tenant_id: str, video_id: str, user_ids: Sequence[str], mode: AssignmentMode
) -> VideoAsset:
    video = await ctx.video_store.update_assignees(video_id, tenant_id, user_ids, mode)
    if video is None:
        raise HTTPException(404, "Video not found")
    return video
