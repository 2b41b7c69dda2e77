from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from vidguard.models import AssignmentMode, SafetyStatus, VideoStatus
from app.dependencies import AppContext, get_context, get_tenant_id, get_user_id
from app.schemas.videos import (
    AssignmentRequest,
    MessageResponse,
    ProcessingStatusResponse,
    ProcessingTriggerResponse,
    VideoListResponse,
    VideoResponse,
    VideoUpdateRequest,
)
from app.services import video_services

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("/upload", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def upload_video(
    file: UploadFile = File(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    owner_id: Optional[str] = Form(None),
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    video = await video_services.upload_video(ctx, tenant_id, file, title, description, owner_id)
    return VideoResponse.from_asset(video)


@router.get("", response_model=VideoListResponse)
async def list_videos(
    status_filter: Optional[VideoStatus] = Query(None, alias="status"),
    safety_status: Optional[SafetyStatus] = Query(None),
    owner_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive match on title or description"),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    videos = await video_services.list_videos(
        ctx, tenant_id, status_filter, safety_status, owner_id, search, from_date, to_date
    )
    return VideoListResponse(videos=[VideoResponse.from_asset(v) for v in videos])


@router.get("/my-videos", response_model=VideoListResponse)
async def list_my_videos(
    user_id: str = Depends(get_user_id),
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    videos = await video_services.list_my_videos(ctx, tenant_id, user_id)
    return VideoListResponse(videos=[VideoResponse.from_asset(v) for v in videos])


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: str,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    return VideoResponse.from_asset(await video_services.get_video(ctx, tenant_id, video_id))


@router.post("/{video_id}/process", response_model=ProcessingTriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def process_video(
    video_id: str,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    await video_services.trigger_processing(ctx, tenant_id, video_id)
    return ProcessingTriggerResponse(video_id=video_id, message="Processing started")


@router.get("/{video_id}/processing-status", response_model=ProcessingStatusResponse)
async def processing_status(
    video_id: str,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    await video_services.get_video(ctx, tenant_id, video_id)
    return ProcessingStatusResponse(**video_services.get_processing_status(ctx, video_id))


@router.delete("/{video_id}", response_model=MessageResponse)
async def delete_video(
    video_id: str,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    await video_services.delete_video(ctx, tenant_id, video_id)
    return MessageResponse(message="Video deleted")


@router.patch("/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: str,
    body: VideoUpdateRequest,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    video = await video_services.update_video(ctx, tenant_id, video_id, body.model_dump(exclude_unset=True))
    return VideoResponse.from_asset(video)


@router.post("/{video_id}/assign", response_model=VideoResponse)
async def assign_users(
    video_id: str,
    body: AssignmentRequest,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    video = await video_services.assign_users(ctx, tenant_id, video_id, body.user_ids, AssignmentMode.REPLACE)
    return VideoResponse.from_asset(video)


@router.post("/{video_id}/assign/add", response_model=VideoResponse)
async def add_assignees(
    video_id: str,
    body: AssignmentRequest,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    video = await video_services.assign_users(ctx, tenant_id, video_id, body.user_ids, AssignmentMode.ADD)
    return VideoResponse.from_asset(video)


@router.post("/{video_id}/assign/remove", response_model=VideoResponse)
async def remove_assignees(
    video_id: str,
    body: AssignmentRequest,
    tenant_id: str = Depends(get_tenant_id),
    ctx: AppContext = Depends(get_context),
):
    video = await video_services.assign_users(ctx, tenant_id, video_id, body.user_ids, AssignmentMode.REMOVE)
    return VideoResponse.from_asset(video)
