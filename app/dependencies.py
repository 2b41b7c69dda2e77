from dataclasses import dataclass

from fastapi import Header, HTTPException, Request

from vidguard.config.settings import VidGuardConfig
from vidguard.providers.base import StorageProvider, VideoStoreProvider
from vidguard.video_pipeline import SensitivityPipeline
from app.utilities.event_hub_handler import TenantEventHub


@dataclass
class AppContext:
    """Objects shared by request handlers for the lifetime of the app."""
    config: VidGuardConfig
    storage: StorageProvider
    video_store: VideoStoreProvider
    pipeline: SensitivityPipeline
    hub: TenantEventHub


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-Id")) -> str:
    # authentication happens upstream; the gateway forwards the caller's tenant
    tenant_id = x_tenant_id.strip()
    if not tenant_id:
        raise HTTPException(400, "X-Tenant-Id header is required")
    return tenant_id


def get_user_id(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(400, "X-User-Id header is required")
    return user_id
