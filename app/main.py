from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from vidguard import __version__
from vidguard.config.settings import VidGuardConfig
from vidguard.exceptions import (
    PipelineBusyException,
    ResourceNotFoundException,
    ValidationException,
    VidGuardException,
)
from vidguard.providers import provider_factory
from vidguard.utils.logging_config import log_manager
from vidguard.video_pipeline import JobRegistry, SensitivityPipeline
from app.dependencies import AppContext
from app.routers import events, videos
from app.utilities.event_hub_handler import TenantEventHub


def build_context(config: Optional[VidGuardConfig] = None) -> AppContext:
    """Wire providers, the sensitivity pipeline and the event hub from configuration."""
    config = config or VidGuardConfig()
    storage = provider_factory.create_storage_provider(config=config)
    video_store = provider_factory.create_video_store_provider(config=config)
    pipeline = SensitivityPipeline(
        video_store=video_store,
        storage=storage,
        config=config.sensitivity,
        registry=JobRegistry(),
        temp_dir=config.storage.temp_dir,
    )
    return AppContext(
        config=config,
        storage=storage,
        video_store=video_store,
        pipeline=pipeline,
        hub=TenantEventHub(),
    )


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = context
        if ctx is None:
            config = VidGuardConfig()
            log_manager.configure(config.logging)
            ctx = build_context(config)
        app.state.context = ctx
        logger.info(f"{ctx.config.app_name} {ctx.config.app_version} started ({ctx.config.environment})")
        try:
            yield
        finally:
            await ctx.pipeline.close()
            await ctx.storage.close()
            logger.info(f"{ctx.config.app_name} stopped")

    app = FastAPI(
        title="VidGuard API",
        description="Multi-tenant video upload service with automatic content sensitivity screening",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True
    )

    app.include_router(videos.router)
    app.include_router(events.router)

    @app.exception_handler(VidGuardException)
    async def vidguard_exception_handler(request: Request, exc: VidGuardException):
        if isinstance(exc, ResourceNotFoundException):
            status_code = 404
        elif isinstance(exc, PipelineBusyException):
            status_code = 409
        elif isinstance(exc, ValidationException):
            status_code = 400
        else:
            status_code = 500
            logger.opt(exception=exc).error(f"Unhandled service error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error_code": exc.error_code},
        )

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint providing API information."""
        return {
            "message": "VidGuard API",
            "version": __version__,
            "description": "Video upload with frame-based content sensitivity screening",
            "docs_url": "/docs",
            "redoc_url": "/redoc",
            "openapi_url": "/openapi.json"
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "vidguard"}

    @app.get("/providers", tags=["providers"])
    async def get_supported_providers():
        """Get information about supported providers."""
        return {
            "supported_providers": provider_factory.get_supported_providers(),
            "message": "These are the currently supported providers for each service type"
        }

    return app


app = create_app()
