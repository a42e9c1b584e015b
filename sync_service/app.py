"""
FastAPI sync service for reconciled career data.

Exposes the editor operations (applications, interview stages,
follow-ups, contacts, notes, dashboard) over HTTP and relays cache
invalidations to WebSocket clients. One SyncContext is built per app at
startup and kept on ``app.state``.
"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from career_sync.common.config import Config
from career_sync.common.logger import setup_logging
from career_sync.services.context import SyncContext, build_sync_context
from version import __version__

from .config import SyncServiceSettings, get_settings, validate_config_on_startup
from .models import HealthResponse
from .routes import applications_router, contacts_router, dashboard_router
from .websocket import InvalidationWebSocketManager

logger = logging.getLogger(__name__)

ContextFactory = Callable[[], SyncContext]


def create_app(
    settings: Optional[SyncServiceSettings] = None,
    context_factory: Optional[ContextFactory] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings, defaults to get_settings()
        context_factory: Builds the SyncContext at startup; defaults to
            build_sync_context() driven by the environment

    Returns:
        FastAPI app
    """
    settings = settings or get_settings()
    context_factory = context_factory or build_sync_context

    app = FastAPI(title="Career Sync", version=__version__)
    app.state.settings = settings
    app.state.sync_context = None
    app.state.ws_manager = InvalidationWebSocketManager()

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(applications_router)
    app.include_router(contacts_router)
    app.include_router(dashboard_router)

    @app.on_event("startup")
    async def startup_sync_context():
        """Build the sync context and start the cross-instance listener."""
        Config.validate()
        context = context_factory()
        app.state.sync_context = context
        app.state.ws_manager.attach(context.bus)

        if settings.redis_url:
            try:
                await context.bus.start_storage_listener(
                    settings.redis_url, channel=settings.storage_events_channel
                )
            except Exception as e:
                logger.error(f"Failed to start storage listener: {e}")
        else:
            logger.info("Redis not configured, cross-instance invalidation disabled")

        logger.info(f"Sync context {context.instance_id} ready")

    @app.on_event("shutdown")
    async def shutdown_sync_context():
        """Stop the listener and close the remote client."""
        context: Optional[SyncContext] = app.state.sync_context
        app.state.ws_manager.detach()
        if context is not None:
            await context.close()
            app.state.sync_context = None

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        context: Optional[SyncContext] = app.state.sync_context
        return HealthResponse(
            status="healthy" if context is not None else "starting",
            instance_id=context.instance_id if context is not None else "",
            websocket_connections=app.state.ws_manager.connection_count,
            storage_listener=bool(context and context.bus.is_listening),
        )

    @app.websocket("/ws/invalidations")
    async def invalidations_websocket(websocket: WebSocket):
        """
        WebSocket endpoint streaming invalidation events.

        Each message is {"type": "invalidation", "payload": {"keys": [...],
        "source": "local"|"storage", "storage_key": ..., "timestamp": ...}}.
        """
        client_host = websocket.client.host if websocket.client else "unknown"
        logger.info(f"[WS] WebSocket connection attempt from {client_host}")
        await app.state.ws_manager.run_connection(websocket)

    return app


def main() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = validate_config_on_startup()
    setup_logging(settings.log_level, settings.log_format)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
