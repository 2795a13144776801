import logging

# Log configuration (before other imports)
# ruff: noqa: E402
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True
)

from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Optional  # noqa: E402

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from app.api.base import api_router  # noqa: E402
from app.config import Settings, get_settings  # noqa: E402
from app.features.chat import ConversationTranscript  # noqa: E402
from app.features.timers import (  # noqa: E402
    BroadcastHub,
    DurationStore,
    TimerRegistry,
    create_duration_store,
)

logger = logging.getLogger(__name__)

_UNSET = object()


def create_app(
    settings: Optional[Settings] = None,
    duration_store=_UNSET,
) -> FastAPI:
    """
    Build the application.

    The registry, hub and store are created once per app in the lifespan and
    shared through app.state. Pass `duration_store` to override the store
    built from settings (None disables persistence).
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store: Optional[DurationStore]
        if duration_store is _UNSET:
            store = create_duration_store(settings)
        else:
            store = duration_store

        hub = BroadcastHub(queue_size=settings.broadcast_queue_size)
        registry = TimerRegistry(
            hub,
            store,
            tick_interval=settings.timer_tick_seconds,
            store_timeout=settings.timer_store_timeout,
        )

        app.state.broadcast_hub = hub
        app.state.timer_registry = registry
        app.state.conversation_transcript = ConversationTranscript()

        await registry.restore()
        logger.info("Timer service ready")

        yield

        hub.close()
        await registry.shutdown()

    app = FastAPI(
        title="Kitchen Timer Backend API",
        description="Realtime countdown timers with WebSocket/SSE broadcasting",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include all API routes
    app.include_router(api_router)

    @app.get("/")
    def read_root():
        return {
            "status": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()


def run():
    """Console entry point: serve the app with uvicorn"""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)


if __name__ == "__main__":
    run()
