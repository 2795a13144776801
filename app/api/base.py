from fastapi import APIRouter
from app.api import health, status
from app.features.chat import router as chat_router
from app.features.converter import router as converter_router
from app.features.timers import router as timers_router, ws_router as timers_ws_router
from app.features.youtube import router as youtube_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health.router)
api_router.include_router(status.router)
api_router.include_router(timers_router)
api_router.include_router(timers_ws_router)
api_router.include_router(converter_router)
api_router.include_router(youtube_router)
api_router.include_router(chat_router)
