"""Health check and monitoring endpoints"""

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/")
async def health_check(request: Request):
    """Basic health check with timer and observer counts"""
    registry = request.app.state.timer_registry
    hub = request.app.state.broadcast_hub

    return {
        "status": "healthy",
        "service": "kitchen-timer-backend",
        "timers": len(registry.list()),
        "connections": hub.connection_counts(),
        "store": "supabase" if registry.persistence_enabled else "memory",
    }
