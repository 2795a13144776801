# API module exports
from app.api import health, status
from app.api.base import api_router

__all__ = ["health", "status", "api_router"]
