import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment (.env supported)"""
    # Timers
    timer_tick_seconds: float = 1.0
    timer_store_enabled: bool = True
    timer_store_table: str = "timer_durations"
    timer_store_timeout: float = 3.0

    # Broadcasting
    broadcast_send_timeout: float = 3.0
    broadcast_queue_size: int = 256
    sse_heartbeat_seconds: float = 15.0

    # Supabase (Duration Store)
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None

    # Third-party passthroughs
    youtube_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None
    agent_id: Optional[str] = None

    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    port: int = 3001

    @property
    def store_configured(self) -> bool:
        """True when the Supabase-backed Duration Store should be used"""
        return bool(
            self.timer_store_enabled
            and self.supabase_url
            and self.supabase_service_role_key
        )


def get_settings() -> Settings:
    """Build settings from the current environment"""
    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return Settings(
        timer_tick_seconds=_get_float("TIMER_TICK_SECONDS", 1.0),
        timer_store_enabled=_get_bool("TIMER_STORE_ENABLED", True),
        timer_store_table=os.getenv("TIMER_STORE_TABLE", "timer_durations"),
        timer_store_timeout=_get_float("TIMER_STORE_TIMEOUT", 3.0),
        broadcast_send_timeout=_get_float("BROADCAST_SEND_TIMEOUT", 3.0),
        broadcast_queue_size=int(os.getenv("BROADCAST_QUEUE_SIZE", "256")),
        sse_heartbeat_seconds=_get_float("SSE_HEARTBEAT_SECONDS", 15.0),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        youtube_api_key=os.getenv("YOUTUBE_API_KEY"),
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY"),
        agent_id=os.getenv("AGENT_ID"),
        cors_allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        port=int(os.getenv("PORT", "3001")),
    )
