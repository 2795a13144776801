"""Duration Store: durable mirror of live timer state"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from supabase import Client

from app.config import Settings
from app.infra.supabase.client import get_supabase_client

logger = logging.getLogger(__name__)


class DurationStore(Protocol):
    """Key-value persistence of remaining seconds, keyed by timer id"""

    async def put(self, timer_id: int, seconds_left: int) -> None: ...

    async def delete(self, timer_id: int) -> None: ...

    async def list_all(self) -> List[Dict[str, Any]]: ...

    async def close(self) -> None: ...


class SupabaseDurationStore:
    """
    Duration Store backed by a Supabase table.

    Expected table:
        create table timer_durations (
            id bigint primary key,
            seconds_left integer not null,
            updated_at timestamptz not null default now()
        );

    The Supabase client is synchronous, so every call runs on a worker
    thread and never stalls the event loop driving the countdowns.
    """

    def __init__(self, client: Client, table_name: str = "timer_durations"):
        self._client = client
        self._table_name = table_name

    async def put(self, timer_id: int, seconds_left: int) -> None:
        """Upsert the remaining seconds for a timer"""
        row = {
            "id": timer_id,
            "seconds_left": seconds_left,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        await asyncio.to_thread(
            lambda: self._client.table(self._table_name).upsert(row).execute()
        )

    async def delete(self, timer_id: int) -> None:
        """Remove a timer's record. Deleting a missing id is not an error."""
        await asyncio.to_thread(
            lambda: self._client.table(self._table_name).delete().eq("id", timer_id).execute()
        )

    async def list_all(self) -> List[Dict[str, Any]]:
        """Return every recorded row as {id, seconds_left}"""
        response = await asyncio.to_thread(
            lambda: self._client.table(self._table_name).select("id, seconds_left").execute()
        )
        return list(response.data or [])

    async def close(self) -> None:
        """Release the underlying HTTP session when the client exposes one"""
        postgrest = getattr(self._client, "postgrest", None)
        session = getattr(postgrest, "session", None)
        if session is not None and hasattr(session, "close"):
            await asyncio.to_thread(session.close)
        logger.info("Duration store closed")


def create_duration_store(settings: Settings) -> Optional[SupabaseDurationStore]:
    """
    Build the Supabase-backed store when it is configured.

    Returns None (in-memory only) when persistence is disabled, credentials
    are missing, or the client cannot be created.
    """
    if not settings.store_configured:
        logger.info("Duration store not configured; timers are in-memory only")
        return None

    try:
        client = get_supabase_client(settings)
    except Exception as e:
        logger.error(f"Could not create Supabase client, timers are in-memory only: {e}")
        return None

    logger.info(f"Duration store enabled (table: {settings.timer_store_table})")
    return SupabaseDurationStore(client, settings.timer_store_table)
