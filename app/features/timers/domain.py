"""Domain models for the Timers feature"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Timer(BaseModel):
    """A live countdown owned by the TimerRegistry"""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    seconds_left: int = Field(alias="secondsLeft", ge=0)
    original_seconds: Optional[int] = Field(default=None, alias="originalSeconds")

    def snapshot(self) -> Dict[str, int]:
        """Public {id, secondsLeft} shape used by listings and bootstrap"""
        return {"id": self.id, "secondsLeft": self.seconds_left}


class TimerEventType(str, Enum):
    """Timer lifecycle events delivered to observers"""
    STARTED = "started"
    UPDATE = "update"
    DONE = "done"
    STOPPED = "stopped"
    BOOTSTRAP = "bootstrap"


class TimerEvent(BaseModel):
    """
    One lifecycle event as broadcast by the hub.

    The same `data` payload is written to every transport so the WebSocket
    and SSE observers never diverge.
    """
    type: TimerEventType
    timer_id: Optional[int] = None
    seconds_left: Optional[int] = None
    timers: Optional[List[Dict[str, int]]] = None

    @property
    def name(self) -> str:
        """Wire event name, e.g. `timer:update`"""
        return f"timer:{self.type.value}"

    @property
    def data(self) -> Dict[str, Any]:
        if self.type == TimerEventType.BOOTSTRAP:
            return {"timers": list(self.timers or [])}

        payload: Dict[str, Any] = {"id": self.timer_id}
        if self.type in (TimerEventType.STARTED, TimerEventType.UPDATE):
            payload["secondsLeft"] = self.seconds_left
        return payload

    def to_message(self) -> Dict[str, Any]:
        """JSON frame sent over the WebSocket channel"""
        return {"event": self.name, "data": self.data}

    @classmethod
    def started(cls, timer: Timer) -> "TimerEvent":
        return cls(type=TimerEventType.STARTED, timer_id=timer.id, seconds_left=timer.seconds_left)

    @classmethod
    def update(cls, timer: Timer) -> "TimerEvent":
        return cls(type=TimerEventType.UPDATE, timer_id=timer.id, seconds_left=timer.seconds_left)

    @classmethod
    def done(cls, timer_id: int) -> "TimerEvent":
        return cls(type=TimerEventType.DONE, timer_id=timer_id)

    @classmethod
    def stopped(cls, timer_id: int) -> "TimerEvent":
        return cls(type=TimerEventType.STOPPED, timer_id=timer_id)

    @classmethod
    def bootstrap(cls, timers: List[Timer]) -> "TimerEvent":
        return cls(type=TimerEventType.BOOTSTRAP, timers=[t.snapshot() for t in timers])
