"""Request and response schemas for the Timers API"""

from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field


class TimerSnapshot(BaseModel):
    """Public view of a live timer"""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    seconds_left: int = Field(alias="secondsLeft")


class TimerListResponse(BaseModel):
    """Response model for listing live timers"""
    timers: List[TimerSnapshot]


class StartTimerRequest(BaseModel):
    """Request model for starting a timer"""
    seconds: Any = None  # validated by the route so bad input is a 400, not a 422


class StartTimerResponse(BaseModel):
    """Response model for a started timer"""
    id: int
    seconds: Union[int, float]


class StopTimerRequest(BaseModel):
    """Request model for stopping a timer"""
    id: Any = None


class StopTimerResponse(BaseModel):
    """Response model for a stop request"""
    success: bool


class TimerStatusResponse(BaseModel):
    """Polling fallback: live timers plus connection metadata"""
    model_config = ConfigDict(populate_by_name=True)

    timers: List[TimerSnapshot]
    connections: Dict[str, int]
    total_connections: int = Field(alias="totalConnections")
    timestamp: str
