"""
Incident Models
===============

Models for security incidents and their timeline events.

Version: 0.1.0
"""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field


class IncidentSeverity(str, Enum):
    """Incident severity."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IncidentStatus(str, Enum):
    """Incident lifecycle status."""

    ACTIVE = "active"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


class EventSeverity(str, Enum):
    """Timeline event severity (adds an informational level)."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class Timeframe(str, Enum):
    """Detection window filter for incident listings."""

    LAST_24_HOURS = "last_24_hours"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    ALL_TIME = "all_time"

    @property
    def window(self) -> timedelta | None:
        """Length of the window, None for all time."""
        return {
            Timeframe.LAST_24_HOURS: timedelta(days=1),
            Timeframe.LAST_7_DAYS: timedelta(days=7),
            Timeframe.LAST_30_DAYS: timedelta(days=30),
        }.get(self)


class IncidentBase(BaseModel):
    """Base incident fields."""

    incident_id: str = Field(..., min_length=1, max_length=50, description="Business ID, e.g. INC-20230715-0053")
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    severity: IncidentSeverity
    status: IncidentStatus = IncidentStatus.ACTIVE
    affected_resources: list[str] = Field(default_factory=list)
    assigned_to: int | None = None


class IncidentCreate(IncidentBase):
    """Request model for opening an incident."""

    detected_at: datetime | None = None


class IncidentUpdate(BaseModel):
    """Request model for updating an incident."""

    title: str | None = None
    description: str | None = None
    severity: IncidentSeverity | None = None
    status: IncidentStatus | None = None
    affected_resources: list[str] | None = None
    assigned_to: int | None = None


class Incident(IncidentBase):
    """Full incident model."""

    id: int
    detected_at: datetime
    updated_at: datetime


class TimelineEventCreate(BaseModel):
    """Request model for appending a timeline event."""

    incident_id: int
    event_type: str = Field(..., min_length=1, max_length=100, description="initial_access, lateral_movement, ...")
    description: str = Field(..., min_length=1)
    severity: EventSeverity
    timestamp: datetime | None = None


class TimelineEvent(TimelineEventCreate):
    """Full timeline event model."""

    id: int
    timestamp: datetime
