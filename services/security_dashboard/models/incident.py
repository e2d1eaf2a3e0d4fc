"""
Incident Database Models
========================

SQLAlchemy ORM models for security incidents and their timelines.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from shared.database.postgres import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class IncidentModel(Base):
    """SQLAlchemy model for security incidents."""

    __tablename__ = "incidents"
    __table_args__ = (
        Index("ix_incidents_severity", "severity"),
        Index("ix_incidents_status", "status"),
        Index("ix_incidents_detected", "detected_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_id = Column(String(50), nullable=False, unique=True)  # INC-20230715-0053
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False)  # critical, high, medium, low
    status = Column(String(20), nullable=False, default="active")  # active, resolved, false_positive

    detected_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    affected_resources = Column(JSON, default=list)  # provider-side resource identifiers
    assigned_to = Column(Integer)

    timeline = relationship("TimelineEventModel", back_populates="incident", lazy="raise")

    def __repr__(self) -> str:
        return f"<Incident {self.id}: {self.incident_id} ({self.severity})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "incident_id": self.incident_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "status": self.status,
            "detected_at": self.detected_at,
            "updated_at": self.updated_at,
            "affected_resources": list(self.affected_resources or []),
            "assigned_to": self.assigned_to,
        }


class TimelineEventModel(Base):
    """SQLAlchemy model for incident timeline events."""

    __tablename__ = "timeline_events"
    __table_args__ = (
        Index("ix_timeline_events_incident", "incident_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_id = Column(
        Integer,
        ForeignKey("incidents.id", ondelete="CASCADE"),
        nullable=False,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    event_type = Column(String(100), nullable=False)  # initial_access, privilege_escalation, ...
    description = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False)  # critical, high, medium, low, info

    incident = relationship("IncidentModel", back_populates="timeline", lazy="raise")

    def __repr__(self) -> str:
        return f"<TimelineEvent {self.id}: {self.event_type}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "incident_id": self.incident_id,
            "timestamp": self.timestamp,
            "event_type": self.event_type,
            "description": self.description,
            "severity": self.severity,
        }
