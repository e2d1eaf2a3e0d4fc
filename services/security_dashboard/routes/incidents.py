"""
Incidents Routes
================

API endpoints for security incidents and their timelines.

Version: 0.1.0
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from services.security_dashboard.dependencies import get_inventory_store
from services.security_dashboard.services import InventoryStore
from shared.logging import get_logger
from shared.models.incident import (
    Incident,
    IncidentCreate,
    IncidentSeverity,
    IncidentStatus,
    IncidentUpdate,
    Timeframe,
    TimelineEvent,
    TimelineEventCreate,
)


logger = get_logger(__name__)

router = APIRouter()
timeline_router = APIRouter()


def _not_found(incident_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Incident not found: {incident_id}",
    )


@router.get("", response_model=list[Incident])
async def list_incidents(
    severity: IncidentSeverity | None = Query(default=None),
    status_filter: IncidentStatus | None = Query(default=None, alias="status"),
    timeframe: Timeframe = Query(default=Timeframe.ALL_TIME),
    store: InventoryStore = Depends(get_inventory_store),
) -> list[Incident]:
    """
    List incidents, most recently detected first.
    """
    incidents = await store.list_incidents(
        severity=severity.value if severity else None,
        status=status_filter.value if status_filter else None,
        timeframe=timeframe,
    )
    return [Incident.model_validate(i.to_dict()) for i in incidents]


@router.get("/{incident_id}", response_model=Incident)
async def get_incident(
    incident_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> Incident:
    """Get an incident by ID."""
    incident = await store.get_incident(incident_id)
    if incident is None:
        raise _not_found(incident_id)
    return Incident.model_validate(incident.to_dict())


@router.post("", response_model=Incident, status_code=status.HTTP_201_CREATED)
async def create_incident(
    incident_data: IncidentCreate,
    store: InventoryStore = Depends(get_inventory_store),
) -> Incident:
    """Open an incident."""
    values = incident_data.model_dump(mode="json", exclude={"detected_at"})
    values["detected_at"] = incident_data.detected_at or datetime.now(UTC)
    incident = await store.create_incident(values)

    logger.info(
        "incident_opened",
        incident_id=incident.incident_id,
        severity=incident.severity,
    )

    return Incident.model_validate(incident.to_dict())


@router.patch("/{incident_id}", response_model=Incident)
async def update_incident(
    incident_id: int,
    update_data: IncidentUpdate,
    store: InventoryStore = Depends(get_inventory_store),
) -> Incident:
    """Update an incident. Only provided fields change."""
    incident = await store.update_incident(
        incident_id,
        update_data.model_dump(mode="json", exclude_unset=True),
    )
    if incident is None:
        raise _not_found(incident_id)
    return Incident.model_validate(incident.to_dict())


@router.get("/{incident_id}/timeline", response_model=list[TimelineEvent])
async def get_incident_timeline(
    incident_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> list[TimelineEvent]:
    """Timeline of an incident, oldest event first."""
    events = await store.list_timeline(incident_id)
    return [TimelineEvent.model_validate(e.to_dict()) for e in events]


@timeline_router.post("", response_model=TimelineEvent, status_code=status.HTTP_201_CREATED)
async def create_timeline_event(
    event_data: TimelineEventCreate,
    store: InventoryStore = Depends(get_inventory_store),
) -> TimelineEvent:
    """Append an event to an incident timeline."""
    if await store.get_incident(event_data.incident_id) is None:
        raise _not_found(event_data.incident_id)

    values = event_data.model_dump(mode="json", exclude={"timestamp"})
    values["timestamp"] = event_data.timestamp or datetime.now(UTC)
    event = await store.create_timeline_event(values)
    return TimelineEvent.model_validate(event.to_dict())
