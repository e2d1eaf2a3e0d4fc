"""
Inventory Store
===============

CRUD access for resources, cloud accounts, incidents and timeline events.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.security_dashboard.models import (
    CloudAccountModel,
    IncidentModel,
    ResourceModel,
    TimelineEventModel,
)
from services.security_dashboard.services.store import store_operation
from shared.models.incident import Timeframe


# Model fields whose API name differs from the ORM attribute
_FIELD_ALIASES = {"metadata": "metadata_"}


def _apply(model: Any, values: dict[str, Any]) -> None:
    for key, value in values.items():
        setattr(model, _FIELD_ALIASES.get(key, key), value)


class InventoryStore:
    """Async store for inventory and incident data."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _add(self, model: Any) -> Any:
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return model

    # =========================================================================
    # Resources
    # =========================================================================

    @store_operation
    async def list_resources(
        self,
        resource_type: str | None = None,
        region: str | None = None,
        status: str | None = None,
    ) -> list[ResourceModel]:
        """
        List resources, most recently discovered first.

        ``resource_type`` and ``region`` match exactly; ``status`` is a
        case-insensitive substring match.
        """
        query = select(ResourceModel)
        if resource_type:
            query = query.where(ResourceModel.resource_type == resource_type)
        if region:
            query = query.where(ResourceModel.region == region)
        if status:
            query = query.where(ResourceModel.status.ilike(f"%{status}%"))

        result = await self.session.execute(query.order_by(ResourceModel.discovered_at.desc()))
        return list(result.scalars().all())

    @store_operation
    async def get_resource(self, resource_id: int) -> ResourceModel | None:
        return await self.session.get(ResourceModel, resource_id)

    @store_operation
    async def create_resource(self, values: dict[str, Any]) -> ResourceModel:
        resource = ResourceModel()
        _apply(resource, {k: v for k, v in values.items() if v is not None})
        return await self._add(resource)

    @store_operation
    async def update_resource(
        self,
        resource_id: int,
        values: dict[str, Any],
    ) -> ResourceModel | None:
        resource = await self.session.get(ResourceModel, resource_id)
        if resource is None:
            return None
        _apply(resource, values)
        await self.session.flush()
        return resource

    # =========================================================================
    # Cloud accounts
    # =========================================================================

    @store_operation
    async def list_accounts(self, provider: str | None = None) -> list[CloudAccountModel]:
        query = select(CloudAccountModel).order_by(CloudAccountModel.id)
        if provider:
            query = query.where(CloudAccountModel.provider == provider)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @store_operation
    async def get_account(self, account_id: int) -> CloudAccountModel | None:
        return await self.session.get(CloudAccountModel, account_id)

    @store_operation
    async def create_account(self, values: dict[str, Any]) -> CloudAccountModel:
        account = CloudAccountModel(status="pending")
        _apply(account, values)
        return await self._add(account)

    # =========================================================================
    # Incidents
    # =========================================================================

    @store_operation
    async def list_incidents(
        self,
        severity: str | None = None,
        status: str | None = None,
        timeframe: Timeframe | None = None,
    ) -> list[IncidentModel]:
        """List incidents, most recently detected first."""
        query = select(IncidentModel)
        if severity:
            query = query.where(IncidentModel.severity == severity)
        if status:
            query = query.where(IncidentModel.status == status)
        if timeframe is not None and timeframe.window is not None:
            query = query.where(IncidentModel.detected_at >= datetime.now(UTC) - timeframe.window)

        result = await self.session.execute(query.order_by(IncidentModel.detected_at.desc()))
        return list(result.scalars().all())

    @store_operation
    async def get_incident(self, incident_id: int) -> IncidentModel | None:
        return await self.session.get(IncidentModel, incident_id)

    @store_operation
    async def create_incident(self, values: dict[str, Any]) -> IncidentModel:
        incident = IncidentModel()
        _apply(incident, {k: v for k, v in values.items() if v is not None})
        return await self._add(incident)

    @store_operation
    async def update_incident(
        self,
        incident_id: int,
        values: dict[str, Any],
    ) -> IncidentModel | None:
        incident = await self.session.get(IncidentModel, incident_id)
        if incident is None:
            return None
        _apply(incident, values)
        incident.updated_at = datetime.now(UTC)
        await self.session.flush()
        return incident

    # =========================================================================
    # Timeline
    # =========================================================================

    @store_operation
    async def list_timeline(self, incident_id: int) -> list[TimelineEventModel]:
        """Timeline events of an incident, oldest first."""
        result = await self.session.execute(
            select(TimelineEventModel)
            .where(TimelineEventModel.incident_id == incident_id)
            .order_by(TimelineEventModel.timestamp.asc())
        )
        return list(result.scalars().all())

    @store_operation
    async def create_timeline_event(self, values: dict[str, Any]) -> TimelineEventModel:
        event = TimelineEventModel()
        _apply(event, {k: v for k, v in values.items() if v is not None})
        return await self._add(event)
