"""
Resources Routes
================

API endpoints for cloud resources and incident response actions.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from services.security_dashboard.dependencies import get_inventory_store
from services.security_dashboard.services import InventoryStore
from shared.logging import get_logger
from shared.models.resource import Resource, ResourceCreate, ResourceUpdate


logger = get_logger(__name__)

router = APIRouter()

DESTROYED_STATUS = "Destroyed"


async def _update_or_404(
    store: InventoryStore,
    resource_id: int,
    values: dict[str, Any],
) -> Resource:
    resource = await store.update_resource(resource_id, values)
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resource not found: {resource_id}",
        )
    return Resource.model_validate(resource.to_dict())


@router.get("", response_model=list[Resource])
async def list_resources(
    resource_type: str | None = Query(default=None, description="Filter by type (EC2, S3, ...)"),
    region: str | None = Query(default=None, description="Filter by region"),
    status_filter: str | None = Query(default=None, alias="status", description="Substring match on status"),
    store: InventoryStore = Depends(get_inventory_store),
) -> list[Resource]:
    """
    List resources, most recently discovered first.
    """
    resources = await store.list_resources(
        resource_type=resource_type,
        region=region,
        status=status_filter,
    )
    return [Resource.model_validate(r.to_dict()) for r in resources]


@router.get("/{resource_id}", response_model=Resource)
async def get_resource(
    resource_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> Resource:
    """Get a resource by ID."""
    resource = await store.get_resource(resource_id)
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resource not found: {resource_id}",
        )
    return Resource.model_validate(resource.to_dict())


@router.post("", response_model=Resource, status_code=status.HTTP_201_CREATED)
async def create_resource(
    resource_data: ResourceCreate,
    store: InventoryStore = Depends(get_inventory_store),
) -> Resource:
    """Register a discovered resource."""
    resource = await store.create_resource(resource_data.model_dump())

    logger.info(
        "resource_registered",
        resource_id=resource.id,
        resource_type=resource.resource_type,
        region=resource.region,
    )

    return Resource.model_validate(resource.to_dict())


@router.patch("/{resource_id}", response_model=Resource)
async def update_resource(
    resource_id: int,
    update_data: ResourceUpdate,
    store: InventoryStore = Depends(get_inventory_store),
) -> Resource:
    """Update a resource. Only provided fields change."""
    return await _update_or_404(store, resource_id, update_data.model_dump(exclude_unset=True))


@router.post("/{resource_id}/isolate", response_model=Resource)
async def isolate_resource(
    resource_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> Resource:
    """Cut a resource off from the network."""
    resource = await _update_or_404(store, resource_id, {"isolated": True})
    logger.info("resource_isolated", resource_id=resource_id)
    return resource


@router.post("/{resource_id}/forensic-copy", response_model=Resource)
async def forensic_copy_resource(
    resource_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> Resource:
    """Record that a forensic copy of the resource was taken."""
    resource = await _update_or_404(store, resource_id, {"forensic_copy": True})
    logger.info("resource_forensic_copy", resource_id=resource_id)
    return resource


@router.post("/{resource_id}/destroy", response_model=Resource)
async def destroy_resource(
    resource_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> Resource:
    """Mark a resource destroyed. Destroyed resources are also isolated."""
    resource = await _update_or_404(
        store,
        resource_id,
        {"status": DESTROYED_STATUS, "isolated": True},
    )
    logger.warning("resource_destroyed", resource_id=resource_id)
    return resource
