"""
Resource Models
===============

Models for cloud resources tracked by the dashboard.

Version: 0.1.0
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ResourceBase(BaseModel):
    """Base resource fields."""

    resource_id: str = Field(..., min_length=1, max_length=512, description="Provider-side identifier")
    resource_type: str = Field(..., min_length=1, max_length=50, description="EC2, S3, IAM, Lambda, ...")
    name: str = Field(..., min_length=1, max_length=255)
    region: str = Field(..., min_length=1, max_length=50)
    status: str = Field(default="normal", max_length=100)
    metadata: dict[str, Any] = Field(default_factory=dict)
    isolated: bool = False
    forensic_copy: bool = False
    cloud_account_id: int | None = Field(default=None, description="Owning cloud account")


class ResourceCreate(ResourceBase):
    """Request model for registering a resource."""

    discovered_at: datetime | None = None


class ResourceUpdate(BaseModel):
    """Request model for updating a resource."""

    resource_type: str | None = None
    name: str | None = None
    region: str | None = None
    status: str | None = None
    metadata: dict[str, Any] | None = None
    isolated: bool | None = None
    forensic_copy: bool | None = None
    cloud_account_id: int | None = None


class Resource(ResourceBase):
    """Full resource model."""

    id: int
    discovered_at: datetime
