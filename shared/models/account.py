"""
Cloud Account Models
====================

Models for onboarded cloud accounts.

Version: 0.1.0
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from shared.config.settings import CloudProvider


class CloudAccountCreate(BaseModel):
    """Request model for onboarding an account."""

    account_id: str = Field(..., min_length=1, max_length=255, description="Provider-specific account identifier")
    provider: CloudProvider
    name: str = Field(..., min_length=1, max_length=255)
    owner_email: str | None = Field(default=None, max_length=255)
    metadata: dict[str, Any] = Field(default_factory=dict)


class CloudAccount(CloudAccountCreate):
    """Full cloud account model."""

    id: int
    status: str = "pending"
    created_at: datetime
    last_scanned_at: datetime | None = None

