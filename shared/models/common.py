"""
Common Models
=============

Response envelopes shared by every service.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response envelope.

    ``message`` mirrors ``error`` so clients can surface it directly.
    """

    success: bool = False
    error: str
    message: str
    status_code: int
    details: list[dict[str, Any]] | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = "healthy"
    service: str
    version: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Component health
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        """Check if all components are healthy."""
        if self.status != "healthy":
            return False
        return all(
            c.get("status") == "healthy" for c in self.components.values()
        )
