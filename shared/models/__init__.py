"""
Shared Models
=============

Pydantic models shared across Cirrus services.

Models:
- Resource models (Resource, ResourceCreate, ResourceUpdate)
- Cloud account models (CloudAccount, CloudAccountCreate)
- Compliance models (ComplianceRule, ResourceCompliance, AccountCompliance, ...)
- Incident models (Incident, TimelineEvent)
"""

from shared.models.account import (
    CloudAccount,
    CloudAccountCreate,
)
from shared.models.common import (
    ErrorResponse,
    HealthResponse,
)
from shared.models.compliance import (
    AccountCompliance,
    AccountEnforcement,
    AccountScanResult,
    ComplianceRule,
    ComplianceStandard,
    ComplianceStatus,
    ComplianceSummary,
    ExemptionRequest,
    NonCompliantResource,
    ResourceCompliance,
    RuleAction,
    RuleSeverity,
)
from shared.models.incident import (
    EventSeverity,
    Incident,
    IncidentCreate,
    IncidentSeverity,
    IncidentStatus,
    IncidentUpdate,
    Timeframe,
    TimelineEvent,
    TimelineEventCreate,
)
from shared.models.resource import (
    Resource,
    ResourceCreate,
    ResourceUpdate,
)

__all__ = [
    # Account
    "CloudAccount",
    "CloudAccountCreate",
    # Resource
    "Resource",
    "ResourceCreate",
    "ResourceUpdate",
    # Compliance
    "AccountCompliance",
    "AccountEnforcement",
    "AccountScanResult",
    "ComplianceRule",
    "ComplianceStandard",
    "ComplianceStatus",
    "ComplianceSummary",
    "ExemptionRequest",
    "NonCompliantResource",
    "ResourceCompliance",
    "RuleAction",
    "RuleSeverity",
    # Incident
    "EventSeverity",
    "Incident",
    "IncidentCreate",
    "IncidentSeverity",
    "IncidentStatus",
    "IncidentUpdate",
    "Timeframe",
    "TimelineEvent",
    "TimelineEventCreate",
    # Common
    "ErrorResponse",
    "HealthResponse",
]
