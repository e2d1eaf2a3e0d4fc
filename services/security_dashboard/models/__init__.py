"""
Security Dashboard Database Models
==================================

SQLAlchemy ORM models for the cloud security dashboard.

Tables:
- cloud_accounts: Onboarded provider accounts
- resources: Cloud resources under watch
- compliance_standards: Compliance standards (reference data)
- compliance_rules: Rules belonging to a standard
- resource_compliance: Per resource/rule compliance records
- account_compliance: Per account/standard rollups
- incidents: Security incidents
- timeline_events: Incident timeline entries

Version: 0.1.0
"""

from services.security_dashboard.models.account import CloudAccountModel
from services.security_dashboard.models.compliance import (
    AccountComplianceModel,
    ComplianceRuleModel,
    ComplianceStandardModel,
    ResourceComplianceModel,
)
from services.security_dashboard.models.incident import (
    IncidentModel,
    TimelineEventModel,
)
from services.security_dashboard.models.resource import ResourceModel

__all__ = [
    # Inventory
    "CloudAccountModel",
    "ResourceModel",
    # Compliance
    "ComplianceStandardModel",
    "ComplianceRuleModel",
    "ResourceComplianceModel",
    "AccountComplianceModel",
    # Incidents
    "IncidentModel",
    "TimelineEventModel",
]
