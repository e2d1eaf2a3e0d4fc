"""
Compliance Models
=================

Models for compliance standards, rules, per-resource compliance records,
account rollups and dashboard summaries.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from shared.models.account import CloudAccount
from shared.models.resource import Resource


class ComplianceStatus(str, Enum):
    """Compliance status of a resource/rule pair."""

    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    EXEMPTED = "exempted"
    NOT_APPLICABLE = "not_applicable"


class RuleSeverity(str, Enum):
    """Severity of a compliance rule violation."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RuleAction(str, Enum):
    """What happens when a rule is violated."""

    NOTIFY = "notify"
    ENFORCE = "enforce"


class ComplianceStandard(BaseModel):
    """A compliance standard (CIS, PCI-DSS, SOC2, ...)."""

    id: int
    name: str
    display_name: str
    description: str | None = None
    version: str | None = None
    category: str | None = None
    link: str | None = None
    enabled: bool = True


class ComplianceRule(BaseModel):
    """A single rule belonging to a standard."""

    id: int
    standard_id: int
    rule_id: str = Field(..., description="Rule identifier, unique within its standard")
    title: str
    description: str | None = None
    severity: RuleSeverity
    resource_types: list[str] = Field(default_factory=list)
    providers: list[str] = Field(
        default_factory=list,
        description="Empty means the rule applies to every provider",
    )
    action: RuleAction = RuleAction.NOTIFY
    remediation: str | None = None
    enabled: bool = True


class ResourceCompliance(BaseModel):
    """Compliance record for one resource against one rule."""

    id: int
    resource_id: int
    rule_id: int
    status: ComplianceStatus
    last_checked: datetime
    details: dict[str, Any] = Field(default_factory=dict)

    # Populated only while exempted
    exemption_reason: str | None = None
    exemption_expiry: datetime | None = None
    exempted_by: str | None = None
    exempted_at: datetime | None = None


class AccountCompliance(BaseModel):
    """Rollup of one account against one standard."""

    id: int
    account_id: int
    standard_id: int
    compliant_rules: int = 0
    non_compliant_rules: int = 0
    exempted_rules: int = 0
    not_applicable_rules: int = 0
    last_scanned: datetime
    overall_status: ComplianceStatus


class AccountScanResult(BaseModel):
    """Result of scanning one account against every standard."""

    account: CloudAccount
    rollups: list[AccountCompliance] = Field(default_factory=list)
    non_compliant_standards: int = 0
    scanned_at: datetime


class ExemptionRequest(BaseModel):
    """Request model for granting an exemption."""

    resource_id: int
    rule_id: int
    reason: str = Field(..., min_length=1, max_length=2000)
    expiry_date: datetime | None = None
    exempted_by: str = Field(..., min_length=1, max_length=255)

    @field_validator("reason", "exempted_by")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject whitespace-only values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class NonCompliantResource(BaseModel):
    """A resource together with the rules it currently violates."""

    resource: Resource
    rules: list[ComplianceRule] = Field(default_factory=list)
    compliance: list[ResourceCompliance] = Field(default_factory=list)


class AccountEnforcement(BaseModel):
    """Share of the rules applicable to an account that are enforced."""

    account_id: int
    account_name: str
    provider: str
    enforced_rules: int = 0
    applicable_rules: int = 0
    coverage_percentage: float = Field(default=0.0, ge=0, le=100)


class ComplianceSummary(BaseModel):
    """Dashboard-level compliance aggregates."""

    total_resources: int = 0
    non_compliant_resources: int = 0
    compliance_percentage: float = Field(default=100.0, ge=0, le=100)

    non_compliant_by_provider: dict[str, int] = Field(default_factory=dict)
    violations_by_severity: dict[str, int] = Field(default_factory=dict)
    enforced_rules_by_standard: dict[str, int] = Field(default_factory=dict)
    account_enforcement: list[AccountEnforcement] = Field(default_factory=list)

    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
