"""
Compliance Database Models
==========================

SQLAlchemy ORM models for compliance standards, rules, per-resource
compliance records and per-account rollups.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from shared.database.postgres import Base
from shared.models.compliance import ComplianceStatus, RuleAction, RuleSeverity


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ComplianceStandardModel(Base):
    """
    SQLAlchemy model for compliance standards.

    Static reference data (CIS benchmarks, PCI-DSS, SOC2, ...).
    """

    __tablename__ = "compliance_standards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)
    description = Column(Text)
    version = Column(String(50))
    category = Column(String(100))
    link = Column(String(500))
    enabled = Column(Boolean, nullable=False, default=True)

    rules = relationship("ComplianceRuleModel", back_populates="standard", lazy="raise")

    def __repr__(self) -> str:
        return f"<ComplianceStandard {self.id}: {self.name}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "version": self.version,
            "category": self.category,
            "link": self.link,
            "enabled": self.enabled,
        }


class ComplianceRuleModel(Base):
    """
    SQLAlchemy model for compliance rules.

    ``resource_types`` and ``providers`` are JSON string lists. An empty
    provider list makes the rule apply to every provider.
    """

    __tablename__ = "compliance_rules"
    __table_args__ = (
        UniqueConstraint("standard_id", "rule_id", name="uq_compliance_rules_standard_rule"),
        Index("ix_compliance_rules_standard", "standard_id"),
        Index("ix_compliance_rules_severity", "severity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    standard_id = Column(
        Integer,
        ForeignKey("compliance_standards.id", ondelete="CASCADE"),
        nullable=False,
    )
    rule_id = Column(String(100), nullable=False)  # e.g. "CIS-2.1.1"
    title = Column(String(500), nullable=False)
    description = Column(Text)
    severity = Column(
        SQLEnum(RuleSeverity, name="rule_severity", values_callable=_enum_values),
        nullable=False,
        default=RuleSeverity.MEDIUM,
    )
    resource_types = Column(JSON, nullable=False, default=list)
    providers = Column(JSON, nullable=False, default=list)
    action = Column(
        SQLEnum(RuleAction, name="rule_action", values_callable=_enum_values),
        nullable=False,
        default=RuleAction.NOTIFY,
    )
    remediation = Column(Text)
    enabled = Column(Boolean, nullable=False, default=True)

    standard = relationship("ComplianceStandardModel", back_populates="rules", lazy="raise")

    def __repr__(self) -> str:
        return f"<ComplianceRule {self.id}: {self.rule_id}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "standard_id": self.standard_id,
            "rule_id": self.rule_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "resource_types": list(self.resource_types or []),
            "providers": list(self.providers or []),
            "action": self.action,
            "remediation": self.remediation,
            "enabled": self.enabled,
        }


class ResourceComplianceModel(Base):
    """
    SQLAlchemy model for the compliance state of one resource against one rule.

    At most one row per (resource_id, rule_id). Exemption columns are only
    populated while ``status`` is ``exempted``.
    """

    __tablename__ = "resource_compliance"
    __table_args__ = (
        UniqueConstraint("resource_id", "rule_id", name="uq_resource_compliance_resource_rule"),
        Index("ix_resource_compliance_status", "status"),
        Index("ix_resource_compliance_rule", "rule_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource_id = Column(
        Integer,
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
    )
    rule_id = Column(
        Integer,
        ForeignKey("compliance_rules.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(
        SQLEnum(ComplianceStatus, name="compliance_status", values_callable=_enum_values),
        nullable=False,
        default=ComplianceStatus.NON_COMPLIANT,
    )
    last_checked = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    details = Column(JSON, default=dict)

    # Exemption audit trail
    exemption_reason = Column(Text)
    exemption_expiry = Column(DateTime(timezone=True))
    exempted_by = Column(String(255))
    exempted_at = Column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<ResourceCompliance {self.resource_id}/{self.rule_id}: {self.status}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "rule_id": self.rule_id,
            "status": self.status,
            "last_checked": self.last_checked,
            "details": self.details or {},
            "exemption_reason": self.exemption_reason,
            "exemption_expiry": self.exemption_expiry,
            "exempted_by": self.exempted_by,
            "exempted_at": self.exempted_at,
        }


class AccountComplianceModel(Base):
    """
    SQLAlchemy model for the compliance rollup of one account against one standard.

    Written only by the account aggregator, one row per (account_id, standard_id).
    """

    __tablename__ = "account_compliance"
    __table_args__ = (
        UniqueConstraint("account_id", "standard_id", name="uq_account_compliance_account_standard"),
        CheckConstraint(
            "compliant_rules >= 0 AND non_compliant_rules >= 0 "
            "AND exempted_rules >= 0 AND not_applicable_rules >= 0",
            name="check_account_compliance_counts",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(
        Integer,
        ForeignKey("cloud_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    standard_id = Column(
        Integer,
        ForeignKey("compliance_standards.id", ondelete="CASCADE"),
        nullable=False,
    )

    compliant_rules = Column(Integer, nullable=False, default=0)
    non_compliant_rules = Column(Integer, nullable=False, default=0)
    exempted_rules = Column(Integer, nullable=False, default=0)
    not_applicable_rules = Column(Integer, nullable=False, default=0)

    last_scanned = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    overall_status = Column(
        SQLEnum(ComplianceStatus, name="compliance_status", values_callable=_enum_values),
        nullable=False,
        default=ComplianceStatus.COMPLIANT,
    )

    def __repr__(self) -> str:
        return f"<AccountCompliance {self.account_id}/{self.standard_id}: {self.overall_status}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "account_id": self.account_id,
            "standard_id": self.standard_id,
            "compliant_rules": self.compliant_rules,
            "non_compliant_rules": self.non_compliant_rules,
            "exempted_rules": self.exempted_rules,
            "not_applicable_rules": self.not_applicable_rules,
            "last_scanned": self.last_scanned,
            "overall_status": self.overall_status,
        }
