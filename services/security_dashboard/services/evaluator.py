"""
Compliance Evaluator
====================

Decides, for one (resource, rule) pair, whether the rule applies and what
compliance status should be tallied for it.

Rules:
- A rule applies iff the resource type is in ``rule.resource_types`` and the
  owning account's provider is in ``rule.providers`` (empty = all providers).
- Applicable pairs without a record get one, created as non_compliant.
- Existing records are read, never overwritten.
- Exempted records past their expiry are tallied as non_compliant when
  expiry enforcement is on; the record itself is left untouched.

Version: 0.1.0
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from services.security_dashboard.models import (
    ComplianceRuleModel,
    ResourceComplianceModel,
    ResourceModel,
)
from services.security_dashboard.services.providers import rule_applies_to_provider
from services.security_dashboard.services.store import ComplianceStore
from shared.logging import get_logger
from shared.models.compliance import ComplianceStatus


logger = get_logger(__name__)

INITIAL_CHECK_DETAILS = {"message": "Initial compliance check"}


@dataclass
class Evaluation:
    """Outcome of evaluating one resource against one rule."""

    resource_id: int
    rule_id: int
    status: ComplianceStatus
    record: ResourceComplianceModel | None = None
    created: bool = False
    exemption_expired: bool = False

    @property
    def applicable(self) -> bool:
        return self.record is not None


def is_applicable(
    resource: ResourceModel,
    rule: ComplianceRuleModel,
    provider: str,
) -> bool:
    """Check resource type and provider against the rule's declared sets."""
    if resource.resource_type not in (rule.resource_types or []):
        return False
    return rule_applies_to_provider(rule.providers, provider)


def exemption_expired(record: ResourceComplianceModel, now: datetime) -> bool:
    """True for an exempted record whose expiry has passed."""
    if record.status != ComplianceStatus.EXEMPTED or record.exemption_expiry is None:
        return False
    expiry = record.exemption_expiry
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=UTC)
    return expiry < now


def effective_status(
    record: ResourceComplianceModel,
    now: datetime,
    enforce_expiry: bool = True,
) -> ComplianceStatus:
    """Status to tally for a stored record."""
    if enforce_expiry and exemption_expired(record, now):
        return ComplianceStatus.NON_COMPLIANT
    return ComplianceStatus(record.status)


class ComplianceEvaluator:
    """
    Evaluates resource/rule pairs, creating missing records lazily.

    Repeat calls for a pair are idempotent once its record exists.
    """

    def __init__(
        self,
        store: ComplianceStore,
        enforce_exemption_expiry: bool = True,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            store: Compliance store
            enforce_exemption_expiry: Tally expired exemptions as non-compliant
        """
        self.store = store
        self.enforce_exemption_expiry = enforce_exemption_expiry

    async def evaluate(
        self,
        resource: ResourceModel,
        rule: ComplianceRuleModel,
        provider: str,
        now: datetime | None = None,
    ) -> Evaluation:
        """
        Evaluate one resource against one rule.

        Args:
            resource: Resource to check
            rule: Rule to check against
            provider: Provider of the account that owns the resource
            now: Evaluation time (defaults to the current UTC time)

        Returns:
            Evaluation with the status to tally
        """
        now = now or datetime.now(UTC)

        if not is_applicable(resource, rule, provider):
            return Evaluation(
                resource_id=resource.id,
                rule_id=rule.id,
                status=ComplianceStatus.NOT_APPLICABLE,
            )

        record = await self.store.get_resource_compliance(resource.id, rule.id)
        created = False

        if record is None:
            record, created = await self.store.create_resource_compliance(
                resource_id=resource.id,
                rule_id=rule.id,
                status=ComplianceStatus.NON_COMPLIANT,
                details=dict(INITIAL_CHECK_DETAILS),
                checked_at=now,
            )
            if created:
                logger.debug(
                    "resource_compliance_created",
                    resource_id=resource.id,
                    rule_id=rule.id,
                )

        expired = self.enforce_exemption_expiry and exemption_expired(record, now)

        return Evaluation(
            resource_id=resource.id,
            rule_id=rule.id,
            status=effective_status(record, now, self.enforce_exemption_expiry),
            record=record,
            created=created,
            exemption_expired=expired,
        )
