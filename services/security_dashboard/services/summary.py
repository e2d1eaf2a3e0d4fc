"""
Compliance Summary Reporter
===========================

Dashboard aggregates computed from live data, without requiring a prior
aggregator pass.

Summary Components:
- Resource compliance rate
- Non-compliant resources by inferred provider
- Violations by rule severity
- Enforce-action rules per standard
- Per-account enforcement coverage

Version: 0.1.0
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime

from services.security_dashboard.models import (
    CloudAccountModel,
    ComplianceRuleModel,
    ResourceComplianceModel,
    ResourceModel,
)
from services.security_dashboard.services.evaluator import effective_status
from services.security_dashboard.services.providers import (
    infer_provider,
    rule_applies_to_provider,
)
from services.security_dashboard.services.store import ComplianceStore
from shared.config.settings import CloudProvider
from shared.logging import get_logger
from shared.models.compliance import (
    AccountEnforcement,
    ComplianceStatus,
    ComplianceSummary,
    RuleAction,
    RuleSeverity,
)


logger = get_logger(__name__)


@dataclass
class NonCompliantEntry:
    """A resource with the rules it currently violates."""

    resource: ResourceModel
    rules: list[ComplianceRuleModel] = field(default_factory=list)
    compliance: list[ResourceComplianceModel] = field(default_factory=list)


def compliance_percentage(total: int, non_compliant: int) -> float:
    """Share of resources without violations, 100 when there are none."""
    if total == 0:
        return 100.0
    return round((total - non_compliant) / total * 100, 2)


def enforcement_coverage(
    account: CloudAccountModel,
    rules: list[ComplianceRuleModel],
) -> AccountEnforcement:
    """Enforced share of the rules applicable to the account's provider."""
    applicable = [r for r in rules if rule_applies_to_provider(r.providers, account.provider)]
    enforced = sum(1 for r in applicable if r.action == RuleAction.ENFORCE)
    coverage = round(enforced / len(applicable) * 100, 2) if applicable else 0.0

    return AccountEnforcement(
        account_id=account.id,
        account_name=account.name,
        provider=account.provider,
        enforced_rules=enforced,
        applicable_rules=len(applicable),
        coverage_percentage=coverage,
    )


class SummaryReporter:
    """
    Read-only reporting over compliance records.

    Never writes; tolerates empty stores by returning zeroed structures.
    """

    def __init__(
        self,
        store: ComplianceStore,
        default_provider: str = CloudProvider.AWS.value,
        enforce_exemption_expiry: bool = True,
    ) -> None:
        """
        Initialize the reporter.

        Args:
            store: Compliance store
            default_provider: Provider assumed for resources without hints
            enforce_exemption_expiry: Count expired exemptions as violations
        """
        self.store = store
        self.default_provider = default_provider
        self.enforce_exemption_expiry = enforce_exemption_expiry

    def _violations(
        self,
        records: list[ResourceComplianceModel],
        now: datetime,
    ) -> list[ResourceComplianceModel]:
        return [
            record
            for record in records
            if effective_status(record, now, self.enforce_exemption_expiry)
            == ComplianceStatus.NON_COMPLIANT
        ]

    async def build_summary(self) -> ComplianceSummary:
        """
        Compute dashboard aggregates.

        Returns:
            ComplianceSummary
        """
        now = datetime.now(UTC)
        resources = await self.store.list_resources()
        rules = await self.store.list_rules()
        standards = await self.store.list_standards()
        accounts = await self.store.list_accounts()
        violations = self._violations(await self.store.list_resource_compliance(), now)

        rules_by_id = {rule.id: rule for rule in rules}
        violating_ids = {record.resource_id for record in violations}
        non_compliant = [r for r in resources if r.id in violating_ids]

        by_provider = Counter(
            infer_provider(r.resource_id, r.metadata_, self.default_provider)
            for r in non_compliant
        )

        by_severity = {severity.value: 0 for severity in RuleSeverity}
        for record in violations:
            rule = rules_by_id.get(record.rule_id)
            if rule is not None:
                by_severity[RuleSeverity(rule.severity).value] += 1

        standard_names = {s.id: s.name for s in standards}
        enforced_by_standard = {s.name: 0 for s in standards}
        for rule in rules:
            if rule.action == RuleAction.ENFORCE:
                name = standard_names.get(rule.standard_id, str(rule.standard_id))
                enforced_by_standard[name] = enforced_by_standard.get(name, 0) + 1

        summary = ComplianceSummary(
            total_resources=len(resources),
            non_compliant_resources=len(non_compliant),
            compliance_percentage=compliance_percentage(len(resources), len(non_compliant)),
            non_compliant_by_provider=dict(by_provider),
            violations_by_severity=by_severity,
            enforced_rules_by_standard=enforced_by_standard,
            account_enforcement=[enforcement_coverage(a, rules) for a in accounts],
            generated_at=now,
        )

        logger.debug(
            "compliance_summary_built",
            resources=summary.total_resources,
            non_compliant=summary.non_compliant_resources,
            violations=len(violations),
        )

        return summary

    async def non_compliant_resources(
        self,
        account_id: int | None = None,
        standard_id: int | None = None,
    ) -> list[NonCompliantEntry]:
        """
        List resources with at least one current violation.

        Args:
            account_id: Only resources owned by this account
            standard_id: Only violations of rules in this standard

        Returns:
            One entry per resource, ordered by resource id
        """
        now = datetime.now(UTC)
        resources = await self.store.list_resources(account_id=account_id)
        rules = await self.store.list_rules(standard_id=standard_id)
        violations = self._violations(await self.store.list_resource_compliance(), now)

        resources_by_id = {r.id: r for r in resources}
        rules_by_id = {r.id: r for r in rules}
        entries: dict[int, NonCompliantEntry] = {}

        for record in violations:
            resource = resources_by_id.get(record.resource_id)
            rule = rules_by_id.get(record.rule_id)
            if resource is None or rule is None:
                continue
            entry = entries.setdefault(resource.id, NonCompliantEntry(resource=resource))
            entry.rules.append(rule)
            entry.compliance.append(record)

        return [entries[resource_id] for resource_id in sorted(entries)]
