"""
Compliance Routes
=================

API endpoints for compliance rules, exemptions, account rollups and the
dashboard summary.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, Query

from services.security_dashboard.dependencies import (
    get_aggregator,
    get_compliance_store,
    get_exemption_manager,
    get_summary_reporter,
)
from services.security_dashboard.services import (
    AccountAggregator,
    ComplianceStore,
    ExemptionManager,
    SummaryReporter,
    rule_applies_to_provider,
)
from shared.config.settings import CloudProvider
from shared.logging import get_logger
from shared.models.compliance import (
    AccountCompliance,
    ComplianceRule,
    ComplianceStandard,
    ComplianceSummary,
    ExemptionRequest,
    NonCompliantResource,
    ResourceCompliance,
    RuleAction,
    RuleSeverity,
)
from shared.models.resource import Resource


logger = get_logger(__name__)

router = APIRouter()


@router.get("/rules", response_model=list[ComplianceRule])
async def list_rules(
    standard_id: int | None = Query(default=None, description="Filter by standard"),
    severity: RuleSeverity | None = Query(default=None),
    enabled: bool | None = Query(default=None),
    action: RuleAction | None = Query(default=None),
    provider: CloudProvider | None = Query(
        default=None,
        description="Rules applicable to this provider (rules without providers always match)",
    ),
    store: ComplianceStore = Depends(get_compliance_store),
) -> list[ComplianceRule]:
    """
    List compliance rules with optional filters.
    """
    rules = await store.list_rules(
        standard_id=standard_id,
        severity=severity,
        enabled=enabled,
        action=action,
    )
    if provider is not None:
        rules = [r for r in rules if rule_applies_to_provider(r.providers, provider.value)]

    logger.debug(
        "compliance_rules_listed",
        total=len(rules),
        standard_id=standard_id,
        provider=provider.value if provider else None,
    )

    return [ComplianceRule.model_validate(r.to_dict()) for r in rules]


@router.get("/standards", response_model=list[ComplianceStandard])
async def list_standards(
    enabled: bool | None = Query(default=None),
    store: ComplianceStore = Depends(get_compliance_store),
) -> list[ComplianceStandard]:
    """List compliance standards."""
    standards = await store.list_standards(enabled=enabled)
    return [ComplianceStandard.model_validate(s.to_dict()) for s in standards]


@router.get("/non-compliant-resources", response_model=list[NonCompliantResource])
async def list_non_compliant_resources(
    account_id: int | None = Query(default=None, description="Only resources owned by this account"),
    standard_id: int | None = Query(default=None, description="Only rules of this standard"),
    reporter: SummaryReporter = Depends(get_summary_reporter),
) -> list[NonCompliantResource]:
    """
    List resources with current violations, with the violated rules and
    their compliance records.
    """
    entries = await reporter.non_compliant_resources(
        account_id=account_id,
        standard_id=standard_id,
    )
    return [
        NonCompliantResource(
            resource=Resource.model_validate(entry.resource.to_dict()),
            rules=[ComplianceRule.model_validate(r.to_dict()) for r in entry.rules],
            compliance=[ResourceCompliance.model_validate(c.to_dict()) for c in entry.compliance],
        )
        for entry in entries
    ]


@router.post("/exemptions", response_model=ResourceCompliance)
async def grant_exemption(
    request: ExemptionRequest,
    manager: ExemptionManager = Depends(get_exemption_manager),
) -> ResourceCompliance:
    """
    Exempt a resource from a rule.

    The pair must have been evaluated before; fails with 404 otherwise.
    """
    record = await manager.grant(
        resource_id=request.resource_id,
        rule_id=request.rule_id,
        reason=request.reason,
        exempted_by=request.exempted_by,
        expiry_date=request.expiry_date,
    )
    return ResourceCompliance.model_validate(record.to_dict())


@router.get(
    "/accounts/{account_id}/standards/{standard_id}",
    response_model=AccountCompliance,
)
async def calculate_account_compliance(
    account_id: int,
    standard_id: int,
    aggregator: AccountAggregator = Depends(get_aggregator),
) -> AccountCompliance:
    """
    Calculate and store the compliance rollup of an account against a standard.
    """
    rollup = await aggregator.calculate(account_id, standard_id)
    return AccountCompliance.model_validate(rollup.to_dict())


@router.get("/summary", response_model=ComplianceSummary)
async def get_compliance_summary(
    reporter: SummaryReporter = Depends(get_summary_reporter),
) -> ComplianceSummary:
    """
    Dashboard compliance aggregates.

    Includes:
    - Resource compliance rate
    - Non-compliant resources by provider
    - Violations by severity
    - Enforcement coverage per standard and account
    """
    return await reporter.build_summary()
