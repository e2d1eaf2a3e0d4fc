"""
Security Dashboard Test Fixtures
================================

In-memory compliance store and builders for compliance engine tests.
"""

import asyncio
import itertools
from datetime import UTC, datetime
from typing import Any

import pytest

from services.security_dashboard.models import (
    AccountComplianceModel,
    CloudAccountModel,
    ComplianceRuleModel,
    ComplianceStandardModel,
    ResourceComplianceModel,
    ResourceModel,
)
from services.security_dashboard.services import AccountAggregator
from shared.models.compliance import ComplianceStatus, RuleAction, RuleSeverity


class InMemoryComplianceStore:
    """
    Dict-backed stand-in for ``ComplianceStore``.

    Mirrors the store's method signatures and its uniqueness guarantees:
    one record per (resource, rule) and one rollup per (account, standard).
    Every async method yields to the event loop once so concurrent callers
    interleave the way they would against a database.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.accounts: dict[int, CloudAccountModel] = {}
        self.standards: dict[int, ComplianceStandardModel] = {}
        self.rules: dict[int, ComplianceRuleModel] = {}
        self.resources: dict[int, ResourceModel] = {}
        self.records: dict[tuple[int, int], ResourceComplianceModel] = {}
        self.rollups: dict[tuple[int, int], AccountComplianceModel] = {}
        self.upsert_calls = 0

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def add_account(self, provider: str = "aws", name: str = "Production", **fields: Any) -> CloudAccountModel:
        account = CloudAccountModel(
            id=next(self._ids),
            account_id=fields.pop("account_id", "123456789012"),
            provider=provider,
            name=name,
            status=fields.pop("status", "pending"),
            owner_email=fields.pop("owner_email", None),
            created_at=datetime.now(UTC),
            last_scanned_at=None,
            metadata_=fields.pop("metadata", {}),
        )
        self.accounts[account.id] = account
        return account

    def add_standard(self, name: str = "cis_aws", enabled: bool = True) -> ComplianceStandardModel:
        standard = ComplianceStandardModel(
            id=next(self._ids),
            name=name,
            display_name=name.upper(),
            description=None,
            version="1.0",
            category="benchmark",
            link=None,
            enabled=enabled,
        )
        self.standards[standard.id] = standard
        return standard

    def add_rule(
        self,
        standard: ComplianceStandardModel,
        resource_types: list[str],
        providers: list[str] | None = None,
        severity: RuleSeverity = RuleSeverity.HIGH,
        action: RuleAction = RuleAction.NOTIFY,
        enabled: bool = True,
        rule_id: str | None = None,
    ) -> ComplianceRuleModel:
        rule = ComplianceRuleModel(
            id=next(self._ids),
            standard_id=standard.id,
            rule_id=rule_id or f"RULE-{len(self.rules) + 1}",
            title="Test rule",
            description=None,
            severity=severity,
            resource_types=resource_types,
            providers=providers or [],
            action=action,
            remediation=None,
            enabled=enabled,
        )
        self.rules[rule.id] = rule
        return rule

    def add_resource(
        self,
        resource_type: str,
        account: CloudAccountModel | None = None,
        resource_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ResourceModel:
        pk = next(self._ids)
        resource = ResourceModel(
            id=pk,
            resource_id=resource_id or f"res-{pk}",
            resource_type=resource_type,
            name=f"{resource_type} {pk}",
            region="us-east-1",
            status="normal",
            isolated=False,
            forensic_copy=False,
            cloud_account_id=account.id if account else None,
            metadata_=metadata or {},
            discovered_at=datetime.now(UTC),
        )
        self.resources[resource.id] = resource
        return resource

    def add_record(
        self,
        resource: ResourceModel,
        rule: ComplianceRuleModel,
        status: ComplianceStatus,
        **fields: Any,
    ) -> ResourceComplianceModel:
        record = ResourceComplianceModel(
            id=next(self._ids),
            resource_id=resource.id,
            rule_id=rule.id,
            status=status,
            last_checked=datetime.now(UTC),
            details=fields.pop("details", {}),
            exemption_reason=fields.pop("exemption_reason", None),
            exemption_expiry=fields.pop("exemption_expiry", None),
            exempted_by=fields.pop("exempted_by", None),
            exempted_at=fields.pop("exempted_at", None),
        )
        self.records[(resource.id, rule.id)] = record
        return record

    # -------------------------------------------------------------------------
    # ComplianceStore interface
    # -------------------------------------------------------------------------

    async def get_account(self, account_id: int) -> CloudAccountModel | None:
        await asyncio.sleep(0)
        return self.accounts.get(account_id)

    async def list_accounts(self) -> list[CloudAccountModel]:
        await asyncio.sleep(0)
        return sorted(self.accounts.values(), key=lambda a: a.id)

    async def get_standard(self, standard_id: int) -> ComplianceStandardModel | None:
        await asyncio.sleep(0)
        return self.standards.get(standard_id)

    async def list_standards(self, enabled: bool | None = None) -> list[ComplianceStandardModel]:
        await asyncio.sleep(0)
        return [
            s for s in sorted(self.standards.values(), key=lambda s: s.id)
            if enabled is None or s.enabled is enabled
        ]

    async def list_rules(
        self,
        standard_id: int | None = None,
        severity: RuleSeverity | None = None,
        enabled: bool | None = None,
        action: RuleAction | None = None,
    ) -> list[ComplianceRuleModel]:
        await asyncio.sleep(0)
        return [
            r for r in sorted(self.rules.values(), key=lambda r: r.id)
            if (standard_id is None or r.standard_id == standard_id)
            and (severity is None or r.severity == severity)
            and (enabled is None or r.enabled is enabled)
            and (action is None or r.action == action)
        ]

    async def list_resources(self, account_id: int | None = None) -> list[ResourceModel]:
        await asyncio.sleep(0)
        return [
            r for r in sorted(self.resources.values(), key=lambda r: r.id)
            if account_id is None or r.cloud_account_id == account_id
        ]

    async def get_resource_compliance(
        self,
        resource_id: int,
        rule_id: int,
    ) -> ResourceComplianceModel | None:
        await asyncio.sleep(0)
        return self.records.get((resource_id, rule_id))

    async def list_resource_compliance(
        self,
        status: ComplianceStatus | None = None,
    ) -> list[ResourceComplianceModel]:
        await asyncio.sleep(0)
        return [
            r for r in sorted(self.records.values(), key=lambda r: r.id)
            if status is None or r.status == status
        ]

    async def create_resource_compliance(
        self,
        resource_id: int,
        rule_id: int,
        status: ComplianceStatus,
        details: dict[str, Any],
        checked_at: datetime,
    ) -> tuple[ResourceComplianceModel, bool]:
        await asyncio.sleep(0)
        existing = self.records.get((resource_id, rule_id))
        if existing is not None:
            return existing, False
        record = ResourceComplianceModel(
            id=next(self._ids),
            resource_id=resource_id,
            rule_id=rule_id,
            status=status,
            last_checked=checked_at,
            details=details,
            exemption_reason=None,
            exemption_expiry=None,
            exempted_by=None,
            exempted_at=None,
        )
        self.records[(resource_id, rule_id)] = record
        return record, True

    async def update_resource_compliance(
        self,
        record: ResourceComplianceModel,
        values: dict[str, Any],
    ) -> ResourceComplianceModel:
        await asyncio.sleep(0)
        for key, value in values.items():
            setattr(record, key, value)
        return record

    async def upsert_account_compliance(
        self,
        account_id: int,
        standard_id: int,
        counts: dict[str, int],
        overall_status: ComplianceStatus,
        scanned_at: datetime,
    ) -> AccountComplianceModel:
        await asyncio.sleep(0)
        self.upsert_calls += 1
        rollup = self.rollups.get((account_id, standard_id))
        if rollup is None:
            rollup = AccountComplianceModel(
                id=next(self._ids),
                account_id=account_id,
                standard_id=standard_id,
            )
            self.rollups[(account_id, standard_id)] = rollup
        for key, value in counts.items():
            setattr(rollup, key, value)
        rollup.overall_status = overall_status
        rollup.last_scanned = scanned_at
        return rollup

    async def list_account_compliance(self, account_id: int) -> list[AccountComplianceModel]:
        await asyncio.sleep(0)
        return sorted(
            (r for r in self.rollups.values() if r.account_id == account_id),
            key=lambda r: r.standard_id,
        )

    async def mark_account_scanned(
        self,
        account: CloudAccountModel,
        scanned_at: datetime,
        status: str = "active",
    ) -> CloudAccountModel:
        await asyncio.sleep(0)
        account.last_scanned_at = scanned_at
        account.status = status
        return account



class OverlapTrackingStore(InMemoryComplianceStore):
    """
    Counts aggregator runs per standard between loading the standard's
    rules and writing its rollup.
    """

    def __init__(self) -> None:
        super().__init__()
        self.in_flight: dict[int, int] = {}
        self.max_in_flight: dict[int, int] = {}

    async def list_rules(self, standard_id: int | None = None, **filters: Any) -> list[ComplianceRuleModel]:
        self.in_flight[standard_id] = self.in_flight.get(standard_id, 0) + 1
        self.max_in_flight[standard_id] = max(
            self.max_in_flight.get(standard_id, 0),
            self.in_flight[standard_id],
        )
        return await super().list_rules(standard_id=standard_id, **filters)

    async def upsert_account_compliance(
        self,
        account_id: int,
        standard_id: int,
        **kwargs: Any,
    ) -> AccountComplianceModel:
        rollup = await super().upsert_account_compliance(account_id, standard_id, **kwargs)
        self.in_flight[standard_id] -= 1
        return rollup


@pytest.fixture
def store() -> InMemoryComplianceStore:
    """Empty in-memory compliance store."""
    return InMemoryComplianceStore()


@pytest.fixture
def tracking_store() -> OverlapTrackingStore:
    """In-memory store recording overlapping aggregator runs."""
    return OverlapTrackingStore()


@pytest.fixture(autouse=True)
def reset_aggregator_locks():
    """Per-key locks are process-wide; drop them so each test gets fresh ones."""
    AccountAggregator._locks.clear()
    yield
    AccountAggregator._locks.clear()
