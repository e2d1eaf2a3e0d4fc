"""
Account Aggregator Tests
========================

Tests for per-account, per-standard compliance rollups.

Version: 0.1.0
"""

import asyncio
import gc
from datetime import UTC, datetime, timedelta

import pytest

from services.security_dashboard.errors import NotFoundError
from services.security_dashboard.services import (
    AccountAggregator,
    ComplianceTally,
    ExemptionManager,
)
from shared.models.compliance import ComplianceStatus, RuleSeverity


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def aggregator(store) -> AccountAggregator:
    return AccountAggregator(store)


@pytest.fixture
def ec2_scenario(store):
    """
    Standard with an EC2 rule and an S3 rule, and an AWS account owning
    one EC2 instance.
    """
    standard = store.add_standard("cis_aws")
    r1 = store.add_rule(standard, ["EC2"], ["aws"], severity=RuleSeverity.CRITICAL, rule_id="R1")
    r2 = store.add_rule(standard, ["S3"], ["aws"], severity=RuleSeverity.MEDIUM, rule_id="R2")
    account = store.add_account(provider="aws")
    instance = store.add_resource("EC2", account=account, resource_id="i-09a8d67b5e4c3f21d")
    return {
        "standard": standard,
        "r1": r1,
        "r2": r2,
        "account": account,
        "instance": instance,
    }


def _bucket_sum(rollup) -> int:
    return (
        rollup.compliant_rules
        + rollup.non_compliant_rules
        + rollup.exempted_rules
        + rollup.not_applicable_rules
    )


# =============================================================================
# Tally Tests
# =============================================================================


class TestComplianceTally:
    """Tests for ComplianceTally."""

    def test_empty_tally_is_compliant(self):
        tally = ComplianceTally()
        assert tally.total == 0
        assert tally.overall_status == ComplianceStatus.COMPLIANT

    def test_single_violation_fails_rollup(self):
        tally = ComplianceTally()
        for status in (
            ComplianceStatus.COMPLIANT,
            ComplianceStatus.EXEMPTED,
            ComplianceStatus.NOT_APPLICABLE,
            ComplianceStatus.NON_COMPLIANT,
        ):
            tally.add(status)

        assert tally.total == 4
        assert tally.overall_status == ComplianceStatus.NON_COMPLIANT

    def test_exempted_and_not_applicable_do_not_fail(self):
        tally = ComplianceTally()
        tally.add(ComplianceStatus.EXEMPTED)
        tally.add(ComplianceStatus.NOT_APPLICABLE)
        assert tally.overall_status == ComplianceStatus.COMPLIANT

    def test_as_counts_keys(self):
        tally = ComplianceTally(compliant=2, non_compliant=1)
        assert tally.as_counts() == {
            "compliant_rules": 2,
            "non_compliant_rules": 1,
            "exempted_rules": 0,
            "not_applicable_rules": 0,
        }


# =============================================================================
# Calculation Tests
# =============================================================================


class TestCalculate:
    """Tests for AccountAggregator.calculate."""

    @pytest.mark.asyncio
    async def test_new_ec2_resource(self, store, aggregator, ec2_scenario):
        """Unevaluated EC2 resource: one violation, one not-applicable."""
        s = ec2_scenario

        rollup = await aggregator.calculate(s["account"].id, s["standard"].id)

        assert rollup.compliant_rules == 0
        assert rollup.non_compliant_rules == 1
        assert rollup.not_applicable_rules == 1
        assert rollup.exempted_rules == 0
        assert rollup.overall_status == ComplianceStatus.NON_COMPLIANT
        assert store.records[(s["instance"].id, s["r1"].id)].status == ComplianceStatus.NON_COMPLIANT
        assert (s["instance"].id, s["r2"].id) not in store.records

    @pytest.mark.asyncio
    async def test_exemption_clears_violation(self, store, aggregator, ec2_scenario):
        """Exempting the only violation turns the rollup compliant."""
        s = ec2_scenario
        await aggregator.calculate(s["account"].id, s["standard"].id)

        await ExemptionManager(store).grant(
            resource_id=s["instance"].id,
            rule_id=s["r1"].id,
            reason="approved by security team",
            exempted_by="alexmorgan",
        )
        rollup = await aggregator.calculate(s["account"].id, s["standard"].id)

        assert rollup.non_compliant_rules == 0
        assert rollup.exempted_rules == 1
        assert rollup.overall_status == ComplianceStatus.COMPLIANT

    @pytest.mark.asyncio
    async def test_expired_exemption_counts_as_violation(self, store, aggregator, ec2_scenario):
        s = ec2_scenario
        store.add_record(
            s["instance"],
            s["r1"],
            ComplianceStatus.EXEMPTED,
            exemption_reason="temporary",
            exemption_expiry=datetime.now(UTC) - timedelta(hours=1),
            exempted_by="alexmorgan",
        )

        rollup = await aggregator.calculate(s["account"].id, s["standard"].id)

        assert rollup.exempted_rules == 0
        assert rollup.non_compliant_rules == 1
        assert rollup.overall_status == ComplianceStatus.NON_COMPLIANT

    @pytest.mark.asyncio
    async def test_buckets_sum_to_cross_product(self, store, aggregator):
        standard = store.add_standard()
        store.add_rule(standard, ["EC2"], ["aws"])
        universal = store.add_rule(standard, ["S3"], [])
        store.add_rule(standard, ["S3", "IAM"], ["azure"])
        account = store.add_account(provider="aws")
        resources = [
            store.add_resource("EC2", account=account),
            store.add_resource("S3", account=account),
            store.add_resource("IAM", account=account),
            store.add_resource("Lambda", account=account),
        ]
        store.add_record(resources[1], universal, ComplianceStatus.COMPLIANT)

        rollup = await aggregator.calculate(account.id, standard.id)

        assert _bucket_sum(rollup) == len(resources) * 3
        assert rollup.compliant_rules == 1
        assert rollup.non_compliant_rules == 1

    @pytest.mark.asyncio
    async def test_empty_provider_set_applies_to_account_provider(self, store, aggregator):
        standard = store.add_standard()
        rule = store.add_rule(standard, ["VM"], providers=[])
        account = store.add_account(provider="gcp")
        resource = store.add_resource("VM", account=account)

        rollup = await aggregator.calculate(account.id, standard.id)

        assert rollup.non_compliant_rules == 1
        assert (resource.id, rule.id) in store.records

    @pytest.mark.asyncio
    async def test_provider_mismatch_is_not_applicable(self, store, aggregator):
        standard = store.add_standard()
        store.add_rule(standard, ["S3"], ["aws"])
        account = store.add_account(provider="azure")
        store.add_resource("S3", account=account)

        rollup = await aggregator.calculate(account.id, standard.id)

        assert rollup.not_applicable_rules == 1
        assert rollup.overall_status == ComplianceStatus.COMPLIANT
        assert store.records == {}

    @pytest.mark.asyncio
    async def test_only_account_resources_are_evaluated(self, store, aggregator):
        standard = store.add_standard()
        store.add_rule(standard, ["S3"], ["aws"])
        account = store.add_account(provider="aws")
        other = store.add_account(provider="aws", account_id="210987654321")
        store.add_resource("S3", account=account)
        foreign = store.add_resource("S3", account=other)
        store.add_resource("S3")

        rollup = await aggregator.calculate(account.id, standard.id)

        assert _bucket_sum(rollup) == 1
        assert all(resource_id != foreign.id for resource_id, _ in store.records)

    @pytest.mark.asyncio
    async def test_no_resources_is_compliant(self, store, aggregator):
        standard = store.add_standard()
        store.add_rule(standard, ["S3"])
        account = store.add_account()

        rollup = await aggregator.calculate(account.id, standard.id)

        assert _bucket_sum(rollup) == 0
        assert rollup.overall_status == ComplianceStatus.COMPLIANT

    @pytest.mark.asyncio
    async def test_no_rules_is_compliant(self, store, aggregator):
        standard = store.add_standard()
        account = store.add_account()
        store.add_resource("S3", account=account)

        rollup = await aggregator.calculate(account.id, standard.id)

        assert _bucket_sum(rollup) == 0
        assert rollup.overall_status == ComplianceStatus.COMPLIANT

    @pytest.mark.asyncio
    async def test_second_run_overwrites_rollup(self, store, aggregator, ec2_scenario):
        s = ec2_scenario
        first = await aggregator.calculate(s["account"].id, s["standard"].id)
        assert first.non_compliant_rules == 1

        store.records[(s["instance"].id, s["r1"].id)].status = ComplianceStatus.COMPLIANT
        second = await aggregator.calculate(s["account"].id, s["standard"].id)

        assert len(store.rollups) == 1
        assert second.id == first.id
        assert second.compliant_rules == 1
        assert second.non_compliant_rules == 0

    @pytest.mark.asyncio
    async def test_unknown_account(self, store, aggregator):
        standard = store.add_standard()

        with pytest.raises(NotFoundError):
            await aggregator.calculate(9999, standard.id)

        assert store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_unknown_standard(self, store, aggregator):
        account = store.add_account()

        with pytest.raises(NotFoundError):
            await aggregator.calculate(account.id, 9999)

        assert store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_concurrent_runs_keep_one_record_per_pair(self, store, ec2_scenario):
        s = ec2_scenario
        extra = store.add_resource("EC2", account=s["account"])

        rollups = await asyncio.gather(
            *(
                AccountAggregator(store).calculate(s["account"].id, s["standard"].id)
                for _ in range(5)
            )
        )

        assert len(store.rollups) == 1
        assert len(store.records) == 2
        assert (extra.id, s["r1"].id) in store.records
        assert all(r.non_compliant_rules == 2 for r in rollups)


# =============================================================================
# Locking Tests
# =============================================================================


class TestAggregatorLocking:
    """Tests for the per-(account, standard) lock."""

    @pytest.mark.asyncio
    async def test_same_key_runs_do_not_overlap(self, tracking_store):
        standard = tracking_store.add_standard()
        tracking_store.add_rule(standard, ["EC2"], ["aws"])
        account = tracking_store.add_account()
        tracking_store.add_resource("EC2", account=account)

        await asyncio.gather(
            *(AccountAggregator(tracking_store).calculate(account.id, standard.id) for _ in range(3))
        )

        assert tracking_store.max_in_flight[standard.id] == 1
        assert tracking_store.upsert_calls == 3

    @pytest.mark.asyncio
    async def test_different_keys_each_get_a_rollup(self, tracking_store):
        first = tracking_store.add_standard("cis_aws")
        second = tracking_store.add_standard("pci_dss")
        for standard in (first, second):
            tracking_store.add_rule(standard, ["EC2"], ["aws"])
        account = tracking_store.add_account()
        tracking_store.add_resource("EC2", account=account)

        await asyncio.gather(
            AccountAggregator(tracking_store).calculate(account.id, first.id),
            AccountAggregator(tracking_store).calculate(account.id, second.id),
        )

        assert len(tracking_store.rollups) == 2
        assert tracking_store.in_flight == {first.id: 0, second.id: 0}

    @pytest.mark.asyncio
    async def test_lock_released_after_run(self, store, aggregator, ec2_scenario):
        s = ec2_scenario

        await aggregator.calculate(s["account"].id, s["standard"].id)
        gc.collect()

        assert (s["account"].id, s["standard"].id) not in AccountAggregator._locks


# =============================================================================
# Scan Tests
# =============================================================================


class TestScanAccount:
    """Tests for AccountAggregator.scan_account."""

    @pytest.mark.asyncio
    async def test_scans_enabled_standards(self, store, aggregator, ec2_scenario):
        s = ec2_scenario
        disabled = store.add_standard("legacy", enabled=False)
        store.add_rule(disabled, ["EC2"])

        account, rollups = await aggregator.scan_account(s["account"].id)

        assert [r.standard_id for r in rollups] == [s["standard"].id]
        assert account.status == "active"
        assert account.last_scanned_at is not None

    @pytest.mark.asyncio
    async def test_unknown_account(self, aggregator):
        with pytest.raises(NotFoundError):
            await aggregator.scan_account(42)
