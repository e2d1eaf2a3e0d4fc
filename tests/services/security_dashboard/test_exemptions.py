"""
Exemption Manager Tests
=======================

Tests for granting exemptions on compliance records.

Version: 0.1.0
"""

from datetime import UTC, datetime, timedelta

import pytest

from services.security_dashboard.errors import ComplianceValidationError, NotFoundError
from services.security_dashboard.services import ExemptionManager
from shared.models.compliance import ComplianceStatus


@pytest.fixture
def manager(store) -> ExemptionManager:
    return ExemptionManager(store)


@pytest.fixture
def evaluated_pair(store):
    """A resource/rule pair with a non-compliant record."""
    standard = store.add_standard()
    rule = store.add_rule(standard, ["S3"], ["aws"])
    resource = store.add_resource("S3", resource_id="customer-data-prod-e7fb9")
    record = store.add_record(resource, rule, ComplianceStatus.NON_COMPLIANT)
    return resource, rule, record


class TestGrantExemption:
    """Tests for ExemptionManager.grant."""

    @pytest.mark.asyncio
    async def test_sets_status_and_audit_fields(self, manager, evaluated_pair):
        resource, rule, _ = evaluated_pair
        expiry = datetime.now(UTC) + timedelta(days=90)
        before = datetime.now(UTC)

        record = await manager.grant(
            resource_id=resource.id,
            rule_id=rule.id,
            reason="approved by security team",
            exempted_by="alexmorgan",
            expiry_date=expiry,
        )

        assert record.status == ComplianceStatus.EXEMPTED
        assert record.exemption_reason == "approved by security team"
        assert record.exemption_expiry == expiry
        assert record.exempted_by == "alexmorgan"
        assert before <= record.exempted_at <= datetime.now(UTC)

    @pytest.mark.asyncio
    async def test_without_expiry(self, manager, evaluated_pair):
        resource, rule, _ = evaluated_pair

        record = await manager.grant(resource.id, rule.id, "legacy bucket", "alexmorgan")

        assert record.exemption_expiry is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "prior",
        [ComplianceStatus.COMPLIANT, ComplianceStatus.EXEMPTED, ComplianceStatus.NON_COMPLIANT],
    )
    async def test_overwrites_any_prior_status(self, store, manager, prior):
        standard = store.add_standard()
        rule = store.add_rule(standard, ["S3"])
        resource = store.add_resource("S3")
        store.add_record(
            resource,
            rule,
            prior,
            exemption_reason="old",
            exempted_by="someone",
        )

        record = await manager.grant(resource.id, rule.id, "new reason", "alexmorgan")

        assert record.status == ComplianceStatus.EXEMPTED
        assert record.exemption_reason == "new reason"
        assert record.exempted_by == "alexmorgan"

    @pytest.mark.asyncio
    async def test_reason_is_stripped(self, manager, evaluated_pair):
        resource, rule, _ = evaluated_pair

        record = await manager.grant(resource.id, rule.id, "  compensating control  ", "alexmorgan")

        assert record.exemption_reason == "compensating control"

    @pytest.mark.asyncio
    async def test_missing_record_is_not_found(self, store, manager):
        standard = store.add_standard()
        rule = store.add_rule(standard, ["S3"])
        resource = store.add_resource("S3")

        with pytest.raises(NotFoundError):
            await manager.grant(resource.id, rule.id, "reason", "alexmorgan")

        assert store.records == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reason,exempted_by",
        [("", "alexmorgan"), ("   ", "alexmorgan"), ("reason", ""), ("reason", "  ")],
    )
    async def test_blank_fields_rejected(self, manager, evaluated_pair, reason, exempted_by):
        resource, rule, record = evaluated_pair

        with pytest.raises(ComplianceValidationError):
            await manager.grant(resource.id, rule.id, reason, exempted_by)

        assert record.status == ComplianceStatus.NON_COMPLIANT
        assert record.exempted_by is None
