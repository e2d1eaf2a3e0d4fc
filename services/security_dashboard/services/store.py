"""
Compliance Store
================

Data access for the compliance engine. This is the only writer of
``resource_compliance`` and ``account_compliance`` rows.

Writes that must be atomic per key use PostgreSQL ``INSERT ... ON CONFLICT``
so concurrent requests cannot produce duplicate compliance records or
rollups.

Version: 0.1.0
"""

import functools
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.security_dashboard.errors import StoreError
from services.security_dashboard.models import (
    AccountComplianceModel,
    CloudAccountModel,
    ComplianceRuleModel,
    ComplianceStandardModel,
    ResourceComplianceModel,
    ResourceModel,
)
from shared.logging import get_logger
from shared.models.compliance import ComplianceStatus, RuleAction, RuleSeverity


logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def store_operation(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Translate SQLAlchemy failures into ``StoreError``."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                "store_error",
                operation=func.__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreError(f"Store operation failed: {func.__name__}") from e

    return wrapper


class ComplianceStore:
    """
    Async store for the compliance engine.

    Wraps a request-scoped ``AsyncSession``; the session dependency owns
    commit and rollback.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # =========================================================================
    # Reference data
    # =========================================================================

    @store_operation
    async def get_account(self, account_id: int) -> CloudAccountModel | None:
        return await self.session.get(CloudAccountModel, account_id)

    @store_operation
    async def list_accounts(self) -> list[CloudAccountModel]:
        result = await self.session.execute(
            select(CloudAccountModel).order_by(CloudAccountModel.id)
        )
        return list(result.scalars().all())

    @store_operation
    async def get_standard(self, standard_id: int) -> ComplianceStandardModel | None:
        return await self.session.get(ComplianceStandardModel, standard_id)

    @store_operation
    async def list_standards(self, enabled: bool | None = None) -> list[ComplianceStandardModel]:
        query = select(ComplianceStandardModel).order_by(ComplianceStandardModel.id)
        if enabled is not None:
            query = query.where(ComplianceStandardModel.enabled.is_(enabled))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @store_operation
    async def list_rules(
        self,
        standard_id: int | None = None,
        severity: RuleSeverity | None = None,
        enabled: bool | None = None,
        action: RuleAction | None = None,
    ) -> list[ComplianceRuleModel]:
        """
        List rules with optional equality filters.

        Provider filtering happens in the caller because ``providers`` is a
        JSON list whose empty value means "every provider".
        """
        query = select(ComplianceRuleModel).order_by(ComplianceRuleModel.id)
        if standard_id is not None:
            query = query.where(ComplianceRuleModel.standard_id == standard_id)
        if severity is not None:
            query = query.where(ComplianceRuleModel.severity == severity)
        if enabled is not None:
            query = query.where(ComplianceRuleModel.enabled.is_(enabled))
        if action is not None:
            query = query.where(ComplianceRuleModel.action == action)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    @store_operation
    async def list_resources(self, account_id: int | None = None) -> list[ResourceModel]:
        """List resources, optionally only those owned by one account."""
        query = select(ResourceModel).order_by(ResourceModel.id)
        if account_id is not None:
            query = query.where(ResourceModel.cloud_account_id == account_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # =========================================================================
    # Resource compliance
    # =========================================================================

    @store_operation
    async def get_resource_compliance(
        self,
        resource_id: int,
        rule_id: int,
    ) -> ResourceComplianceModel | None:
        result = await self.session.execute(
            select(ResourceComplianceModel).where(
                ResourceComplianceModel.resource_id == resource_id,
                ResourceComplianceModel.rule_id == rule_id,
            )
        )
        return result.scalar_one_or_none()

    @store_operation
    async def list_resource_compliance(
        self,
        status: ComplianceStatus | None = None,
    ) -> list[ResourceComplianceModel]:
        query = select(ResourceComplianceModel).order_by(ResourceComplianceModel.id)
        if status is not None:
            query = query.where(ResourceComplianceModel.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @store_operation
    async def create_resource_compliance(
        self,
        resource_id: int,
        rule_id: int,
        status: ComplianceStatus,
        details: dict[str, Any],
        checked_at: datetime,
    ) -> tuple[ResourceComplianceModel, bool]:
        """
        Insert a compliance record unless one already exists for the pair.

        Returns:
            The stored record and whether this call created it.
        """
        stmt = (
            pg_insert(ResourceComplianceModel)
            .values(
                resource_id=resource_id,
                rule_id=rule_id,
                status=status,
                details=details,
                last_checked=checked_at,
            )
            .on_conflict_do_nothing(constraint="uq_resource_compliance_resource_rule")
            .returning(ResourceComplianceModel.id)
        )
        inserted_id = (await self.session.execute(stmt)).scalar_one_or_none()

        result = await self.session.execute(
            select(ResourceComplianceModel)
            .where(
                ResourceComplianceModel.resource_id == resource_id,
                ResourceComplianceModel.rule_id == rule_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one(), inserted_id is not None

    @store_operation
    async def update_resource_compliance(
        self,
        record: ResourceComplianceModel,
        values: dict[str, Any],
    ) -> ResourceComplianceModel:
        for key, value in values.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    # =========================================================================
    # Account rollups
    # =========================================================================

    @store_operation
    async def upsert_account_compliance(
        self,
        account_id: int,
        standard_id: int,
        counts: dict[str, int],
        overall_status: ComplianceStatus,
        scanned_at: datetime,
    ) -> AccountComplianceModel:
        """
        Write the rollup for (account_id, standard_id) in a single statement.

        Args:
            counts: ``compliant_rules``, ``non_compliant_rules``,
                ``exempted_rules`` and ``not_applicable_rules``
        """
        values = {
            **counts,
            "overall_status": overall_status,
            "last_scanned": scanned_at,
        }
        stmt = (
            pg_insert(AccountComplianceModel)
            .values(account_id=account_id, standard_id=standard_id, **values)
            .on_conflict_do_update(
                constraint="uq_account_compliance_account_standard",
                set_=values,
            )
            .returning(AccountComplianceModel)
            .execution_options(populate_existing=True)
        )
        result = await self.session.scalars(stmt)
        return result.one()

    @store_operation
    async def list_account_compliance(self, account_id: int) -> list[AccountComplianceModel]:
        result = await self.session.execute(
            select(AccountComplianceModel)
            .where(AccountComplianceModel.account_id == account_id)
            .order_by(AccountComplianceModel.standard_id)
        )
        return list(result.scalars().all())

    @store_operation
    async def mark_account_scanned(
        self,
        account: CloudAccountModel,
        scanned_at: datetime,
        status: str = "active",
    ) -> CloudAccountModel:
        account.last_scanned_at = scanned_at
        account.status = status
        await self.session.flush()
        return account
