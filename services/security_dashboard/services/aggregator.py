"""
Account Compliance Aggregator
=============================

Computes and persists the compliance rollup of one cloud account against
one compliance standard.

Algorithm:
1. Resolve the account and standard (NotFound if either is missing)
2. Load the resources owned by the account and every rule of the standard
3. Evaluate the full resources x rules cross-product, sequentially
4. Tally compliant / non_compliant / exempted / not_applicable
5. Overall status is compliant iff nothing is non_compliant
6. Upsert the rollup row for (account, standard)

Runs for the same (account, standard) key are serialized in-process; the
upsert itself is a single atomic statement.

Version: 0.1.0
"""

import asyncio
import weakref
from dataclasses import dataclass
from datetime import UTC, datetime

from services.security_dashboard.errors import NotFoundError
from services.security_dashboard.models import (
    AccountComplianceModel,
    CloudAccountModel,
)
from services.security_dashboard.services.evaluator import ComplianceEvaluator
from services.security_dashboard.services.store import ComplianceStore
from shared.logging import get_logger
from shared.models.compliance import ComplianceStatus


logger = get_logger(__name__)


@dataclass
class ComplianceTally:
    """Counts of evaluation outcomes for one rollup."""

    compliant: int = 0
    non_compliant: int = 0
    exempted: int = 0
    not_applicable: int = 0

    def add(self, status: ComplianceStatus) -> None:
        if status == ComplianceStatus.COMPLIANT:
            self.compliant += 1
        elif status == ComplianceStatus.NON_COMPLIANT:
            self.non_compliant += 1
        elif status == ComplianceStatus.EXEMPTED:
            self.exempted += 1
        else:
            self.not_applicable += 1

    @property
    def total(self) -> int:
        return self.compliant + self.non_compliant + self.exempted + self.not_applicable

    @property
    def overall_status(self) -> ComplianceStatus:
        """Zero tolerance: a single non-compliant pair fails the rollup."""
        if self.non_compliant == 0:
            return ComplianceStatus.COMPLIANT
        return ComplianceStatus.NON_COMPLIANT

    def as_counts(self) -> dict[str, int]:
        return {
            "compliant_rules": self.compliant,
            "non_compliant_rules": self.non_compliant,
            "exempted_rules": self.exempted,
            "not_applicable_rules": self.not_applicable,
        }


class AccountAggregator:
    """
    Service computing per-account, per-standard compliance rollups.
    """

    # Shared by every aggregator in the process, keyed by (account_id, standard_id).
    # Entries disappear once no run holds or awaits the lock.
    _locks: weakref.WeakValueDictionary[tuple[int, int], asyncio.Lock] = weakref.WeakValueDictionary()

    def __init__(
        self,
        store: ComplianceStore,
        evaluator: ComplianceEvaluator | None = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            store: Compliance store
            evaluator: Evaluator to use (defaults to one over the same store)
        """
        self.store = store
        self.evaluator = evaluator or ComplianceEvaluator(store)

    @classmethod
    def _lock_for(cls, account_id: int, standard_id: int) -> asyncio.Lock:
        key = (account_id, standard_id)
        lock = cls._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            cls._locks[key] = lock
        return lock

    async def calculate(
        self,
        account_id: int,
        standard_id: int,
    ) -> AccountComplianceModel:
        """
        Calculate and store the rollup for one account and standard.

        Args:
            account_id: Cloud account primary key
            standard_id: Compliance standard primary key

        Returns:
            The created or updated rollup row

        Raises:
            NotFoundError: If the account or standard does not exist
        """
        account = await self.store.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Cloud account not found: {account_id}", account_id=account_id)

        standard = await self.store.get_standard(standard_id)
        if standard is None:
            raise NotFoundError(f"Compliance standard not found: {standard_id}", standard_id=standard_id)

        lock = self._lock_for(account_id, standard_id)
        async with lock:
            return await self._calculate_locked(account, standard_id)

    async def _calculate_locked(
        self,
        account: CloudAccountModel,
        standard_id: int,
    ) -> AccountComplianceModel:
        now = datetime.now(UTC)
        resources = await self.store.list_resources(account_id=account.id)
        rules = await self.store.list_rules(standard_id=standard_id)

        tally = ComplianceTally()
        created = 0
        for resource in resources:
            for rule in rules:
                evaluation = await self.evaluator.evaluate(
                    resource,
                    rule,
                    provider=account.provider,
                    now=now,
                )
                tally.add(evaluation.status)
                created += int(evaluation.created)

        rollup = await self.store.upsert_account_compliance(
            account_id=account.id,
            standard_id=standard_id,
            counts=tally.as_counts(),
            overall_status=tally.overall_status,
            scanned_at=now,
        )

        logger.info(
            "account_compliance_calculated",
            account_id=account.id,
            standard_id=standard_id,
            resources=len(resources),
            rules=len(rules),
            records_created=created,
            overall_status=tally.overall_status.value,
            **tally.as_counts(),
        )

        return rollup

    async def scan_account(
        self,
        account_id: int,
    ) -> tuple[CloudAccountModel, list[AccountComplianceModel]]:
        """
        Recalculate the account against every enabled standard.

        Marks the account as scanned once all rollups are written.

        Returns:
            The updated account and one rollup per standard
        """
        account = await self.store.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Cloud account not found: {account_id}", account_id=account_id)

        rollups = []
        for standard in await self.store.list_standards(enabled=True):
            rollups.append(await self.calculate(account.id, standard.id))

        account = await self.store.mark_account_scanned(account, datetime.now(UTC))

        logger.info(
            "account_scanned",
            account_id=account.id,
            standards=len(rollups),
            non_compliant_standards=sum(
                1 for r in rollups if r.overall_status == ComplianceStatus.NON_COMPLIANT
            ),
        )

        return account, rollups
