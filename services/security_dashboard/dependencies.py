"""
Security Dashboard Dependencies
===============================

FastAPI dependency providers for stores and compliance services.

Version: 0.1.0
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.security_dashboard.services import (
    AccountAggregator,
    ComplianceEvaluator,
    ComplianceStore,
    ExemptionManager,
    InventoryStore,
    SummaryReporter,
)
from shared.config import settings
from shared.database.postgres import get_postgres_session


async def get_compliance_store(
    db: AsyncSession = Depends(get_postgres_session),
) -> ComplianceStore:
    """Request-scoped compliance store."""
    return ComplianceStore(db)


async def get_inventory_store(
    db: AsyncSession = Depends(get_postgres_session),
) -> InventoryStore:
    """Request-scoped inventory store."""
    return InventoryStore(db)


def get_aggregator(
    store: ComplianceStore = Depends(get_compliance_store),
) -> AccountAggregator:
    evaluator = ComplianceEvaluator(
        store,
        enforce_exemption_expiry=settings.compliance.enforce_exemption_expiry,
    )
    return AccountAggregator(store, evaluator)


def get_exemption_manager(
    store: ComplianceStore = Depends(get_compliance_store),
) -> ExemptionManager:
    return ExemptionManager(store)


def get_summary_reporter(
    store: ComplianceStore = Depends(get_compliance_store),
) -> SummaryReporter:
    return SummaryReporter(
        store,
        default_provider=settings.compliance.default_provider.value,
        enforce_exemption_expiry=settings.compliance.enforce_exemption_expiry,
    )
