"""
Cloud Accounts Routes
=====================

API endpoints for onboarding and scanning cloud accounts.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from services.security_dashboard.dependencies import (
    get_aggregator,
    get_compliance_store,
    get_inventory_store,
)
from services.security_dashboard.services import (
    AccountAggregator,
    ComplianceStore,
    InventoryStore,
)
from shared.config.settings import CloudProvider
from shared.logging import get_logger
from shared.models.account import CloudAccount, CloudAccountCreate
from shared.models.compliance import (
    AccountCompliance,
    AccountScanResult,
    ComplianceStatus,
)


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[CloudAccount])
async def list_accounts(
    provider: CloudProvider | None = Query(default=None, description="Filter by provider"),
    store: InventoryStore = Depends(get_inventory_store),
) -> list[CloudAccount]:
    """List onboarded cloud accounts."""
    accounts = await store.list_accounts(provider=provider.value if provider else None)
    return [CloudAccount.model_validate(a.to_dict()) for a in accounts]


@router.get("/{account_id}", response_model=CloudAccount)
async def get_account(
    account_id: int,
    store: InventoryStore = Depends(get_inventory_store),
) -> CloudAccount:
    """Get a cloud account by ID."""
    account = await store.get_account(account_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cloud account not found: {account_id}",
        )
    return CloudAccount.model_validate(account.to_dict())


@router.post("", response_model=CloudAccount, status_code=status.HTTP_201_CREATED)
async def onboard_account(
    account_data: CloudAccountCreate,
    store: InventoryStore = Depends(get_inventory_store),
) -> CloudAccount:
    """
    Onboard a cloud account.

    The account starts as ``pending`` until its first scan.
    """
    values = account_data.model_dump()
    values["provider"] = account_data.provider.value
    account = await store.create_account(values)

    logger.info(
        "account_onboarded",
        account_id=account.id,
        provider=account.provider,
    )

    return CloudAccount.model_validate(account.to_dict())


@router.post("/{account_id}/scan", response_model=AccountScanResult)
async def scan_account(
    account_id: int,
    aggregator: AccountAggregator = Depends(get_aggregator),
) -> AccountScanResult:
    """
    Recalculate the account against every enabled standard.
    """
    account, rollups = await aggregator.scan_account(account_id)

    return AccountScanResult(
        account=CloudAccount.model_validate(account.to_dict()),
        rollups=[AccountCompliance.model_validate(r.to_dict()) for r in rollups],
        non_compliant_standards=sum(
            1 for r in rollups if r.overall_status == ComplianceStatus.NON_COMPLIANT
        ),
        scanned_at=account.last_scanned_at,
    )


@router.get("/{account_id}/compliance", response_model=list[AccountCompliance])
async def list_account_compliance(
    account_id: int,
    store: ComplianceStore = Depends(get_compliance_store),
) -> list[AccountCompliance]:
    """Stored rollups of an account, one per evaluated standard."""
    if await store.get_account(account_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cloud account not found: {account_id}",
        )
    rollups = await store.list_account_compliance(account_id)
    return [AccountCompliance.model_validate(r.to_dict()) for r in rollups]
