"""
Exemption Manager
=================

Grants exemptions on existing resource compliance records.

Version: 0.1.0
"""

from datetime import UTC, datetime

from services.security_dashboard.errors import ComplianceValidationError, NotFoundError
from services.security_dashboard.models import ResourceComplianceModel
from services.security_dashboard.services.store import ComplianceStore
from shared.logging import get_logger
from shared.models.compliance import ComplianceStatus


logger = get_logger(__name__)


class ExemptionManager:
    """
    Service for exempting resource/rule pairs.

    Exemptions can only be granted on pairs that have been evaluated at
    least once. Granting overwrites the record whatever its previous status.
    Expiry is stored here and honoured at tally time by the evaluator.
    """

    def __init__(self, store: ComplianceStore) -> None:
        self.store = store

    async def grant(
        self,
        resource_id: int,
        rule_id: int,
        reason: str,
        exempted_by: str,
        expiry_date: datetime | None = None,
    ) -> ResourceComplianceModel:
        """
        Mark a compliance record as exempted.

        Args:
            resource_id: Resource primary key
            rule_id: Rule primary key
            reason: Why the exemption is granted
            exempted_by: User granting the exemption
            expiry_date: When the exemption lapses (None = never)

        Returns:
            The updated compliance record

        Raises:
            ComplianceValidationError: If reason or exempted_by is blank
            NotFoundError: If the pair has no compliance record
        """
        reason = (reason or "").strip()
        exempted_by = (exempted_by or "").strip()
        if not reason:
            raise ComplianceValidationError("Exemption reason is required")
        if not exempted_by:
            raise ComplianceValidationError("exempted_by is required")

        record = await self.store.get_resource_compliance(resource_id, rule_id)
        if record is None:
            raise NotFoundError(
                f"No compliance record for resource {resource_id} and rule {rule_id}",
                resource_id=resource_id,
                rule_id=rule_id,
            )

        previous_status = record.status
        now = datetime.now(UTC)

        record = await self.store.update_resource_compliance(
            record,
            {
                "status": ComplianceStatus.EXEMPTED,
                "exemption_reason": reason,
                "exemption_expiry": expiry_date,
                "exempted_by": exempted_by,
                "exempted_at": now,
            },
        )

        logger.info(
            "exemption_granted",
            resource_id=resource_id,
            rule_id=rule_id,
            previous_status=ComplianceStatus(previous_status).value,
            exempted_by=exempted_by,
            expires_at=expiry_date.isoformat() if expiry_date else None,
        )

        return record
