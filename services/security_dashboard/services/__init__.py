"""
Security Dashboard Services
===========================

Business logic for the compliance engine and inventory access.

Services:
- ComplianceEvaluator: Rule applicability and lazy record creation
- AccountAggregator: Per account/standard rollups
- ExemptionManager: Exemption grants with audit trail
- SummaryReporter: Dashboard aggregates
- ComplianceStore / InventoryStore: Data access

Version: 0.1.0
"""

from services.security_dashboard.services.aggregator import (
    AccountAggregator,
    ComplianceTally,
)
from services.security_dashboard.services.evaluator import (
    ComplianceEvaluator,
    Evaluation,
    effective_status,
    is_applicable,
)
from services.security_dashboard.services.exemptions import ExemptionManager
from services.security_dashboard.services.inventory import InventoryStore
from services.security_dashboard.services.providers import (
    infer_provider,
    rule_applies_to_provider,
)
from services.security_dashboard.services.store import ComplianceStore
from services.security_dashboard.services.summary import (
    NonCompliantEntry,
    SummaryReporter,
)


__all__ = [
    # Evaluation
    "ComplianceEvaluator",
    "Evaluation",
    "effective_status",
    "is_applicable",
    # Aggregation
    "AccountAggregator",
    "ComplianceTally",
    # Exemptions
    "ExemptionManager",
    # Reporting
    "SummaryReporter",
    "NonCompliantEntry",
    # Providers
    "infer_provider",
    "rule_applies_to_provider",
    # Stores
    "ComplianceStore",
    "InventoryStore",
]
