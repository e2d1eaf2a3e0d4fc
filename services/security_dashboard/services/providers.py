"""
Provider Inference
==================

Resolve which cloud provider a resource or rule belongs to.

Resources do not carry a provider column; it is inferred with a fixed
precedence:

1. ``metadata["provider"]`` when it names a known provider
2. markers in the provider-side identifier (Azure resource IDs, GCP
   resource names)
3. the configured default provider

Version: 0.1.0
"""

from collections.abc import Iterable, Mapping
from typing import Any

from shared.config.settings import CloudProvider


KNOWN_PROVIDERS = frozenset(p.value for p in CloudProvider)

# Checked in order; the first provider with a matching marker wins
IDENTIFIER_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CloudProvider.AZURE.value, ("azure", "/subscriptions/", "microsoft.")),
    (CloudProvider.GCP.value, ("gcp", "projects/", "googleapis")),
)


def infer_provider(
    resource_id: str | None,
    metadata: Mapping[str, Any] | None,
    default: str = CloudProvider.AWS.value,
) -> str:
    """
    Infer the provider of a resource.

    Args:
        resource_id: Provider-side identifier
        metadata: Resource metadata map
        default: Provider returned when nothing else matches

    Returns:
        Lowercase provider name
    """
    explicit = (metadata or {}).get("provider")
    if isinstance(explicit, str) and explicit.strip().lower() in KNOWN_PROVIDERS:
        return explicit.strip().lower()

    identifier = (resource_id or "").lower()
    for provider, markers in IDENTIFIER_MARKERS:
        if any(marker in identifier for marker in markers):
            return provider

    return default


def rule_applies_to_provider(providers: Iterable[str] | None, provider: str) -> bool:
    """
    Check a rule's provider set against a provider.

    An empty or missing provider set applies to every provider.
    """
    declared = {p.lower() for p in providers or []}
    if not declared:
        return True
    return provider.lower() in declared
