"""Prometheus metrics for offer normalization and modality discovery"""

from prometheus_client import Counter

# Normalization metrics
offers_normalized_counter = Counter(
    "credit_offers_normalized_total",
    "Raw offers processed by normalization",
    ["outcome", "reason"],  # completed|rejected, none|validation|not_found|unexpected
)

# Discovery metrics
modality_discovery_counter = Counter(
    "credit_modality_discovery_total",
    "Modality mapping resolutions",
    ["resolution"],  # cached | matched | created
)

standard_modality_created_counter = Counter(
    "credit_standard_modality_created_total",
    "Standard modalities created by auto-discovery",
)

discovery_conflict_counter = Counter(
    "credit_modality_discovery_conflicts_total",
    "Unique-constraint conflicts resolved by re-reading the winning row",
    ["entity"],  # standard_modality | mapping
)


def record_normalization(accepted: bool, reason: str = "none") -> None:
    """Record one normalization outcome"""
    outcome = "completed" if accepted else "rejected"
    offers_normalized_counter.labels(outcome=outcome, reason=reason).inc()


def record_discovery(resolution: str) -> None:
    """Record how a modality mapping was resolved"""
    modality_discovery_counter.labels(resolution=resolution).inc()
    if resolution == "created":
        standard_modality_created_counter.inc()
