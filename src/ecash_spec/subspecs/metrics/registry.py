"""
Metric registry using prometheus_client.

Provides pre-defined metrics for header validation and history sync.
Exposes metrics in Prometheus text format.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Dedicated registry, free of the default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Header Validation
# -----------------------------------------------------------------------------

headers_validated = Counter(
    "ecash_headers_validated_total",
    "Headers accepted by the validator set",
    registry=REGISTRY,
)

headers_rejected = Counter(
    "ecash_headers_rejected_total",
    "Headers rejected by consensus rules",
    ["reason"],
    registry=REGISTRY,
)

header_validation_time = Histogram(
    "ecash_header_validation_seconds",
    "Header validation duration",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# History Sync
# -----------------------------------------------------------------------------

sync_confirmed_height = Gauge(
    "ecash_sync_confirmed_height",
    "Highest height confirmed by the sync cursor",
    registry=REGISTRY,
)

provider_failovers = Counter(
    "ecash_provider_failovers_total",
    "Switches from the primary to the secondary data provider",
    registry=REGISTRY,
)

provider_retries = Counter(
    "ecash_provider_retries_total",
    "Provider requests retried after a transient failure",
    ["provider"],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
