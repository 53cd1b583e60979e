"""
Metrics module for observability.

Provides counters, gauges, and histograms for header validation and sync.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    generate_metrics,
    header_validation_time,
    headers_rejected,
    headers_validated,
    provider_failovers,
    provider_retries,
    sync_confirmed_height,
)

__all__ = [
    "REGISTRY",
    "generate_metrics",
    "header_validation_time",
    "headers_rejected",
    "headers_validated",
    "provider_failovers",
    "provider_retries",
    "sync_confirmed_height",
]
