"""Network parameters: proof-of-work limits, block timing, forks and checkpoints."""

from .config import (
    MAINNET_CONFIG,
    AsertAnchor,
    ForkPoint,
    NetworkConfig,
    NetworkType,
    RetargetKind,
    network_config,
)

__all__ = [
    "AsertAnchor",
    "ForkPoint",
    "MAINNET_CONFIG",
    "NetworkConfig",
    "NetworkType",
    "RetargetKind",
    "network_config",
]
