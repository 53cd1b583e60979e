"""
Chain and Consensus Configuration Specification

This file defines the network parameters for the eCash chain: proof-of-work
limits, block timing, the hard forks that replaced the difficulty retarget
algorithm, and the checkpoints sync may start from.

Every value here is fixed at configuration time. Validators receive a
`NetworkConfig` explicitly and never consult module globals.
"""

from __future__ import annotations

from enum import Enum

from pydantic import model_validator
from typing_extensions import Final

from ecash_spec.exceptions import UnsupportedNetworkError
from ecash_spec.subspecs.containers.checkpoint import Checkpoint
from ecash_spec.subspecs.pow.target import decode_compact
from ecash_spec.types import Bytes32, StrictBaseModel, Uint32, Uint64

# --- Proof of Work ---

MAX_TARGET_BITS: Final = Uint32(0x1D00FFFF)
"""Compact encoding of the easiest target a mainnet header may declare."""

# --- Time Parameters ---

TARGET_SPACING: Final = 10 * 60
"""Ideal block interval in seconds."""

TARGET_TIMESPAN: Final = 14 * 24 * 60 * 60
"""Duration of one legacy difficulty period: two weeks."""

RETARGET_INTERVAL: Final = TARGET_TIMESPAN // TARGET_SPACING
"""Blocks per legacy difficulty period (2016)."""

# --- Fork Heights ---

UAHF_FORK_HEIGHT: Final = 478559
"""2017 August 1. First block of the split; the emergency adjustment starts here."""

DAA_FORK_HEIGHT: Final = 504032
"""2017 November 13. First block retargeted by the 144-block moving window."""

SV_FORK_HEIGHT: Final = 556767
"""2018 November 15. Chain split; the anchor pins the ABC side."""

AXION_FORK_HEIGHT: Final = 661648
"""2020 November 15, 14:13 GMT. First block retargeted by ASERT."""

ABC_FORK_BLOCK_HASH: Final = Bytes32.from_display_hex(
    "0000000000000000004626ff6e3b936941d341c5932ece4357eeccac44e6d56c"
)
"""Block at SV_FORK_HEIGHT on the chain this network follows."""

BCHA_FORK_BLOCK_HASH: Final = Bytes32.from_display_hex(
    "000000000000000004284c9d8b2c8ff731efeaec6be50729bdc9bd07f910757d"
)
"""Block at AXION_FORK_HEIGHT on the chain this network follows."""

GENESIS_HASH: Final = Bytes32.from_display_hex(
    "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
)
"""Hash of block 0."""

GENESIS_TIMESTAMP: Final = Uint32(1231006505)
"""Timestamp of block 0."""

# --- ASERT ---

ASERT_HALF_LIFE: Final = 2 * 24 * 60 * 60
"""Time deviation from schedule that halves or doubles the target: two days."""

ASERT_ANCHOR_HEIGHT: Final = Uint64(661647)
"""Last block before the Axion upgrade; the ASERT reference block."""

ASERT_ANCHOR_BITS: Final = Uint32(0x1804DAFE)
"""Bits of the ASERT reference block."""

ASERT_ANCHOR_PARENT_TIMESTAMP: Final = Uint32(1605447844)
"""Timestamp of the reference block's parent."""

# --- Emergency Difficulty Adjustment ---

EDA_MTP_THRESHOLD: Final = 12 * 60 * 60
"""Median-time gap over six blocks that triggers an emergency target increase."""

# --- Difficulty Adjustment Algorithm ---

DAA_WINDOW: Final = 144
"""Blocks in the moving work window."""


class NetworkType(Enum):
    """Networks a wallet can be configured for."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class RetargetKind(Enum):
    """The closed set of retarget algorithms a fork point may activate."""

    LEGACY = "legacy"
    EDA = "eda"
    DAA = "daa"
    ASERT = "asert"


class ForkPoint(StrictBaseModel):
    """
    A hard fork that replaced the retarget algorithm.

    When `anchor_hash` is set, the fork only applies to chains whose block at
    `activation_height` has exactly that hash. This rejects histories that were
    reorganized to look like this network before the fork.
    """

    name: str
    """Human-readable upgrade name."""

    activation_height: Uint64
    """First height validated with the new algorithm."""

    algorithm: RetargetKind
    """Algorithm that becomes canonical at `activation_height`."""

    anchor_hash: Bytes32 | None = None
    """Required hash of the block at `activation_height`, internal byte order."""


class AsertAnchor(StrictBaseModel):
    """Reference block the ASERT schedule is measured from."""

    height: Uint64
    """Height of the reference block."""

    bits: Uint32
    """Bits of the reference block; its target is the schedule's starting point."""

    parent_timestamp: Uint32
    """Timestamp of the reference block's parent."""


class NetworkConfig(StrictBaseModel):
    """
    A model holding the canonical, immutable parameters of one network.

    One instance exists per network. Nothing mutates it after construction.
    """

    name: str
    """Network name, also used in database file names."""

    max_target_bits: Uint32
    """Compact encoding of the proof-of-work limit."""

    target_spacing: int
    """Ideal seconds between blocks."""

    target_timespan: int
    """Seconds per legacy difficulty period."""

    retarget_interval: int
    """Blocks per legacy difficulty period."""

    default_algorithm: RetargetKind = RetargetKind.LEGACY
    """Algorithm used below every fork point."""

    forks: tuple[ForkPoint, ...] = ()
    """Fork points in activation order, oldest first."""

    asert_anchor: AsertAnchor | None = None
    """ASERT reference block. Required when any fork activates ASERT."""

    asert_half_life: int = ASERT_HALF_LIFE
    """ASERT half-life in seconds."""

    eda_mtp_threshold: int = EDA_MTP_THRESHOLD
    """Six-block median-time gap that triggers the emergency adjustment."""

    daa_window: int = DAA_WINDOW
    """Blocks in the DAA moving window."""

    checkpoints: tuple[Checkpoint, ...] = ()
    """Trusted sync starting points, ordered by height."""

    @property
    def max_target(self) -> int:
        """The proof-of-work limit as an integer."""
        return decode_compact(int(self.max_target_bits)).target

    @model_validator(mode="after")
    def validate_parameters(self) -> NetworkConfig:
        """Reject parameter sets that cannot describe a consistent chain."""
        decoded = decode_compact(int(self.max_target_bits))
        if decoded.negative or decoded.overflow or decoded.target == 0:
            raise ValueError(f"max_target_bits {int(self.max_target_bits):#010x} is malformed")

        if self.target_spacing <= 0 or self.target_timespan <= 0 or self.retarget_interval <= 0:
            raise ValueError("Block timing parameters must be positive")

        heights = [int(fork.activation_height) for fork in self.forks]
        if heights != sorted(set(heights)):
            raise ValueError(f"Fork points must activate at strictly increasing heights: {heights}")

        uses_asert = self.default_algorithm is RetargetKind.ASERT or any(
            fork.algorithm is RetargetKind.ASERT for fork in self.forks
        )
        if uses_asert and self.asert_anchor is None:
            raise ValueError("An ASERT fork point requires an asert_anchor")

        checkpoint_heights = [int(cp.height) for cp in self.checkpoints]
        if checkpoint_heights != sorted(set(checkpoint_heights)):
            raise ValueError("Checkpoints must be ordered by strictly increasing height")
        return self


MAINNET_CONFIG: Final = NetworkConfig(
    name=NetworkType.MAINNET.value,
    max_target_bits=MAX_TARGET_BITS,
    target_spacing=TARGET_SPACING,
    target_timespan=TARGET_TIMESPAN,
    retarget_interval=RETARGET_INTERVAL,
    default_algorithm=RetargetKind.LEGACY,
    forks=(
        ForkPoint(
            name="uahf",
            activation_height=Uint64(UAHF_FORK_HEIGHT),
            algorithm=RetargetKind.EDA,
        ),
        ForkPoint(
            name="daa",
            activation_height=Uint64(DAA_FORK_HEIGHT),
            algorithm=RetargetKind.DAA,
        ),
        ForkPoint(
            name="magnetic-anomaly",
            activation_height=Uint64(SV_FORK_HEIGHT),
            algorithm=RetargetKind.DAA,
            anchor_hash=ABC_FORK_BLOCK_HASH,
        ),
        ForkPoint(
            name="axion",
            activation_height=Uint64(AXION_FORK_HEIGHT),
            algorithm=RetargetKind.ASERT,
            anchor_hash=BCHA_FORK_BLOCK_HASH,
        ),
    ),
    asert_anchor=AsertAnchor(
        height=ASERT_ANCHOR_HEIGHT,
        bits=ASERT_ANCHOR_BITS,
        parent_timestamp=ASERT_ANCHOR_PARENT_TIMESTAMP,
    ),
    checkpoints=(
        Checkpoint(height=Uint64(0), hash=GENESIS_HASH, timestamp=GENESIS_TIMESTAMP),
        # Fork-day timestamps, rounded down to the announced activation time.
        Checkpoint(
            height=Uint64(SV_FORK_HEIGHT),
            hash=ABC_FORK_BLOCK_HASH,
            timestamp=Uint32(1542300000),
        ),
        Checkpoint(
            height=Uint64(AXION_FORK_HEIGHT),
            hash=BCHA_FORK_BLOCK_HASH,
            timestamp=Uint32(1605449580),
        ),
    ),
)
"""The eCash main network."""

_NETWORK_CONFIGS: Final[dict[NetworkType, NetworkConfig]] = {
    NetworkType.MAINNET: MAINNET_CONFIG,
}


def network_config(network: NetworkType) -> NetworkConfig:
    """
    Look up the parameters of a network.

    Raises:
        UnsupportedNetworkError: If no parameters exist for `network`.
    """
    try:
        return _NETWORK_CONFIGS[network]
    except KeyError:
        raise UnsupportedNetworkError(network.value) from None
