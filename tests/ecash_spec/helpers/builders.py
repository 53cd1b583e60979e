"""Header and network builders for tests."""

from __future__ import annotations

from collections.abc import Sequence

from ecash_spec.subspecs.chain import AsertAnchor, ForkPoint, NetworkConfig, RetargetKind
from ecash_spec.subspecs.containers import Checkpoint, Header, sha256d
from ecash_spec.subspecs.pow import decode_compact
from ecash_spec.subspecs.retarget import ChainContext
from ecash_spec.subspecs.storage import InMemoryHeaderStore
from ecash_spec.subspecs.validation import ValidatorChain
from ecash_spec.types import ZERO_HASH, Bytes32, Uint32, Uint64

REGTEST_BITS = 0x207FFFFF
"""Easiest target of the test network: about every other hash is a valid block."""

GENESIS_TIME = 1_600_000_000
"""Timestamp of the first test header."""

SPACING = 600
"""Ideal block interval of the test network."""

GENESIS_RAW = bytes.fromhex(
    "01000000"
    + "00" * 32
    + "3ba3edfd7a7b12b27ac72c3e67768f617fc81bc3888a51323a9fb8aa4b1e5e4a"
    + "29ab5f49"
    + "ffff001d"
    + "1dac2b7c"
)
"""The mainnet genesis header in wire form."""


def make_header(
    *,
    height: int,
    previous_hash: Bytes32 = ZERO_HASH,
    timestamp: int = GENESIS_TIME,
    bits: int = REGTEST_BITS,
    nonce: int = 0,
) -> Header:
    """Build an unmined header."""
    return Header(
        version=Uint32(1),
        previous_hash=previous_hash,
        merkle_root=Bytes32.zero(),
        timestamp=Uint32(timestamp),
        bits=Uint32(bits),
        nonce=Uint32(nonce),
        height=Uint64(height),
    )


def build_chain(
    count: int,
    *,
    start_height: int = 0,
    parent_hash: Bytes32 = ZERO_HASH,
    start_time: int = GENESIS_TIME,
    spacing: int = SPACING,
    bits: int = REGTEST_BITS,
    timestamps: Sequence[int] | None = None,
    tag: int = 0,
) -> list[Header]:
    """
    Build a linked chain of unmined headers.

    `tag` goes into the nonce so two branches built from the same parent
    have different hashes.
    """
    headers: list[Header] = []
    previous = parent_hash
    for i in range(count):
        timestamp = timestamps[i] if timestamps is not None else start_time + i * spacing
        header = make_header(
            height=start_height + i,
            previous_hash=previous,
            timestamp=timestamp,
            bits=bits,
            nonce=tag,
        )
        headers.append(header)
        previous = header.hash
    return headers


def store_with(headers: Sequence[Header]) -> InMemoryHeaderStore:
    """In-memory store holding `headers`."""
    store = InMemoryHeaderStore()
    store.put_headers(headers)
    return store


def mine(header: Header) -> Header:
    """Return `header` with the first nonce that satisfies its own bits."""
    target = decode_compact(int(header.bits)).target
    prefix = bytes(header.serialize())[:76]
    for nonce in range(2**32):
        digest = sha256d(prefix + nonce.to_bytes(4, "little"))
        if int.from_bytes(digest, "little") <= target:
            return header.copy(nonce=Uint32(nonce))
    raise AssertionError("nonce space exhausted")


def extend_valid_chain(
    store: InMemoryHeaderStore,
    chain: ValidatorChain,
    count: int,
    *,
    spacing: int = SPACING,
) -> list[Header]:
    """Append `count` mined headers carrying exactly the bits `chain` requires."""
    added: list[Header] = []
    for _ in range(count):
        parent = store.get_tip()
        assert parent is not None
        candidate = make_header(
            height=int(parent.height) + 1,
            previous_hash=parent.hash,
            timestamp=int(parent.timestamp) + spacing,
        )
        bits = chain.required_bits(ChainContext(candidate, store))
        header = mine(candidate.copy(bits=Uint32(bits)))
        store.put_header(header)
        added.append(header)
    return added


def mined_genesis(timestamp: int = GENESIS_TIME) -> Header:
    """A valid genesis header for the test network."""
    return mine(make_header(height=0, timestamp=timestamp))


def checkpoint_of(header: Header) -> Checkpoint:
    """Checkpoint pinning `header`."""
    return Checkpoint(height=header.height, hash=header.hash, timestamp=header.timestamp)


def regtest_config(
    *,
    forks: tuple[ForkPoint, ...] = (),
    default_algorithm: RetargetKind = RetargetKind.LEGACY,
    asert_anchor: AsertAnchor | None = None,
    checkpoints: tuple[Checkpoint, ...] = (),
    retarget_interval: int = 2016,
) -> NetworkConfig:
    """Network parameters with a trivially easy proof-of-work limit."""
    return NetworkConfig(
        name="regtest",
        max_target_bits=Uint32(REGTEST_BITS),
        target_spacing=SPACING,
        target_timespan=retarget_interval * SPACING,
        retarget_interval=retarget_interval,
        default_algorithm=default_algorithm,
        forks=forks,
        asert_anchor=asert_anchor,
        checkpoints=checkpoints,
    )
