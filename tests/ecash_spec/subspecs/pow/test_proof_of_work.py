"""Tests for the proof-of-work check."""

import pytest

from ecash_spec.exceptions import InvalidProofOfWorkError
from ecash_spec.subspecs.chain import MAINNET_CONFIG
from ecash_spec.subspecs.containers import Header
from ecash_spec.subspecs.pow import ProofOfWorkCheck, bits_to_target, hash_to_int
from ecash_spec.types import Uint32
from tests.ecash_spec.helpers import GENESIS_RAW, REGTEST_BITS, make_header, mine

REGTEST_LIMIT = bits_to_target(REGTEST_BITS)


def test_hash_is_little_endian_integer() -> None:
    """The last internal byte is the most significant."""
    assert hash_to_int(b"\x01" + b"\x00" * 31) == 1
    assert hash_to_int(b"\x00" * 31 + b"\x01") == 1 << 248


class TestProofOfWorkCheck:
    """Header hash against declared target."""

    def test_mainnet_genesis_passes(self) -> None:
        """The genesis block meets the mainnet limit."""
        genesis = Header.deserialize(GENESIS_RAW, 0)
        ProofOfWorkCheck(MAINNET_CONFIG.max_target).validate(genesis)

    def test_mined_header_passes(self) -> None:
        """A header mined to its own bits is accepted."""
        ProofOfWorkCheck(REGTEST_LIMIT).validate(mine(make_header(height=1)))

    def test_hash_above_target_rejected(self) -> None:
        """A target of 1 is out of reach of any real hash."""
        header = make_header(height=3, bits=0x03000001)

        with pytest.raises(InvalidProofOfWorkError, match="does not meet its target") as exc:
            ProofOfWorkCheck(REGTEST_LIMIT).validate(header)
        assert exc.value.height == 3

    def test_target_above_limit_rejected(self) -> None:
        """Declaring an easier target than the network allows fails."""
        genesis = Header.deserialize(GENESIS_RAW, 0)

        with pytest.raises(InvalidProofOfWorkError, match="above the network limit"):
            ProofOfWorkCheck(bits_to_target(0x1C00FFFF)).validate(genesis)

    @pytest.mark.parametrize("bits", [0x00000000, 0x04923456, 0xFF123456])
    def test_malformed_bits_rejected(self, bits: int) -> None:
        """Zero, negative and overflowing targets are refused before hashing."""
        header = make_header(height=1).copy(bits=Uint32(bits))

        with pytest.raises(InvalidProofOfWorkError, match="malformed bits"):
            ProofOfWorkCheck(REGTEST_LIMIT).validate(header)
