"""Behavior shared by every header store implementation."""

from __future__ import annotations

from ecash_spec.subspecs.containers import ProviderId, SyncCursor, SyncMode
from ecash_spec.subspecs.storage import Database
from ecash_spec.types import Bytes32, Uint64
from tests.ecash_spec.helpers import build_chain


def _cursor(height: int) -> SyncCursor:
    return SyncCursor(
        strategy=ProviderId.PRIMARY,
        last_confirmed_height=Uint64(height),
        last_confirmed_hash=Bytes32(bytes([height % 256]) * 32),
    )


class TestHeaderOperations:
    """Storing and retrieving headers."""

    def test_put_and_get(self, store: Database) -> None:
        """A stored header comes back by hash with its height."""
        [header] = build_chain(1)
        store.put_header(header)

        retrieved = store.get_header(header.hash)
        assert retrieved is not None
        assert retrieved.hash == header.hash
        assert retrieved.height == header.height
        assert bytes(retrieved.serialize()) == bytes(header.serialize())

    def test_unknown_hash(self, store: Database) -> None:
        """Unknown hashes return None."""
        assert store.get_header(Bytes32(b"\x01" * 32)) is None

    def test_empty_store_has_no_tip(self, store: Database) -> None:
        """Nothing stored, nothing at the tip."""
        assert store.get_tip() is None

    def test_tip_follows_highest(self, store: Database) -> None:
        """The tip is the highest stored header."""
        chain = build_chain(10)
        store.put_headers(chain)

        tip = store.get_tip()
        assert tip is not None
        assert tip.hash == chain[-1].hash

    def test_lower_header_keeps_tip(self, store: Database) -> None:
        """A side-branch header below the tip does not move it."""
        chain = build_chain(10)
        store.put_headers(chain)
        [side] = build_chain(1, start_height=5, parent_hash=chain[4].hash, tag=1)

        store.put_header(side)

        tip = store.get_tip()
        assert tip is not None and tip.hash == chain[-1].hash
        stored = store.get_header(side.hash)
        assert stored is not None and stored.height == side.height


class TestAncestors:
    """Ancestor lookups on the main chain and on side branches."""

    def test_main_chain(self, store: Database) -> None:
        """Offsets walk back along the main chain."""
        chain = build_chain(50)
        store.put_headers(chain)

        ancestor = store.get_ancestor(chain[49], 40)
        assert ancestor is not None and ancestor.hash == chain[9].hash
        itself = store.get_ancestor(chain[49], 0)
        assert itself is not None and itself.hash == chain[49].hash

    def test_beyond_genesis(self, store: Database) -> None:
        """Walking past height 0 finds nothing."""
        chain = build_chain(5)
        store.put_headers(chain)
        assert store.get_ancestor(chain[4], 5) is None

    def test_beyond_stored_history(self, store: Database) -> None:
        """History starting at a checkpoint ends there."""
        chain = build_chain(20, start_height=100)
        store.put_headers(chain[10:])
        assert store.get_ancestor(chain[-1], 15) is None

    def test_side_branch(self, store: Database) -> None:
        """A side branch walks its own headers until it joins the main chain."""
        chain = build_chain(20)
        store.put_headers(chain)
        branch = build_chain(5, start_height=11, parent_hash=chain[10].hash, tag=7)
        store.put_headers(branch)

        # Branch tip at 15 is below the main tip at 19: it stays a side branch.
        found = store.get_ancestor(branch[-1], 2)
        assert found is not None and found.hash == branch[2].hash
        joined = store.get_ancestor(branch[-1], 10)
        assert joined is not None and joined.hash == chain[5].hash


class TestReorganization:
    """The main chain index follows the highest branch."""

    def test_longer_branch_takes_over(self, store: Database) -> None:
        """A branch that overtakes the tip rewrites the index down to the fork."""
        chain = build_chain(10)
        store.put_headers(chain)
        branch = build_chain(8, start_height=5, parent_hash=chain[4].hash, tag=3)

        store.put_headers(branch)

        tip = store.get_tip()
        assert tip is not None and tip.hash == branch[-1].hash
        # Height 6 now resolves to the branch, height 4 is shared.
        six = store.get_ancestor(branch[-1], int(branch[-1].height) - 6)
        assert six is not None and six.hash == branch[1].hash
        four = store.get_ancestor(branch[-1], int(branch[-1].height) - 4)
        assert four is not None and four.hash == chain[4].hash


class TestCursorOperations:
    """Sync cursor persistence."""

    def test_missing(self, store: Database) -> None:
        """Wallets that never synced have no cursor."""
        assert store.get_sync_cursor("mainnet", "alice", SyncMode.API) is None

    def test_put_and_get(self, store: Database) -> None:
        """A stored cursor is returned unchanged."""
        cursor = _cursor(700)
        store.put_sync_cursor("mainnet", "alice", SyncMode.API, cursor)

        assert store.get_sync_cursor("mainnet", "alice", SyncMode.API) == cursor

    def test_overwrite(self, store: Database) -> None:
        """Later writes replace earlier ones."""
        store.put_sync_cursor("mainnet", "alice", SyncMode.API, _cursor(1))
        store.put_sync_cursor("mainnet", "alice", SyncMode.API, _cursor(2))

        restored = store.get_sync_cursor("mainnet", "alice", SyncMode.API)
        assert restored is not None and restored.last_confirmed_height == Uint64(2)

    def test_keys_are_isolated(self, store: Database) -> None:
        """Network, wallet and mode each separate cursors."""
        store.put_sync_cursor("mainnet", "alice", SyncMode.API, _cursor(1))

        assert store.get_sync_cursor("mainnet", "alice", SyncMode.FULL) is None
        assert store.get_sync_cursor("mainnet", "bob", SyncMode.API) is None
        assert store.get_sync_cursor("testnet", "alice", SyncMode.API) is None

    def test_delete(self, store: Database) -> None:
        """Deleting forgets the cursor; deleting twice is harmless."""
        store.put_sync_cursor("mainnet", "alice", SyncMode.API, _cursor(1))

        store.delete_sync_cursor("mainnet", "alice", SyncMode.API)
        store.delete_sync_cursor("mainnet", "alice", SyncMode.API)

        assert store.get_sync_cursor("mainnet", "alice", SyncMode.API) is None
