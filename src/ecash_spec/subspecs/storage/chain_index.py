"""
Main-chain bookkeeping shared by the header stores.

Both stores index the branch ending at the tip by height. That turns deep
ancestor lookups on the main chain into a single index read, which matters
for anchored fork gates: they look up a block hundreds of thousands of
heights below the candidate.
"""

from __future__ import annotations

from collections.abc import Callable

from ecash_spec.subspecs.containers import Header
from ecash_spec.types import Bytes32

HeaderGetter = Callable[[Bytes32], Header | None]
"""Look up a stored header by hash."""

MainHashGetter = Callable[[int], Bytes32 | None]
"""Look up the main-chain hash at a height."""


def find_ancestor(
    header: Header,
    offset: int,
    get_header: HeaderGetter,
    main_hash_at: MainHashGetter,
) -> Header | None:
    """
    Walk `offset` blocks back from `header`.

    Follows parent links until the walk joins the main chain, then jumps
    straight to the target height through the index.
    """
    if offset < 0:
        raise ValueError(f"Ancestor offset must be non-negative, got {offset}")
    target_height = int(header.height) - offset
    if target_height < 0:
        return None

    cursor: Header | None = header
    while cursor is not None and int(cursor.height) > target_height:
        if main_hash_at(int(cursor.height)) == cursor.hash:
            target_hash = main_hash_at(target_height)
            return None if target_hash is None else get_header(target_hash)
        cursor = get_header(cursor.previous_hash)
    return cursor


def branch_to_main(
    new_tip: Header,
    get_header: HeaderGetter,
    main_hash_at: MainHashGetter,
) -> list[Header]:
    """
    Headers of the branch ending at `new_tip` that are not yet on the main chain.

    Returned highest first. The walk stops at the first header already
    indexed, or where stored history ends.
    """
    branch: list[Header] = []
    cursor: Header | None = new_tip
    while cursor is not None and main_hash_at(int(cursor.height)) != cursor.hash:
        branch.append(cursor)
        if int(cursor.height) == 0:
            break
        cursor = get_header(cursor.previous_hash)
    return branch
