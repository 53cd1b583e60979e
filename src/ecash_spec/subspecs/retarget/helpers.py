"""
Ancestor and median-time helpers shared by the retarget algorithms.

Every retarget algorithm computes the bits of a candidate header from its
ancestors. `ChainContext` is the read-only view that serves those lookups for
one validation call. It never mutates the chain and holds no state between
calls, so one header store can back any number of concurrent validations.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from typing_extensions import Final

from ecash_spec.exceptions import MissingAncestorError
from ecash_spec.subspecs.containers import Header
from ecash_spec.types import Bytes32

MEDIAN_TIME_SPAN: Final = 11
"""Number of headers (the header itself and its ancestors) in a median-time-past window."""


class HeaderLookup(Protocol):
    """
    Read access to stored headers.

    Satisfied structurally by every header store in `ecash_spec.subspecs.storage`.
    """

    def get_header(self, block_hash: Bytes32) -> Header | None:
        """Return the header with `block_hash`, or None if unknown."""
        ...

    def get_ancestor(self, header: Header, offset: int) -> Header | None:
        """
        Return the ancestor `offset` blocks behind `header`.

        Offset 0 is `header` itself. Returns None when history does not reach back far enough.
        """
        ...


def median_time_past(header: Header, headers: HeaderLookup) -> int:
    """
    Median timestamp of `header` and its ten predecessors.

    Near genesis fewer headers exist; the median is then taken over what exists.
    """
    timestamps: list[int] = []
    cursor: Header | None = header
    while cursor is not None and len(timestamps) < MEDIAN_TIME_SPAN:
        timestamps.append(int(cursor.timestamp))
        if int(cursor.height) == 0:
            break
        cursor = headers.get_header(cursor.previous_hash)
    timestamps.sort()
    return timestamps[len(timestamps) // 2]


@dataclass(frozen=True, slots=True)
class ChainContext:
    """
    Read-only view over a candidate header and its ancestor chain.

    Lifetime is one validation call. Offsets are relative to the candidate:
    offset 1 is the parent, offset 2 the grandparent, and so on.
    """

    candidate: Header
    """Header being validated. Not yet part of the store."""

    headers: HeaderLookup
    """Store holding the candidate's ancestors."""

    floor_height: int = 0
    """
    Lowest height of locally held history.

    Sync that starts from a checkpoint trusts everything below it without
    storing it. Lookups below the floor are answered by that trust.
    """

    @property
    def height(self) -> int:
        """Height of the candidate header."""
        return int(self.candidate.height)

    def ancestor(self, offset: int) -> Header | None:
        """Return the ancestor `offset` blocks behind the candidate, or None."""
        if offset < 0:
            raise ValueError(f"Ancestor offset must be non-negative, got {offset}")
        if offset == 0:
            return self.candidate
        if offset > self.height:
            return None
        parent = self.headers.get_header(self.candidate.previous_hash)
        if parent is None:
            return None
        return self.headers.get_ancestor(parent, offset - 1)

    def require_ancestor(self, offset: int) -> Header:
        """
        Return the ancestor `offset` blocks behind the candidate.

        Raises:
            MissingAncestorError: If the chain does not reach that far back.
        """
        found = self.ancestor(offset)
        if found is None:
            raise MissingAncestorError(
                f"Header at height {self.height} needs ancestor at height "
                f"{self.height - offset}, which is not available",
                height=self.height,
            )
        return found

    def previous(self) -> Header:
        """Return the parent of the candidate."""
        return self.require_ancestor(1)

    def ancestor_at_height(self, height: int) -> Header | None:
        """Return the candidate's ancestor at an absolute height, or None."""
        if height > self.height:
            return None
        return self.ancestor(self.height - height)

    def is_below_floor(self, height: int) -> bool:
        """Whether `height` lies under the locally held history."""
        return height < self.floor_height

    def ancestor_where(
        self,
        predicate: Callable[[Header], bool],
        *,
        start_offset: int = 1,
        max_depth: int | None = None,
    ) -> Header | None:
        """
        Walk back from `start_offset` and return the first ancestor matching `predicate`.

        Args:
            predicate: Condition an ancestor must satisfy.
            start_offset: Offset of the first ancestor examined.
            max_depth: Maximum number of ancestors examined. None walks to genesis.

        Returns:
            The closest matching ancestor, or None if the walk ends first.
        """
        cursor = self.ancestor(start_offset)
        examined = 0
        while cursor is not None:
            if max_depth is not None and examined >= max_depth:
                return None
            if predicate(cursor):
                return cursor
            examined += 1
            if int(cursor.height) == 0:
                return None
            cursor = self.headers.get_header(cursor.previous_hash)
        return None

    def median_time_past(self, header: Header) -> int:
        """Median time past of `header`, resolved through this context's store."""
        return median_time_past(header, self.headers)
