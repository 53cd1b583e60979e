"""Test helpers for eCash header spec unit tests."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TypeVar

from .builders import (
    GENESIS_RAW,
    GENESIS_TIME,
    REGTEST_BITS,
    SPACING,
    build_chain,
    checkpoint_of,
    extend_valid_chain,
    make_header,
    mine,
    mined_genesis,
    regtest_config,
    store_with,
)
from .mocks import FlakyCursorStore, RecordingSleep, ScriptedProvider

_T = TypeVar("_T")


def run_async(coro: Coroutine[object, object, _T]) -> _T:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


__all__ = [
    # Builders
    "build_chain",
    "checkpoint_of",
    "extend_valid_chain",
    "make_header",
    "mine",
    "mined_genesis",
    "regtest_config",
    "store_with",
    # Mocks
    "FlakyCursorStore",
    "RecordingSleep",
    "ScriptedProvider",
    # Constants
    "GENESIS_RAW",
    "GENESIS_TIME",
    "REGTEST_BITS",
    "SPACING",
    # Async utilities
    "run_async",
]
