"""Shared fixtures for storage tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from ecash_spec.subspecs.storage import Database, InMemoryHeaderStore, SQLiteDatabase


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest) -> Generator[Database, None, None]:
    """Each header store implementation, empty."""
    database: Database = (
        InMemoryHeaderStore() if request.param == "memory" else SQLiteDatabase(":memory:")
    )
    yield database
    database.close()
