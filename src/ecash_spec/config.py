"""
Global configuration for eCash header validation and sync.

This module contains environment-specific settings that apply across all subspecs.
"""

import os

_SUPPORTED_ECASH_ENVS: list[str] = ["prod", "test"]

ECASH_ENV = os.environ.get("ECASH_ENV", "prod").lower()
"""The environment flag ('prod' or 'test'). Defaults to 'prod'."""

if ECASH_ENV not in _SUPPORTED_ECASH_ENVS:
    raise ValueError(
        f"Invalid ECASH_ENV environment variable: '{ECASH_ENV}'. "
        f"Supported values: {_SUPPORTED_ECASH_ENVS}"
    )
