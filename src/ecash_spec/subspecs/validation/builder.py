"""
Validator set construction from network parameters.

Turns the declarative fork list of a `NetworkConfig` into concrete retarget
algorithm instances wrapped in fork gates.
"""

from __future__ import annotations

from typing import assert_never

from ecash_spec.exceptions import ConfigurationError
from ecash_spec.subspecs.chain import NetworkConfig, NetworkType, RetargetKind, network_config
from ecash_spec.subspecs.pow import ProofOfWorkCheck
from ecash_spec.subspecs.retarget import (
    AbsolutelyScheduledExponentialRetarget,
    DifficultyAdjustmentAlgorithm,
    EmergencyDifficultyAdjustment,
    LegacyPeriodic,
    RetargetAlgorithm,
)

from .chain import ValidatorChain
from .fork_gate import ForkGate
from .validator_set import ValidatorSet


def build_algorithm(kind: RetargetKind, config: NetworkConfig) -> RetargetAlgorithm:
    """
    Instantiate one retarget algorithm with the parameters of `config`.

    Raises:
        ConfigurationError: If `config` lacks parameters the algorithm needs.
    """
    legacy = LegacyPeriodic(
        retarget_interval=config.retarget_interval,
        target_timespan=config.target_timespan,
        max_target=config.max_target,
    )
    match kind:
        case RetargetKind.LEGACY:
            return legacy
        case RetargetKind.EDA:
            return EmergencyDifficultyAdjustment(
                legacy=legacy,
                max_target_bits=int(config.max_target_bits),
                mtp_threshold=config.eda_mtp_threshold,
            )
        case RetargetKind.DAA:
            return DifficultyAdjustmentAlgorithm(
                target_spacing=config.target_spacing,
                max_target=config.max_target,
                window=config.daa_window,
            )
        case RetargetKind.ASERT:
            anchor = config.asert_anchor
            if anchor is None:
                raise ConfigurationError(f"Network '{config.name}' has no ASERT anchor")
            return AbsolutelyScheduledExponentialRetarget(
                anchor_height=int(anchor.height),
                anchor_bits=int(anchor.bits),
                anchor_parent_timestamp=int(anchor.parent_timestamp),
                target_spacing=config.target_spacing,
                half_life=config.asert_half_life,
                max_target=config.max_target,
            )
        case _:
            assert_never(kind)


def build_validator_chain(config: NetworkConfig) -> ValidatorChain:
    """Build the retarget validator chain for `config`."""
    gates = tuple(
        ForkGate(
            name=fork.name,
            activation_height=int(fork.activation_height),
            algorithm=build_algorithm(fork.algorithm, config),
            anchor_hash=fork.anchor_hash,
        )
        for fork in config.forks
    )
    return ValidatorChain(gates=gates, default=build_algorithm(config.default_algorithm, config))


def build_validator_set(config: NetworkConfig) -> ValidatorSet:
    """Build the full validator set: proof of work first, then retargeting."""
    return ValidatorSet(
        validators=(
            ProofOfWorkCheck(max_target=config.max_target),
            build_validator_chain(config),
        )
    )


def validator_set_for(network: NetworkType) -> ValidatorSet:
    """
    Build the validator set of a named network.

    Raises:
        UnsupportedNetworkError: If the network has no parameters.
    """
    return build_validator_set(network_config(network))
