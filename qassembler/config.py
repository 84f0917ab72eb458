"""Configuration for an assembler context."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_DEVICE_ENV_VAR = "QASSEMBLER_DEVICE"
_SEED_ENV_VAR = "QASSEMBLER_SEED"


@dataclass(frozen=True)
class AssemblerConfig:
    """
    Settings shared by every operation of one :class:`AssemblerContext`.

    Args:
        device: Device name passed to :func:`qassembler.core.device`.
        seed: Seed of the context's measurement generator. None draws a
            fresh nondeterministic seed.
        norm_atol: Tolerance of the unit-norm invariant checks.
        unitary_atol: Tolerance used when validating user-supplied matrices.
    """

    device: str = "sv_cpu"
    seed: Optional[int] = None
    norm_atol: float = 1e-8
    unitary_atol: float = 1e-8

    def __post_init__(self) -> None:
        if self.norm_atol <= 0.0 or self.unitary_atol <= 0.0:
            raise ValueError("Tolerances must be positive.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AssemblerConfig":
        """
        Build a config from ``QASSEMBLER_DEVICE`` and ``QASSEMBLER_SEED``.

        Unset variables keep their defaults.

        Raises:
            ValueError: If ``QASSEMBLER_SEED`` is not an integer.
        """
        if environ is None:
            environ = os.environ

        device = environ.get(_DEVICE_ENV_VAR, cls.device)
        raw_seed = environ.get(_SEED_ENV_VAR)
        seed: Optional[int] = None
        if raw_seed is not None and raw_seed.strip():
            try:
                seed = int(raw_seed)
            except ValueError:
                raise ValueError(
                    f"{_SEED_ENV_VAR} must be an integer, got {raw_seed!r}"
                ) from None

        return cls(device=device, seed=seed)
