"""Shor factoring with the period finding run on the assembler core.

The quantum part is an ordinary instruction sequence::

    INITIALIZE R m+w
    SELECT X R 0 m
    APPLY H^m X
    APPLY G_Uf_a_N_m R
    APPLY G_QFTI_m X
    MEASURE X RES

repeated once per shot. Everything else (continued fractions, gcd
extraction of the factors) is classical.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Iterable, List, Optional, Tuple

import torch

from qassembler.context import AssemblerContext
from qassembler.gates import MAX_PRIMITIVE_QUBITS, work_register_width
from qassembler.logging import get_logger

logger = get_logger(__name__)


def continued_fraction_denominator(measured: int, counting_qubits: int, limit: int) -> int:
    """Denominator of the best approximation of measured / 2**m with denominator <= limit."""
    return Fraction(measured, 2**counting_qubits).limit_denominator(limit).denominator


def _smallest_period(base: int, modulus: int, multiple: int) -> Optional[int]:
    for r in range(1, multiple + 1):
        if multiple % r == 0 and pow(base, r, modulus) == 1:
            return r
    return None


def period_from_samples(
    samples: Iterable[int],
    counting_qubits: int,
    base: int,
    modulus: int,
) -> Optional[int]:
    """
    Recover the order of ``base`` mod ``modulus`` from measured counting values.

    Each non-zero sample contributes the denominator of its continued
    fraction expansion (samples that would push the lcm past the modulus
    are skipped); their least common multiple is reduced to the
    smallest r with base^r ≡ 1 (mod modulus). Returns None when the samples
    do not pin the period down.
    """
    candidate = 1
    for measured in samples:
        if measured == 0:
            continue
        denominator = continued_fraction_denominator(measured, counting_qubits, modulus)
        combined = candidate * denominator // math.gcd(candidate, denominator)
        # The order is below the modulus; a larger lcm means a bad approximation.
        if combined >= modulus:
            continue
        candidate = combined
        if pow(base, candidate, modulus) == 1:
            return _smallest_period(base, modulus, candidate)
    return None


def find_factors(period: int, base: int, modulus: int) -> Optional[Tuple[int, int]]:
    """
    Non-trivial factors of ``modulus`` from an even period of ``base``.

    Returns None for an odd period, when base^(r/2) ≡ -1, or when both
    gcds are trivial.
    """
    if period % 2:
        return None
    half = pow(base, period // 2, modulus)
    if half == modulus - 1:
        return None
    for candidate in (half + 1, half - 1):
        g = math.gcd(candidate, modulus)
        if 1 < g < modulus:
            return tuple(sorted((g, modulus // g)))
    return None


def find_period(
    base: int,
    modulus: int,
    counting_qubits: Optional[int] = None,
    shots: int = 8,
    generator: Optional[torch.Generator] = None,
) -> Optional[int]:
    """
    Quantum order finding of ``base`` modulo ``modulus``.

    Args:
        base: Integer coprime to ``modulus``.
        modulus: Number to factor.
        counting_qubits: Width m of the counting register; defaults to the
            work register width.
        shots: Number of independent circuit runs.
        generator: Generator for the measurements.

    Returns:
        The period, or None if the shots did not reveal it.

    Raises:
        ValueError: If the circuit would exceed the primitive gate width or
            ``base`` shares a factor with ``modulus``.
    """
    if math.gcd(base, modulus) != 1:
        raise ValueError(f"base {base} is not coprime to {modulus}")
    if shots < 1:
        raise ValueError("shots must be a positive integer.")

    work = work_register_width(modulus)
    m = counting_qubits or work
    if m + work > MAX_PRIMITIVE_QUBITS:
        raise ValueError(
            f"{m} counting + {work} work qubits exceed {MAX_PRIMITIVE_QUBITS} qubits"
        )

    samples: List[int] = []
    with AssemblerContext(generator=generator) as ctx:
        hadamards = "G_H"
        for width in range(2, m + 1):
            hadamards = ctx.tensor(f"H{width}", hadamards, "G_H").name
        oracle = ctx.operator(f"G_Uf_{base}_{modulus}_{m}")
        qft_inverse = ctx.operator(f"G_QFTI_{m}")

        ctx.initialize("R", m + work)
        for shot in range(shots):
            if shot:
                ctx.reinitialize("R", m + work)
                ctx.destroy("X")
            ctx.select("X", "R", 0, m)
            ctx.apply(hadamards, "X")
            ctx.apply(oracle, "R")
            ctx.apply(qft_inverse, "X")
            samples.append(ctx.measure("X", f"RES{shot}").outcome)

    period = period_from_samples(samples, m, base, modulus)
    logger.debug("order of %d mod %d from %s -> %s", base, modulus, samples, period)
    return period


def shor(
    modulus: int,
    attempts: int = 10,
    counting_qubits: Optional[int] = None,
    shots: int = 8,
    generator: Optional[torch.Generator] = None,
) -> Optional[Tuple[int, int]]:
    """
    Factor ``modulus`` into a sorted pair of non-trivial factors.

    Even numbers and lucky bases that share a factor are handled
    classically. Otherwise each attempt picks a random base, finds its
    period and tries to extract factors; failed attempts move on to a new
    base. Prime powers are not detected.

    Returns:
        The factor pair, or None if every attempt failed.

    Raises:
        ValueError: If modulus < 4.
    """
    if modulus < 4:
        raise ValueError(f"modulus must be >= 4, got {modulus}")
    if modulus % 2 == 0:
        return (2, modulus // 2)

    if generator is None:
        generator = torch.Generator()
        generator.seed()

    for attempt in range(attempts):
        base = int(torch.randint(2, modulus, (1,), generator=generator).item())
        g = math.gcd(base, modulus)
        if g != 1:
            return tuple(sorted((g, modulus // g)))

        period = find_period(base, modulus, counting_qubits, shots, generator)
        logger.info("attempt %d: base %d, period %s", attempt, base, period)
        if period is None:
            continue
        factors = find_factors(period, base, modulus)
        if factors is not None:
            return factors

    return None
