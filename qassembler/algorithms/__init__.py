"""Algorithms written against the assembler context."""

from .shor import (
    continued_fraction_denominator,
    find_factors,
    find_period,
    period_from_samples,
    shor,
)

__all__ = [
    "continued_fraction_denominator",
    "period_from_samples",
    "find_factors",
    "find_period",
    "shor",
]
