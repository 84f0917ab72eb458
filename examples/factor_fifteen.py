"""Shor example: factor 15 with period finding on the assembler.

The counting register is four qubits wide, enough to resolve every period
of a base modulo 15 exactly.
"""

from __future__ import annotations

import logging

import torch

from qassembler.algorithms import shor
from qassembler.logging import configure_logging


def main() -> None:
    """Factor 15 and report each attempt."""
    configure_logging(level=logging.INFO)
    generator = torch.Generator().manual_seed(0)

    factors = shor(15, counting_qubits=4, shots=16, generator=generator)
    if factors is None:
        print("No factors found.")
    else:
        print(f"15 = {factors[0]} x {factors[1]}")


if __name__ == "__main__":
    main()
