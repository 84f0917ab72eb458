"""MEASURE: Born-rule sampling followed by collapse of the backing register."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import torch

from qassembler.backend import collapse, index_to_bits, marginal_probabilities
from qassembler.diagnostics import assert_normalized, is_debug_enabled
from qassembler.errors import ZeroProbabilityCollapse
from qassembler.logging import get_logger
from qassembler.registers import Target, resolve_target

logger = get_logger(__name__)


@dataclass(frozen=True)
class MeasurementResult:
    """
    Outcome of one MEASURE instruction.

    Attributes
    ----------
    name:
        Name of the classical result register.
    source:
        Name of the measured register or view.
    bits:
        Drawn bits, MSB-first in the target's qubit order.
    probability:
        Born probability of the drawn outcome before collapse.
    state:
        Snapshot of the backing register right after collapse.
    """

    name: str
    source: str
    bits: Tuple[int, ...]
    probability: float
    state: torch.Tensor = field(repr=False, compare=False)

    @property
    def bitstring(self) -> str:
        """The bits rendered as a string, e.g. ``"01"``."""
        return "".join(str(bit) for bit in self.bits)

    @property
    def outcome(self) -> int:
        """The bits read as an MSB-first integer."""
        value = 0
        for bit in self.bits:
            value = (value << 1) | bit
        return value


def measurement_probabilities(target: Target) -> torch.Tensor:
    """
    Born marginal of ``target`` without collapsing anything.

    Entry j is the probability that measuring ``target`` yields the bit
    pattern of j (MSB-first).

    Raises:
        DanglingView: If ``target`` is a dangling view.
    """
    register, _ = resolve_target(target)
    with register.lock:
        register, qubits = resolve_target(target)
        return marginal_probabilities(register.state, qubits)


def measure(
    target: Target,
    name: str,
    generator: Optional[torch.Generator] = None,
    norm_atol: float = 1e-8,
) -> MeasurementResult:
    """
    Measure ``target`` in the computational basis.

    The outcome is drawn from the Born marginal of the target's qubits; the
    backing register is then projected onto it and renormalized. The draw
    and the collapse happen under the register's lock as one step.

    Args:
        target: Register or view to measure.
        name: Name recorded for the classical result.
        generator: CPU torch.Generator for the draw; None uses torch's
            global generator.
        norm_atol: Norm tolerance checked in debug mode.

    Raises:
        DanglingView: If ``target`` is a dangling view.
        ZeroProbabilityCollapse: If the distribution has no mass or the
            drawn outcome has probability zero.
    """
    register, _ = resolve_target(target)

    with register.lock:
        register, qubits = resolve_target(target)
        state = register.state

        probs = marginal_probabilities(state, qubits).to(dtype=torch.float64).cpu()
        total = float(probs.sum())
        if not total > 0.0:
            raise ZeroProbabilityCollapse(
                f"MEASURE {target.name}: probability distribution has no mass"
            )

        outcome = int(
            torch.multinomial(probs / total, num_samples=1, generator=generator).item()
        )
        probability = float(probs[outcome])
        if probability == 0.0:
            raise ZeroProbabilityCollapse(
                f"MEASURE {target.name}: drew outcome {outcome} with zero probability"
            )

        new_state = collapse(state, qubits, outcome, probability)
        if is_debug_enabled():
            assert_normalized(new_state, atol=norm_atol, label=register.name)
        register.commit(new_state)
        snapshot = new_state.clone()

    bits = index_to_bits(outcome, len(qubits))
    logger.debug(
        "MEASURE %s -> %s = %s (p=%.6f)",
        target.name,
        name,
        "".join(map(str, bits)),
        probability,
    )
    return MeasurementResult(
        name=name,
        source=target.name,
        bits=bits,
        probability=probability,
        state=snapshot,
    )
