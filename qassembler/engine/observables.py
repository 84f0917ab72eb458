"""Read-only statistics of registers: observables and transition amplitudes.

Nothing here writes to a register. Each function reads the backing state
under the register lock and works on the result of a pure kernel.
"""

from __future__ import annotations

from typing import Tuple, Union

import torch

from qassembler.backend import observable_moments, overlap
from qassembler.diagnostics import is_hermitian
from qassembler.errors import ArityMismatch, NonHermitianObservable
from qassembler.logging import get_logger
from qassembler.operators import Operator
from qassembler.registers import Register, Target, resolve_target

logger = get_logger(__name__)

Observable = Union[Operator, torch.Tensor, list]


def _observable_matrix(observable: Observable, atol: float) -> Tuple[str, torch.Tensor]:
    if isinstance(observable, Operator):
        name, matrix = observable.name, observable.as_tensor()
    else:
        name, matrix = "observable", torch.as_tensor(observable, dtype=torch.complex128)
    if not is_hermitian(matrix, atol=atol):
        raise NonHermitianObservable(
            f"{name!r} is not a Hermitian square matrix within {atol}, "
            f"got shape {tuple(matrix.shape)}"
        )
    return name, matrix


def _moments(observable: Observable, target: Target, atol: float) -> Tuple[float, float]:
    name, matrix = _observable_matrix(observable, atol)
    register, _ = resolve_target(target)
    with register.lock:
        register, qubits = resolve_target(target)
        if matrix.shape[0] != 2 ** len(qubits):
            raise ArityMismatch(
                f"{name} has dimension {matrix.shape[0]} but {target.name!r} "
                f"has {len(qubits)} qubit(s)"
            )
        return observable_moments(register.state, matrix, qubits)


def expectation(observable: Observable, target: Target, atol: float = 1e-8) -> float:
    """
    Expectation value ⟨ψ|O|ψ⟩ of a Hermitian observable on ``target``.

    The observable acts on the target's qubits in order, like APPLY, but
    the register is left untouched.

    Args:
        observable: Operator or Hermitian matrix of shape (2**k, 2**k).
        target: Register or view of exactly k qubits.
        atol: Tolerance of the Hermitian check.

    Raises:
        NonHermitianObservable: If the matrix is not Hermitian.
        ArityMismatch: If the dimension does not match the target.
        DanglingView: If ``target`` is a dangling view.
    """
    mean, _ = _moments(observable, target, atol)
    return mean


def variance(observable: Observable, target: Target, atol: float = 1e-8) -> float:
    """
    Variance ⟨O²⟩ - ⟨O⟩² of a Hermitian observable on ``target``.

    Arguments and errors are those of :func:`expectation`.
    """
    mean, second = _moments(observable, target, atol)
    return max(second - mean * mean, 0.0)


def _whole_register(target: Target) -> Register:
    register, qubits = resolve_target(target)
    if qubits != register.qubits:
        raise ValueError(
            f"transition amplitudes need whole registers in order, "
            f"got view {target.name!r} of {register.name!r}"
        )
    return register


def transition_amplitude(source: Target, dest: Target) -> complex:
    """
    Amplitude ⟨dest|source⟩ of finding ``source``'s state in ``dest``'s.

    Both registers are read through snapshots, one lock at a time. A view
    is accepted only when it spans its register in slot order.

    Raises:
        ValueError: If the widths differ or a view is partial.
        DanglingView: If either target is a dangling view.
    """
    source_state = _whole_register(source).amplitudes
    dest_state = _whole_register(dest).amplitudes
    amplitude = overlap(dest_state, source_state)
    logger.debug("<%s|%s> = %s", dest.name, source.name, amplitude)
    return amplitude
