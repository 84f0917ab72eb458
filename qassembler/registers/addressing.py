"""Resolution of SELECT operands and APPLY/MEASURE targets."""

from __future__ import annotations

from typing import Sequence, Tuple, Union

from qassembler.errors import RangeOutOfBounds, UnknownRegister

from .register import Register, SubRegisterView

Target = Union[Register, SubRegisterView]


def resolve_target(target: Target) -> Tuple[Register, Tuple[int, ...]]:
    """
    Return the backing register and the absolute qubit slots of ``target``.

    Raises:
        DanglingView: If ``target`` is a view whose register moved on.
        UnknownRegister: If ``target`` is a destroyed register.
    """
    if isinstance(target, SubRegisterView):
        target.check()
        return target.register, target.qubits
    if target.destroyed:
        raise UnknownRegister(f"Register {target.name!r} was destroyed")
    return target, target.qubits


def contiguous_indices(n_available: int, start: int, numqbits: int) -> Tuple[int, ...]:
    """
    Relative slots ``start .. start+numqbits-1`` of an n-qubit source.

    Raises:
        RangeOutOfBounds: Unless 0 <= start, numqbits >= 1 and
            start + numqbits <= n_available.
    """
    if start < 0 or numqbits < 1 or start + numqbits > n_available:
        raise RangeOutOfBounds(
            f"SELECT start={start} numqbits={numqbits} does not fit in "
            f"{n_available} qubit(s)"
        )
    return tuple(range(start, start + numqbits))


def absolute_qubits(source: Target, relative: Sequence[int]) -> Tuple[int, ...]:
    """
    Map slots relative to ``source`` onto its backing register.

    Views resolve through their own slot list, so a view of a view addresses
    the ultimate register directly.

    Raises:
        RangeOutOfBounds: On an empty, repeated or out-of-range slot list.
        DanglingView: If ``source`` is a dangling view.
    """
    _, source_qubits = resolve_target(source)
    slots = [int(q) for q in relative]
    if not slots:
        raise RangeOutOfBounds("a selection needs at least one qubit")
    if len(set(slots)) != len(slots):
        raise RangeOutOfBounds(f"selected qubits must be distinct, got {slots}")
    if any(q < 0 or q >= len(source_qubits) for q in slots):
        raise RangeOutOfBounds(
            f"selected qubits {slots} fall outside {len(source_qubits)} qubit(s)"
        )
    return tuple(source_qubits[q] for q in slots)
