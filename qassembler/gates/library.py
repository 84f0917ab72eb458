"""Primitive gate names understood by the assembler (``G_H``, ``G_R_4``, ...)."""

from __future__ import annotations

import re
from functools import lru_cache, partial
from typing import Callable, Dict, Tuple

import torch

from qassembler.errors import UnknownOperator
from qassembler.operators import Operator

from . import standard as stdgates

PRIMITIVE_PREFIX = "G_"

_FIXED: Dict[str, Callable[[], torch.Tensor]] = {
    "G_I": stdgates.I,
    "G_H": stdgates.H,
    "G_X": stdgates.X,
    "G_Y": stdgates.Y,
    "G_Z": stdgates.Z,
    "G_CNOT": stdgates.CNOT,
}

_IDENTITY_RE = re.compile(r"^G_I_(\d+)$")
_PHASE_RE = re.compile(r"^G_R_(\d+)$")
_QFT_RE = re.compile(r"^G_QFT_(\d+)$")
_QFT_INVERSE_RE = re.compile(r"^G_QFTI_(\d+)$")
_ORACLE_RE = re.compile(r"^G_Uf_(\d+)_(\d+)(?:_(\d+))?$")

# Dense matrices beyond this many qubits are refused outright.
MAX_PRIMITIVE_QUBITS = 12
# Only gates up to this width are kept after their first build.
CACHED_MAX_QUBITS = 6

GateBuilder = Callable[[], torch.Tensor]


def is_primitive_name(name: str) -> bool:
    """True for names in the reserved primitive namespace."""
    return name.startswith(PRIMITIVE_PREFIX)


def _checked_width(name: str, n_qubits: int) -> int:
    if n_qubits < 1 or n_qubits > MAX_PRIMITIVE_QUBITS:
        raise UnknownOperator(
            f"{name}: width must be between 1 and {MAX_PRIMITIVE_QUBITS} qubits, got {n_qubits}"
        )
    return n_qubits


def _parse(name: str) -> Tuple[int, GateBuilder]:
    """Validate ``name`` and return its width with a builder for its matrix."""
    if name in _FIXED:
        return (2 if name == "G_CNOT" else 1), _FIXED[name]

    match = _IDENTITY_RE.match(name)
    if match:
        dim = int(match.group(1))
        if dim < 2 or dim & (dim - 1):
            raise UnknownOperator(
                f"{name}: identity dimension must be a power of two >= 2"
            )
        width = _checked_width(name, dim.bit_length() - 1)
        return width, partial(stdgates.identity, width)

    match = _PHASE_RE.match(name)
    if match:
        k = int(match.group(1))
        if k < 1:
            raise UnknownOperator(f"{name}: phase divisor must be >= 1")
        return 1, partial(stdgates.R, k)

    match = _QFT_RE.match(name)
    if match:
        width = _checked_width(name, int(match.group(1)))
        return width, partial(stdgates.qft, width)

    match = _QFT_INVERSE_RE.match(name)
    if match:
        width = _checked_width(name, int(match.group(1)))
        return width, partial(stdgates.qft_inverse, width)

    match = _ORACLE_RE.match(name)
    if match:
        base, modulus = int(match.group(1)), int(match.group(2))
        if modulus < 2 or base < 1:
            raise UnknownOperator(f"{name}: needs base >= 1 and modulus >= 2")
        work = stdgates.work_register_width(modulus)
        counting = int(match.group(3)) if match.group(3) else 2 * work
        if counting < 1:
            raise UnknownOperator(f"{name}: needs at least one counting qubit")
        width = _checked_width(name, counting + work)
        return width, partial(stdgates.modular_exponentiation, base, modulus, counting)

    raise UnknownOperator(f"Unknown primitive gate {name!r}")


@lru_cache(maxsize=128)
def _cached_gate(name: str) -> Operator:
    _, build = _parse(name)
    return Operator._trusted(name, build())


def resolve_gate(name: str) -> Operator:
    """
    Return the primitive operator bound to ``name``.

    Fixed primitives: ``G_I``, ``G_H``, ``G_X``, ``G_Y``, ``G_Z``,
    ``G_CNOT``. Parameterized families: ``G_I_<dim>``, ``G_R_<k>``,
    ``G_QFT_<n>``, ``G_QFTI_<n>`` and ``G_Uf_<a>_<N>[_<m>]``.

    Gates of at most ``CACHED_MAX_QUBITS`` qubits are built once and
    shared; wider ones are rebuilt on every call.

    Raises:
        UnknownOperator: If the name is not a primitive or its parameters
            are invalid.
    """
    if not is_primitive_name(name):
        raise UnknownOperator(f"Unknown primitive gate {name!r}")
    width, build = _parse(name)
    if width <= CACHED_MAX_QUBITS:
        return _cached_gate(name)
    return Operator._trusted(name, build())
