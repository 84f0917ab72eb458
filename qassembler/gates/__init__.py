"""Gate matrices and primitive gate resolution."""

from .library import (
    CACHED_MAX_QUBITS,
    MAX_PRIMITIVE_QUBITS,
    is_primitive_name,
    resolve_gate,
)
from .standard import (
    CNOT,
    H,
    I,
    R,
    X,
    Y,
    Z,
    identity,
    modular_exponentiation,
    qft,
    qft_inverse,
    work_register_width,
)

__all__ = [
    "I",
    "X",
    "Y",
    "Z",
    "H",
    "R",
    "CNOT",
    "identity",
    "qft",
    "qft_inverse",
    "modular_exponentiation",
    "work_register_width",
    "resolve_gate",
    "is_primitive_name",
    "MAX_PRIMITIVE_QUBITS",
    "CACHED_MAX_QUBITS",
]
