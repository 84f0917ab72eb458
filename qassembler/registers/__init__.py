"""Register/state store and sub-register addressing."""

from .addressing import Target, absolute_qubits, contiguous_indices, resolve_target
from .register import Register, SubRegisterView
from .store import RegisterStore, initial_amplitudes, parse_bits, parse_count

__all__ = [
    "Register",
    "SubRegisterView",
    "RegisterStore",
    "Target",
    "resolve_target",
    "contiguous_indices",
    "absolute_qubits",
    "parse_bits",
    "parse_count",
    "initial_amplitudes",
]
