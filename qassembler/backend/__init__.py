"""Statevector kernels."""

from .statevector import (
    apply_operator,
    basis_state,
    bits_to_index,
    collapse,
    index_to_bits,
    marginal_probabilities,
    measure_probs,
    n_qubits_of,
    observable_moments,
    overlap,
    zero_state,
)

__all__ = [
    "bits_to_index",
    "index_to_bits",
    "n_qubits_of",
    "basis_state",
    "zero_state",
    "apply_operator",
    "observable_moments",
    "overlap",
    "measure_probs",
    "marginal_probabilities",
    "collapse",
]
