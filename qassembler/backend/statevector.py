"""Statevector kernels for MSB-first amplitude vectors.

A register of n qubits is a complex vector of length 2**n whose index is
the n-bit basis string read with qubit 0 as the most significant bit.
Every kernel here is pure: it returns a new tensor and leaves its inputs
untouched, so callers can validate and compute before committing.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import torch

from ..core.device import Device, default_device


def bits_to_index(bits: Sequence[int]) -> int:
    """Interpret ``bits`` MSB-first as a basis index."""
    index = 0
    for bit in bits:
        index = (index << 1) | int(bit)
    return index


def index_to_bits(index: int, width: int) -> Tuple[int, ...]:
    """Expand ``index`` into ``width`` bits, MSB first."""
    if index < 0 or index >= 2**width:
        raise ValueError(f"index {index} does not fit in {width} bits")
    return tuple((index >> (width - 1 - pos)) & 1 for pos in range(width))


def n_qubits_of(state: torch.Tensor) -> int:
    """
    Number of qubits encoded by a one-dimensional state vector.

    Raises:
        ValueError: If the state is not 1-D or its length is not 2**n, n >= 1.
    """
    if state.dim() != 1:
        raise ValueError(f"state must be one-dimensional, got shape {tuple(state.shape)}")
    dim = state.shape[0]
    if dim < 2 or dim & (dim - 1):
        raise ValueError(f"state dimension {dim} is not a power of 2 >= 2")
    return dim.bit_length() - 1


def basis_state(
    bits: Sequence[int],
    device: Device | None = None,
) -> torch.Tensor:
    """
    Computational basis state |bits⟩.

    Args:
        bits: Non-empty sequence of 0/1 values, qubit 0 first.
        device: Device whose torch device and complex dtype are used.

    Raises:
        ValueError: If bits is empty or holds values other than 0 and 1.
    """
    if len(bits) < 1:
        raise ValueError("basis_state needs at least one bit")
    if any(bit not in (0, 1) for bit in bits):
        raise ValueError(f"bits must be 0 or 1, got {list(bits)}")
    if device is None:
        device = default_device()

    state = torch.zeros(
        2 ** len(bits),
        dtype=device.complex_dtype,
        device=device.as_torch_device(),
    )
    state[bits_to_index(bits)] = 1.0 + 0.0j
    return state


def zero_state(n_qubits: int, device: Device | None = None) -> torch.Tensor:
    """
    The all-zero state |0...0⟩ on n_qubits qubits.

    Raises:
        ValueError: If n_qubits < 1.
    """
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")
    return basis_state([0] * n_qubits, device=device)


def _validate_qubits(qubits: Sequence[int], n_qubits: int) -> List[int]:
    targets = [int(q) for q in qubits]
    if not targets:
        raise ValueError("at least one target qubit is required")
    if any(q < 0 or q >= n_qubits for q in targets):
        raise ValueError(f"target qubits {targets} out of range [0, {n_qubits})")
    if len(set(targets)) != len(targets):
        raise ValueError(f"target qubits must be unique, got {targets}")
    return targets


def _permutation(targets: List[int], n_qubits: int) -> Tuple[List[int], List[int]]:
    # Active qubits first in the order given, spectators after in register order.
    chosen = set(targets)
    perm = targets + [q for q in range(n_qubits) if q not in chosen]
    inverse_perm = [0] * n_qubits
    for position, axis in enumerate(perm):
        inverse_perm[axis] = position
    return perm, inverse_perm


def _grouped(tensor: torch.Tensor, perm: List[int], n_qubits: int, k: int) -> torch.Tensor:
    """View ``tensor`` as a (2**k, 2**(n-k)) table: rows = active pattern."""
    return tensor.reshape([2] * n_qubits).permute(perm).reshape(2**k, -1)


def _ungrouped(table: torch.Tensor, inverse_perm: List[int], n_qubits: int) -> torch.Tensor:
    return table.reshape([2] * n_qubits).permute(inverse_perm).reshape(-1).contiguous()


def apply_operator(
    state: torch.Tensor,
    matrix: torch.Tensor,
    qubits: Sequence[int],
) -> torch.Tensor:
    """
    Apply a k-qubit matrix to the listed qubits of an n-qubit state.

    The basis indices are grouped into 2**(n-k) classes by their spectator
    bits; each class's 2**k amplitudes, addressed by the active bits with
    ``qubits[0]`` as the most significant, are replaced by
    ``matrix @ class_vector``. The 2**n x 2**n expanded matrix is never
    built: the state is permuted into a (2**k, 2**(n-k)) table and
    multiplied once.

    Args:
        state: Complex vector of length 2**n.
        matrix: Complex matrix of shape (2**k, 2**k), k = len(qubits).
        qubits: Distinct qubit slots of the state, in matrix order.

    Returns:
        The transformed state vector.

    Raises:
        ValueError: On a non-complex state, bad qubit list or a matrix whose
            shape does not match the number of qubits.
    """
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")
    n_qubits = n_qubits_of(state)
    targets = _validate_qubits(qubits, n_qubits)
    k = len(targets)
    if matrix.shape != (2**k, 2**k):
        raise ValueError(
            f"matrix shape {tuple(matrix.shape)} does not act on {k} qubit(s)"
        )

    matrix = matrix.to(dtype=state.dtype, device=state.device)
    perm, inverse_perm = _permutation(targets, n_qubits)
    table = _grouped(state, perm, n_qubits, k)
    return _ungrouped(matrix @ table, inverse_perm, n_qubits)


def observable_moments(
    state: torch.Tensor,
    matrix: torch.Tensor,
    qubits: Sequence[int],
) -> Tuple[float, float]:
    """
    First and second moments ⟨O⟩ and ⟨O²⟩ of a Hermitian observable.

    ``matrix`` acts on ``qubits`` exactly as in :func:`apply_operator`.
    With φ = Oψ, the moments are ⟨ψ|φ⟩ and ⟨φ|φ⟩; both are real for a
    Hermitian O.

    Raises:
        ValueError: As :func:`apply_operator`.
    """
    image = apply_operator(state, matrix, qubits)
    mean = torch.vdot(state, image).real
    second = torch.vdot(image, image).real
    return float(mean), float(second)


def overlap(bra: torch.Tensor, ket: torch.Tensor) -> complex:
    """
    The inner product ⟨bra|ket⟩.

    Raises:
        ValueError: If the shapes differ.
    """
    if bra.shape != ket.shape:
        raise ValueError(
            f"overlap needs states of the same shape, got "
            f"{tuple(bra.shape)} and {tuple(ket.shape)}"
        )
    ket = ket.to(dtype=bra.dtype, device=bra.device)
    return complex(torch.vdot(bra.reshape(-1), ket.reshape(-1)).item())


def measure_probs(state: torch.Tensor) -> torch.Tensor:
    """Born probabilities |state[i]|² of every basis state."""
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")
    return (torch.abs(state) ** 2).contiguous()


def marginal_probabilities(state: torch.Tensor, qubits: Sequence[int]) -> torch.Tensor:
    """
    Born marginal over the listed qubits.

    Entry j is the probability of observing the active-bit pattern j
    (``qubits[0]`` most significant), summed over every spectator pattern.
    """
    n_qubits = n_qubits_of(state)
    targets = _validate_qubits(qubits, n_qubits)
    perm, _ = _permutation(targets, n_qubits)
    table = _grouped(measure_probs(state), perm, n_qubits, len(targets))
    return table.sum(dim=1)


def collapse(
    state: torch.Tensor,
    qubits: Sequence[int],
    outcome: int,
    probability: float,
) -> torch.Tensor:
    """
    Project onto ``outcome`` of the listed qubits and renormalize.

    Amplitudes whose active-bit pattern differs from ``outcome`` become
    zero; survivors are divided by √probability.

    Raises:
        ValueError: If probability is not positive or outcome is out of range.
    """
    if probability <= 0.0:
        raise ValueError(f"cannot collapse onto an outcome of probability {probability}")
    n_qubits = n_qubits_of(state)
    targets = _validate_qubits(qubits, n_qubits)
    k = len(targets)
    if outcome < 0 or outcome >= 2**k:
        raise ValueError(f"outcome {outcome} out of range for {k} qubit(s)")

    perm, inverse_perm = _permutation(targets, n_qubits)
    table = _grouped(state, perm, n_qubits, k)
    collapsed = torch.zeros_like(table)
    collapsed[outcome] = table[outcome] / math.sqrt(probability)
    return _ungrouped(collapsed, inverse_perm, n_qubits)


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
