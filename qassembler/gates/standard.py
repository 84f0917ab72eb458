"""Standard gate matrices.

All matrices are MSB-first: for a k-qubit gate the first qubit it acts on
is the most significant bit of the row/column index.
"""

from __future__ import annotations

import cmath
import math

import torch


def _resolve(dtype: torch.dtype | None, device: torch.device | None):
    if dtype is None:
        dtype = torch.complex128
    if device is None:
        device = torch.device("cpu")
    return dtype, device


def I(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Identity gate (single-qubit)."""
    dtype, device = _resolve(dtype, device)
    return torch.eye(2, dtype=dtype, device=device)


def X(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-X gate (bit-flip, NOT gate)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[0.0, 1.0], [1.0, 0.0]], dtype=dtype, device=device)


def Y(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Y gate."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[0.0, -1.0j], [1.0j, 0.0]], dtype=dtype, device=device)


def Z(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Z gate (phase-flip)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[1.0, 0.0], [0.0, -1.0]], dtype=dtype, device=device)


def H(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Hadamard gate.

    Maps |0⟩ to (|0⟩ + |1⟩)/√2 and |1⟩ to (|0⟩ - |1⟩)/√2.
    """
    dtype, device = _resolve(dtype, device)
    sqrt2_inv = 1.0 / math.sqrt(2.0)
    return torch.tensor(
        [[sqrt2_inv, sqrt2_inv], [sqrt2_inv, -sqrt2_inv]], dtype=dtype, device=device
    )


def R(
    k: int,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Phase gate diag(1, e^{iπ/k}).

    R(2) is the S gate and R(4) the T gate.

    Args:
        k: Positive divisor of π.

    Raises:
        ValueError: If k < 1.
    """
    if k < 1:
        raise ValueError(f"phase divisor must be >= 1, got {k}")
    dtype, device = _resolve(dtype, device)
    phase = cmath.exp(1.0j * math.pi / k)
    return torch.tensor([[1.0, 0.0], [0.0, phase]], dtype=dtype, device=device)


def CNOT(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    CNOT gate (controlled-NOT).

    The first qubit is the control and the second the target. With the
    basis ordered |00⟩, |01⟩, |10⟩, |11⟩ (control is the high bit) the
    gate swaps |10⟩ and |11⟩.
    """
    dtype, device = _resolve(dtype, device)
    return torch.tensor(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 1.0, 0.0],
        ],
        dtype=dtype,
        device=device,
    )


def identity(
    n_qubits: int,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """Identity on n_qubits qubits, shape (2**n_qubits, 2**n_qubits)."""
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")
    dtype, device = _resolve(dtype, device)
    return torch.eye(2**n_qubits, dtype=dtype, device=device)


def qft(
    n_qubits: int,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Quantum Fourier transform on n_qubits qubits.

    F[j, l] = ω^{jl} / √N with N = 2**n_qubits and ω = e^{2πi/N}.
    """
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")
    dtype, device = _resolve(dtype, device)

    dim = 2**n_qubits
    idx = torch.arange(dim, dtype=torch.float64, device=device)
    # jl mod N keeps the angles small and exact for large registers.
    exponents = torch.remainder(torch.outer(idx, idx), dim)
    angles = 2.0 * math.pi * exponents / dim
    matrix = torch.polar(
        torch.full_like(angles, 1.0 / math.sqrt(dim)), angles
    )
    return matrix.to(dtype=dtype)


def qft_inverse(
    n_qubits: int,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """Adjoint of :func:`qft`."""
    return qft(n_qubits, dtype=dtype, device=device).conj().transpose(0, 1).contiguous()


def work_register_width(modulus: int) -> int:
    """Number of qubits needed to hold every residue mod ``modulus``."""
    return math.ceil(math.log2(modulus + 1))


def modular_exponentiation(
    base: int,
    modulus: int,
    counting_qubits: int | None = None,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Oracle |x⟩|y⟩ → |x⟩|y ⊕ (base^x mod modulus)⟩.

    The first ``counting_qubits`` qubits hold x, the remaining
    ``work_register_width(modulus)`` qubits hold y. The matrix is a
    permutation, hence unitary.

    Args:
        base: Base a of a^x mod N.
        modulus: Modulus N >= 2.
        counting_qubits: Width of the x register. Defaults to twice the
            work register width.

    Raises:
        ValueError: If modulus < 2, base < 1 or counting_qubits < 1.
    """
    if modulus < 2:
        raise ValueError(f"modulus must be >= 2, got {modulus}")
    if base < 1:
        raise ValueError(f"base must be >= 1, got {base}")

    work = work_register_width(modulus)
    if counting_qubits is None:
        counting_qubits = 2 * work
    if counting_qubits < 1:
        raise ValueError(f"counting_qubits must be >= 1, got {counting_qubits}")
    dtype, device = _resolve(dtype, device)

    work_dim = 2**work
    dim = 2 ** (counting_qubits + work)

    columns = torch.arange(dim, dtype=torch.int64)
    x = columns // work_dim
    y = columns % work_dim
    f = torch.tensor(
        [pow(base, int(v), modulus) for v in range(2**counting_qubits)],
        dtype=torch.int64,
    )
    rows = x * work_dim + torch.bitwise_xor(y, f[x])

    matrix = torch.zeros((dim, dim), dtype=dtype, device=device)
    matrix[rows.to(device), columns.to(device)] = 1.0
    return matrix
