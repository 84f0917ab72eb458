"""Invariant checks for register amplitudes and operator matrices."""

from __future__ import annotations

from typing import Optional

import torch


def state_norm(state: torch.Tensor) -> torch.Tensor:
    """
    L2 norm of an amplitude vector.

    A stack of vectors (shape ``(..., dim)``) yields one norm per vector.

    Raises:
        ValueError: If ``state`` is a scalar.
    """
    if state.dim() == 0:
        raise ValueError("state_norm needs at least one dimension, got a scalar.")
    return torch.linalg.vector_norm(state, dim=-1)


def assert_normalized(
    state: torch.Tensor,
    atol: float = 1e-8,
    label: Optional[str] = None,
) -> None:
    """
    Check the unit-norm invariant of an amplitude vector.

    Args:
        state: Amplitude vector (or stack of vectors).
        atol: Allowed deviation of the norm from 1.
        label: Register name quoted in the error message.

    Raises:
        ValueError: If any norm is non-finite or farther than ``atol`` from 1.
    """
    norms = state_norm(state)
    where = f" of {label!r}" if label else ""
    if not bool(torch.isfinite(norms).all()):
        raise ValueError(f"State{where} has a non-finite norm.")

    deviation = float((norms - 1.0).abs().max())
    if deviation > atol:
        raise ValueError(
            f"State{where} is not normalized within tolerance {atol} "
            f"(norm off by {deviation:.3e})."
        )


def is_unitary(matrix: torch.Tensor, atol: float = 1e-8) -> bool:
    """True if ``matrix`` is square and U†U equals the identity within ``atol``."""
    if matrix.dim() != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    product = matrix.conj().transpose(0, 1) @ matrix
    eye = torch.eye(matrix.shape[0], dtype=product.dtype, device=product.device)
    return bool(torch.allclose(product, eye, atol=atol, rtol=0.0))


def is_hermitian(matrix: torch.Tensor, atol: float = 1e-8) -> bool:
    """True if ``matrix`` is square and equals its adjoint within ``atol``."""
    if matrix.dim() != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    return bool(torch.allclose(matrix, matrix.conj().transpose(0, 1), atol=atol, rtol=0.0))


def fidelity(state_a: torch.Tensor, state_b: torch.Tensor) -> torch.Tensor:
    """
    Overlap |⟨a|b⟩|² of two pure states.

    Raises:
        ValueError: If the shapes differ.
    """
    if state_a.shape != state_b.shape:
        raise ValueError(
            f"fidelity needs states of the same shape, got "
            f"{tuple(state_a.shape)} and {tuple(state_b.shape)}."
        )
    return torch.vdot(state_a.reshape(-1), state_b.reshape(-1)).abs() ** 2
