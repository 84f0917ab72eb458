"""Tests for diagnostics and debug mode."""

import math

import pytest
import torch

import qassembler as qa
from qassembler.diagnostics import (
    assert_normalized,
    debug_context,
    fidelity,
    is_debug_enabled,
    is_hermitian,
    is_unitary,
    set_debug_enabled,
    state_norm,
)
from qassembler.gates import standard as stdgates


def test_debug_mode_toggle_and_context() -> None:
    """Test debug mode toggling and context manager."""
    set_debug_enabled(False)
    assert not is_debug_enabled()

    with debug_context(True):
        assert is_debug_enabled()
        with debug_context(False):
            assert not is_debug_enabled()
        assert is_debug_enabled()

    assert not is_debug_enabled()


def test_state_norm_and_assert_normalized() -> None:
    """Test norm computation and the normalization check."""
    state = qa.zero_state(2)
    assert torch.allclose(state_norm(state), torch.tensor(1.0, dtype=torch.float64))
    assert_normalized(state)

    with pytest.raises(ValueError, match="not normalized"):
        assert_normalized(2.0 * state)


def test_is_unitary() -> None:
    """Test unitarity checks on standard and non-unitary matrices."""
    assert is_unitary(stdgates.H())
    assert is_unitary(stdgates.qft(3))
    assert not is_unitary(torch.tensor([[1.0, 1.0], [0.0, 1.0]], dtype=torch.complex128))
    assert not is_unitary(torch.ones(2, 3, dtype=torch.complex128))


def test_is_hermitian() -> None:
    """Test the Hermitian check used for observables."""
    assert is_hermitian(stdgates.Z())
    assert is_hermitian(stdgates.Y())
    assert is_hermitian(torch.tensor([[1, -1j], [1j, 2]], dtype=torch.complex128))
    assert not is_hermitian(stdgates.R(2))
    assert not is_hermitian(torch.ones(2, 3, dtype=torch.complex128))


def test_fidelity() -> None:
    """Test fidelity between basis and superposition states."""
    zero = qa.basis_state([0])
    plus = torch.tensor([1.0, 1.0], dtype=torch.complex128) / math.sqrt(2.0)
    assert math.isclose(float(fidelity(zero, zero)), 1.0)
    assert math.isclose(float(fidelity(zero, plus)), 0.5, abs_tol=1e-12)

    with pytest.raises(ValueError, match="same shape"):
        fidelity(zero, qa.zero_state(2))


def test_debug_mode_rejects_norm_breaking_apply(ctx) -> None:
    """Test debug mode refuses to commit a state that lost its norm."""
    ctx.initialize("R", 1)
    with ctx.locked("R") as register:
        register.commit(2.0 * register.state)
    before = ctx.amplitudes("R")

    with debug_context(True):
        with pytest.raises(ValueError, match="not normalized"):
            ctx.apply("G_H", "R")

    assert torch.equal(ctx.amplitudes("R"), before)


def test_debug_mode_passes_for_unitaries(ctx) -> None:
    """Test the norm check is silent for unitary operations."""
    ctx.initialize("R", 3)
    with debug_context(True):
        ctx.apply("G_QFT_3", "R")
        ctx.measure("R", "RES")
    assert_normalized(ctx.amplitudes("R"))
