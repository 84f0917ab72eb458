"""Tests for expectation values, variances and transition amplitudes."""

import math

import pytest
import torch

import qassembler as qa
from qassembler import RegisterStore, resolve_gate


class TestExpectation:
    """Tests for ⟨O⟩ on registers and views."""

    @pytest.mark.parametrize(
        "bits,prepare,expected",
        [([0], None, 1.0), ([1], None, -1.0), ([0], "G_H", 0.0)],
    )
    def test_pauli_z(self, bits, prepare, expected):
        """Test ⟨Z⟩ on |0⟩, |1⟩ and |+⟩."""
        store = RegisterStore()
        register = store.initialize("R", bits)
        if prepare:
            qa.apply(resolve_gate(prepare), register)
        assert math.isclose(qa.expectation(resolve_gate("G_Z"), register), expected, abs_tol=1e-12)

    def test_state_is_untouched(self):
        """Test evaluating an observable leaves the amplitudes unchanged."""
        store = RegisterStore()
        register = store.initialize("R", 2)
        qa.apply(resolve_gate("G_QFT_2"), register)
        before = register.amplitudes
        qa.expectation(resolve_gate("G_X"), store.select("Q", "R", 1, 1))
        qa.variance(resolve_gate("G_Z"), store.select("P", "R", 0, 1))
        assert torch.equal(register.amplitudes, before)

    def test_view_uses_its_own_qubits(self):
        """Test the observable acts on the view's slot, not slot 0."""
        store = RegisterStore()
        store.initialize("R", [0, 1])
        low = store.select("LOW", "R", 1, 1)
        assert math.isclose(qa.expectation(resolve_gate("G_Z"), low), -1.0)

    def test_hermitian_matrix(self):
        """Test a non-unitary Hermitian observable on (|0⟩ + i|1⟩)/√2."""
        store = RegisterStore()
        register = store.initialize("R", 1)
        qa.apply(resolve_gate("G_H"), register)
        qa.apply(resolve_gate("G_R_2"), register)
        observable = [[1, -1j], [1j, 2]]
        assert math.isclose(qa.expectation(observable, register), 2.5, abs_tol=1e-12)
        assert math.isclose(qa.variance(observable, register), 0.25, abs_tol=1e-12)

    def test_rejects_non_hermitian(self):
        """Test matrices unequal to their adjoint are refused."""
        store = RegisterStore()
        register = store.initialize("R", 1)
        with pytest.raises(qa.NonHermitianObservable):
            qa.expectation([[0, 1], [0, 0]], register)
        with pytest.raises(qa.NonHermitianObservable):
            qa.expectation(resolve_gate("G_R_2"), register)

    def test_arity_mismatch(self):
        """Test the observable must match the target's width."""
        store = RegisterStore()
        register = store.initialize("R", 1)
        with pytest.raises(qa.ArityMismatch):
            qa.expectation(resolve_gate("G_CNOT"), register)

    def test_dangling_view(self):
        """Test observables on a dangling view raise DanglingView."""
        store = RegisterStore()
        store.initialize("R", 2)
        view = store.select("Q", "R", 0, 1)
        store.reinitialize("R", 2)
        with pytest.raises(qa.DanglingView):
            qa.expectation(resolve_gate("G_Z"), view)


class TestVariance:
    """Tests for ⟨O²⟩ - ⟨O⟩²."""

    def test_z_on_plus(self):
        """Test Var(Z) on |+⟩ is 1."""
        store = RegisterStore()
        register = store.initialize("R", 1)
        qa.apply(resolve_gate("G_H"), register)
        assert math.isclose(qa.variance(resolve_gate("G_Z"), register), 1.0, abs_tol=1e-12)

    def test_eigenstate_has_no_spread(self):
        """Test Var(Z⊗Z) vanishes on a Bell pair."""
        store = RegisterStore()
        register = store.initialize("R", 2)
        qa.apply(resolve_gate("G_H"), store.select("Q", "R", 0, 1))
        qa.apply(resolve_gate("G_CNOT"), register)
        zz = qa.tensor(resolve_gate("G_Z"), resolve_gate("G_Z"))
        assert math.isclose(qa.expectation(zz, register), 1.0, abs_tol=1e-12)
        assert qa.variance(zz, register) == pytest.approx(0.0, abs=1e-12)


class TestTransitionAmplitude:
    """Tests for ⟨dest|source⟩."""

    def test_phase_is_kept(self):
        """Test the amplitude is complex, not just its modulus."""
        store = RegisterStore()
        source = store.initialize("A", [1])
        qa.apply(resolve_gate("G_R_2"), source)
        dest = store.initialize("B", [1])
        assert qa.transition_amplitude(source, dest) == pytest.approx(1j)
        assert qa.transition_amplitude(dest, source) == pytest.approx(-1j)

    def test_overlap_with_superposition(self):
        """Test ⟨+|0⟩ = 1/√2."""
        store = RegisterStore()
        zero = store.initialize("Z", 1)
        plus = store.initialize("P", 1)
        qa.apply(resolve_gate("G_H"), plus)
        assert qa.transition_amplitude(zero, plus) == pytest.approx(1 / math.sqrt(2.0))

    def test_rejects_mismatched_targets(self):
        """Test widths must agree and partial views are refused."""
        store = RegisterStore()
        one = store.initialize("A", 1)
        two = store.initialize("B", 2)
        with pytest.raises(ValueError, match="same shape"):
            qa.transition_amplitude(one, two)
        with pytest.raises(ValueError, match="whole registers"):
            qa.transition_amplitude(store.select("Q", "B", 0, 1), one)


def test_context_observables(ctx) -> None:
    """Test the context resolves observable and target names."""
    ctx.initialize("R", 1)
    ctx.initialize("S", 1)
    ctx.apply("G_H", "R")
    assert ctx.expectation("G_X", "R") == pytest.approx(1.0)
    assert ctx.variance("G_Z", "R") == pytest.approx(1.0)
    assert ctx.expectation([[1, 0], [0, 0]], "R") == pytest.approx(0.5)
    assert ctx.transition_amplitude("R", "S") == pytest.approx(1 / math.sqrt(2.0))
    with pytest.raises(qa.UnknownOperator):
        ctx.expectation("NOPE", "R")
