"""Tests for the assembler context: the instruction-level API."""

import math

import pytest
import torch

import qassembler as qa


def _basis(index: int, n_qubits: int) -> torch.Tensor:
    state = torch.zeros(2**n_qubits, dtype=torch.complex128)
    state[index] = 1.0
    return state


class TestNamespace:
    """Tests for the shared name space of registers, views and operators."""

    def test_names_and_contains(self, ctx):
        """Test every kind of entry is listed."""
        ctx.initialize("R", 2)
        ctx.select("S", "R", 0, 1)
        ctx.tensor("U", "G_H", "G_H")
        assert ctx.names() == ["R", "S", "U"]
        assert "U" in ctx
        assert "G_H" not in ctx

    @pytest.mark.parametrize("second", ["register", "view", "operator"])
    def test_duplicate_across_kinds(self, ctx, second):
        """Test a name bound to one kind cannot be reused by another."""
        ctx.initialize("A", 2)
        ctx.initialize("R", 2)
        with pytest.raises(qa.DuplicateName):
            if second == "register":
                ctx.initialize("A", 1)
            elif second == "view":
                ctx.select("A", "R", 0, 1)
            else:
                ctx.concat("A", "G_H", "G_X")

    def test_operator_name_blocks_register(self, ctx):
        """Test registers cannot take an operator's name."""
        ctx.inverse("U", "G_R_4")
        with pytest.raises(qa.DuplicateName):
            ctx.initialize("U", 1)

    def test_reserved_primitive_names(self, ctx):
        """Test G_ names are reserved for primitive gates."""
        with pytest.raises(qa.DuplicateName, match="reserved"):
            ctx.initialize("G_R", 1)
        with pytest.raises(qa.DuplicateName, match="reserved"):
            ctx.concat("G_MINE", "G_H", "G_H")

    def test_empty_name(self, ctx):
        """Test names must be non-empty strings."""
        with pytest.raises(ValueError, match="non-empty"):
            ctx.initialize("", 1)


class TestInstructions:
    """End-to-end tests of instruction sequences."""

    def test_single_hadamard(self, ctx):
        """INITIALIZE R [0]; APPLY G_H R."""
        ctx.initialize("R", [0])
        ctx.apply("G_H", "R")
        expected = torch.full((2,), 1.0 / math.sqrt(2.0), dtype=torch.complex128)
        assert torch.allclose(ctx.amplitudes("R"), expected)

    def test_cnot(self, ctx):
        """INITIALIZE R [1,0]; APPLY G_CNOT R gives |11⟩."""
        ctx.initialize("R", [1, 0])
        ctx.apply("G_CNOT", "R")
        assert torch.equal(ctx.amplitudes("R"), _basis(3, 2))

    def test_tensor_of_hadamards(self, ctx):
        """U TENSOR G_H G_H on |00⟩ gives the uniform superposition."""
        ctx.initialize("R", 2)
        ctx.tensor("U", "G_H", "G_H")
        ctx.apply("U", "R")
        assert torch.allclose(ctx.amplitudes("R"), torch.full((4,), 0.5, dtype=torch.complex128))

    def test_tensor_operand_order(self, ctx):
        """TENSOR u1 u2 puts u2 on the high qubits."""
        ctx.initialize("R", 2)
        ctx.initialize("S", 2)
        ctx.tensor("XI", "G_X", "G_I")
        ctx.tensor("IX", "G_I", "G_X")
        ctx.apply("XI", "R")
        ctx.apply("IX", "S")
        assert torch.equal(ctx.amplitudes("R"), _basis(1, 2))
        assert torch.equal(ctx.amplitudes("S"), _basis(2, 2))

    def test_select_and_apply_to_view(self, ctx):
        """SELECT S R 2 3 then APPLY to the view's middle qubit."""
        ctx.initialize("R", 8)
        view = ctx.select("S", "R", 2, 3)
        assert view.qubits == (2, 3, 4)
        ctx.select("M", "S", 1, 1)
        ctx.apply("G_X", "M")
        assert torch.equal(ctx.amplitudes("S"), _basis(16, 8))

    def test_identity_on_view_changes_nothing(self, ctx):
        """Test G_I_8 on a three-qubit view leaves the register untouched."""
        ctx.initialize("R", [1, 0, 1, 1, 0, 0, 1, 0])
        ctx.apply("G_QFT_3", ctx.select("LOW", "R", 5, 3))
        before = ctx.amplitudes("R")
        ctx.select("S", "R", 2, 3)
        ctx.apply("G_I_8", "S")
        assert torch.allclose(ctx.amplitudes("R"), before)
        qa.assert_normalized(ctx.amplitudes("R"))

    def test_select_out_of_range(self, ctx):
        """Test SELECT beyond the register raises RangeOutOfBounds."""
        ctx.initialize("R", 8)
        ctx.select("OK", "R", 5, 3)
        with pytest.raises(qa.RangeOutOfBounds):
            ctx.select("BAD", "R", 6, 3)
        assert "BAD" not in ctx

    def test_concat_and_inverse(self, ctx):
        """Test named compositions resolve to their operators."""
        ctx.concat("HX", "G_H", "G_X")
        ctx.inverse("HXI", "HX")
        ctx.concat("ID", "HXI", "HX")
        assert ctx.operator("ID").is_identity(atol=1e-12)

    def test_operator_passthrough_and_unknown(self, ctx):
        """Test operator resolution order."""
        op = ctx.operator("G_Z")
        assert ctx.operator(op) is op
        with pytest.raises(qa.UnknownOperator):
            ctx.operator("NOPE")
        with pytest.raises(qa.UnknownOperator):
            ctx.apply("G_FOO", ctx.initialize("R", 1))

    def test_define_operator(self, ctx):
        """Test user matrices are validated before binding."""
        ctx.initialize("R", 1)
        ctx.define_operator("NOT", [[0, 1], [1, 0]])
        ctx.apply("NOT", "R")
        assert torch.equal(ctx.amplitudes("R"), _basis(1, 1))
        with pytest.raises(qa.NonUnitaryOperator):
            ctx.define_operator("SHEAR", [[1, 1], [0, 1]])
        with pytest.raises(qa.NonUnitaryOperator):
            ctx.define_operator("THREE", torch.eye(3))
        assert "SHEAR" not in ctx

    def test_arity_mismatch(self, ctx):
        """Test APPLY and CONCAT width checks."""
        ctx.initialize("R", [1])
        with pytest.raises(qa.ArityMismatch):
            ctx.apply("G_CNOT", "R")
        with pytest.raises(qa.ArityMismatch):
            ctx.concat("BAD", "G_H", "G_CNOT")
        assert "BAD" not in ctx
        assert torch.equal(ctx.amplitudes("R"), _basis(1, 1))

    def test_unknown_register(self, ctx):
        """Test unbound targets raise UnknownRegister."""
        with pytest.raises(qa.UnknownRegister):
            ctx.apply("G_H", "R")
        with pytest.raises(qa.UnknownRegister):
            ctx.destroy("R")


class TestMeasurement:
    """Tests for MEASURE through the context."""

    def test_result_register(self, ctx):
        """Test MEASURE stores the bits as a classical register."""
        ctx.initialize("R", [1, 0, 1])
        result = ctx.measure("R", "RES")
        assert result.bitstring == "101"
        res = ctx.register("RES")
        assert res.classical
        assert torch.equal(res.amplitudes, _basis(5, 3))
        assert ctx.measurements["RES"] is result

    def test_bell_pair(self, ctx):
        """Test a Bell pair built with instructions measures correlated."""
        ctx.initialize("R", 2)
        ctx.select("Q", "R", 0, 1)
        ctx.apply("G_H", "Q")
        ctx.apply("G_CNOT", "R")
        assert ctx.measure("R", "RES").bitstring in ("00", "11")

    def test_measure_view(self, ctx):
        """Test measuring a view collapses only through its qubits."""
        ctx.initialize("R", [1, 0])
        ctx.select("Q", "R", 0, 1)
        result = ctx.measure("Q", "RES")
        assert result.bits == (1,)
        assert ctx.register("RES").n_qubits == 1

    def test_duplicate_result_name_leaves_state(self, ctx):
        """Test MEASURE into a taken name fails before collapsing."""
        ctx.initialize("R", 1)
        ctx.initialize("TAKEN", 1)
        ctx.apply("G_H", "R")
        before = ctx.amplitudes("R")
        with pytest.raises(qa.DuplicateName):
            ctx.measure("R", "TAKEN")
        assert torch.equal(ctx.amplitudes("R"), before)

    def test_probabilities(self, ctx):
        """Test probabilities of a view after H."""
        ctx.initialize("R", 2)
        ctx.select("Q", "R", 1, 1)
        ctx.apply("G_H", "Q")
        assert torch.allclose(
            ctx.probabilities("Q"), torch.tensor([0.5, 0.5], dtype=torch.float64)
        )

    def test_seeded_contexts_agree(self):
        """Test two contexts with the same seed draw the same outcomes."""

        def run() -> list:
            with qa.AssemblerContext(qa.AssemblerConfig(seed=11)) as ctx:
                ctx.initialize("R", 4)
                ctx.apply("G_QFT_4", "R")
                first = ctx.measure("R", "RES").bitstring
                ctx.reinitialize("R", 4)
                ctx.apply("G_QFT_4", "R")
                second = ctx.measure(ctx.select("Q", "R", 0, 2), "RES_Q").bitstring
                return [first, second]

        assert run() == run()

    def test_reseed(self, ctx):
        """Test reseeding repeats the draw sequence."""
        outcomes = []
        for _ in range(2):
            ctx.seed(5)
            for name in ("A", "B"):
                if name in ctx:
                    ctx.destroy(name)
            draws = []
            for name in ("A", "B"):
                ctx.initialize(name, 3)
                ctx.apply("G_QFT_3", name)
                draws.append(ctx.measure(name, f"RES_{name}").outcome)
                ctx.destroy(f"RES_{name}")
            outcomes.append(draws)
        assert outcomes[0] == outcomes[1]


class TestLifetime:
    """Tests for re-initialization, destruction and closing."""

    def test_reinitialize_dangles_views(self, ctx):
        """Test views die when their register is re-initialized."""
        ctx.initialize("R", 2)
        ctx.select("Q", "R", 0, 1)
        ctx.reinitialize("R", 3)
        with pytest.raises(qa.DanglingView):
            ctx.apply("G_X", "Q")
        ctx.destroy("Q")
        ctx.select("Q", "R", 2, 1)
        ctx.apply("G_X", "Q")
        assert torch.equal(ctx.amplitudes("R"), _basis(1, 3))

    def test_destroy_dangles_views(self, ctx):
        """Test views die when their register is destroyed."""
        ctx.initialize("R", 2)
        view = ctx.select("Q", "R", 0, 1)
        ctx.destroy("R")
        with pytest.raises(qa.DanglingView):
            ctx.apply("G_X", "Q")
        with pytest.raises(qa.DanglingView):
            ctx.amplitudes(view)

    def test_destroy_operator(self, ctx):
        """Test operators can be unbound and the name reused."""
        ctx.tensor("U", "G_H", "G_H")
        ctx.destroy("U")
        ctx.initialize("U", 1)
        assert ctx.register("U").n_qubits == 1

    def test_locked_is_reentrant(self, ctx):
        """Test operations inside locked() on the same thread proceed."""
        ctx.initialize("R", 1)
        with ctx.locked("R") as register:
            ctx.apply("G_X", "R")
            assert register.lock.locked()
        assert not register.lock.locked()
        assert torch.equal(ctx.amplitudes("R"), _basis(1, 1))

    def test_close(self):
        """Test a closed context refuses further instructions."""
        ctx = qa.AssemblerContext()
        register = ctx.initialize("R", 1)
        view = ctx.select("Q", "R", 0, 1)
        with ctx:
            pass
        assert ctx.closed
        assert register.destroyed
        assert not view.is_valid
        with pytest.raises(qa.ContextClosed):
            ctx.initialize("S", 1)
        with pytest.raises(qa.ContextClosed):
            ctx.apply("G_H", "R")
        ctx.close()

    def test_shared_generator(self):
        """Test a caller-supplied generator is used for draws."""
        generator = torch.Generator().manual_seed(0)
        with qa.AssemblerContext(generator=generator) as ctx:
            assert ctx.generator is generator
