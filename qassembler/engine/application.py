"""APPLY: run an operator on a register or view in place."""

from __future__ import annotations

from qassembler.backend import apply_operator
from qassembler.diagnostics import assert_normalized, is_debug_enabled
from qassembler.errors import ArityMismatch
from qassembler.logging import get_logger
from qassembler.operators import Operator
from qassembler.registers import Register, Target, resolve_target

logger = get_logger(__name__)


def _check_arity(operator: Operator, qubits: tuple, target: Target) -> None:
    if len(qubits) != operator.arity:
        raise ArityMismatch(
            f"APPLY {operator.name}: operator acts on {operator.arity} qubit(s) "
            f"but {target.name!r} has {len(qubits)}"
        )


def apply(operator: Operator, target: Target, norm_atol: float = 1e-8) -> Register:
    """
    Apply ``operator`` to ``target`` and update the backing register in place.

    The new state is computed in full before it is written back, so a
    failure leaves the register untouched. The whole step runs under the
    backing register's lock.

    Args:
        operator: Operator of arity k.
        target: Register or view of exactly k qubits.
        norm_atol: Norm tolerance checked in debug mode.

    Returns:
        The backing register.

    Raises:
        ArityMismatch: If the target's qubit count differs from k.
        DanglingView: If ``target`` is a dangling view.
    """
    register, qubits = resolve_target(target)
    _check_arity(operator, qubits, target)

    with register.lock:
        # The register may have been re-initialized while we waited.
        register, qubits = resolve_target(target)
        _check_arity(operator, qubits, target)

        state = register.state
        matrix = operator.as_tensor(dtype=state.dtype, device=state.device)
        new_state = apply_operator(state, matrix, qubits)

        if is_debug_enabled():
            assert_normalized(new_state, atol=norm_atol, label=register.name)

        register.commit(new_state)

    logger.debug("APPLY %s %s on %s%s", operator.name, target.name, register.name, list(qubits))
    return register
