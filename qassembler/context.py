"""The assembler context: one explicit owner for every named entity.

An :class:`AssemblerContext` holds the register/view store, the operator
table, the measurement log and the measurement generator that a front-end
drives instruction by instruction::

    with AssemblerContext(AssemblerConfig(seed=7)) as ctx:
        ctx.initialize("R", 2)
        ctx.tensor("U", "G_H", "G_H")
        ctx.apply("U", "R")
        ctx.measure("R", "RES")
        ctx.measurements["RES"].bitstring

Registers, views and user operators share one namespace; names starting
with ``G_`` are reserved for primitive gates.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from types import TracebackType
from typing import Dict, Iterator, List, Optional, Sequence, Type, Union

import torch

from qassembler.config import AssemblerConfig
from qassembler.core import Device, device as device_factory
from qassembler.engine import (
    MeasurementResult,
    apply,
    expectation,
    measure,
    measurement_probabilities,
    transition_amplitude,
    variance,
)
from qassembler.engine.observables import Observable
from qassembler.errors import ContextClosed, DuplicateName, UnknownOperator
from qassembler.gates import is_primitive_name, resolve_gate
from qassembler.logging import get_logger
from qassembler.operators import Operator, concat, inverse, tensor
from qassembler.registers import (
    Register,
    RegisterStore,
    SubRegisterView,
    Target,
    resolve_target,
)
from qassembler.registers.store import InitValue

logger = get_logger(__name__)

OperatorRef = Union[str, Operator]
ObservableRef = Union[str, Observable]
TargetRef = Union[str, Register, SubRegisterView]


class AssemblerContext:
    """
    Named registers, views and operators plus the measurement generator.

    Args:
        config: Context settings. Defaults to ``AssemblerConfig()``.
        generator: CPU generator to draw measurements from, shared with the
            caller. When given, ``config.seed`` is not applied to it.
    """

    def __init__(
        self,
        config: Optional[AssemblerConfig] = None,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        self._config = config or AssemblerConfig()
        self._device = device_factory(self._config.device)
        self._store = RegisterStore(self._device)
        self._operators: Dict[str, Operator] = {}
        self._measurements: Dict[str, MeasurementResult] = {}
        self._pending: set[str] = set()
        self._lock = threading.RLock()
        self._closed = False

        if generator is not None:
            self._generator = generator
        else:
            self._generator = torch.Generator()
            if self._config.seed is None:
                self._generator.seed()
            else:
                self._generator.manual_seed(self._config.seed)

    @property
    def config(self) -> AssemblerConfig:
        return self._config

    @property
    def device(self) -> Device:
        return self._device

    @property
    def generator(self) -> torch.Generator:
        """The generator MEASURE draws outcomes from."""
        return self._generator

    def seed(self, seed: int) -> None:
        """Reseed the measurement generator."""
        self._generator.manual_seed(seed)

    # -- namespace ---------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise ContextClosed("AssemblerContext is closed")

    def _ensure_free(self, name: str) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Names must be non-empty strings, got {name!r}")
        if is_primitive_name(name):
            raise DuplicateName(f"Name {name!r} is reserved for primitive gates")
        if name in self._store or name in self._operators or name in self._pending:
            raise DuplicateName(f"Name {name!r} is already in use")

    @contextmanager
    def _reserved(self, name: str) -> Iterator[None]:
        """Hold ``name`` against concurrent binders while the store is updated."""
        with self._lock:
            self._check_open()
            self._ensure_free(name)
            self._pending.add(name)
        try:
            yield
        finally:
            with self._lock:
                self._pending.discard(name)

    def names(self) -> List[str]:
        """Every bound register, view and operator name."""
        with self._lock:
            return sorted([*self._store.names(), *self._operators])

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._store or name in self._operators

    # -- registers and views -----------------------------------------------

    def initialize(self, name: str, value: InitValue) -> Register:
        """
        INITIALIZE: a new register from a bit literal or a qubit count.

        Raises:
            InvalidBitLiteral: On a malformed literal or count.
            DuplicateName: If ``name`` is taken.
        """
        with self._lock:
            self._check_open()
            self._ensure_free(name)
            return self._store.initialize(name, value)

    def reinitialize(self, name: str, value: InitValue) -> Register:
        """
        Reset register ``name``; every view derived from it becomes dangling.

        Raises:
            UnknownRegister: If ``name`` is not a register.
            InvalidBitLiteral: On a malformed literal or count.
        """
        with self._lock:
            self._check_open()
            self._measurements.pop(name, None)
        return self._store.reinitialize(name, value)

    def destroy(self, name: str) -> None:
        """
        Remove a register, view or user operator.

        Raises:
            UnknownRegister: If nothing is bound to ``name``.
        """
        with self._lock:
            self._check_open()
            if name in self._operators:
                del self._operators[name]
                return
            self._measurements.pop(name, None)
        self._store.destroy(name)

    def register(self, name: str) -> Register:
        with self._lock:
            self._check_open()
            return self._store.get(name)

    def view(self, name: str) -> SubRegisterView:
        with self._lock:
            self._check_open()
            return self._store.get_view(name)

    def target(self, ref: TargetRef) -> Target:
        """The register or view behind ``ref``."""
        if not isinstance(ref, str):
            return ref
        with self._lock:
            self._check_open()
            return self._store.lookup(ref)

    def amplitudes(self, ref: TargetRef) -> torch.Tensor:
        """Snapshot of the backing register's amplitude vector."""
        register, _ = resolve_target(self.target(ref))
        return register.amplitudes

    def select(self, to: str, source: TargetRef, start: int, numqbits: int) -> SubRegisterView:
        """
        SELECT: bind ``to`` to ``numqbits`` qubits of ``source`` from ``start``.

        Raises:
            RangeOutOfBounds: If ``start + numqbits`` exceeds the source width.
            DuplicateName: If ``to`` is taken.
            DanglingView: If ``source`` is a dangling view.
        """
        with self._reserved(to):
            return self._store.select(to, self.target(source), start, numqbits)

    def select_indices(self, to: str, source: TargetRef, indices: Sequence[int]) -> SubRegisterView:
        """Bind ``to`` to an explicit list of qubit slots of ``source``."""
        with self._reserved(to):
            return self._store.select_indices(to, self.target(source), indices)

    @contextmanager
    def locked(self, ref: TargetRef) -> Iterator[Register]:
        """
        Hold the backing register's exclusive lock for the block.

        Operations on the same register from this thread still work inside
        the block; other threads queue until it exits.
        """
        register, _ = resolve_target(self.target(ref))
        with register.lock:
            yield register

    # -- operators ---------------------------------------------------------

    def operator(self, ref: OperatorRef) -> Operator:
        """
        Resolve a user operator name, a primitive gate name, or pass through.

        Raises:
            UnknownOperator: If the name is bound to neither.
        """
        if isinstance(ref, Operator):
            return ref
        with self._lock:
            self._check_open()
            if ref in self._operators:
                return self._operators[ref]
        if is_primitive_name(ref):
            return resolve_gate(ref)
        raise UnknownOperator(f"Unknown operator {ref!r}")

    def _bind(self, name: str, build) -> Operator:
        # build() runs outside the context lock; the name stays reserved.
        with self._reserved(name):
            op = build()
            with self._lock:
                self._check_open()
                self._operators[name] = op
        logger.debug("operator %s (arity %d) defined", name, op.arity)
        return op

    def define_operator(self, name: str, matrix: Union[torch.Tensor, list]) -> Operator:
        """
        Bind ``name`` to a user-supplied unitary matrix.

        Raises:
            NonUnitaryOperator: If the matrix is not a unitary on whole qubits.
            DuplicateName: If ``name`` is taken.
        """
        return self._bind(
            name,
            lambda: Operator.from_matrix(name, matrix, atol=self._config.unitary_atol),
        )

    def concat(self, name: str, u1: OperatorRef, u2: OperatorRef) -> Operator:
        """``name CONCAT u1 u2``: apply u2, then u1."""
        first, second = self.operator(u1), self.operator(u2)
        return self._bind(name, lambda: concat(first, second, name=name))

    def tensor(self, name: str, u1: OperatorRef, u2: OperatorRef) -> Operator:
        """``name TENSOR u1 u2``: matrix kron(u2, u1)."""
        first, second = self.operator(u1), self.operator(u2)
        return self._bind(name, lambda: tensor(first, second, name=name))

    def inverse(self, name: str, u: OperatorRef) -> Operator:
        """``name INVERSE u``: the adjoint of u."""
        op = self.operator(u)
        return self._bind(name, lambda: inverse(op, name=name))

    # -- engines -------------------------------------------------------------

    def apply(self, operator: OperatorRef, target: TargetRef) -> Register:
        """
        APPLY: run ``operator`` on ``target`` in place.

        Raises:
            ArityMismatch: If the widths differ.
            DanglingView: If ``target`` is a dangling view.
        """
        op = self.operator(operator)
        return apply(op, self.target(target), norm_atol=self._config.norm_atol)

    def probabilities(self, target: TargetRef) -> torch.Tensor:
        """Born marginal of ``target`` without collapsing it."""
        return measurement_probabilities(self.target(target))

    def _observable(self, observable: ObservableRef) -> Observable:
        if isinstance(observable, str):
            return self.operator(observable)
        return observable

    def expectation(self, observable: ObservableRef, target: TargetRef) -> float:
        """
        ⟨O⟩ on ``target`` for an operator name, Operator or Hermitian matrix.

        Raises:
            NonHermitianObservable: If the observable is not Hermitian.
            ArityMismatch: If the widths differ.
        """
        return expectation(
            self._observable(observable),
            self.target(target),
            atol=self._config.unitary_atol,
        )

    def variance(self, observable: ObservableRef, target: TargetRef) -> float:
        """⟨O²⟩ - ⟨O⟩² on ``target``; see :meth:`expectation`."""
        return variance(
            self._observable(observable),
            self.target(target),
            atol=self._config.unitary_atol,
        )

    def transition_amplitude(self, source: TargetRef, dest: TargetRef) -> complex:
        """⟨dest|source⟩ of two registers of equal width."""
        return transition_amplitude(self.target(source), self.target(dest))

    def measure(self, target: TargetRef, res: str) -> MeasurementResult:
        """
        MEASURE: sample ``target``, collapse it and store the bits in ``res``.

        ``res`` becomes a classical register in the basis state of the
        drawn bits; the full result is kept in :attr:`measurements`.

        Raises:
            DuplicateName: If ``res`` is taken (checked before collapsing).
            DanglingView: If ``target`` is a dangling view.
            ZeroProbabilityCollapse: On a degenerate distribution.
        """
        resolved = self.target(target)
        with self._reserved(res):
            result = measure(
                resolved,
                res,
                generator=self._generator,
                norm_atol=self._config.norm_atol,
            )
            with self._lock:
                self._check_open()
                self._store.create_from_bits(res, result.bits, classical=True)
                self._measurements[res] = result
        logger.info("MEASURE %s %s -> %s", resolved.name, res, result.bitstring)
        return result

    @property
    def measurements(self) -> Dict[str, MeasurementResult]:
        """Results of every MEASURE so far, by result name."""
        with self._lock:
            return dict(self._measurements)

    # -- lifetime ------------------------------------------------------------

    def close(self) -> None:
        """Destroy every entry; outstanding views become dangling."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._operators.clear()
            self._measurements.clear()
        self._store.clear()
        logger.debug("context closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "AssemblerContext":
        self._check_open()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
