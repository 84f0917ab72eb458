"""Named table of registers and sub-register views."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence, Union

import torch

from qassembler.backend import basis_state
from qassembler.core import Device, default_device
from qassembler.errors import DuplicateName, InvalidBitLiteral, UnknownRegister
from qassembler.logging import get_logger

from .addressing import Target, absolute_qubits, contiguous_indices, resolve_target
from .register import Register, SubRegisterView

logger = get_logger(__name__)

BitLiteral = Union[Sequence[int], str]
InitValue = Union[BitLiteral, int]


def parse_bits(bits: BitLiteral) -> List[int]:
    """
    Validate a bit literal: a non-empty sequence of 0/1 or a '0'/'1' string.

    Raises:
        InvalidBitLiteral: On an empty literal or any element that is not a bit.
    """
    if isinstance(bits, str):
        if not bits or any(ch not in "01" for ch in bits):
            raise InvalidBitLiteral(f"Invalid bit literal {bits!r}")
        return [int(ch) for ch in bits]

    try:
        values = list(bits)
    except TypeError:
        raise InvalidBitLiteral(f"Invalid bit literal {bits!r}") from None
    if not values:
        raise InvalidBitLiteral("A bit literal needs at least one bit")
    for bit in values:
        if not isinstance(bit, int) or bit not in (0, 1):
            raise InvalidBitLiteral(f"Invalid bit {bit!r} in literal {values!r}")
    return [int(bit) for bit in values]


def parse_count(n: int) -> int:
    """
    Raises:
        InvalidBitLiteral: Unless n is a positive integer.
    """
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise InvalidBitLiteral(f"Qubit count must be a positive integer, got {n!r}")
    return n


def initial_amplitudes(value: InitValue, device: Device) -> torch.Tensor:
    """Basis state for an INITIALIZE operand: a bit literal or a qubit count."""
    if isinstance(value, int) and not isinstance(value, bool):
        return basis_state([0] * parse_count(value), device=device)
    return basis_state(parse_bits(value), device=device)


class RegisterStore:
    """
    Owns registers and views by name.

    Names are unique across registers and views. The table is guarded by a
    re-entrant lock that is only held briefly and never while waiting for a
    register lock; a register lock may be held while the table is used.
    """

    def __init__(self, device: Optional[Device] = None) -> None:
        self._device = device or default_device()
        self._registers: Dict[str, Register] = {}
        self._views: Dict[str, SubRegisterView] = {}
        self._lock = threading.RLock()

    @property
    def device(self) -> Device:
        return self._device

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._registers or name in self._views

    def names(self) -> List[str]:
        with self._lock:
            return sorted([*self._registers, *self._views])

    def _ensure_free(self, name: str) -> None:
        if name in self._registers or name in self._views:
            raise DuplicateName(f"Name {name!r} is already in use")

    def _add(self, name: str, amplitudes: torch.Tensor, classical: bool) -> Register:
        with self._lock:
            self._ensure_free(name)
            register = Register(name, amplitudes, classical=classical)
            self._registers[name] = register
        logger.debug("INITIALIZE %s (%d qubits)", name, register.n_qubits)
        return register

    def create_from_bits(self, name: str, bits: BitLiteral, classical: bool = False) -> Register:
        """
        New register in the basis state ``bits`` (MSB-first).

        Raises:
            InvalidBitLiteral: If ``bits`` is not a valid bit literal.
            DuplicateName: If ``name`` is taken.
        """
        amplitudes = basis_state(parse_bits(bits), device=self._device)
        return self._add(name, amplitudes, classical)

    def create_zero(self, name: str, n: int) -> Register:
        """
        New n-qubit register in |0...0⟩.

        Raises:
            InvalidBitLiteral: If ``n`` is not a positive integer.
            DuplicateName: If ``name`` is taken.
        """
        amplitudes = basis_state([0] * parse_count(n), device=self._device)
        return self._add(name, amplitudes, classical=False)

    def initialize(self, name: str, value: InitValue) -> Register:
        """Dispatch to :meth:`create_zero` for a count, else :meth:`create_from_bits`."""
        if isinstance(value, int) and not isinstance(value, bool):
            return self.create_zero(name, value)
        return self.create_from_bits(name, value)

    def reinitialize(self, name: str, value: InitValue) -> Register:
        """
        Reset an existing register to a fresh basis state.

        Every view previously selected from it becomes dangling.

        Raises:
            UnknownRegister: If ``name`` is not a register.
            InvalidBitLiteral: If ``value`` is invalid.
        """
        amplitudes = initial_amplitudes(value, self._device)
        register = self.get(name)
        with register.lock:
            if register.destroyed:
                raise UnknownRegister(f"Register {name!r} was destroyed")
            register.reset(amplitudes)
            register.classical = False
        logger.debug("re-INITIALIZE %s (%d qubits), views invalidated", name, register.n_qubits)
        return register

    def destroy(self, name: str) -> None:
        """
        Remove a register (its views become dangling) or a view.

        Raises:
            UnknownRegister: If nothing is bound to ``name``.
        """
        with self._lock:
            if name in self._views:
                del self._views[name]
                return
            register = self.get(name)
            del self._registers[name]
        with register.lock:
            register.mark_destroyed()
        logger.debug("destroyed register %s", name)

    def clear(self) -> None:
        """Destroy every register and drop every view."""
        with self._lock:
            registers = list(self._registers.values())
            self._registers.clear()
            self._views.clear()
        for register in registers:
            with register.lock:
                register.mark_destroyed()

    def get(self, name: str) -> Register:
        """
        Raises:
            UnknownRegister: If ``name`` is not a register.
        """
        with self._lock:
            try:
                return self._registers[name]
            except KeyError:
                raise UnknownRegister(f"Unknown register {name!r}") from None

    def get_view(self, name: str) -> SubRegisterView:
        """
        Raises:
            UnknownRegister: If ``name`` is not a view.
        """
        with self._lock:
            try:
                return self._views[name]
            except KeyError:
                raise UnknownRegister(f"Unknown view {name!r}") from None

    def lookup(self, name: str) -> Target:
        """
        The register or view bound to ``name``.

        Raises:
            UnknownRegister: If neither exists.
        """
        with self._lock:
            if name in self._views:
                return self._views[name]
            return self.get(name)

    def _as_target(self, source: Union[str, Target]) -> Target:
        return self.lookup(source) if isinstance(source, str) else source

    def select(
        self,
        to: str,
        source: Union[str, Target],
        start: int,
        numqbits: int,
    ) -> SubRegisterView:
        """
        Bind ``to`` to qubits ``start .. start+numqbits-1`` of ``source``.

        ``source`` may itself be a view; the new view stores absolute slots
        of the ultimate backing register.

        Raises:
            RangeOutOfBounds: If the run does not fit in ``source``.
            DuplicateName: If ``to`` is taken.
            UnknownRegister: If ``source`` is not bound.
            DanglingView: If ``source`` is a dangling view.
        """
        target = self._as_target(source)
        _, qubits = resolve_target(target)
        return self.select_indices(
            to, target, contiguous_indices(len(qubits), start, numqbits)
        )

    def select_indices(
        self,
        to: str,
        source: Union[str, Target],
        indices: Sequence[int],
    ) -> SubRegisterView:
        """
        Bind ``to`` to an explicit, possibly non-contiguous slot list of ``source``.

        Raises:
            RangeOutOfBounds: On an empty, repeated or out-of-range list.
            DuplicateName: If ``to`` is taken.
            UnknownRegister: If ``source`` is not bound.
            DanglingView: If ``source`` is a dangling view.
        """
        target = self._as_target(source)
        register = target.register if isinstance(target, SubRegisterView) else target
        with register.lock:
            qubits = absolute_qubits(target, indices)
            view = SubRegisterView(
                name=to,
                register=register,
                generation=register.generation,
                qubits=qubits,
            )
            with self._lock:
                self._ensure_free(to)
                self._views[to] = view
        logger.debug("SELECT %s -> %s%s", to, register.name, list(qubits))
        return view
