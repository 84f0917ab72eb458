"""Registers and the sub-register views that address them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import torch

from qassembler.backend import n_qubits_of
from qassembler.core import FairLock
from qassembler.errors import DanglingView


class Register:
    """
    A named register owning an amplitude vector of length 2**n_qubits.

    ``generation`` increases every time the register is re-initialized;
    views remember the generation they were selected against and become
    dangling once it moves on. All mutation goes through the register's
    fair ``lock``.
    """

    def __init__(self, name: str, amplitudes: torch.Tensor, classical: bool = False) -> None:
        self.name = name
        self.classical = classical
        self.lock = FairLock()
        self.generation = 0
        self.destroyed = False
        self._state = amplitudes
        self._n_qubits = n_qubits_of(amplitudes)

    @property
    def n_qubits(self) -> int:
        return self._n_qubits

    @property
    def qubits(self) -> Tuple[int, ...]:
        """Every qubit slot, in order."""
        return tuple(range(self._n_qubits))

    @property
    def amplitudes(self) -> torch.Tensor:
        """Snapshot copy of the amplitude vector."""
        with self.lock:
            return self._state.clone()

    @property
    def state(self) -> torch.Tensor:
        """The live amplitude vector. Read only while holding ``lock``."""
        return self._state

    def commit(self, new_state: torch.Tensor) -> None:
        """Overwrite the amplitudes in place. Caller holds ``lock``."""
        self._state.copy_(new_state)

    def reset(self, amplitudes: torch.Tensor) -> None:
        """Replace the state (possibly resizing) and invalidate views. Caller holds ``lock``."""
        self._state = amplitudes
        self._n_qubits = n_qubits_of(amplitudes)
        self.generation += 1

    def mark_destroyed(self) -> None:
        """Invalidate the register and its views. Caller holds ``lock``."""
        self.destroyed = True
        self.generation += 1

    def __repr__(self) -> str:
        return (
            f"Register(name={self.name!r}, n_qubits={self._n_qubits}, "
            f"generation={self.generation})"
        )


@dataclass(frozen=True, eq=False)
class SubRegisterView:
    """
    A named, non-owning selection of qubit slots of a backing register.

    Attributes
    ----------
    name:
        View name.
    register:
        Back-reference to the ultimate backing register (never a view).
    generation:
        Register generation the view was selected against.
    qubits:
        Absolute qubit slots of the backing register, in operator order.
    """

    name: str
    register: Register = field(repr=False)
    generation: int
    qubits: Tuple[int, ...]

    @property
    def n_qubits(self) -> int:
        return len(self.qubits)

    @property
    def is_valid(self) -> bool:
        return not self.register.destroyed and self.register.generation == self.generation

    def check(self) -> None:
        """
        Raises:
            DanglingView: If the backing register was re-initialized or destroyed.
        """
        if not self.is_valid:
            raise DanglingView(
                f"View {self.name!r} refers to register {self.register.name!r} "
                "which was re-initialized or destroyed"
            )
