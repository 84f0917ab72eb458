"""Immutable unitary operators and the CONCAT / TENSOR / INVERSE combinators.

Operators carry no register reference; they are plain values that can be
applied to any register or view of matching arity. Matrices are stored
once, in double precision on the CPU, and converted at application time.
"""

from __future__ import annotations

from typing import Optional

import torch

from qassembler.diagnostics import is_unitary
from qassembler.errors import ArityMismatch, NonUnitaryOperator

_STORAGE_DTYPE = torch.complex128
_STORAGE_DEVICE = torch.device("cpu")


def _arity_of(dim: int) -> Optional[int]:
    if dim < 2 or dim & (dim - 1):
        return None
    return dim.bit_length() - 1


class Operator:
    """
    A named unitary matrix of shape (2**arity, 2**arity).

    The constructor checks the shape and U†U = I within ``atol``. Matrices
    produced by the combinators and the gate library are unitary by
    construction and are wrapped through :meth:`_trusted`, which skips the
    unitarity check.

    Raises:
        NonUnitaryOperator: If the shape is wrong or U†U ≠ I.
    """

    __slots__ = ("_name", "_matrix", "_arity")

    def __init__(
        self,
        name: str,
        matrix: torch.Tensor | list,
        atol: float = 1e-8,
    ) -> None:
        tensor = torch.as_tensor(matrix, dtype=_STORAGE_DTYPE, device=_STORAGE_DEVICE)
        if tensor.dim() != 2 or tensor.shape[0] != tensor.shape[1]:
            raise NonUnitaryOperator(
                f"Operator {name!r} needs a square matrix, got shape {tuple(tensor.shape)}"
            )
        if _arity_of(tensor.shape[0]) is None:
            raise NonUnitaryOperator(
                f"Operator {name!r} dimension {tensor.shape[0]} is not a power of two >= 2"
            )
        if not is_unitary(tensor, atol=atol):
            raise NonUnitaryOperator(f"Operator {name!r} is not unitary within {atol}")
        self._assign(name, tensor)

    def _assign(self, name: str, matrix: torch.Tensor) -> None:
        self._name = name
        self._matrix = (
            matrix.detach()
            .to(dtype=_STORAGE_DTYPE, device=_STORAGE_DEVICE)
            .clone()
            .contiguous()
        )
        self._arity = _arity_of(matrix.shape[0])

    @classmethod
    def _trusted(cls, name: str, matrix: torch.Tensor) -> "Operator":
        """Wrap a square 2**k matrix that is already known to be unitary."""
        op = cls.__new__(cls)
        op._assign(name, matrix)
        return op

    @classmethod
    def from_matrix(
        cls,
        name: str,
        matrix: torch.Tensor | list,
        atol: float = 1e-8,
    ) -> "Operator":
        """
        Build an operator from an explicit matrix, checking it is unitary.

        Args:
            name: Operator name.
            matrix: Square tensor or nested list with a power-of-two dimension.
            atol: Tolerance of the unitarity check.

        Raises:
            NonUnitaryOperator: If the shape is wrong or U†U ≠ I.
        """
        return cls(name, matrix, atol=atol)

    @property
    def name(self) -> str:
        return self._name

    @property
    def arity(self) -> int:
        """Number of qubits the operator acts on."""
        return self._arity

    @property
    def dim(self) -> int:
        return 2**self._arity

    @property
    def matrix(self) -> torch.Tensor:
        """A copy of the operator's matrix."""
        return self._matrix.clone()

    def as_tensor(
        self,
        dtype: torch.dtype | None = None,
        device: torch.device | None = None,
    ) -> torch.Tensor:
        """The matrix converted for application. Callers must not mutate it."""
        return self._matrix.to(
            dtype=dtype or _STORAGE_DTYPE, device=device or _STORAGE_DEVICE
        )

    def renamed(self, name: str) -> "Operator":
        """The same matrix bound to another name."""
        return Operator._trusted(name, self._matrix)

    def allclose(self, other: "Operator", atol: float = 1e-8) -> bool:
        """True if both operators have the same arity and matching entries."""
        if self._arity != other.arity:
            return False
        return bool(torch.allclose(self._matrix, other.as_tensor(), atol=atol, rtol=0.0))

    def is_identity(self, atol: float = 1e-8) -> bool:
        eye = torch.eye(self.dim, dtype=_STORAGE_DTYPE)
        return bool(torch.allclose(self._matrix, eye, atol=atol, rtol=0.0))

    def __repr__(self) -> str:
        return f"Operator(name={self._name!r}, arity={self._arity})"


def concat(u1: Operator, u2: Operator, name: Optional[str] = None) -> Operator:
    """
    Sequential composition: apply ``u2`` first, then ``u1``.

    The result's matrix is ``u1 @ u2``.

    Raises:
        ArityMismatch: If the arities differ.
    """
    if u1.arity != u2.arity:
        raise ArityMismatch(
            f"CONCAT needs equal arities, got {u1.name!r} ({u1.arity}) "
            f"and {u2.name!r} ({u2.arity})"
        )
    if name is None:
        name = f"CONCAT({u1.name},{u2.name})"
    return Operator._trusted(name, u1.as_tensor() @ u2.as_tensor())


def tensor(u1: Operator, u2: Operator, name: Optional[str] = None) -> Operator:
    """
    Parallel composition with arity ``u1.arity + u2.arity``.

    The result's matrix is ``kron(u2, u1)``: ``u2`` acts on the first
    (most significant) ``u2.arity`` qubits, ``u1`` on the remaining ones.
    """
    if name is None:
        name = f"TENSOR({u1.name},{u2.name})"
    return Operator._trusted(name, torch.kron(u2.as_tensor(), u1.as_tensor()))


def inverse(u: Operator, name: Optional[str] = None) -> Operator:
    """Hermitian adjoint, the inverse of a unitary."""
    if name is None:
        name = f"INVERSE({u.name})"
    return Operator._trusted(name, u.as_tensor().conj().transpose(0, 1))
