"""Error kinds raised by the assembler core.

Each kind derives from :class:`AssemblerError` and from the builtin
exception a caller would naturally catch for it, so both
``except AssemblerError`` and ``except ValueError`` work.
"""

from __future__ import annotations


class AssemblerError(Exception):
    """Base class for every error raised by the assembler core."""


class InvalidBitLiteral(AssemblerError, ValueError):
    """A register literal contains something other than 0/1, or a bad count."""


class DuplicateName(AssemblerError, ValueError):
    """A name is already bound to a register, view or operator."""


class UnknownRegister(AssemblerError, LookupError):
    """No register or view is bound to the requested name."""


class UnknownOperator(AssemblerError, LookupError):
    """No operator or primitive gate matches the requested name."""


class RangeOutOfBounds(AssemblerError, ValueError):
    """SELECT arguments fall outside the source register."""


class ArityMismatch(AssemblerError, ValueError):
    """Operator and target (or two operators) disagree on qubit count."""


class NonUnitaryOperator(AssemblerError, ValueError):
    """A user-supplied matrix is not a unitary on whole qubits."""


class NonHermitianObservable(AssemblerError, ValueError):
    """An observable matrix is not Hermitian on whole qubits."""


class DanglingView(AssemblerError, RuntimeError):
    """A view outlived the register state it was selected from."""


class ZeroProbabilityCollapse(AssemblerError, RuntimeError):
    """Measurement drew an outcome with zero probability mass.

    Unreachable for a normalized state; signals a broken invariant.
    """


class ContextClosed(AssemblerError, RuntimeError):
    """The assembler context was closed and can no longer be used."""


__all__ = [
    "AssemblerError",
    "InvalidBitLiteral",
    "DuplicateName",
    "UnknownRegister",
    "UnknownOperator",
    "RangeOutOfBounds",
    "ArityMismatch",
    "NonUnitaryOperator",
    "NonHermitianObservable",
    "DanglingView",
    "ZeroProbabilityCollapse",
    "ContextClosed",
]
