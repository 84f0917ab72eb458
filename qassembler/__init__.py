"""Quantum assembler core: registers, operator algebra, APPLY and MEASURE."""

__version__ = "0.1.0"

from .backend import (
    apply_operator,
    basis_state,
    bits_to_index,
    collapse,
    index_to_bits,
    marginal_probabilities,
    measure_probs,
    observable_moments,
    overlap,
    zero_state,
)
from .config import AssemblerConfig
from .context import AssemblerContext
from .core import Device, FairLock, default_device, device
from .diagnostics import (
    assert_normalized,
    debug_context,
    fidelity,
    is_debug_enabled,
    is_hermitian,
    is_unitary,
    set_debug_enabled,
    state_norm,
)
from .engine import (
    MeasurementResult,
    apply,
    expectation,
    measure,
    measurement_probabilities,
    transition_amplitude,
    variance,
)
from .errors import (
    ArityMismatch,
    AssemblerError,
    ContextClosed,
    DanglingView,
    DuplicateName,
    InvalidBitLiteral,
    NonHermitianObservable,
    NonUnitaryOperator,
    RangeOutOfBounds,
    UnknownOperator,
    UnknownRegister,
    ZeroProbabilityCollapse,
)
from .gates import is_primitive_name, resolve_gate
from .operators import Operator, concat, inverse, tensor
from .registers import Register, RegisterStore, SubRegisterView

__all__ = [
    "__version__",
    # Context and configuration
    "AssemblerContext",
    "AssemblerConfig",
    "Device",
    "device",
    "default_device",
    "FairLock",
    # Registers and views
    "Register",
    "SubRegisterView",
    "RegisterStore",
    # Operators
    "Operator",
    "concat",
    "tensor",
    "inverse",
    "resolve_gate",
    "is_primitive_name",
    # Engines
    "apply",
    "measure",
    "measurement_probabilities",
    "MeasurementResult",
    "expectation",
    "variance",
    "transition_amplitude",
    # Statevector kernels
    "basis_state",
    "zero_state",
    "bits_to_index",
    "index_to_bits",
    "apply_operator",
    "observable_moments",
    "overlap",
    "measure_probs",
    "marginal_probabilities",
    "collapse",
    # Diagnostics
    "state_norm",
    "assert_normalized",
    "is_unitary",
    "is_hermitian",
    "fidelity",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    # Errors
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
