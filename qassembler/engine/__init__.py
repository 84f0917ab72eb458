"""Application, measurement and observable engines."""

from .application import apply
from .measurement import MeasurementResult, measure, measurement_probabilities
from .observables import expectation, transition_amplitude, variance

__all__ = [
    "apply",
    "measure",
    "measurement_probabilities",
    "MeasurementResult",
    "expectation",
    "variance",
    "transition_amplitude",
]
