"""Operator values and the operator algebra."""

from .algebra import Operator, concat, inverse, tensor

__all__ = ["Operator", "concat", "tensor", "inverse"]
