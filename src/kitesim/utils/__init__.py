"""Utility functions for kitesim simulations."""

from .validation import (
    clamp,
    validate_finite_vector,
    validate_non_negative,
    validate_positive,
    validate_timestep,
)

__all__ = [
    "clamp",
    "validate_positive",
    "validate_non_negative",
    "validate_finite_vector",
    "validate_timestep",
]
