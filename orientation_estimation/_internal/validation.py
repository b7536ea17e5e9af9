"""Runtime contract validation utilities.

Internal module for configuration and input validation. Structural problems
fail fast here, before any fusion work begins.
"""

from typing import Tuple

import numpy as np

from orientation_estimation.errors import (
    InvalidConfigurationError,
    ShapeMismatchError,
)


def is_real_number(value) -> bool:
    """Whether value is an int or float scalar (bools excluded)."""
    return (
        not isinstance(value, (bool, np.bool_))
        and isinstance(value, (int, float, np.integer, np.floating))
    )


def validate_real_number(value: float, name: str) -> None:
    """Validate that a value is a finite real number.

    Raises:
        InvalidConfigurationError: If value is not numeric or not finite
    """
    if not is_real_number(value) or not np.isfinite(value):
        raise InvalidConfigurationError(
            f"{name} must be a finite number, got {value!r}"
        )


def validate_bool(value: bool, name: str) -> None:
    """Validate that a flag is a real boolean, not a truthy string.

    Raises:
        InvalidConfigurationError: If value is not a bool
    """
    if not isinstance(value, (bool, np.bool_)):
        raise InvalidConfigurationError(
            f"{name} must be true or false, got {value!r}"
        )


def validate_positive(value: float, name: str) -> None:
    """Validate that a value is strictly positive.

    Args:
        value: Value to validate
        name: Parameter name for error message

    Raises:
        InvalidConfigurationError: If value <= 0, not finite or not numeric
    """
    if not is_real_number(value) or not np.isfinite(value) or value <= 0:
        raise InvalidConfigurationError(
            f"{name} must be positive, got {value}"
        )


def validate_positive_integer(value: int, name: str) -> None:
    """Validate that a value is a positive integer.

    Args:
        value: The value to validate
        name: Parameter name for error messages

    Raises:
        InvalidConfigurationError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise InvalidConfigurationError(
            f"{name} must be a positive integer, got {value}"
        )


def validate_unit_interval(value: float, name: str) -> None:
    """Validate that a value lies in the half-open interval [0, 1).

    Raises:
        InvalidConfigurationError: If value < 0, value >= 1, not finite
            or not numeric
    """
    if not is_real_number(value) or not np.isfinite(value) or not 0.0 <= value < 1.0:
        raise InvalidConfigurationError(
            f"{name} must be in [0, 1), got {value!r}"
        )


def validate_choice(value: str, choices: Tuple[str, ...], name: str) -> None:
    """Validate that a string option is one of the supported values.

    Raises:
        InvalidConfigurationError: If value is not in choices
    """
    if value not in choices:
        raise InvalidConfigurationError(
            f"{name} must be one of {choices}, got '{value}'"
        )


def validate_sensor_array(array: np.ndarray, name: str) -> None:
    """Validate that a sensor array is a non-empty (N, 3) matrix.

    Args:
        array: Sensor samples, one row per sample
        name: Parameter name for error message

    Raises:
        ShapeMismatchError: If shape is not (N, 3) with N >= 1
    """
    if array.ndim != 2 or array.shape[1] != 3:
        raise ShapeMismatchError(
            f"{name} must have shape (N, 3), got {array.shape}"
        )
    if array.shape[0] == 0:
        raise ShapeMismatchError(f"{name} must contain at least one sample")
