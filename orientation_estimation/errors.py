"""Exceptions raised by the orientation estimation module.

Both exceptions derive from ValueError so callers that already guard
against invalid inputs with ``except ValueError`` keep working.
"""


class ShapeMismatchError(ValueError):
    """Accelerometer and gyroscope arrays are not compatible (N, 3) series."""


class InvalidConfigurationError(ValueError):
    """A configuration value or sampling rate violates its constraints."""
