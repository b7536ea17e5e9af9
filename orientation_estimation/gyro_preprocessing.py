"""Gyroscope rate preprocessing.

Selects the pitch and roll rate axes from the gyroscope series, converts
them to degrees per second and optionally removes a constant bias.

The bias is the mean of each axis over the entire series, computed in one
pass before fusion starts. It therefore includes samples the validity gate
later rejects; streaming use needs a bias from a separate calibration.
"""

import logging
from typing import Tuple

import numpy as np

from orientation_estimation.errors import InvalidConfigurationError


logger = logging.getLogger(__name__)

ROLL_AXIS = 0
PITCH_AXIS = 1


def estimate_gyro_offset(angular_velocity: np.ndarray) -> np.ndarray:
    """Mean of the roll and pitch gyro axes, ignoring NaN samples.

    Args:
        angular_velocity: Gyroscope samples, shape (N, 3)

    Returns:
        Offsets [roll_axis_offset, pitch_axis_offset]

    Raises:
        InvalidConfigurationError: If an axis has no non-NaN sample
    """
    rate_axes = angular_velocity[:, [ROLL_AXIS, PITCH_AXIS]]
    valid_counts = np.sum(~np.isnan(rate_axes), axis=0)
    if np.any(valid_counts == 0):
        raise InvalidConfigurationError(
            "remove_offset requires at least one non-NaN gyroscope sample "
            "on each of the first two axes"
        )

    missing = rate_axes.shape[0] - valid_counts
    if np.any(missing):
        logger.warning(
            "Gyro offset computed without %d roll and %d pitch NaN samples",
            missing[0],
            missing[1],
        )
    return np.nanmean(rate_axes, axis=0)


def compute_gyro_rates(
    angular_velocity: np.ndarray,
    remove_offset: bool = False,
    gyro_units: str = 'degps',
) -> Tuple[np.ndarray, np.ndarray]:
    """Convert a gyroscope series into pitch and roll rates.

    The pitch rate is the second axis and the roll rate the first axis.
    No sign change is applied beyond this axis selection.

    Args:
        angular_velocity: Gyroscope samples, shape (N, 3)
        remove_offset: Subtract the whole-series mean from each rate axis
        gyro_units: 'degps' or 'radps' for the input units

    Returns:
        Tuple of (pitch_rate_degps, roll_rate_degps), each shape (N,).
        New arrays; the input is not modified.
    """
    rates = np.array(angular_velocity, dtype=float, copy=True)
    if gyro_units == 'radps':
        rates = np.degrees(rates)

    if remove_offset:
        roll_offset, pitch_offset = estimate_gyro_offset(rates)
        logger.debug(
            "Removing gyro offset: roll %.4f deg/s, pitch %.4f deg/s",
            roll_offset,
            pitch_offset,
        )
        rates[:, ROLL_AXIS] -= roll_offset
        rates[:, PITCH_AXIS] -= pitch_offset

    return rates[:, PITCH_AXIS], rates[:, ROLL_AXIS]
