"""IMU sensor fusion mathematics.

Provides low-level functions for computing tilt angles from IMU data.
The sensor coordinate frame is assumed to be North-East-Down:
    - X-axis: forward (north)
    - Y-axis: right (east)
    - Z-axis: down (along gravity when level)

Angles are in degrees:
    - pitch > 0: forward axis tilted nose-down (forward)
    - roll > 0: tilted to the right
"""

from typing import Tuple

import numpy as np


def angles_from_accelerometer(
    acceleration_mps2: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Compute pitch and roll from the direction of the gravity vector.

    Valid when the sensor is quasi-static, so that the measured specific
    force is dominated by gravity:

        pitch = atan2(a_x, sqrt(a_y^2 + a_z^2))
        roll  = -atan2(a_y, sqrt(a_x^2 + a_z^2))

    Roll is sign-inverted so that a rightward tilt is positive.

    Args:
        acceleration_mps2: Accelerometer samples, shape (N, 3) or (3,)

    Returns:
        Tuple of (pitch_deg, roll_deg), each shape (N,) or scalar

    Note:
        A NaN on any axis yields NaN for both angles. The result is
        meaningless when all three axes are zero.
    """
    acceleration_mps2 = np.asarray(acceleration_mps2, dtype=float)
    accel_x = acceleration_mps2[..., 0]
    accel_y = acceleration_mps2[..., 1]
    accel_z = acceleration_mps2[..., 2]

    pitch_deg = np.degrees(
        np.arctan2(accel_x, np.sqrt(accel_y ** 2 + accel_z ** 2))
    )
    roll_deg = -np.degrees(
        np.arctan2(accel_y, np.sqrt(accel_x ** 2 + accel_z ** 2))
    )
    return pitch_deg, roll_deg


def acceleration_magnitude(acceleration_mps2: np.ndarray) -> np.ndarray:
    """Euclidean norm of each accelerometer sample (m/s^2)."""
    return np.linalg.norm(np.asarray(acceleration_mps2, dtype=float), axis=-1)


def integrate_gyroscope(
    previous_angle_deg: float,
    angular_rate_degps: float,
    sampling_rate_hz: float,
) -> float:
    """Integrate a gyroscope rate over one sample interval.

    Simple Euler integration: angle_new = angle_old + rate / fs

    Args:
        previous_angle_deg: Previous angle estimate in degrees
        angular_rate_degps: Angular rate in degrees per second
        sampling_rate_hz: Sample rate in Hz

    Returns:
        Integrated angle estimate in degrees

    Note:
        This estimate is smooth but drifts over time due to gyroscope bias.
    """
    return previous_angle_deg + angular_rate_degps / sampling_rate_hz


def blend_complementary(
    gyro_angle_deg: float,
    accel_angle_deg: float,
    gyro_weight: float,
) -> float:
    """Blend gyro-integrated and accelerometer angles.

    angle = w * gyro_angle + (1 - w) * accel_angle
    """
    return gyro_weight * gyro_angle_deg + (1.0 - gyro_weight) * accel_angle_deg
