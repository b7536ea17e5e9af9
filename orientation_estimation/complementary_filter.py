"""Complementary filter for pitch and roll estimation.

Fuses accelerometer and gyroscope series to estimate sensor tilt. The
accelerometer gives a noisy but drift-free angle from the gravity vector,
while the integrated gyroscope is smooth but drifts. The filter blends them
with a fixed weight:

    angle[j] = w * (angle[j-1] + rate[j-1] / fs) + (1 - w) * angle_accel[j]

The blend is only used when the accelerometer can be trusted. A validity
gate picks one of three branches per sample and axis:

    FULL_FUSION: |a| inside the valid band, accel angle and gyro rate present
    GYRO_ONLY:   gyro rate present, integrate without correction
    HOLD:        gyro rate missing, keep the previous angle

The recursion is written as a fold over an explicit FusionState, so every
call to run_fusion_loop starts from fresh state and separate series can be
processed concurrently.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from orientation_estimation._internal.imu_fusion import (
    acceleration_magnitude,
    angles_from_accelerometer,
    blend_complementary,
    integrate_gyroscope,
)
from orientation_estimation._internal.validation import (
    validate_positive,
    validate_sensor_array,
)
from orientation_estimation.config import FusionConfig
from orientation_estimation.errors import ShapeMismatchError
from orientation_estimation.gyro_preprocessing import compute_gyro_rates
from orientation_estimation.post_filter import (
    apply_post_filter,
    design_post_filter,
    validate_series_length,
)


logger = logging.getLogger(__name__)


class FusionBranch(enum.Enum):
    """Blending rule chosen by the validity gate for one sample."""

    FULL_FUSION = 'full_fusion'
    GYRO_ONLY = 'gyro_only'
    HOLD = 'hold'


@dataclass
class IMUSeries:
    """Calibrated IMU sample series.

    Attributes:
        acceleration_mps2: Accelerometer samples, shape (N, 3), m/s^2, NED
        angular_velocity: Gyroscope samples, shape (N, 3), NED, in the
            units given by FusionConfig.gyro_units
    """

    acceleration_mps2: np.ndarray  # Shape (N, 3)
    angular_velocity: np.ndarray  # Shape (N, 3)

    def __post_init__(self) -> None:
        """Validate array shapes."""
        self.acceleration_mps2 = np.asarray(self.acceleration_mps2, dtype=float)
        self.angular_velocity = np.asarray(self.angular_velocity, dtype=float)

        validate_sensor_array(self.acceleration_mps2, 'acceleration_mps2')
        validate_sensor_array(self.angular_velocity, 'angular_velocity')

        if self.acceleration_mps2.shape[0] != self.angular_velocity.shape[0]:
            raise ShapeMismatchError(
                f"acceleration_mps2 and angular_velocity must have the same "
                f"number of samples, got {self.acceleration_mps2.shape[0]} "
                f"and {self.angular_velocity.shape[0]}"
            )

    @property
    def num_samples(self) -> int:
        """Number of samples N."""
        return self.acceleration_mps2.shape[0]


@dataclass(frozen=True)
class FusionState:
    """Fused angles carried from one sample to the next (degrees)."""

    pitch_deg: float
    roll_deg: float


@dataclass(frozen=True)
class FusionSample:
    """Inputs consumed by one step of the recurrence.

    Attributes:
        accel_magnitude_mps2: Norm of the accelerometer sample at j
        pitch_accel_deg: Accelerometer pitch at j
        roll_accel_deg: Accelerometer roll at j
        pitch_rate_degps: Gyro pitch rate at j-1
        roll_rate_degps: Gyro roll rate at j-1
    """

    accel_magnitude_mps2: float
    pitch_accel_deg: float
    roll_accel_deg: float
    pitch_rate_degps: float
    roll_rate_degps: float


@dataclass(frozen=True)
class OrientationEstimate:
    """Fused tilt sequences for one IMU series.

    Attributes:
        pitch_deg: Pitch per sample, shape (N,)
        roll_deg: Roll per sample, shape (N,)
        pitch_branches: Gate branch used for pitch at samples 1..N-1
        roll_branches: Gate branch used for roll at samples 1..N-1
        filtered: Whether the post-filter was applied
    """

    pitch_deg: np.ndarray
    roll_deg: np.ndarray
    pitch_branches: Tuple[FusionBranch, ...]
    roll_branches: Tuple[FusionBranch, ...]
    filtered: bool = False


def select_fusion_branch(
    accel_magnitude_mps2: float,
    accel_angle_deg: float,
    previous_rate_degps: float,
    config: FusionConfig,
) -> FusionBranch:
    """Choose the blending rule for one axis of one sample.

    Branches are checked in priority order. The magnitude band is
    inclusive at both ends.

    Args:
        accel_magnitude_mps2: Norm of the current accelerometer sample
        accel_angle_deg: Accelerometer angle for this axis at j
        previous_rate_degps: Gyro rate for this axis at j-1
        config: Fusion configuration holding the valid band

    Returns:
        FusionBranch to apply
    """
    if np.isnan(previous_rate_degps):
        return FusionBranch.HOLD

    in_band = (
        config.min_valid_accel_mps2
        <= accel_magnitude_mps2
        <= config.max_valid_accel_mps2
    )
    if in_band and not np.isnan(accel_angle_deg):
        return FusionBranch.FULL_FUSION
    return FusionBranch.GYRO_ONLY


def apply_fusion_branch(
    branch: FusionBranch,
    previous_angle_deg: float,
    accel_angle_deg: float,
    previous_rate_degps: float,
    sampling_rate_hz: float,
    gyro_weight: float,
) -> float:
    """Compute the new angle for one axis under the given branch."""
    if branch is FusionBranch.HOLD:
        return previous_angle_deg

    gyro_angle_deg = integrate_gyroscope(
        previous_angle_deg, previous_rate_degps, sampling_rate_hz
    )
    if branch is FusionBranch.GYRO_ONLY:
        return gyro_angle_deg
    return blend_complementary(gyro_angle_deg, accel_angle_deg, gyro_weight)


def fusion_step(
    state: FusionState,
    sample: FusionSample,
    sampling_rate_hz: float,
    config: FusionConfig,
) -> Tuple[FusionState, Tuple[FusionBranch, FusionBranch]]:
    """Advance the recurrence by one sample.

    Pitch and roll are gated independently with their own accelerometer
    angle and gyro rate.

    Returns:
        Tuple of (new FusionState, (pitch_branch, roll_branch))
    """
    pitch_branch = select_fusion_branch(
        sample.accel_magnitude_mps2,
        sample.pitch_accel_deg,
        sample.pitch_rate_degps,
        config,
    )
    roll_branch = select_fusion_branch(
        sample.accel_magnitude_mps2,
        sample.roll_accel_deg,
        sample.roll_rate_degps,
        config,
    )

    new_state = FusionState(
        pitch_deg=apply_fusion_branch(
            pitch_branch,
            state.pitch_deg,
            sample.pitch_accel_deg,
            sample.pitch_rate_degps,
            sampling_rate_hz,
            config.gyro_weight,
        ),
        roll_deg=apply_fusion_branch(
            roll_branch,
            state.roll_deg,
            sample.roll_accel_deg,
            sample.roll_rate_degps,
            sampling_rate_hz,
            config.gyro_weight,
        ),
    )
    return new_state, (pitch_branch, roll_branch)


def _seed_angle(accel_angle_deg: np.ndarray, window: int, name: str) -> float:
    seed_samples = accel_angle_deg[:window]
    if np.all(np.isnan(seed_samples)):
        logger.warning(
            "No valid accelerometer %s in the first %d samples, seeding at 0",
            name,
            seed_samples.shape[0],
        )
        return 0.0
    return float(np.nanmean(seed_samples))


def seed_fusion_state(
    pitch_accel_deg: np.ndarray,
    roll_accel_deg: np.ndarray,
    window: int = 10,
) -> FusionState:
    """Initial state from the mean accelerometer angles.

    Averages the first `window` samples (all samples if fewer) to reduce
    single-sample noise at start-up. NaN samples are skipped.
    """
    return FusionState(
        pitch_deg=_seed_angle(pitch_accel_deg, window, 'pitch'),
        roll_deg=_seed_angle(roll_accel_deg, window, 'roll'),
    )


def run_fusion_loop(
    acceleration_mps2: np.ndarray,
    pitch_accel_deg: np.ndarray,
    roll_accel_deg: np.ndarray,
    pitch_rate_degps: np.ndarray,
    roll_rate_degps: np.ndarray,
    sampling_rate_hz: float,
    config: FusionConfig,
) -> OrientationEstimate:
    """Run the complementary recurrence over a whole series.

    Args:
        acceleration_mps2: Accelerometer samples, shape (N, 3), for the gate
        pitch_accel_deg: Accelerometer pitch, shape (N,)
        roll_accel_deg: Accelerometer roll, shape (N,)
        pitch_rate_degps: Gyro pitch rate, shape (N,)
        roll_rate_degps: Gyro roll rate, shape (N,)
        sampling_rate_hz: Sample rate in Hz
        config: Fusion configuration

    Returns:
        Unfiltered OrientationEstimate
    """
    num_samples = pitch_accel_deg.shape[0]
    accel_magnitude_mps2 = acceleration_magnitude(acceleration_mps2)

    pitch_deg = np.zeros(num_samples)
    roll_deg = np.zeros(num_samples)
    pitch_branches = []
    roll_branches = []

    state = seed_fusion_state(
        pitch_accel_deg, roll_accel_deg, config.seed_window_samples
    )
    pitch_deg[0] = state.pitch_deg
    roll_deg[0] = state.roll_deg

    for jj in range(1, num_samples):
        sample = FusionSample(
            accel_magnitude_mps2=accel_magnitude_mps2[jj],
            pitch_accel_deg=pitch_accel_deg[jj],
            roll_accel_deg=roll_accel_deg[jj],
            pitch_rate_degps=pitch_rate_degps[jj - 1],
            roll_rate_degps=roll_rate_degps[jj - 1],
        )
        state, (pitch_branch, roll_branch) = fusion_step(
            state, sample, sampling_rate_hz, config
        )
        pitch_deg[jj] = state.pitch_deg
        roll_deg[jj] = state.roll_deg
        pitch_branches.append(pitch_branch)
        roll_branches.append(roll_branch)

    return OrientationEstimate(
        pitch_deg=pitch_deg,
        roll_deg=roll_deg,
        pitch_branches=tuple(pitch_branches),
        roll_branches=tuple(roll_branches),
    )


def count_branches(branches: Tuple[FusionBranch, ...]) -> dict:
    """Number of samples that used each branch."""
    return {branch: branches.count(branch) for branch in FusionBranch}


class ComplementaryFilter:
    """Batch complementary filter for pitch and roll.

    Holds only configuration; each call to estimate() builds its own
    FusionState, so one instance may serve several series, including
    from different threads.

    Attributes:
        sampling_rate_hz: Sample rate of the series in Hz
        config: Fusion and post-filter parameters
    """

    def __init__(
        self,
        sampling_rate_hz: float,
        config: Optional[FusionConfig] = None,
    ) -> None:
        """Initialize the complementary filter.

        The post-filter, if enabled, is designed here so that a cutoff at
        or above the Nyquist frequency is rejected before any series is
        processed.

        Args:
            sampling_rate_hz: Sample rate in Hz
            config: Fusion configuration. Defaults to FusionConfig().

        Raises:
            InvalidConfigurationError: If sampling_rate_hz is not positive
                or the post-filter cutoff is not below fs / 2
        """
        validate_positive(sampling_rate_hz, 'sampling_rate_hz')
        self._sampling_rate_hz = float(sampling_rate_hz)
        self._config = config if config is not None else FusionConfig()

        self._filter_coefficients = None
        if self._config.filter_enabled:
            self._filter_coefficients = design_post_filter(
                self._config, self._sampling_rate_hz
            )

    def estimate(self, series: IMUSeries) -> OrientationEstimate:
        """Estimate pitch and roll for a whole IMU series.

        Args:
            series: Calibrated accelerometer and gyroscope samples

        Returns:
            OrientationEstimate with one pitch and roll value per sample

        Raises:
            InvalidConfigurationError: If the series is too short for the
                post-filter, or offset removal is impossible
        """
        config = self._config
        if self._filter_coefficients is not None:
            validate_series_length(
                series.num_samples, self._filter_coefficients, config
            )

        pitch_accel_deg, roll_accel_deg = angles_from_accelerometer(
            series.acceleration_mps2
        )
        pitch_rate_degps, roll_rate_degps = compute_gyro_rates(
            series.angular_velocity,
            remove_offset=config.remove_offset,
            gyro_units=config.gyro_units,
        )

        fused = run_fusion_loop(
            series.acceleration_mps2,
            pitch_accel_deg,
            roll_accel_deg,
            pitch_rate_degps,
            roll_rate_degps,
            self._sampling_rate_hz,
            config,
        )

        pitch_counts = count_branches(fused.pitch_branches)
        roll_counts = count_branches(fused.roll_branches)
        logger.info(
            "Fused %d samples: pitch full=%d gyro_only=%d hold=%d, "
            "roll full=%d gyro_only=%d hold=%d",
            series.num_samples,
            pitch_counts[FusionBranch.FULL_FUSION],
            pitch_counts[FusionBranch.GYRO_ONLY],
            pitch_counts[FusionBranch.HOLD],
            roll_counts[FusionBranch.FULL_FUSION],
            roll_counts[FusionBranch.GYRO_ONLY],
            roll_counts[FusionBranch.HOLD],
        )

        if self._filter_coefficients is None:
            return fused

        pitch_deg, roll_deg = apply_post_filter(
            fused.pitch_deg,
            fused.roll_deg,
            config,
            self._sampling_rate_hz,
            coefficients=self._filter_coefficients,
        )
        return OrientationEstimate(
            pitch_deg=pitch_deg,
            roll_deg=roll_deg,
            pitch_branches=fused.pitch_branches,
            roll_branches=fused.roll_branches,
            filtered=True,
        )

    @property
    def sampling_rate_hz(self) -> float:
        """Sample rate in Hz."""
        return self._sampling_rate_hz

    @property
    def config(self) -> FusionConfig:
        """Fusion configuration."""
        return self._config


def estimate_orientation(
    acceleration_mps2: np.ndarray,
    angular_velocity: np.ndarray,
    sampling_rate_hz: float,
    config: Optional[FusionConfig] = None,
) -> OrientationEstimate:
    """Estimate pitch and roll from raw accelerometer and gyroscope arrays.

    Convenience wrapper around ComplementaryFilter.estimate().

    Args:
        acceleration_mps2: Accelerometer samples, shape (N, 3), m/s^2
        angular_velocity: Gyroscope samples, shape (N, 3)
        sampling_rate_hz: Sample rate in Hz
        config: Fusion configuration. Defaults to FusionConfig().

    Returns:
        OrientationEstimate

    Raises:
        ShapeMismatchError: If the arrays are not matching (N, 3) series
        InvalidConfigurationError: If sampling_rate_hz or config is invalid
    """
    estimator = ComplementaryFilter(sampling_rate_hz, config)
    return estimator.estimate(IMUSeries(acceleration_mps2, angular_velocity))
