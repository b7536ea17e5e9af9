"""Complementary filter configuration parameters.

Single source of truth for fusion and post-filter settings.
See config/fusion_params.yaml for parameter values.
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
import yaml

from orientation_estimation._internal.validation import (
    validate_bool,
    validate_choice,
    validate_positive_integer,
    validate_real_number,
    validate_unit_interval,
)
from orientation_estimation.errors import InvalidConfigurationError

FILTER_TYPES = ('low', 'high', 'stop', 'bandpass')
BAND_FILTER_TYPES = ('stop', 'bandpass')
GYRO_UNITS = ('degps', 'radps')

CutoffHz = Union[float, Tuple[float, float]]


@dataclass(frozen=True)
class FusionConfig:
    """Configuration parameters for the complementary filter.

    All parameters immutable after construction (frozen=True).

    Attributes:
        gyro_weight: Trust given to the gyro-integrated estimate, in [0, 1).
            Values near 1 follow the gyroscope, 0 follows the accelerometer.
        remove_offset: Subtract the whole-series mean from the pitch and
            roll gyro axes before fusion
        filter_cutoff_hz: Butterworth cutoff in Hz. A scalar for 'low' and
            'high', a (low, high) pair for 'stop' and 'bandpass'.
            0 disables post-filtering.
        filter_order: Butterworth filter order
        filter_type: One of 'low', 'high', 'stop', 'bandpass'
        gyro_units: Units of the gyroscope input, 'degps' or 'radps'
        seed_window_samples: Accelerometer samples averaged for the
            initial angle
        min_valid_accel_mps2: Lower bound of the acceleration magnitude band
            in which the accelerometer estimate is trusted (inclusive)
        max_valid_accel_mps2: Upper bound of that band (inclusive)
    """

    gyro_weight: float = 0.995
    remove_offset: bool = False

    # Post-filter
    filter_cutoff_hz: CutoffHz = 0.0
    filter_order: int = 2
    filter_type: str = 'low'

    gyro_units: str = 'degps'
    seed_window_samples: int = 10

    # Validity gate (roughly 0.5 g to 2 g)
    min_valid_accel_mps2: float = 4.9
    max_valid_accel_mps2: float = 19.6

    def __post_init__(self) -> None:
        """Validate parameters satisfy constraints."""
        validate_unit_interval(self.gyro_weight, 'gyro_weight')
        validate_bool(self.remove_offset, 'remove_offset')
        validate_positive_integer(self.filter_order, 'filter_order')
        validate_choice(self.filter_type, FILTER_TYPES, 'filter_type')
        validate_choice(self.gyro_units, GYRO_UNITS, 'gyro_units')
        validate_positive_integer(
            self.seed_window_samples, 'seed_window_samples'
        )

        # Validity gate band
        validate_real_number(self.min_valid_accel_mps2, 'min_valid_accel_mps2')
        validate_real_number(self.max_valid_accel_mps2, 'max_valid_accel_mps2')
        if not 0.0 <= self.min_valid_accel_mps2 < self.max_valid_accel_mps2:
            raise InvalidConfigurationError(
                f"validity band must satisfy 0 <= min < max, got "
                f"[{self.min_valid_accel_mps2}, {self.max_valid_accel_mps2}]"
            )

        # Lists from YAML become tuples so the config stays hashable
        if isinstance(self.filter_cutoff_hz, list):
            object.__setattr__(
                self, 'filter_cutoff_hz', tuple(self.filter_cutoff_hz)
            )
        self._validate_filter_cutoff()

    def _validate_filter_cutoff(self) -> None:
        """Check the cutoff against the filter type.

        The Nyquist limit depends on the sample rate and is checked when the
        filter is designed.
        """
        cutoff_items = (
            self.filter_cutoff_hz
            if isinstance(self.filter_cutoff_hz, tuple)
            else (self.filter_cutoff_hz,)
        )
        for cutoff in cutoff_items:
            validate_real_number(cutoff, 'filter_cutoff_hz')

        cutoffs = np.asarray(cutoff_items, dtype=float)
        if cutoffs.size not in (1, 2):
            raise InvalidConfigurationError(
                f"filter_cutoff_hz must be a scalar or pair, "
                f"got {self.filter_cutoff_hz}"
            )
        if np.any(cutoffs < 0):
            raise InvalidConfigurationError(
                f"filter_cutoff_hz must be non-negative, "
                f"got {self.filter_cutoff_hz}"
            )
        if not self.filter_enabled:
            return

        band_filter = self.filter_type in BAND_FILTER_TYPES
        if band_filter and cutoffs.size != 2:
            raise InvalidConfigurationError(
                f"filter_type '{self.filter_type}' needs a (low, high) cutoff "
                f"pair, got {self.filter_cutoff_hz}"
            )
        if not band_filter and cutoffs.size != 1:
            raise InvalidConfigurationError(
                f"filter_type '{self.filter_type}' needs a scalar cutoff, "
                f"got {self.filter_cutoff_hz}"
            )
        if band_filter and not cutoffs[0] < cutoffs[1]:
            raise InvalidConfigurationError(
                f"filter_cutoff_hz pair must be ascending, "
                f"got {self.filter_cutoff_hz}"
            )

    @property
    def filter_enabled(self) -> bool:
        """Whether post-filtering is requested (any cutoff > 0)."""
        return bool(np.any(np.asarray(self.filter_cutoff_hz, dtype=float) > 0))

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'FusionConfig':
        """Load configuration from YAML file.

        Keys missing from the file keep their default values.

        Args:
            yaml_path: Path to YAML file containing fusion parameters

        Returns:
            FusionConfig instance

        Raises:
            FileNotFoundError: If YAML file does not exist
            InvalidConfigurationError: If parameters are unknown or invalid
        """
        with open(yaml_path, 'r') as file:
            config = yaml.safe_load(file) or {}

        known_fields = set(cls.__dataclass_fields__)
        unknown_fields = set(config) - known_fields
        if unknown_fields:
            raise InvalidConfigurationError(
                f"Unknown fusion parameters in {yaml_path}: "
                f"{sorted(unknown_fields)}"
            )

        return cls(**config)
