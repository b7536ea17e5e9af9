"""Orientation estimation module for body-worn IMUs.

This module fuses accelerometer and gyroscope series into pitch and roll
angles with a gated complementary filter.

Public API:
    - FusionConfig: Configuration dataclass for filter parameters
    - ComplementaryFilter: Batch complementary filter for pitch and roll
    - IMUSeries: Dataclass for calibrated accelerometer/gyroscope series
    - OrientationEstimate: Fused pitch and roll sequences
    - FusionState, FusionSample, FusionBranch: Recurrence building blocks
    - fusion_step, run_fusion_loop: Single-step and whole-series recurrence
    - estimate_orientation: One-call estimation from raw arrays
    - estimate_segments: Parallel estimation for several segments
    - ShapeMismatchError, InvalidConfigurationError: Input errors
"""

from orientation_estimation.config import FusionConfig
from orientation_estimation.complementary_filter import (
    ComplementaryFilter,
    FusionBranch,
    FusionSample,
    FusionState,
    IMUSeries,
    OrientationEstimate,
    estimate_orientation,
    fusion_step,
    run_fusion_loop,
)
from orientation_estimation.errors import (
    InvalidConfigurationError,
    ShapeMismatchError,
)
from orientation_estimation.segments import estimate_segments

__all__ = [
    'FusionConfig',
    'ComplementaryFilter',
    'FusionBranch',
    'FusionSample',
    'FusionState',
    'IMUSeries',
    'OrientationEstimate',
    'estimate_orientation',
    'fusion_step',
    'run_fusion_loop',
    'estimate_segments',
    'InvalidConfigurationError',
    'ShapeMismatchError',
]
