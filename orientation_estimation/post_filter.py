"""Zero-phase Butterworth smoothing of fused angle sequences.

Applied once over the whole fused series, after the recursion has
finished. Forward-backward filtering cancels the phase response, so the
output has no time shift relative to the input.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from scipy import signal

from orientation_estimation.config import BAND_FILTER_TYPES, FusionConfig
from orientation_estimation.errors import InvalidConfigurationError


logger = logging.getLogger(__name__)

SCIPY_BAND_TYPES = {
    'low': 'lowpass',
    'high': 'highpass',
    'stop': 'bandstop',
    'bandpass': 'bandpass',
}


FilterCoefficients = Tuple[np.ndarray, np.ndarray]


def design_post_filter(
    config: FusionConfig,
    sampling_rate_hz: float,
) -> FilterCoefficients:
    """Design the Butterworth filter requested by the configuration.

    The cutoff is normalized by the Nyquist frequency:
    Wn = filter_cutoff_hz / (fs / 2)

    The cutoff shape (scalar or ascending pair) is already checked by
    FusionConfig; only the sample-rate dependent limit is checked here.

    Args:
        config: Fusion configuration with filter settings
        sampling_rate_hz: Sample rate in Hz

    Returns:
        Transfer function coefficients (b, a)

    Raises:
        InvalidConfigurationError: If a cutoff falls outside (0, fs/2)
    """
    cutoffs_hz = np.atleast_1d(np.asarray(config.filter_cutoff_hz, dtype=float))
    band_filter = config.filter_type in BAND_FILTER_TYPES

    normalized_cutoff = cutoffs_hz / (sampling_rate_hz / 2.0)
    if np.any(normalized_cutoff <= 0) or np.any(normalized_cutoff >= 1):
        raise InvalidConfigurationError(
            f"filter_cutoff_hz must lie in (0, {sampling_rate_hz / 2.0}) Hz, "
            f"got {config.filter_cutoff_hz}"
        )

    logger.debug(
        "Designing order-%d %s Butterworth filter, Wn=%s",
        config.filter_order,
        config.filter_type,
        normalized_cutoff,
    )
    wn = normalized_cutoff if band_filter else normalized_cutoff[0]
    b, a = signal.butter(
        config.filter_order, wn, btype=SCIPY_BAND_TYPES[config.filter_type]
    )
    return b, a


def validate_series_length(
    num_samples: int,
    coefficients: FilterCoefficients,
    config: FusionConfig,
) -> None:
    """Check that a series is long enough for filtfilt's edge padding.

    Raises:
        InvalidConfigurationError: If num_samples <= filtfilt's default padlen
    """
    b, a = coefficients
    padlen = 3 * max(len(a), len(b))
    if num_samples <= padlen:
        raise InvalidConfigurationError(
            f"Series of {num_samples} samples is too short for an "
            f"order-{config.filter_order} {config.filter_type} filter "
            f"(needs more than {padlen})"
        )


def apply_post_filter(
    pitch_deg: np.ndarray,
    roll_deg: np.ndarray,
    config: FusionConfig,
    sampling_rate_hz: float,
    coefficients: Optional[FilterCoefficients] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Smooth fused pitch and roll with forward-backward filtering.

    Returns the inputs unchanged when filtering is disabled
    (filter_cutoff_hz == 0).

    Args:
        pitch_deg: Fused pitch, shape (N,)
        roll_deg: Fused roll, shape (N,)
        config: Fusion configuration with filter settings
        sampling_rate_hz: Sample rate in Hz
        coefficients: Pre-designed (b, a). Designed from config if None.

    Raises:
        InvalidConfigurationError: If the filter is invalid or the series
            is too short for filtfilt's edge padding
    """
    if not config.filter_enabled:
        return pitch_deg, roll_deg

    if coefficients is None:
        coefficients = design_post_filter(config, sampling_rate_hz)
    validate_series_length(pitch_deg.shape[0], coefficients, config)

    b, a = coefficients
    return signal.filtfilt(b, a, pitch_deg), signal.filtfilt(b, a, roll_deg)
