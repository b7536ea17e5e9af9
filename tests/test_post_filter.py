"""Tests for the zero-phase post-filter."""

import numpy as np
import pytest

from orientation_estimation import FusionConfig, InvalidConfigurationError
from orientation_estimation.post_filter import (
    apply_post_filter,
    design_post_filter,
    validate_series_length,
)


SAMPLING_RATE_HZ = 200.0


@pytest.fixture
def time_s():
    """Five seconds of sample times."""
    return np.arange(1000) / SAMPLING_RATE_HZ


def test_disabled_filter_returns_input():
    """Test that cutoff 0 leaves the sequences untouched."""
    pitch = np.array([1.0, 2.0, 3.0])
    roll = np.array([-1.0, -2.0, -3.0])

    filtered_pitch, filtered_roll = apply_post_filter(
        pitch, roll, FusionConfig(), SAMPLING_RATE_HZ
    )

    assert filtered_pitch is pitch
    assert filtered_roll is roll


def test_lowpass_removes_high_frequency_noise(time_s):
    """Test that a low-pass filter attenuates a 40 Hz component."""
    slow = 10.0 * np.sin(2 * np.pi * 0.5 * time_s)
    fast = 2.0 * np.sin(2 * np.pi * 40.0 * time_s)
    config = FusionConfig(filter_cutoff_hz=6.0, filter_order=4)

    filtered_pitch, _ = apply_post_filter(
        slow + fast, slow, config, SAMPLING_RATE_HZ
    )

    # Ignore edge transients
    interior = slice(100, -100)
    np.testing.assert_allclose(filtered_pitch[interior], slow[interior], atol=0.05)


def test_zero_phase_no_time_shift(time_s):
    """Test that forward-backward filtering keeps peaks in place."""
    slow = np.sin(2 * np.pi * 1.0 * time_s)
    config = FusionConfig(filter_cutoff_hz=10.0)

    filtered_pitch, _ = apply_post_filter(slow, slow, config, SAMPLING_RATE_HZ)

    lags = np.arange(-20, 21)
    interior = slice(200, 800)
    errors = [
        np.sum((np.roll(filtered_pitch, lag)[interior] - slow[interior]) ** 2)
        for lag in lags
    ]
    assert lags[int(np.argmin(errors))] == 0


def test_highpass_removes_offset(time_s):
    """Test that a high-pass filter removes a constant tilt."""
    signal_deg = 30.0 + np.sin(2 * np.pi * 5.0 * time_s)
    config = FusionConfig(filter_cutoff_hz=0.5, filter_type='high')

    filtered_pitch, _ = apply_post_filter(
        signal_deg, signal_deg, config, SAMPLING_RATE_HZ
    )

    assert abs(np.mean(filtered_pitch[200:800])) < 0.1


def test_bandpass_design_accepts_pair():
    """Test band filter design with a (low, high) cutoff pair."""
    config = FusionConfig(filter_cutoff_hz=(0.5, 6.0), filter_type='bandpass')
    b, a = design_post_filter(config, SAMPLING_RATE_HZ)
    # Band filters double the order
    assert len(a) == 2 * config.filter_order + 1
    assert len(b) == len(a)


def test_stop_filter_attenuates_band(time_s):
    """Test that a band-stop filter removes a component inside the band."""
    keep = np.sin(2 * np.pi * 1.0 * time_s)
    reject = np.sin(2 * np.pi * 20.0 * time_s)
    config = FusionConfig(filter_cutoff_hz=(15.0, 25.0), filter_type='stop', filter_order=4)

    filtered_pitch, _ = apply_post_filter(
        keep + reject, keep, config, SAMPLING_RATE_HZ
    )

    np.testing.assert_allclose(filtered_pitch[200:800], keep[200:800], atol=0.05)


def test_band_filter_scalar_cutoff_raises():
    """Test that band filters require two cutoffs at construction."""
    with pytest.raises(InvalidConfigurationError, match="pair"):
        FusionConfig(filter_cutoff_hz=5.0, filter_type='bandpass')


def test_low_filter_pair_cutoff_raises():
    """Test that low/high filters require a scalar cutoff at construction."""
    with pytest.raises(InvalidConfigurationError, match="scalar"):
        FusionConfig(filter_cutoff_hz=(1.0, 5.0), filter_type='low')


def test_descending_pair_raises():
    """Test that band cutoffs must be ascending at construction."""
    with pytest.raises(InvalidConfigurationError, match="ascending"):
        FusionConfig(filter_cutoff_hz=(6.0, 0.5), filter_type='stop')


def test_disabled_filter_ignores_cutoff_shape():
    """Test that a zero cutoff is accepted for any filter type."""
    config = FusionConfig(filter_type='bandpass')
    assert not config.filter_enabled


def test_cutoff_above_nyquist_raises():
    """Test that the cutoff must be below fs / 2."""
    config = FusionConfig(filter_cutoff_hz=150.0)
    with pytest.raises(InvalidConfigurationError, match="must lie in"):
        design_post_filter(config, SAMPLING_RATE_HZ)


def test_short_series_raises():
    """Test that series shorter than the filter padding are rejected."""
    config = FusionConfig(filter_cutoff_hz=5.0)
    short = np.zeros(5)
    with pytest.raises(InvalidConfigurationError, match="too short"):
        apply_post_filter(short, short, config, SAMPLING_RATE_HZ)


def test_series_length_check_uses_filtfilt_padding():
    """Test the length limit against filtfilt's default padlen."""
    config = FusionConfig(filter_cutoff_hz=5.0)
    coefficients = design_post_filter(config, SAMPLING_RATE_HZ)
    # Order 2 gives three coefficients, padlen 9
    validate_series_length(10, coefficients, config)
    with pytest.raises(InvalidConfigurationError, match="too short"):
        validate_series_length(9, coefficients, config)


def test_predesigned_coefficients_match_config_design(time_s):
    """Test that passing (b, a) gives the same output as designing them."""
    config = FusionConfig(filter_cutoff_hz=6.0)
    wave = np.sin(2 * np.pi * 2.0 * time_s)
    coefficients = design_post_filter(config, SAMPLING_RATE_HZ)

    designed, _ = apply_post_filter(wave, wave, config, SAMPLING_RATE_HZ)
    reused, _ = apply_post_filter(
        wave, wave, config, SAMPLING_RATE_HZ, coefficients=coefficients
    )

    np.testing.assert_array_equal(designed, reused)
