"""Parallel estimation for several body-segment IMUs.

Each segment (e.g. thigh and shank) is an independent series with its own
FusionState, so segments run concurrently without synchronization.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping, Optional

from orientation_estimation._internal.validation import validate_positive_integer
from orientation_estimation.complementary_filter import (
    ComplementaryFilter,
    IMUSeries,
    OrientationEstimate,
)
from orientation_estimation.config import FusionConfig


logger = logging.getLogger(__name__)


def estimate_segments(
    segments: Mapping[str, IMUSeries],
    sampling_rate_hz: float,
    config: Optional[FusionConfig] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, OrientationEstimate]:
    """Estimate pitch and roll for several IMU series in parallel.

    Args:
        segments: Segment name to IMU series
        sampling_rate_hz: Common sample rate in Hz
        config: Fusion configuration shared by all segments
        max_workers: Thread pool size. Defaults to one per segment.

    Returns:
        Segment name to OrientationEstimate, in the order of `segments`

    Raises:
        InvalidConfigurationError: If sampling_rate_hz, config or
            max_workers is invalid.
            Errors raised while estimating a segment propagate unchanged.
    """
    estimator = ComplementaryFilter(sampling_rate_hz, config)
    if max_workers is not None:
        validate_positive_integer(max_workers, 'max_workers')
    if not segments:
        return {}

    workers = max_workers if max_workers is not None else len(segments)
    logger.debug("Estimating %d segments on %d threads", len(segments), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            name: executor.submit(estimator.estimate, series)
            for name, series in segments.items()
        }
        return {name: future.result() for name, future in futures.items()}
