"""Removal of stimulation artifacts around event markers.

For every marker a window ``[marker - tmin * sfreq, marker + tmax * sfreq]`` (in
samples, rounded and inclusive) is clamped to the recording. The window is then either
set to zero or replaced by a straight line on every channel.
"""

from collections.abc import Iterable, Iterator
from typing import Literal

import numpy as np
import pydantic
from pydantic import Field

from ._logging import logger
from .constants import DEFAULT_TMAX, DEFAULT_TMIN
from .errors import FormatError
from .reference import quantize, round_half_away
from .types import SampleMatrix


class ArtifactSettings(pydantic.BaseModel):
    """Settings for artifact removal.

    Attributes:
        tmin: Seconds removed before each marker.
        tmax: Seconds removed after each marker.
        mode: ``"zero"`` sets the window to zero, ``"interpolate"`` replaces it with
            a straight line between the surrounding samples.
    """

    tmin: float = Field(default=DEFAULT_TMIN, ge=0.001, le=0.020)
    tmax: float = Field(default=DEFAULT_TMAX, ge=0.001, le=0.050)
    mode: Literal["zero", "interpolate"] = "zero"


def artifact_windows(
    markers: Iterable[float], sfreq: float, tmin: float, tmax: float, n_samples: int
) -> Iterator[tuple[int, int, bool, bool]]:
    """Yield the clamped window of every marker.

    Yields:
        ``(start, stop, clipped_left, clipped_right)`` with ``stop`` inclusive. The flags
        tell whether the window had to be clamped to the first or last sample. Markers
        that are not finite or whose window lies entirely outside the recording are
        skipped.
    """
    for marker in markers:
        if not np.isfinite(marker):
            logger.warning(f"Skipping non-finite marker {marker}")
            continue
        raw_start = int(round_half_away(marker - tmin * sfreq))
        raw_stop = int(round_half_away(marker + tmax * sfreq))
        start = max(raw_start, 0)
        stop = min(raw_stop, n_samples - 1)
        if start > stop:
            logger.debug(f"Skipping marker at sample {marker}: window lies outside the recording")
            continue
        yield start, stop, raw_start < 0, raw_stop >= n_samples - 1


def _check_matrix(data: SampleMatrix) -> np.ndarray:
    data = np.asarray(data)
    if data.ndim != 2 or data.size == 0:
        raise FormatError(f"Artifact removal needs a non-empty (n_channels, n_samples) matrix, got shape {data.shape}")
    return data


def zero_artifacts(
    data: SampleMatrix, markers: Iterable[float], sfreq: float, tmin: float, tmax: float
) -> SampleMatrix:
    """Set every sample inside each marker window to zero on all channels.

    Args:
        data: Sample matrix with shape (n_channels, n_samples).
        markers: Marker positions in samples.
        sfreq: Sampling frequency in Hz.
        tmin: Seconds before each marker.
        tmax: Seconds after each marker.

    Returns:
        New matrix of the same shape and dtype.

    Raises:
        FormatError: If ``data`` is empty or not two-dimensional.

    Examples:
        A marker at sample 1000 with tmin=0.002, tmax=0.005 and sfreq=1000 zeroes
        samples 998 through 1005.
    """
    data = _check_matrix(data)
    cleaned = data.copy()
    n_windows = 0
    for start, stop, _, _ in artifact_windows(markers, sfreq, tmin, tmax, data.shape[-1]):
        cleaned[:, start : stop + 1] = 0
        n_windows += 1
    logger.info(f"Zeroed {n_windows} artifact windows")
    return cleaned


def interpolate_artifacts(
    data: SampleMatrix, markers: Iterable[float], sfreq: float, tmin: float, tmax: float
) -> SampleMatrix:
    """Replace each marker window with a straight line on every channel.

    The line runs from the window's first sample to the first sample after the window.
    When the window touches an edge of the recording, the value on the other side is
    held constant across the window.

    Args:
        data: Sample matrix with shape (n_channels, n_samples).
        markers: Marker positions in samples.
        sfreq: Sampling frequency in Hz.
        tmin: Seconds before each marker.
        tmax: Seconds after each marker.

    Returns:
        New matrix of the same shape and dtype. Integer input is rounded back.

    Raises:
        FormatError: If ``data`` is empty or not two-dimensional.
    """
    data = _check_matrix(data)
    n_samples = data.shape[-1]
    cleaned = data.astype(np.float64)
    n_windows = 0
    for start, stop, clipped_left, clipped_right in artifact_windows(markers, sfreq, tmin, tmax, n_samples):
        if clipped_left and clipped_right:
            logger.warning(f"Artifact window [{start}, {stop}] spans the whole recording, setting it to zero")
            cleaned[:, start : stop + 1] = 0.0
        elif clipped_right:
            cleaned[:, start : stop + 1] = cleaned[:, start : start + 1]
        elif clipped_left:
            cleaned[:, start : stop + 1] = cleaned[:, stop + 1 : stop + 2]
        else:
            left = cleaned[:, start : start + 1]
            right = cleaned[:, stop + 1 : stop + 2]
            fraction = np.arange(stop - start + 1) / (stop + 1 - start)
            cleaned[:, start : stop + 1] = left + (right - left) * fraction
        n_windows += 1
    logger.info(f"Interpolated {n_windows} artifact windows")

    if np.issubdtype(data.dtype, np.integer):
        return quantize(cleaned, data.dtype)
    return cleaned.astype(data.dtype, copy=False)


def remove_artifacts(
    data: SampleMatrix, markers: Iterable[float], sfreq: float, settings: ArtifactSettings
) -> SampleMatrix:
    """Remove artifacts around markers using the mode chosen in ``settings``."""
    if settings.mode == "interpolate":
        return interpolate_artifacts(data, markers, sfreq, settings.tmin, settings.tmax)
    return zero_artifacts(data, markers, sfreq, settings.tmin, settings.tmax)
