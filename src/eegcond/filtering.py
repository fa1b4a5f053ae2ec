"""Digital filter pipeline for EEG sample matrices.

This module provides three filter stages:
- High-pass filtering
- Low-pass filtering
- Notch filtering of a single mains frequency

Stages are applied in that order by :func:`apply_filters`. Each stage filters every
channel independently along time and returns a new matrix with the same shape and dtype.
All stages are zero-phase (forward-backward), so they add no delay relative to markers.

Float matrices are filtered directly. Integer matrices are filtered in float64 and then
rounded half away from zero and saturated back to their dtype.
"""

import numpy as np
import pydantic
from pydantic import Field
from scipy import signal

from ._logging import logger
from .constants import DEFAULT_H_FREQ, DEFAULT_L_FREQ, DEFAULT_NOTCH_FREQ, FILTER_ORDER, NOTCH_QUALITY
from .errors import FilterError
from .reference import quantize
from .types import SampleMatrix


class NotchArgs(pydantic.BaseModel):
    """Settings for notch filtering.

    Attributes:
        enabled: Whether to apply the notch filter.
        freq: Frequency to remove in Hz.
    """

    enabled: bool = False
    freq: float = DEFAULT_NOTCH_FREQ


class FilterSettings(pydantic.BaseModel):
    """Container for filter pipeline settings.

    Attributes:
        l_freq: High-pass cutoff frequency in Hz.
        h_freq: Low-pass cutoff frequency in Hz.
        notch: Settings for the optional notch stage.
    """

    l_freq: float = DEFAULT_L_FREQ
    h_freq: float = DEFAULT_H_FREQ
    notch: NotchArgs = Field(default_factory=NotchArgs)


def _check_cutoff(cutoff: float, sfreq: float, stage: str) -> None:
    nyquist = sfreq / 2
    if not 0 < cutoff < nyquist:
        raise FilterError(f"{stage} cutoff must be within (0, {nyquist}) Hz for sfreq={sfreq} Hz, got {cutoff} Hz")


def _apply_sos(sos: np.ndarray, data: SampleMatrix, stage: str) -> SampleMatrix:
    data = np.asarray(data)
    if data.ndim != 2:
        raise FilterError(f"{stage} filter needs a (n_channels, n_samples) matrix, got shape {data.shape}")
    if data.size == 0:
        return data.copy()
    # Short signals get shorter edge padding instead of being rejected
    default_padlen = 3 * (2 * len(sos) + 1 - min((sos[:, 2] == 0).sum(), (sos[:, 5] == 0).sum()))
    padlen = min(int(default_padlen), data.shape[-1] - 1)
    filtered = signal.sosfiltfilt(sos, data.astype(np.float64), axis=-1, padlen=padlen)

    if np.issubdtype(data.dtype, np.integer):
        return quantize(filtered, data.dtype)
    return filtered.astype(data.dtype, copy=False)


def highpass(cutoff: float, sfreq: float, data: SampleMatrix) -> SampleMatrix:
    """Apply a zero-phase Butterworth high-pass filter to every channel.

    Args:
        cutoff: Cutoff frequency in Hz.
        sfreq: Sampling frequency in Hz.
        data: Sample matrix with shape (n_channels, n_samples).

    Returns:
        Filtered matrix with the same shape and dtype.

    Raises:
        FilterError: If ``cutoff`` is not within ``(0, sfreq / 2)``.
    """
    _check_cutoff(cutoff, sfreq, "High-pass")
    sos = signal.butter(FILTER_ORDER, cutoff, btype="highpass", fs=sfreq, output="sos")
    logger.debug(f"Applying high-pass filter: {cutoff} Hz")
    return _apply_sos(sos, data, "High-pass")


def lowpass(cutoff: float, sfreq: float, data: SampleMatrix) -> SampleMatrix:
    """Apply a zero-phase Butterworth low-pass filter to every channel.

    Args:
        cutoff: Cutoff frequency in Hz.
        sfreq: Sampling frequency in Hz.
        data: Sample matrix with shape (n_channels, n_samples).

    Returns:
        Filtered matrix with the same shape and dtype.

    Raises:
        FilterError: If ``cutoff`` is not within ``(0, sfreq / 2)``.
    """
    _check_cutoff(cutoff, sfreq, "Low-pass")
    sos = signal.butter(FILTER_ORDER, cutoff, btype="lowpass", fs=sfreq, output="sos")
    logger.debug(f"Applying low-pass filter: {cutoff} Hz")
    return _apply_sos(sos, data, "Low-pass")


def notch(freq: float, sfreq: float, data: SampleMatrix) -> SampleMatrix:
    """Remove a single frequency (mains interference) from every channel.

    Uses an IIR notch with quality factor 30, applied forward and backward.

    Raises:
        FilterError: If ``freq`` is not within ``(0, sfreq / 2)``.
    """
    _check_cutoff(freq, sfreq, "Notch")
    b, a = signal.iirnotch(freq, NOTCH_QUALITY, fs=sfreq)
    sos = signal.tf2sos(b, a)
    logger.debug(f"Applying notch filter: {freq} Hz")
    return _apply_sos(sos, data, "Notch")


def apply_filters(data: SampleMatrix, sfreq: float, settings: FilterSettings) -> SampleMatrix:
    """Run the filter pipeline: high-pass, then low-pass, then the optional notch.

    This is the only supported order. The stages are not assumed to commute, so
    reordering them may change the output.

    Args:
        data: Sample matrix with shape (n_channels, n_samples).
        sfreq: Sampling frequency in Hz.
        settings: Cutoffs and notch configuration.

    Returns:
        Filtered matrix with the same shape and dtype as ``data``.

    Raises:
        FilterError: If any stage rejects its cutoff.
    """
    data = np.asarray(data)
    if data.ndim != 2:
        raise FilterError(f"Filter pipeline needs a (n_channels, n_samples) matrix, got shape {data.shape}")
    n_channels, n_times = data.shape
    logger.info(
        f"Filtering {n_channels} channels with {n_times} samples at {sfreq} Hz: "
        f"high-pass {settings.l_freq} Hz, low-pass {settings.h_freq} Hz"
        + (f", notch {settings.notch.freq} Hz" if settings.notch.enabled else "")
    )
    filtered = highpass(settings.l_freq, sfreq, data)
    filtered = lowpass(settings.h_freq, sfreq, filtered)
    if settings.notch.enabled:
        filtered = notch(settings.notch.freq, sfreq, filtered)
    return filtered
