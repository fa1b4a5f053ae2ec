"""Average re-referencing of sample matrices."""

import numpy as np

from .errors import ReferencingError
from .types import SampleMatrix


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, halves away from zero (``np.round`` rounds to even)."""
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def quantize(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Round float values half away from zero and saturate them into an integer dtype."""
    info = np.iinfo(dtype)
    return np.clip(round_half_away(values), info.min, info.max).astype(dtype)


def average_reference(data: SampleMatrix) -> SampleMatrix:
    """Subtract the cross-channel mean from every channel at each time point.

    Float matrices are referenced directly. Integer matrices accumulate the mean in
    float64 and round each result half away from zero, so the integer representation
    is kept without a truncation bias.

    All rows are assumed to have the same length; the loaders validate this.

    Args:
        data: Sample matrix with shape (n_channels, n_samples).

    Returns:
        New matrix with the same shape and dtype. An empty input returns an empty matrix.

    Raises:
        ReferencingError: If ``data`` is not a two-dimensional matrix.
    """
    data = np.asarray(data)
    if data.size == 0:
        return data.copy()
    if data.ndim != 2:
        raise ReferencingError(f"Average reference needs a (n_channels, n_samples) matrix, got shape {data.shape}")

    if np.issubdtype(data.dtype, np.integer):
        as_float = data.astype(np.float64)
        return quantize(as_float - as_float.mean(axis=0, keepdims=True), data.dtype)

    return data - data.mean(axis=0, keepdims=True)
