"""Decoding of EDF+ annotation channels.

The reserved annotation channel stores text in its 16-bit sample words. The text is a
sequence of time-stamped annotation lists (TALs) separated by NUL. Each TAL starts with
an onset such as ``+2.5``, optionally followed by ``\\x15`` and a duration, then zero
or more annotation texts each terminated by ``\\x14``.
"""

import math
import re
from collections.abc import Sequence

import numpy as np

from ._logging import logger
from .constants import TAL_DURATION_SEPARATOR, TAL_RECORD_SEPARATOR, TAL_TEXT_SEPARATOR
from .models import Markers

_FIELD_SPLIT = re.compile(f"[{TAL_TEXT_SEPARATOR}{TAL_DURATION_SEPARATOR}]")


def samples_to_bytes(samples: Sequence[float] | np.ndarray) -> bytes:
    """Reassemble the byte stream packed into annotation samples.

    Each sample is taken as an unsigned 16-bit word and emitted low byte first.
    """
    words = np.asarray(samples).astype(np.int64) & 0xFFFF
    return words.astype("<u2").tobytes()


def _parse_onset(field: str) -> float | None:
    if not field.startswith("+"):
        return None
    try:
        onset = float(field[1:].strip())
    except ValueError:
        return None
    return onset if math.isfinite(onset) else None


def decode_annotations(annotation_samples: Sequence[float] | np.ndarray, sampling_rate: float) -> Markers:
    """Extract event markers from the samples of an EDF+ annotation channel.

    The onset of the first TAL anchors the time origin. Every TAL that carries an
    annotation (onset plus duration plus text, or onset plus text) yields one marker
    at ``(onset - origin) * sampling_rate``. Time-keeping TALs and malformed TALs are
    skipped; this function never raises on bad content.

    Args:
        annotation_samples: Raw digital samples of the annotation channel.
        sampling_rate: Sampling rate of the signal channels in Hz.

    Returns:
        Markers in the order they appear in the channel.

    Examples:
        >>> stream = b"+0.0\\x14\\x14\\x00+2.5\\x14Event\\x14\\x00\\x00"
        >>> samples = np.frombuffer(stream, dtype="<i2")
        >>> decode_annotations(samples, 1000).markers
        (2500.0,)
    """
    text = samples_to_bytes(annotation_samples).decode("utf-8", errors="replace")

    first_onset: float | None = None
    seen_first = False
    positions: list[float] = []

    for tal in text.split(TAL_RECORD_SEPARATOR):
        if not tal.strip():
            continue
        fields = [part for part in _FIELD_SPLIT.split(tal) if part]
        if not seen_first:
            seen_first = True
            first_onset = _parse_onset(fields[0]) if fields else None
            if first_onset is not None:
                logger.debug(f"First block timestamp offset: {first_onset}s")
        if not fields:
            continue

        texts = [part for part in tal.split(TAL_TEXT_SEPARATOR)[1:] if part]
        if len(fields) < 3 and not texts:
            continue

        onset = _parse_onset(fields[0])
        if onset is None:
            continue
        positions.append((onset - (first_onset or 0.0)) * sampling_rate)

    return Markers(tuple(positions))
