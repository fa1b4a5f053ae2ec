"""Reader for BrainVision recordings.

A BrainVision recording is a triplet of files:
- ``.vhdr``: INI-style header naming the data and marker files
- ``.eeg``: binary samples
- ``.vmrk``: INI-style marker list

Decoding is delegated to :func:`mne.io.read_raw_brainvision`. MNE returns volts, so the
samples are divided by each channel's calibration and rounded back to the int16 words
stored on disk. Only ``INT_16`` data is accepted, which keeps the integer filter and
reference variants applicable.
"""

import configparser
import re
from dataclasses import dataclass, field
from pathlib import Path

import mne
import numpy as np

from ._logging import logger
from .errors import FormatError, ReferencingError
from .models import ChannelDescriptor, EEGInfo, LoadResult, Markers, RecordingMetadata
from .reference import average_reference

# MNE's names for the BrainVision binary formats
_BINARY_FORMATS = {"short": "INT_16", "int": "INT_32", "single": "IEEE_FLOAT_32"}
_SEGMENT_MARKER = "New Segment"


@dataclass
class BrainVisionHeader:
    """Channel layout of a BrainVision recording.

    Attributes:
        ch_names: Channel names in file order.
        sfreq: Sampling rate in Hz.
        binary_format: ``INT_16``, ``INT_32`` or ``IEEE_FLOAT_32``.
        data_orientation: ``MULTIPLEXED`` or ``VECTORIZED``, None if the header omits it.
        calibrations: Volts per digital step for every channel.
    """

    ch_names: list[str]
    sfreq: float
    binary_format: str
    data_orientation: str | None = None
    calibrations: list[float] = field(default_factory=list)

    @property
    def number_of_channels(self) -> int:
        return len(self.ch_names)

    @property
    def sampling_interval(self) -> float:
        """Sampling interval in microseconds, as written in the header."""
        return 1_000_000.0 / self.sfreq


def get_header(path: str | Path) -> str:
    """Return the text of a ``.vhdr`` header file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such file: '{path}'")
    return path.read_text(encoding="utf-8", errors="replace")


def _read_raw(path: Path, preload: bool) -> mne.io.BaseRaw:
    if not path.exists():
        raise FileNotFoundError(f"No such file: '{path}'")
    try:
        return mne.io.read_raw_brainvision(path, preload=preload, verbose=False)
    except (ValueError, KeyError, configparser.Error) as e:
        raise FormatError(f"Malformed BrainVision recording {path}: {e}") from e


def _header_from_raw(raw: mne.io.BaseRaw, header_text: str) -> BrainVisionHeader:
    orientation = re.search(r"^DataOrientation\s*=\s*(\w+)", header_text, re.MULTILINE)
    return BrainVisionHeader(
        ch_names=list(raw.ch_names),
        sfreq=float(raw.info["sfreq"]),
        binary_format=_BINARY_FORMATS.get(raw.orig_format, str(raw.orig_format)),
        data_orientation=orientation.group(1).upper() if orientation else None,
        calibrations=[ch["cal"] * ch["range"] for ch in raw.info["chs"]],
    )


def parse_header(path: str | Path) -> BrainVisionHeader:
    """Read the channel layout of a ``.vhdr`` file without loading samples.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        FormatError: If the header is missing required keys or is malformed.
    """
    path = Path(path)
    raw = _read_raw(path, preload=False)
    return _header_from_raw(raw, get_header(path))


def read_markers(raw: mne.io.BaseRaw) -> Markers:
    """Convert the annotations MNE read from the ``.vmrk`` file into 0-based sample offsets.

    ``New Segment`` entries only delimit segments and are skipped.
    """
    sfreq = raw.info["sfreq"]
    positions = []
    for onset, description in zip(raw.annotations.onset, raw.annotations.description):
        if description.startswith(_SEGMENT_MARKER):
            continue
        positions.append(float(np.rint((onset - raw.first_time) * sfreq)))
    return Markers(tuple(positions))


def load_data(path: str | Path) -> LoadResult:
    """Load a BrainVision recording into an int16 sample matrix.

    Args:
        path: Path to the ``.vhdr`` file. Data and marker files are resolved relative to it.

    Returns:
        LoadResult with the int16 matrix, its average reference (``None`` if that failed)
        and the markers.

    Raises:
        FileNotFoundError: If the header file does not exist.
        FormatError: If the recording is malformed or not stored as ``INT_16``.
    """
    path = Path(path)
    raw = _read_raw(path, preload=False)
    header = _header_from_raw(raw, get_header(path))
    logger.info(
        f"BrainVision header: {header.number_of_channels} channels at {header.sfreq} Hz, "
        f"{header.binary_format}/{header.data_orientation}"
    )
    if header.binary_format != "INT_16":
        raise FormatError(f"Unsupported BrainVision binary format {header.binary_format}, only INT_16 is supported")

    raw.load_data(verbose=False)
    calibrations = np.asarray(header.calibrations)[:, np.newaxis]
    data = np.rint(raw.get_data() / calibrations).astype(np.int16)

    n_ch, n_samples = data.shape
    metadata = RecordingMetadata(
        number_of_blocks=1,
        block_duration_ms=n_samples * header.sampling_interval / 1000.0,
        channels=[ChannelDescriptor(label=name, samples_per_record=n_samples) for name in header.ch_names],
        sampling_rates=[header.sfreq] * n_ch,
    )
    info = EEGInfo(
        num_ch=n_ch,
        ch_names=list(header.ch_names),
        sfreq=header.sfreq,
        data_orientation=header.data_orientation,
        binary_format=header.binary_format,
        sampling_interval=header.sampling_interval,
    )

    try:
        referenced = average_reference(data)
    except ReferencingError as e:
        logger.error(f"Error computing average reference: {e}")
        referenced = None

    markers = read_markers(raw)
    logger.info(f"Loaded {n_ch} channels x {n_samples} samples, found {markers.n_markers} markers")

    return LoadResult(metadata=metadata, info=info, data=data, referenced=referenced, markers=markers)
