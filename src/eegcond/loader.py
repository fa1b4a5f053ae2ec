"""Loading of recordings into sample matrices, channel info and markers.

:func:`load` is the single entry point for both supported formats. EDF files are decoded
by :class:`eegcond.edf.EDFReader`, BrainVision files by :mod:`eegcond.brainvision`.
"""

from pathlib import Path

import numpy as np

from . import brainvision
from ._logging import logger
from .annotations import decode_annotations
from .constants import ANNOTATION_CHANNEL_LABEL
from .edf import EDFReader
from .errors import FormatError, ReferencingError
from .models import ChannelDescriptor, DataFormat, EEGInfo, LoadResult, Markers, RecordingMetadata
from .reference import average_reference


def load(
    path: str | Path,
    data_format: DataFormat | str = DataFormat.EDF,
    read_header_only: bool = False,
    load_samples: bool = True,
) -> LoadResult:
    """Load a recording.

    Args:
        path: Path to the ``.edf`` or ``.vhdr`` file.
        data_format: Format of the file.
        read_header_only: Only parse the header and log its contents.
        load_samples: Read the sample matrix. Ignored when ``read_header_only`` is set.

    Returns:
        LoadResult. ``data`` and ``referenced`` are ``None`` for header-only loads.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        FormatError: If the file is structurally invalid.

    Examples:
        result = load("recording.edf")
        result.data.shape  # (n_channels, n_samples), annotation channel removed
        result.markers.n_markers
    """
    data_format = DataFormat(data_format)
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such file: '{path}'")

    if data_format is DataFormat.BRAINVISION:
        if read_header_only or not load_samples:
            return _load_brainvision_header(path)
        return brainvision.load_data(path)

    return load_edf(path, read_header_only=read_header_only, load_samples=load_samples)


def _load_brainvision_header(path: Path) -> LoadResult:
    header = brainvision.parse_header(path)
    logger.info(f"BrainVision header parsed: {header}")
    metadata = RecordingMetadata(
        number_of_blocks=0,
        block_duration_ms=0.0,
        channels=[ChannelDescriptor(label=name, samples_per_record=0) for name in header.ch_names],
        sampling_rates=[header.sfreq] * header.number_of_channels,
    )
    info = EEGInfo(
        num_ch=header.number_of_channels,
        ch_names=list(header.ch_names),
        sfreq=header.sfreq,
        data_orientation=header.data_orientation,
        binary_format=header.binary_format,
        sampling_interval=header.sampling_interval,
    )
    return LoadResult(metadata=metadata, info=info)


def load_edf(path: str | Path, read_header_only: bool = False, load_samples: bool = True) -> LoadResult:
    """Load an EDF/EDF+ file.

    The last channel is reserved for annotations: it is excluded from the sampling rate
    computation and from the returned matrix, and decoded into markers when its label
    names it an annotation channel.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        FormatError: If the header declares no channels, if signal rows differ in length
            or if the file holds no signal channel besides the annotation channel.
    """
    reader = EDFReader(path)
    header = reader.header
    n_channels = header.number_of_channels
    logger.debug(f"HEADER: version={header.version!r} patient={header.patient!r} recording={header.recording!r}")

    if n_channels == 0:
        raise FormatError("No channels in EDF file")

    signal_channels = header.channels[:-1] if n_channels > 1 else header.channels
    if header.block_duration_ms <= 0:
        raise FormatError(f"Invalid data record duration: {header.block_duration_ms} ms")
    sfreqs = [ch.samples_per_record * 1000 / header.block_duration_ms for ch in signal_channels]
    header.sampling_rates = sfreqs
    sfreq = sfreqs[0]
    if len(set(sfreqs)) > 1:
        logger.warning(
            f"Channels have different sampling frequencies {sorted(set(sfreqs))}, this is not yet supported. "
            f"Using {sfreq} Hz from the first channel"
        )
    else:
        logger.info(f"Sampling rate: {sfreq} Hz")

    info = EEGInfo(num_ch=len(signal_channels), ch_names=[ch.label for ch in signal_channels], sfreq=sfreq)
    if read_header_only or not load_samples:
        logger.info(f"Number of channels: {n_channels}")
        logger.info(f"Total duration: {header.total_duration_ms / 1000} seconds")
        return LoadResult(metadata=header, info=info)

    digital = reader.read_digital()
    logger.info("Data loaded successfully")
    if len(digital) < 2:
        raise FormatError("Not enough channels in data")

    signal_rows = digital[:-1]
    if len({row.size for row in signal_rows}) > 1:
        raise FormatError("Channels have different lengths")
    data = np.vstack([reader.read_physical(i, row) for i, row in enumerate(signal_rows)])

    try:
        referenced = average_reference(data)
    except ReferencingError as e:
        logger.error(f"Error computing average reference: {e}")
        referenced = None

    markers = Markers()
    last_label = header.channels[-1].label
    logger.info(f"Last channel label: {last_label}")
    if ANNOTATION_CHANNEL_LABEL in last_label:
        markers = decode_annotations(digital[-1], sfreq)
        logger.info(f"Found {markers.n_markers} markers")

    return LoadResult(metadata=header, info=info, data=data, referenced=referenced, markers=markers)
