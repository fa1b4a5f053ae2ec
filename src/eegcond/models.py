"""Data structures describing a loaded recording."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .types import SampleMatrix


class DataFormat(str, Enum):
    """Supported container formats."""

    EDF = "edf"
    BRAINVISION = "brainvision"


@dataclass(frozen=True)
class ChannelDescriptor:
    """One channel's sub-header as read from the file.

    Attributes:
        label: Channel label, e.g. ``"Fp1"`` or ``"EDF Annotations"``.
        samples_per_record: Number of samples this channel stores in each data record.
        physical_min: Physical value mapped to ``digital_min``.
        physical_max: Physical value mapped to ``digital_max``.
        digital_min: Smallest digital value.
        digital_max: Largest digital value.
        physical_dimension: Unit of the physical values, e.g. ``"uV"``.
        transducer: Transducer type.
        prefiltering: Free-text prefiltering description.
    """

    label: str
    samples_per_record: int
    physical_min: float = -1.0
    physical_max: float = 1.0
    digital_min: int = -32768
    digital_max: int = 32767
    physical_dimension: str = ""
    transducer: str = ""
    prefiltering: str = ""

    @property
    def gain(self) -> float:
        """Physical units per digital step."""
        digital_range = self.digital_max - self.digital_min
        if digital_range == 0:
            return 1.0
        return (self.physical_max - self.physical_min) / digital_range

    @property
    def offset(self) -> float:
        """Physical value of digital zero."""
        return self.physical_min - self.gain * self.digital_min


@dataclass
class RecordingMetadata:
    """Header contents of a recording.

    The last channel of an EDF+ file is reserved for packed annotations.
    """

    number_of_blocks: int
    block_duration_ms: float
    channels: list[ChannelDescriptor]
    version: str = ""
    patient: str = ""
    recording: str = ""
    start_date: str = ""
    start_time: str = ""
    header_bytes: int = 0
    reserved: str = ""
    sampling_rates: list[float] = field(default_factory=list)

    @property
    def number_of_channels(self) -> int:
        return len(self.channels)

    @property
    def total_duration_ms(self) -> float:
        return self.number_of_blocks * self.block_duration_ms


@dataclass(frozen=True)
class EEGInfo:
    """Channel names and sampling rate, parallel to the sample matrix rows."""

    num_ch: int
    ch_names: list[str]
    sfreq: float
    data_orientation: str | None = None
    binary_format: str | None = None
    sampling_interval: float | None = None


@dataclass(frozen=True)
class Markers:
    """Event marker positions in fractional samples, relative to the recording start.

    Positions keep the order in which they were read and are not sorted.
    """

    markers: tuple[float, ...] = ()

    @property
    def n_markers(self) -> int:
        return len(self.markers)

    def __len__(self) -> int:
        return len(self.markers)

    def __iter__(self):
        return iter(self.markers)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.markers, dtype=float)


@dataclass
class LoadResult:
    """Everything a load produces, before it is installed into a session."""

    metadata: RecordingMetadata
    info: EEGInfo
    data: SampleMatrix | None = None
    referenced: SampleMatrix | None = None
    markers: Markers = field(default_factory=Markers)


@dataclass
class ConditionedData:
    """Replacement matrix produced by a filter or artifact-removal job."""

    data: SampleMatrix
    referenced: SampleMatrix | None = None


@dataclass
class Recording:
    """A loaded recording of one format with its typed sample matrix.

    ``referenced`` is ``None`` until the average reference has been computed or when
    computing it failed; ``data`` then serves as the display source.
    """

    path: str
    data_format: DataFormat
    metadata: RecordingMetadata
    info: EEGInfo
    data: SampleMatrix
    markers: Markers
    referenced: SampleMatrix | None = None

    @classmethod
    def from_load_result(cls, path: str, data_format: DataFormat, result: LoadResult) -> Recording:
        if result.data is None:
            raise ValueError("Cannot build a recording from a header-only load")
        return cls(
            path=path,
            data_format=data_format,
            metadata=result.metadata,
            info=result.info,
            data=result.data,
            markers=result.markers,
            referenced=result.referenced,
        )

    @property
    def n_samples(self) -> int:
        return int(self.data.shape[-1])

    @property
    def duration_s(self) -> float:
        return self.n_samples / self.info.sfreq if self.info.sfreq else 0.0

    def replace_data(self, conditioned: ConditionedData) -> None:
        """Swap in a new matrix and its referenced view."""
        if conditioned.data.shape != self.data.shape:
            raise ValueError(
                f"Replacement matrix has shape {conditioned.data.shape}, expected {self.data.shape}"
            )
        self.data = conditioned.data
        self.referenced = conditioned.referenced
