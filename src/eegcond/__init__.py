"""eegcond: ingestion and conditioning of EEG recordings.

This package loads EDF/EDF+ and BrainVision recordings into channel x sample matrices,
decodes their event markers, and provides average referencing, a high-pass/low-pass/notch
filter pipeline and stimulation-artifact removal. Long-running work runs on background
jobs so an interactive caller never blocks.
"""

from ._logging import logger, set_log_file, set_log_level
from .annotations import decode_annotations
from .artifacts import ArtifactSettings, interpolate_artifacts, remove_artifacts, zero_artifacts
from .config import ConfigLoader, Settings
from .errors import EEGError, FilterError, FormatError, ReferencingError, UnexpectedDisconnect
from .filtering import FilterSettings, NotchArgs, apply_filters, highpass, lowpass, notch
from .jobs import JobKind, JobOutcome, JobRunner, JobStatus
from .loader import load
from .models import ChannelDescriptor, DataFormat, EEGInfo, LoadResult, Markers, Recording, RecordingMetadata
from .reference import average_reference
from .session import Session

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "logger",
    "set_log_level",
    "set_log_file",
    "load",
    "decode_annotations",
    "average_reference",
    "highpass",
    "lowpass",
    "notch",
    "apply_filters",
    "zero_artifacts",
    "interpolate_artifacts",
    "remove_artifacts",
    "Settings",
    "FilterSettings",
    "NotchArgs",
    "ArtifactSettings",
    "ConfigLoader",
    "DataFormat",
    "ChannelDescriptor",
    "RecordingMetadata",
    "EEGInfo",
    "Markers",
    "LoadResult",
    "Recording",
    "JobKind",
    "JobStatus",
    "JobOutcome",
    "JobRunner",
    "Session",
    "EEGError",
    "FormatError",
    "FilterError",
    "ReferencingError",
    "UnexpectedDisconnect",
]


def __dir__():
    return __all__
