"""Constants for EEG ingestion and conditioning."""

# Label fragment identifying the EDF+ annotation channel
ANNOTATION_CHANNEL_LABEL = "EDF Annotations"

# TAL (time-stamped annotation list) delimiters
TAL_RECORD_SEPARATOR = "\x00"
TAL_TEXT_SEPARATOR = "\x14"
TAL_DURATION_SEPARATOR = "\x15"

# Fixed layout of the 256-byte EDF preamble: field -> (start, stop)
EDF_PREAMBLE_SIZE = 256
EDF_PREAMBLE_FIELDS = {
    "version": (0, 8),
    "patient": (8, 88),
    "recording": (88, 168),
    "start_date": (168, 176),
    "start_time": (176, 184),
    "header_bytes": (184, 192),
    "reserved": (192, 236),
    "number_of_records": (236, 244),
    "record_duration": (244, 252),
    "number_of_signals": (252, 256),
}

# Per-signal sub-header fields in file order with their widths
EDF_SIGNAL_FIELDS = [
    ("label", 16),
    ("transducer", 80),
    ("physical_dimension", 8),
    ("physical_min", 8),
    ("physical_max", 8),
    ("digital_min", 8),
    ("digital_max", 8),
    ("prefiltering", 80),
    ("samples_per_record", 8),
    ("reserved", 32),
]
EDF_SIGNAL_HEADER_SIZE = 256

# Filter design
FILTER_ORDER = 4
NOTCH_QUALITY = 30.0

# Defaults offered to the operator
DEFAULT_L_FREQ = 1.0
DEFAULT_H_FREQ = 45.0
DEFAULT_NOTCH_FREQ = 50.0
DEFAULT_TMIN = 0.002
DEFAULT_TMAX = 0.005
