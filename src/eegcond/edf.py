"""Low-level EDF/EDF+ reader.

This module decodes the binary layout of an EDF file:
- the fixed 256-byte ASCII preamble
- one 256-byte sub-header per signal, stored field by field
- the data records, each holding ``samples_per_record`` little-endian int16 words
  for every signal in turn

Higher-level loading (channel validation, referencing, annotation decoding) lives in
:mod:`eegcond.loader`.
"""

from pathlib import Path

import numpy as np

from ._logging import logger
from .constants import (
    EDF_PREAMBLE_FIELDS,
    EDF_PREAMBLE_SIZE,
    EDF_SIGNAL_FIELDS,
    EDF_SIGNAL_HEADER_SIZE,
)
from .errors import FormatError
from .models import ChannelDescriptor, RecordingMetadata


def _ascii(raw: bytes) -> str:
    return raw.decode("ascii", errors="replace").strip()


def _number(raw: bytes, name: str, cast=float):
    text = _ascii(raw)
    try:
        return cast(float(text)) if cast is int else cast(text)
    except ValueError:
        raise FormatError(f"Malformed EDF header field '{name}': {text!r}") from None


def read_raw_header(path: str | Path) -> dict[str, str]:
    """Read the 256-byte preamble and return its fields as stripped strings.

    The record count, record duration and signal count are logged verbatim.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        FormatError: If the file is shorter than the preamble.
    """
    path = Path(path)
    with path.open("rb") as f:
        preamble = f.read(EDF_PREAMBLE_SIZE)
    if len(preamble) < EDF_PREAMBLE_SIZE:
        raise FormatError(f"{path} is too short to hold an EDF header ({len(preamble)} bytes)")

    fields = {name: _ascii(preamble[start:stop]) for name, (start, stop) in EDF_PREAMBLE_FIELDS.items()}
    logger.info(f"Number of data records: {fields['number_of_records']!r}")
    logger.info(f"Duration of data record: {fields['record_duration']!r}")
    logger.info(f"Number of channels: {fields['number_of_signals']!r}")
    return fields


class EDFReader:
    """Reader for a single EDF/EDF+ file.

    The header is parsed on construction, data records are read on demand.

    Args:
        path: Path to the ``.edf`` file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        FormatError: If the header is malformed or truncated.

    Examples:
        reader = EDFReader("recording.edf")
        print(reader.header.number_of_channels)
        data = reader.read_digital()  # list of int16 arrays, one per channel
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"No such file: '{self.path}'")
        self.header = self._read_header()

    def _read_header(self) -> RecordingMetadata:
        with self.path.open("rb") as f:
            preamble = f.read(EDF_PREAMBLE_SIZE)
            if len(preamble) < EDF_PREAMBLE_SIZE:
                raise FormatError(f"{self.path} is too short to hold an EDF header")

            def field(name: str) -> bytes:
                start, stop = EDF_PREAMBLE_FIELDS[name]
                return preamble[start:stop]

            n_signals = _number(field("number_of_signals"), "number_of_signals", int)
            if n_signals < 0:
                raise FormatError(f"Negative signal count in EDF header: {n_signals}")

            signal_block = f.read(n_signals * EDF_SIGNAL_HEADER_SIZE)
            if len(signal_block) < n_signals * EDF_SIGNAL_HEADER_SIZE:
                raise FormatError(f"{self.path} ends inside the signal headers")

        # Each field is stored for all signals before the next field starts
        columns: dict[str, list[bytes]] = {}
        pos = 0
        for name, width in EDF_SIGNAL_FIELDS:
            columns[name] = [signal_block[pos + i * width : pos + (i + 1) * width] for i in range(n_signals)]
            pos += width * n_signals

        channels = []
        for i in range(n_signals):
            channels.append(
                ChannelDescriptor(
                    label=_ascii(columns["label"][i]),
                    transducer=_ascii(columns["transducer"][i]),
                    physical_dimension=_ascii(columns["physical_dimension"][i]),
                    physical_min=_number(columns["physical_min"][i], "physical_min"),
                    physical_max=_number(columns["physical_max"][i], "physical_max"),
                    digital_min=_number(columns["digital_min"][i], "digital_min", int),
                    digital_max=_number(columns["digital_max"][i], "digital_max", int),
                    prefiltering=_ascii(columns["prefiltering"][i]),
                    samples_per_record=_number(columns["samples_per_record"][i], "samples_per_record", int),
                )
            )

        record_duration_s = _number(field("record_duration"), "record_duration")
        return RecordingMetadata(
            number_of_blocks=_number(field("number_of_records"), "number_of_records", int),
            block_duration_ms=record_duration_s * 1000.0,
            channels=channels,
            version=_ascii(field("version")),
            patient=_ascii(field("patient")),
            recording=_ascii(field("recording")),
            start_date=_ascii(field("start_date")),
            start_time=_ascii(field("start_time")),
            header_bytes=_number(field("header_bytes"), "header_bytes", int),
            reserved=_ascii(field("reserved")),
        )

    @property
    def record_size(self) -> int:
        """Number of int16 words in one data record."""
        return sum(ch.samples_per_record for ch in self.header.channels)

    def read_digital(self) -> list[np.ndarray]:
        """Read every data record and return one int16 array per channel.

        Returns:
            List with one array per channel, each of length
            ``number_of_blocks * samples_per_record``.

        Raises:
            FormatError: If the file holds fewer records than the header declares.
        """
        header = self.header
        n_records = header.number_of_blocks
        offset = header.header_bytes or EDF_PREAMBLE_SIZE * (header.number_of_channels + 1)
        record_size = self.record_size

        raw = np.fromfile(self.path, dtype="<i2", offset=offset)
        if n_records < 0:
            # Unknown record count while recording was in progress
            n_records = raw.size // record_size if record_size else 0
        expected = n_records * record_size
        if raw.size < expected:
            raise FormatError(
                f"{self.path} holds {raw.size} samples, header declares {expected} "
                f"({n_records} records x {record_size} samples)"
            )

        records = raw[:expected].reshape(n_records, record_size)
        channels = []
        start = 0
        for ch in header.channels:
            stop = start + ch.samples_per_record
            channels.append(np.ascontiguousarray(records[:, start:stop]).reshape(-1))
            start = stop
        return channels

    def read_physical(self, channel_index: int, digital: np.ndarray | None = None) -> np.ndarray:
        """Scale one channel's digital samples to physical units as float64."""
        ch = self.header.channels[channel_index]
        if digital is None:
            digital = self.read_digital()[channel_index]
        return digital.astype(np.float64) * ch.gain + ch.offset
