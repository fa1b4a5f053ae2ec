"""Shared test fixtures for eegcond tests."""

from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import pytest


def _field(value, width: int) -> bytes:
    return str(value).ljust(width)[:width].encode("ascii")


def _write_edf(
    path: Path,
    signals: Sequence[np.ndarray],
    labels: Sequence[str],
    samples_per_record: Sequence[int],
    n_records: int,
    record_duration: float = 1.0,
    annotation_records: Sequence[bytes] | None = None,
    annotation_samples: int = 30,
    annotation_label: str = "EDF Annotations",
    physical_range: tuple[float, float] = (-3276.8, 3276.7),
) -> Path:
    """Write an EDF+ file with int16 digital signals and an optional annotation channel.

    ``signals[i]`` must hold ``n_records * samples_per_record[i]`` digital values.
    """
    signals = [np.asarray(s, dtype="<i2") for s in signals]
    labels = list(labels)
    spr = list(samples_per_record)
    if annotation_records is not None:
        packed = []
        for record in annotation_records:
            padded = record.ljust(2 * annotation_samples, b"\x00")
            packed.append(np.frombuffer(padded, dtype="<i2"))
        signals.append(np.concatenate(packed) if packed else np.zeros(0, dtype="<i2"))
        labels.append(annotation_label)
        spr.append(annotation_samples)

    ns = len(labels)
    header = b"".join(
        [
            _field("0", 8),
            _field("X X X X", 80),
            _field("Startdate 01-JAN-2024 X X X", 80),
            _field("01.01.24", 8),
            _field("10.00.00", 8),
            _field(256 * (ns + 1), 8),
            _field("EDF+C", 44),
            _field(n_records, 8),
            _field(record_duration, 8),
            _field(ns, 4),
        ]
    )
    pmin, pmax = physical_range
    columns = [
        [_field(label, 16) for label in labels],
        [_field("AgAgCl electrode", 80) for _ in labels],
        [_field("uV", 8) for _ in labels],
        [_field(pmin, 8) for _ in labels],
        [_field(pmax, 8) for _ in labels],
        [_field(-32768, 8) for _ in labels],
        [_field(32767, 8) for _ in labels],
        [_field("HP:0.1Hz", 80) for _ in labels],
        [_field(n, 8) for n in spr],
        [_field("", 32) for _ in labels],
    ]
    header += b"".join(b"".join(column) for column in columns)

    records = []
    for r in range(n_records):
        for signal, n in zip(signals, spr):
            records.append(signal[r * n : (r + 1) * n].tobytes())
    path.write_bytes(header + b"".join(records))
    return path


def _write_brainvision(
    directory: Path,
    data: np.ndarray,
    ch_names: Sequence[str],
    sampling_interval: float = 1000.0,
    orientation: str = "MULTIPLEXED",
    binary_format: str = "INT_16",
    marker_positions: Sequence[int] = (),
    stem: str = "recording",
) -> Path:
    """Write a BrainVision triplet and return the ``.vhdr`` path. Positions are 1-based."""
    data = np.asarray(data, dtype="<i2")
    channel_lines = "\n".join(f"Ch{i}={name},,0.1,µV" for i, name in enumerate(ch_names, start=1))
    vhdr = (
        "Brain Vision Data Exchange Header File Version 1.0\n"
        "; Data created for testing\n\n"
        "[Common Infos]\n"
        "Codepage=UTF-8\n"
        f"DataFile={stem}.eeg\n"
        f"MarkerFile={stem}.vmrk\n"
        "DataFormat=BINARY\n"
        f"DataOrientation={orientation}\n"
        f"NumberOfChannels={len(ch_names)}\n"
        f"SamplingInterval={sampling_interval}\n\n"
        "[Binary Infos]\n"
        f"BinaryFormat={binary_format}\n\n"
        "[Channel Infos]\n"
        "; Each entry: Ch<Channel number>=<Name>,<Reference channel name>,<Resolution>,<Unit>\n"
        f"{channel_lines}\n"
    )
    marker_lines = ["Mk1=New Segment,,1,1,0,20240101100000000000"]
    for i, position in enumerate(marker_positions, start=2):
        marker_lines.append(f"Mk{i}=Stimulus,S  1,{position},1,0")
    vmrk = (
        "Brain Vision Data Exchange Marker File, Version 1.0\n\n"
        "[Common Infos]\n"
        "Codepage=UTF-8\n"
        f"DataFile={stem}.eeg\n\n"
        "[Marker Infos]\n" + "\n".join(marker_lines) + "\n"
    )
    vhdr_path = directory / f"{stem}.vhdr"
    vhdr_path.write_text(vhdr, encoding="utf-8")
    (directory / f"{stem}.vmrk").write_text(vmrk, encoding="utf-8")
    samples = data.T if orientation == "MULTIPLEXED" else data
    (directory / f"{stem}.eeg").write_bytes(np.ascontiguousarray(samples).tobytes())
    return vhdr_path


@pytest.fixture
def edf_writer() -> Callable[..., Path]:
    """Return the EDF writer so tests can build files with custom layouts."""
    return _write_edf


@pytest.fixture
def brainvision_writer() -> Callable[..., Path]:
    """Return the BrainVision writer so tests can build custom triplets."""
    return _write_brainvision


@pytest.fixture
def edf_file(tmp_path: Path) -> Path:
    """EDF+ file with two signal channels at 100 Hz, 2 records of 1 s and two annotated events.

    Digital values are ``[0, 1, ..., 199]`` for Fp1 and ``[0, -1, ..., -199]`` for Fp2,
    which scale to ``0.1`` physical units per step. Events sit at 0.5 s and 1.25 s.
    """
    fp1 = np.arange(200)
    fp2 = -np.arange(200)
    tals = [
        b"+0\x14\x14\x00+0.5\x14Stimulus\x14\x00",
        b"+1\x14\x14\x00+1.25\x150.01\x14Stimulus\x14\x00",
    ]
    return _write_edf(
        tmp_path / "recording.edf",
        signals=[fp1, fp2],
        labels=["Fp1", "Fp2"],
        samples_per_record=[100, 100],
        n_records=2,
        annotation_records=tals,
    )


@pytest.fixture
def long_edf_file(tmp_path: Path) -> Path:
    """EDF+ file with three 250 Hz channels over 4 s and a stimulus every second."""
    sfreq = 250
    t = np.arange(4 * sfreq) / sfreq
    rng = np.random.default_rng(0)
    signals = [
        (1000 * np.sin(2 * np.pi * f * t) + 200 * rng.standard_normal(t.size)).astype(np.int16)
        for f in (5.0, 10.0, 20.0)
    ]
    tals = [f"+{r}\x14\x14\x00+{r}.5\x14TMS\x14\x00".encode("ascii") for r in range(4)]
    return _write_edf(
        tmp_path / "long.edf",
        signals=signals,
        labels=["C3", "Cz", "C4"],
        samples_per_record=[sfreq] * 3,
        n_records=4,
        annotation_records=tals,
    )


@pytest.fixture
def matrix() -> np.ndarray:
    """Float matrix of 4 channels with 2000 samples."""
    rng = np.random.default_rng(42)
    return rng.standard_normal((4, 2000))


def encode_tal(stream: bytes) -> np.ndarray:
    """Pack a TAL byte stream into int16 samples as stored in an annotation channel."""
    if len(stream) % 2:
        stream += b"\x00"
    return np.frombuffer(stream, dtype="<i2")


@pytest.fixture
def tal_encoder() -> Callable[[bytes], np.ndarray]:
    return encode_tal
