"""Caller-side data model driven by periodic ticks.

A :class:`Session` owns the loaded :class:`~eegcond.models.Recording` and a
:class:`~eegcond.jobs.JobRunner`. Requests start background jobs on private copies of
the data; :meth:`Session.tick` polls every job kind and installs finished results. The
recording is only ever mutated inside ``tick``.
"""

from pathlib import Path

import numpy as np

from ._logging import logger
from .artifacts import ArtifactSettings, remove_artifacts
from .config import Settings
from .errors import ReferencingError
from .filtering import FilterSettings, apply_filters
from .jobs import JobKind, JobOutcome, JobRunner, JobStatus
from .loader import load
from .models import ConditionedData, DataFormat, LoadResult, Recording
from .reference import average_reference
from .types import SampleMatrix


def _with_reference(data: SampleMatrix) -> ConditionedData:
    try:
        referenced = average_reference(data)
    except ReferencingError as e:
        logger.error(f"Error computing average reference: {e}")
        referenced = None
    return ConditionedData(data=data, referenced=referenced)


def _load_job(path: str, data_format: DataFormat) -> Recording:
    result = load(path, data_format, read_header_only=False, load_samples=True)
    return Recording.from_load_result(path, data_format, result)


def _filter_job(data: SampleMatrix, sfreq: float, settings: FilterSettings) -> ConditionedData:
    return _with_reference(apply_filters(data, sfreq, settings))


def _artifact_job(
    data: SampleMatrix, markers: np.ndarray, sfreq: float, settings: ArtifactSettings
) -> ConditionedData:
    return _with_reference(remove_artifacts(data, markers, sfreq, settings))


class Session:
    """Holds at most one recording and the background jobs that transform it.

    Args:
        settings: Session settings. If None, uses default settings.

    Examples:
        session = Session()
        session.request_load("recording.edf")
        while session.busy:
            session.tick()  # called from the UI loop
        session.request_filter()
    """

    def __init__(self, settings: Settings | None = None, runner: JobRunner | None = None):
        self.settings = settings or Settings()
        self.runner = runner or JobRunner()
        self.recording: Recording | None = None
        self.last_error: BaseException | None = None

    @property
    def busy(self) -> bool:
        """Whether any job occupies its slot."""
        return any(self.runner.is_running(kind) for kind in JobKind)

    def _require_recording(self) -> Recording:
        if self.recording is None:
            raise RuntimeError("No recording loaded")
        return self.recording

    def request_header(self, path: str | Path, data_format: DataFormat | str | None = None) -> LoadResult:
        """Read and log the header of ``path`` without loading samples or touching the session."""
        data_format = DataFormat(data_format or self.settings.data_format)
        return load(path, data_format, read_header_only=True, load_samples=False)

    def request_load(self, path: str | Path, data_format: DataFormat | str | None = None) -> int:
        """Start loading ``path`` in the background. Supersedes any load in flight.

        Returns:
            Generation of the load job.
        """
        data_format = DataFormat(data_format or self.settings.data_format)
        logger.info(f"Loading {data_format.value} file {path}")
        return self.runner.start(JobKind.LOAD, _load_job, str(path), data_format)

    def request_filter(self) -> int:
        """Start filtering a copy of the current matrix with ``settings.filtering``.

        Raises:
            RuntimeError: If no recording is loaded.
        """
        recording = self._require_recording()
        return self.runner.start(
            JobKind.FILTER,
            _filter_job,
            recording.data.copy(),
            recording.info.sfreq,
            self.settings.filtering.model_copy(deep=True),
        )

    def request_artifact_removal(self, mode: str | None = None) -> int:
        """Start removing artifacts around the recording's markers.

        Args:
            mode: ``"zero"`` or ``"interpolate"``; defaults to ``settings.artifacts.mode``.

        Raises:
            RuntimeError: If no recording is loaded.
        """
        recording = self._require_recording()
        settings = self.settings.artifacts.model_copy(deep=True)
        if mode is not None:
            settings = ArtifactSettings(**{**settings.model_dump(), "mode": mode})
        return self.runner.start(
            JobKind.ARTIFACT_REMOVAL,
            _artifact_job,
            recording.data.copy(),
            recording.markers.as_array(),
            recording.info.sfreq,
            settings,
        )

    def tick(self) -> dict[JobKind, JobOutcome]:
        """Poll every job kind once and install finished results.

        Failed or disconnected jobs are logged and leave the recording untouched.

        Returns:
            The outcome observed for each kind.
        """
        outcomes = {}
        for kind in JobKind:
            outcome = self.runner.poll(kind)
            outcomes[kind] = outcome
            if outcome.status is JobStatus.DELIVERED:
                self._install(kind, outcome.payload)
            elif outcome.status in (JobStatus.FAILED, JobStatus.DISCONNECTED):
                self.last_error = outcome.error
                logger.error(f"{kind.name} job failed: {outcome.error}")
        return outcomes

    def _install(self, kind: JobKind, payload) -> None:
        if kind is JobKind.LOAD:
            # Jobs started on the previous recording must not overwrite the new one
            self.runner.abandon(JobKind.FILTER)
            self.runner.abandon(JobKind.ARTIFACT_REMOVAL)
            self.recording = payload
            logger.info(
                f"Installed recording {payload.path}: {payload.info.num_ch} channels, "
                f"{payload.n_samples} samples at {payload.info.sfreq} Hz, {payload.markers.n_markers} markers"
            )
            return

        if self.recording is None or payload.data.shape != self.recording.data.shape:
            logger.warning(f"Discarding {kind.name} result that no longer matches the loaded recording")
            return
        self.recording.replace_data(payload)
        logger.info(f"Installed {kind.name} result")

    def display_matrix(self) -> SampleMatrix | None:
        """Matrix to display: the average reference when selected and available, else the raw data."""
        if self.recording is None:
            return None
        if self.settings.reference == "average" and self.recording.referenced is not None:
            return self.recording.referenced
        return self.recording.data
