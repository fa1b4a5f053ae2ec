"""Pydantic models for configuration."""

from typing import Literal

import pydantic
from pydantic import BaseModel, Field

from ..artifacts import ArtifactSettings
from ..filtering import FilterSettings
from ..models import DataFormat


class Settings(BaseModel):
    """Complete settings for a conditioning session.

    Args:
        filtering: High-pass, low-pass and notch configuration
        artifacts: Artifact window and removal mode
        data_format: Format of the recordings to load
        reference: Which matrix is displayed, ``"original"`` or ``"average"``

    Examples:
        # Defaults: 1-45 Hz band, no notch, zeroing 2 ms before to 5 ms after markers
        settings = Settings()

        # Interpolate artifacts and remove 60 Hz mains
        settings = Settings(artifacts={"mode": "interpolate"})
        settings.filtering.notch.enabled = True
        settings.filtering.notch.freq = 60.0
    """

    filtering: FilterSettings = Field(default_factory=FilterSettings)
    artifacts: ArtifactSettings = Field(default_factory=ArtifactSettings)
    data_format: DataFormat = DataFormat.EDF
    reference: Literal["original", "average"] = "original"

    @pydantic.model_validator(mode="after")
    def check_band(self) -> "Settings":
        """Validate that the high-pass cutoff lies below the low-pass cutoff.

        Raises:
            ValueError: If ``l_freq`` is not below ``h_freq``
        """
        if self.filtering.l_freq >= self.filtering.h_freq:
            raise ValueError(
                f"High-pass cutoff ({self.filtering.l_freq} Hz) must be below "
                f"the low-pass cutoff ({self.filtering.h_freq} Hz)."
            )
        return self
