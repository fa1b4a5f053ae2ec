"""Type definitions for EEG sample matrices."""

from typing import Annotated, TypeAlias

import numpy as np
import numpy.typing as npt

# Sample matrices are laid out channel-major
# Shape: (n_channels, n_samples)
#   - EDF recordings decode to float64 physical values
#   - BrainVision recordings keep their int16 digital values
FloatMatrix: TypeAlias = Annotated[
    npt.NDArray[np.floating],
    "Shape: (n_channels, n_samples)",
]
IntMatrix: TypeAlias = Annotated[
    npt.NDArray[np.integer],
    "Shape: (n_channels, n_samples)",
]
SampleMatrix: TypeAlias = FloatMatrix | IntMatrix
