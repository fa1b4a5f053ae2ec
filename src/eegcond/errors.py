"""Exception hierarchy for eegcond.

Missing files surface as the builtin ``FileNotFoundError``. Everything else raised by
the package derives from :class:`EEGError` and from the builtin that matches its kind,
so callers may catch either.
"""


class EEGError(Exception):
    """Base class for all eegcond errors."""


class FormatError(EEGError, ValueError):
    """A file or matrix is structurally invalid (zero channels or ragged rows)."""


class FilterError(EEGError, ValueError):
    """A filter stage cannot be applied (cutoff outside ``(0, Nyquist)`` or a matrix that is not 2-D)."""


class ReferencingError(EEGError, ArithmeticError):
    """The average reference cannot be computed for the given input."""


class UnexpectedDisconnect(EEGError, RuntimeError):
    """A background job ended without ever delivering a result."""
