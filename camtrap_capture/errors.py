"""
errors.py

Exceptions raised by the capture pipeline. All of them are ValueErrors so
callers that only care about "bad input" can catch that.
"""


class CaptureError(ValueError):
    """Base class for every input problem detected before analysis."""


class ParameterError(CaptureError):
    """A numeric or enum parameter is missing or out of range."""


class TimeFormatError(CaptureError):
    """Timestamps could not be parsed into naive datetimes."""


class MissingColumnError(CaptureError):
    """A required column is absent from the input table."""


class NoDataError(CaptureError):
    """Nothing is left to analyze after filtering."""
