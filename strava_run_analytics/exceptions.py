"""Exceptions raised by the run analytics engine."""


class InvalidInputError(ValueError):
    """Raised when a caller passes values the engine cannot work with.

    Covers non-positive race references, unparseable activity timestamps,
    negative distances or durations, and unknown aggregation periods.
    """
