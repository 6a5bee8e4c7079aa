from __future__ import annotations


class SchedulingError(ValueError):
    """
    Base class for every error raised by the scheduling core.

    Subclasses ValueError so callers that already guard against bad input
    with ``except ValueError`` keep working.
    """


class EmptyWorkloadError(SchedulingError):
    pass


class InvalidTimeSliceError(SchedulingError):
    pass


class InvalidProcessError(SchedulingError):
    pass


class NoProcessesError(SchedulingError):
    pass


class UnknownAlgorithmError(SchedulingError):
    pass


class WorkloadFormatError(SchedulingError):
    pass
