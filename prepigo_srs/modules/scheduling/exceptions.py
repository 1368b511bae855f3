class SchedulingError(Exception):
    """Base exception for the scheduling module."""
    pass


class InvalidRatingError(SchedulingError, ValueError):
    """Raised when the provided rating is not valid (must be 1-4)."""
    pass


class EngineCalculationError(SchedulingError):
    """Raised when the FSRS library fails to calculate next states."""
    pass
