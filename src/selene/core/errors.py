class SeleneError(Exception):
    """Base error."""


class InvalidFieldError(SeleneError, ValueError):
    """Raised when a field identifier is not one of YEAR, MONTH, DATE."""


class CalendarStateError(SeleneError, RuntimeError):
    """Raised when a cleared calendar is read before a field or the time is set."""


class CalendarOverflowError(SeleneError, OverflowError):
    """Raised when a result leaves the supported year range or a bounded search gives up."""


class EphemerisSearchError(SeleneError, RuntimeError):
    """Raised when an ephemeris root search fails to bracket its event."""
