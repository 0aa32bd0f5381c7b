"""
Errors raised while acquiring an academic calendar and building quarter windows.

All of them derive from CalendarError so callers (batch fetch, CLI) can catch
one type.
"""

from __future__ import annotations


class CalendarError(Exception):
    """Base class for calendar pipeline failures."""


class NotPublishedError(CalendarError):
    """The calendar host answered with an HTML page instead of an .ics file."""


class NotFoundError(CalendarError):
    def __init__(self, academic_year: str) -> None:
        super().__init__(f"Calendar not found for {academic_year}")
        self.academic_year = academic_year


class FetchError(CalendarError):
    """Transport failure (timeout, connection error, unexpected HTTP status)."""


class ParseError(CalendarError):
    """The downloaded document is not a valid iCalendar file."""


class MissingDatesError(CalendarError):
    def __init__(self, term: str, year: int) -> None:
        super().__init__(f"Could not find {term} {year} dates in calendar")
        self.term = term
        self.year = year


class InvalidWindowError(CalendarError):
    """Instruction end marker lies before the start marker."""
