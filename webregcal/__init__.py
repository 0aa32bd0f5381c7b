"""
webregcal - academic calendar quarters for the WebReg schedule export.

Public entry points used by the rest of the application:

    get_academic_year(term, year)      -> "2024-2025"
    fetch_quarter_data(term, year)     -> QuarterWindow
    fetch_academic_year_data(year)     -> {"fall2024": QuarterWindow, ...}
    get_default_quarter(quarters)      -> "winter2025" | None
"""

from webregcal.calendar_fetch import fetch_calendar, get_academic_year
from webregcal.quarters import (
    extract_quarter_dates,
    fetch_academic_year_data,
    fetch_quarter_data,
    get_default_quarter,
)

__all__ = [
    "fetch_calendar",
    "get_academic_year",
    "extract_quarter_dates",
    "fetch_academic_year_data",
    "fetch_quarter_data",
    "get_default_quarter",
]
