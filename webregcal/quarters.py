"""
Quarter windows (events -> start / end / excluded dates).

Given the decoded academic calendar, find for one quarter:
- the "Instruction Begins" and "Instruction Ends" events
- holiday-like events ("... Day") inside that window

and wrap the result with metadata. Also fetches a whole academic year
(fall .. summer session 2) and picks the default quarter to show.

Matching rules (keep in sync with the published calendar wording):
- start:   summary contains "instruction", "begin" and the quarter name
- end:     summary contains "instruction", "end" and the quarter name
- holiday: summary contains "day" but not "fift" ("Fifteenth Day" is an
           enrollment deadline, not a day off)
If several events match, the last one in document order wins.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests

from webregcal.calendar_fetch import FALL, fetch_calendar, get_academic_year
from webregcal.errors import CalendarError, InvalidWindowError, MissingDatesError
from webregcal.model import Event, QuarterMetadata, QuarterResult, QuarterWindow

log = logging.getLogger(__name__)

TERMS = ("fall", "winter", "spring", "summerSession1", "summerSession2")

SOURCE_AUTO = "auto"

_SUMMER_SESSION_RGX = re.compile(r"summersession[12]", re.I)

QuartersMap = Dict[str, QuarterWindow]
Extraction = Dict[str, Any]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def summary_text(value: Any) -> str:
    """
    Return the plain text of a SUMMARY field.

    Decoders hand out either a string (icalendar's vText is a str) or a
    wrapped value with the text under "val".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return str(value)
    if isinstance(value, Mapping):
        inner = value.get("val")
        return str(inner) if inner is not None else ""
    inner = getattr(value, "val", None)
    if inner is not None:
        return str(inner)
    return ""


def search_token(term: str) -> str:
    """summerSession1 / summerSession2 both appear as "summer" in the calendar."""
    return _SUMMER_SESSION_RGX.sub("summer", term).lower()


def format_excluded_date(when: datetime) -> str:
    return f"{when.year:04d}{when.month:02d}{when.day:02d}"


def quarter_key(term: str, year: int) -> str:
    return f"{term}{year}"


def quarter_year(term: str, base_year: int) -> int:
    """Fall belongs to the base year, all later quarters to the next one."""
    return base_year if term.lower() == FALL else base_year + 1


# ---------------------------------------------------------------------------
# Extraction (CORE LOGIC)
# ---------------------------------------------------------------------------


def extract_quarter_dates(events: Mapping[str, Event], term: str) -> Extraction:
    """
    Scan decoded events for the quarter's instruction window and holidays.

    Returns {"start": datetime|None, "end": datetime|None, "excluded_dates": [...]}.
    Never raises for missing markers; assemble_quarter() validates.
    """
    token = search_token(term)

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    holidays: List[datetime] = []

    for event in events.values():
        if event.start is None:
            continue

        summary = summary_text(event.summary).lower()

        if "instruction" in summary and token in summary:
            # later matches overwrite earlier ones
            if "begin" in summary:
                start = event.start
            if "end" in summary:
                end = event.start

        if "day" in summary and "fift" not in summary:
            holidays.append(event.start)

    if start is None or end is None:
        in_window: List[datetime] = []
    else:
        in_window = [h for h in holidays if start <= h <= end]

    return {
        "start": start,
        "end": end,
        "excluded_dates": [format_excluded_date(h) for h in in_window],
    }


def assemble_quarter(
    extraction: Extraction,
    term: str,
    year: int,
    now: Optional[datetime] = None,
) -> QuarterWindow:
    start = extraction.get("start")
    end = extraction.get("end")
    if start is None or end is None:
        raise MissingDatesError(term, year)
    if start > end:
        raise InvalidWindowError(f"{term} {year}: instruction ends ({end:%Y-%m-%d}) before it begins ({start:%Y-%m-%d})")

    stamp = now if now is not None else datetime.now()
    metadata = QuarterMetadata(
        created_at=stamp,
        source=SOURCE_AUTO,
        academic_year=get_academic_year(term, year),
        last_updated=stamp,
    )
    return QuarterWindow(
        start=start,
        end=end,
        excluded_dates=list(extraction.get("excluded_dates") or []),
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fetch_quarter_data(
    term: str,
    year: int,
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
    **fetch_kwargs: Any,
) -> QuarterWindow:
    """
    Download the calendar for `term` `year` and build its QuarterWindow.

    Errors (CalendarError subclasses) propagate to the caller.
    """
    events = fetch_calendar(term, year, session=session, **fetch_kwargs)
    extraction = extract_quarter_dates(events, term)
    return assemble_quarter(extraction, term, year, now=now)


def fetch_quarter_results(
    base_year: int,
    session: Optional[requests.Session] = None,
    logger: Optional[logging.Logger] = None,
    fetch_quarter: Callable[..., QuarterWindow] = fetch_quarter_data,
    **fetch_kwargs: Any,
) -> List[QuarterResult]:
    """
    Run the single-quarter pipeline for every quarter of the academic year
    starting in fall `base_year`, one after another.

    Each quarter's failure is captured in its QuarterResult.
    """
    logger = logger or log
    results: List[QuarterResult] = []
    for term in TERMS:
        year = quarter_year(term, base_year)
        key = quarter_key(term, year)

        logger.info("Fetching %s...", key)
        try:
            window = fetch_quarter(term, year, session=session, **fetch_kwargs)
        except (CalendarError, requests.RequestException) as exc:
            logger.warning("Failed to fetch %s: %s", key, exc)
            results.append(QuarterResult(key=key, error=exc))
            continue

        results.append(QuarterResult(key=key, window=window))

    return results


def fetch_academic_year_data(
    base_year: int,
    session: Optional[requests.Session] = None,
    logger: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> QuartersMap:
    """
    Fetch all quarters of one academic year. Quarters that failed are
    simply missing from the result, which may therefore be empty.
    """
    logger = logger or log
    results = fetch_quarter_results(base_year, session=session, logger=logger, **kwargs)
    quarters: QuartersMap = {r.key: r.window for r in results if r.ok}
    logger.info("Fetched %d of %d quarters for %d-%d", len(quarters), len(results), base_year, base_year + 1)
    return quarters


def get_default_quarter(quarters: Mapping[str, QuarterWindow], now: Optional[datetime] = None) -> Optional[str]:
    """
    Pick the quarter to preselect:
    1. the quarter in session right now
    2. otherwise the next one to start
    3. otherwise the latest one (everything is in the past)
    Returns None if no quarter has both a start and an end.
    """
    today = now if now is not None else datetime.now()

    complete = [(key, q) for key, q in quarters.items() if q.is_complete]
    complete.sort(key=lambda item: item[1].start)

    for key, q in complete:
        if q.contains(today):
            return key

    for key, q in complete:
        if today < q.start:
            return key

    return complete[-1][0] if complete else None
