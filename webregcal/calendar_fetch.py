"""
Academic calendar download (.ics -> events).

- Resolves which academic year a quarter belongs to
- Downloads that year's published calendar file
- Decodes it into {uid: Event}

One GET per call, no retries and no caching: callers decide what to do
with failures.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, Optional

import requests
from bs4 import BeautifulSoup
from icalendar import Calendar

from webregcal.errors import FetchError, NotFoundError, NotPublishedError, ParseError
from webregcal.model import Event

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URLs & request settings
# ---------------------------------------------------------------------------

CALENDAR_URL_TEMPLATE = "https://blink.ucsd.edu/_files/SCI-tab/{academic_year}-academic-calendar.ics"

REQUEST_TIMEOUT = 10
USER_AGENT = "Mozilla/5.0 (compatible; WebRegExport/1.0)"

FALL = "fall"


# ---------------------------------------------------------------------------
# Academic year
# ---------------------------------------------------------------------------


def get_academic_year(term: str, year: int) -> str:
    """
    Map a quarter to its academic year label.

    Fall starts a new academic year, every other quarter belongs to the
    year that started the previous fall:

        get_academic_year("fall", 2024)   -> "2024-2025"
        get_academic_year("winter", 2025) -> "2024-2025"
    """
    if term.lower() == FALL:
        return f"{year}-{year + 1}"
    return f"{year - 1}-{year}"


def calendar_url(academic_year: str, url_template: str = CALENDAR_URL_TEMPLATE) -> str:
    return url_template.format(academic_year=academic_year)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _html_page_title(text: str) -> Optional[str]:
    """
    Return the page title if `text` is an HTML document, "" for an untitled
    page and None if it is not HTML at all.
    """
    body = text.lstrip("\ufeff \t\r\n")
    if body.upper().startswith("BEGIN:VCALENDAR"):
        return None

    lowered = body.lower()
    if "<!doctype html" not in lowered and "<html" not in lowered:
        return None

    soup = BeautifulSoup(text, "html.parser")
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    return ""


def _local_start(value: Any) -> Optional[datetime]:
    # keep the calendar's wall-clock components, drop any tz
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    return None


def parse_calendar(text: str) -> Dict[str, Event]:
    """
    Decode iCalendar text into {uid: Event}, keeping document order.

    Only VEVENT components are returned. Events without a UID get a
    positional key; a repeated UID replaces the earlier entry in place.
    """
    try:
        cal = Calendar.from_ical(text)
        events: Dict[str, Event] = {}
        for i, component in enumerate(cal.walk("VEVENT")):
            uid = str(component.get("UID") or f"event-{i}")
            events[uid] = Event(
                uid=uid,
                summary=component.get("SUMMARY"),
                start=_local_start(component.decoded("DTSTART", None)),
            )
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise ParseError(f"Failed to parse calendar: {exc}") from exc

    log.debug("Decoded %d events", len(events))
    return events


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


def fetch_calendar(
    term: str,
    year: int,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
    url_template: str = CALENDAR_URL_TEMPLATE,
) -> Dict[str, Event]:
    """
    Download and decode the academic calendar that contains `term` `year`.

    Raises:
        NotPublishedError: the host served an HTML placeholder page
        NotFoundError: the host has no calendar for that academic year (404)
        FetchError: any other transport failure
        ParseError: the body is not valid iCalendar data
    """
    academic_year = get_academic_year(term, year)
    url = calendar_url(academic_year, url_template)
    http = session if session is not None else requests

    log.debug("GET %s", url)
    try:
        resp = http.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        if status == 404:
            raise NotFoundError(academic_year) from exc
        raise FetchError(f"Failed to fetch calendar: {exc}") from exc
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch calendar: {exc}") from exc

    text = resp.text
    title = _html_page_title(text)
    if title is not None:
        detail = f" (page: {title})" if title else ""
        raise NotPublishedError(f"Calendar not available for {academic_year}{detail}")

    return parse_calendar(text)
