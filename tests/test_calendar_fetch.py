"""
Tests for downloading and decoding the academic calendar.

No network: a fake session returns canned responses or raises
requests exceptions.
"""

import unittest
from datetime import datetime

import requests

from webregcal.calendar_fetch import REQUEST_TIMEOUT, USER_AGENT, fetch_calendar, parse_calendar
from webregcal.errors import CalendarError, FetchError, NotFoundError, NotPublishedError, ParseError

ICS = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//webregcal tests//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:begins@example.edu\r\n"
    "DTSTAMP:20240101T000000Z\r\n"
    "DTSTART;VALUE=DATE:20240926\r\n"
    "SUMMARY:Instruction Begins - Fall Quarter\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:veterans@example.edu\r\n"
    "DTSTAMP:20240101T000000Z\r\n"
    "DTSTART;VALUE=DATE:20241111\r\n"
    "SUMMARY:Veterans Day\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)

HTML_PAGE = "<!DOCTYPE html>\n<html><head><title>Page Not Found | Blink</title></head><body></body></html>"


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)


class FakeSession:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.calls: list = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class TestParseCalendar(unittest.TestCase):
    def test_events_keyed_by_uid_in_document_order(self) -> None:
        events = parse_calendar(ICS)
        self.assertEqual(list(events), ["begins@example.edu", "veterans@example.edu"])
        self.assertEqual(str(events["veterans@example.edu"].summary), "Veterans Day")
        self.assertEqual(events["begins@example.edu"].start, datetime(2024, 9, 26))

    def test_malformed_document_raises_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            parse_calendar("BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nSUMMARY:Veterans Day\r\n")


class TestFetchCalendar(unittest.TestCase):
    def test_success_decodes_events(self) -> None:
        session = FakeSession(FakeResponse(ICS))
        events = fetch_calendar("winter", 2025, session=session)

        self.assertEqual(len(events), 2)
        url, kwargs = session.calls[0]
        self.assertTrue(url.endswith("/2024-2025-academic-calendar.ics"))
        self.assertEqual(kwargs["timeout"], REQUEST_TIMEOUT)
        self.assertEqual(kwargs["headers"]["User-Agent"], USER_AGENT)

    def test_exactly_one_request(self) -> None:
        session = FakeSession(FakeResponse(ICS))
        fetch_calendar("fall", 2024, session=session)
        self.assertEqual(len(session.calls), 1)

    def test_html_page_means_not_published(self) -> None:
        session = FakeSession(FakeResponse(HTML_PAGE))
        with self.assertRaises(NotPublishedError) as ctx:
            fetch_calendar("fall", 2030, session=session)
        self.assertIn("2030-2031", str(ctx.exception))
        self.assertIn("Page Not Found", str(ctx.exception))

    def test_html_page_after_long_prolog_is_not_published(self) -> None:
        prolog = "<!-- " + "x" * 5000 + " -->\n"
        session = FakeSession(FakeResponse(prolog + HTML_PAGE))
        with self.assertRaises(NotPublishedError) as ctx:
            fetch_calendar("fall", 2030, session=session)
        self.assertIn("Page Not Found", str(ctx.exception))

    def test_404_means_not_found(self) -> None:
        session = FakeSession(FakeResponse("missing", status_code=404))
        with self.assertRaises(NotFoundError) as ctx:
            fetch_calendar("spring", 2026, session=session)
        self.assertEqual(ctx.exception.academic_year, "2025-2026")
        self.assertIn("2025-2026", str(ctx.exception))

    def test_other_http_status_is_fetch_error(self) -> None:
        session = FakeSession(FakeResponse("oops", status_code=503))
        with self.assertRaises(FetchError) as ctx:
            fetch_calendar("fall", 2024, session=session)
        self.assertIn("503", str(ctx.exception))

    def test_timeout_is_wrapped_with_cause(self) -> None:
        session = FakeSession(requests.Timeout("read timed out"))
        with self.assertRaises(FetchError) as ctx:
            fetch_calendar("fall", 2024, session=session)
        self.assertIn("read timed out", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, requests.Timeout)

    def test_garbage_body_is_parse_error(self) -> None:
        session = FakeSession(FakeResponse("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n"))
        with self.assertRaises(ParseError):
            fetch_calendar("fall", 2024, session=session)

    def test_all_errors_share_base_class(self) -> None:
        for exc_type in (NotPublishedError, FetchError, ParseError):
            self.assertTrue(issubclass(exc_type, CalendarError))
        self.assertIsInstance(NotFoundError("2024-2025"), CalendarError)


if __name__ == "__main__":
    unittest.main()
