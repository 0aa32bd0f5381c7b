"""
Central data model definitions used across the project.

This module defines the canonical structure of calendar events and quarter
windows so that:
- fetching, extraction, storage and the CLI share the same field names
- the JSON written to quarters.json keeps one stable format
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def parse_instant(value: str) -> datetime:
    """
    Parse an ISO-8601 instant as stored in quarters.json.

    Accepts a trailing "Z" and drops any offset so every instant is a naive
    wall-clock datetime, like the events decoded from the calendar.
    """
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).replace(tzinfo=None)


@dataclass(frozen=True)
class Event:
    """
    One VEVENT of a decoded academic calendar.

    `summary` is kept as decoded: either plain text or a wrapped value
    (e.g. {"val": "..."}). Use quarters.summary_text() before matching.
    `start` is a naive datetime in the calendar's local wall-clock time.
    """

    uid: str
    summary: Any
    start: Optional[datetime]


@dataclass(frozen=True)
class QuarterMetadata:
    created_at: datetime
    source: str
    academic_year: str
    last_updated: datetime

    def to_dict(self) -> Dict[str, str]:
        return {
            "createdAt": self.created_at.isoformat(timespec="seconds"),
            "source": self.source,
            "academicYear": self.academic_year,
            "lastUpdated": self.last_updated.isoformat(timespec="seconds"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QuarterMetadata:
        return cls(
            created_at=parse_instant(data["createdAt"]),
            source=str(data.get("source", "auto")),
            academic_year=str(data["academicYear"]),
            last_updated=parse_instant(data["lastUpdated"]),
        )


@dataclass(frozen=True)
class QuarterWindow:
    """
    Instructional window of one quarter.

    excluded_dates holds 'YYYYMMDD' strings of holidays inside [start, end].
    """

    start: Optional[datetime]
    end: Optional[datetime]
    excluded_dates: List[str] = field(default_factory=list)
    metadata: Optional[QuarterMetadata] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def contains(self, when: datetime) -> bool:
        if not self.is_complete:
            return False
        return self.start <= when <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "excludedDates": list(self.excluded_dates),
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QuarterWindow:
        start = data.get("start")
        end = data.get("end")
        meta = data.get("metadata")
        return cls(
            start=parse_instant(start) if start else None,
            end=parse_instant(end) if end else None,
            excluded_dates=[str(x) for x in data.get("excludedDates") or []],
            metadata=QuarterMetadata.from_dict(meta) if meta else None,
        )


@dataclass(frozen=True)
class QuarterResult:
    """
    Outcome of one term inside an academic-year batch.

    Exactly one of `window` / `error` is set.
    """

    key: str
    window: Optional[QuarterWindow] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.window is not None
