"""
Persistent storage for fetched quarter windows.

This module manages the file:

    data/quarters.json

The downloaded calendar itself is never stored; only the assembled
quarter windows are kept so the schedule exporter can look them up
without hitting the calendar host again.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Mapping, Optional

import requests

from webregcal.model import QuarterWindow
from webregcal.quarters import QuartersMap, fetch_academic_year_data

log = logging.getLogger(__name__)


def _default_quarters_path() -> Path:
    """
    Return the default path of quarters.json inside the package.

    Using a function instead of a constant lets tests pass their own path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "quarters.json"


def load_quarters(path: str | Path | None = None) -> QuartersMap:
    """
    Load stored quarter windows.

    Returns an empty dict if the file does not exist or is invalid.
    Single broken entries are skipped.
    """
    quarters_path = Path(path) if path is not None else _default_quarters_path()

    if not quarters_path.exists():
        return {}

    try:
        data = json.loads(quarters_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Ignoring unreadable %s: %s", quarters_path, exc)
        return {}

    if not isinstance(data, dict):
        return {}

    out: QuartersMap = {}
    for key, raw in data.items():
        if not isinstance(raw, dict):
            continue
        try:
            out[str(key)] = QuarterWindow.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Skipping stored quarter %s: %s", key, exc)
    return out


def save_quarters(quarters: Mapping[str, QuarterWindow], path: str | Path | None = None) -> None:
    """
    Save quarter windows to quarters.json, creating parent directories.
    """
    quarters_path = Path(path) if path is not None else _default_quarters_path()
    quarters_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {key: q.to_dict() for key, q in quarters.items()}
    quarters_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def merge_quarters(existing: Mapping[str, QuarterWindow], fetched: Mapping[str, QuarterWindow]) -> QuartersMap:
    """
    Combine stored and freshly fetched quarters into a new map.

    Fetched entries replace stored ones with the same key but keep the
    stored creation timestamp. Keys only present in storage are kept.
    """
    merged: QuartersMap = dict(existing)
    for key, q in fetched.items():
        old = existing.get(key)
        if old is not None and old.metadata is not None and q.metadata is not None:
            q = replace(q, metadata=replace(q.metadata, created_at=old.metadata.created_at))
        merged[key] = q
    return merged


def current_fall_year(today: Optional[date] = None) -> int:
    """
    Fall year of the academic year we are in (new year starts in July).
    """
    d = today or date.today()
    return d.year if d.month >= 7 else d.year - 1


def update_quarters(
    base_year: Optional[int] = None,
    path: str | Path | None = None,
    session: Optional[requests.Session] = None,
    **fetch_kwargs: Any,
) -> QuartersMap:
    """
    Fetch one academic year and merge it into quarters.json.

    Returns only the quarters fetched now. Nothing is written if that is empty.
    """
    year = base_year if base_year is not None else current_fall_year()
    fetched = fetch_academic_year_data(year, session=session, **fetch_kwargs)

    if not fetched:
        log.warning("No quarters fetched for %d-%d, keeping stored data", year, year + 1)
        return fetched

    existing = load_quarters(path)
    merged = merge_quarters(existing, fetched)
    save_quarters(merged, path)
    log.info("Stored %d quarters (%d updated)", len(merged), len(fetched))
    return fetched
