"""
CLI (Command Line Interface).

Quick terminal commands around the academic calendar, e.g.:

    webregcal academic-year winter 2025
    webregcal quarter fall 2024
    webregcal update --year 2024
    webregcal list
    webregcal default

Note:
- update / list / default work on data/quarters.json (override with --file)
- log messages go to stderr, command output to stdout
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table

from webregcal.calendar_fetch import get_academic_year
from webregcal.errors import CalendarError
from webregcal.quarters import TERMS, fetch_quarter_data, get_default_quarter
from webregcal.storage import load_quarters, update_quarters

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _fmt_day(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def _cmd_academic_year(args: argparse.Namespace) -> int:
    print(get_academic_year(args.term, args.year))
    return 0


def _cmd_quarter(args: argparse.Namespace) -> int:
    """
    Fetch one quarter straight from the calendar host and print it.
    """
    try:
        q = fetch_quarter_data(args.term, args.year)
    except CalendarError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"{args.term}{args.year} ({q.metadata.academic_year})")
    print(f"  start:    {_fmt_day(q.start)}")
    print(f"  end:      {_fmt_day(q.end)}")
    print(f"  excluded: {', '.join(q.excluded_dates) if q.excluded_dates else '-'}")
    return 0


def _cmd_update(args: argparse.Namespace) -> int:
    """
    Refresh all quarters of one academic year in quarters.json.
    """
    fetched = update_quarters(args.year, path=args.file)
    if not fetched:
        print("No quarters could be fetched.")
        return 1

    print(f"Updated {len(fetched)} quarters: {', '.join(fetched)}")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    quarters = load_quarters(args.file)
    if not quarters:
        print("No quarters stored. Run 'webregcal update' first.")
        return 0

    default_key = get_default_quarter(quarters)

    table = Table(title="Stored quarters", box=box.SIMPLE)
    table.add_column("Quarter")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Excluded", justify="right")
    table.add_column("Academic year")
    table.add_column("Source")

    for key, q in quarters.items():
        label = f"[bold cyan]{key}[/] (default)" if key == default_key else key
        meta = q.metadata
        table.add_row(
            label,
            _fmt_day(q.start),
            _fmt_day(q.end),
            str(len(q.excluded_dates)),
            meta.academic_year if meta else "-",
            meta.source if meta else "-",
        )

    Console().print(table)
    return 0


def _cmd_default(args: argparse.Namespace) -> int:
    key = get_default_quarter(load_quarters(args.file))
    if key is None:
        print("No quarter available.")
        return 1
    print(key)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="webregcal", description="Academic calendar quarters for WebReg export")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_ay = sub.add_parser("academic-year", help="Print the academic year of a quarter")
    p_ay.add_argument("term", type=str, choices=TERMS, help="Quarter name")
    p_ay.add_argument("year", type=int, help="Calendar year of the quarter")

    p_quarter = sub.add_parser("quarter", help="Fetch one quarter from the academic calendar")
    p_quarter.add_argument("term", type=str, choices=TERMS, help="Quarter name")
    p_quarter.add_argument("year", type=int, help="Calendar year of the quarter")

    p_update = sub.add_parser("update", help="Fetch a whole academic year into quarters.json")
    p_update.add_argument("--year", type=int, default=None, help="Fall year (default: current academic year)")
    p_update.add_argument("--file", type=Path, default=None, help="quarters.json path")

    p_list = sub.add_parser("list", help="Show stored quarters")
    p_list.add_argument("--file", type=Path, default=None, help="quarters.json path")

    p_default = sub.add_parser("default", help="Print the current or next quarter key")
    p_default.add_argument("--file", type=Path, default=None, help="quarters.json path")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    if args.command == "academic-year":
        raise SystemExit(_cmd_academic_year(args))
    if args.command == "quarter":
        raise SystemExit(_cmd_quarter(args))
    if args.command == "update":
        raise SystemExit(_cmd_update(args))
    if args.command == "list":
        raise SystemExit(_cmd_list(args))
    if args.command == "default":
        raise SystemExit(_cmd_default(args))

    raise SystemExit(2)
