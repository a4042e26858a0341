"""
CLI (Command Line Interface).

    whereisclass parse-html <table.html> <db.json> [--force] [--strict]
    whereisclass parse-xml <rocs.xml> <db.json> [--force] [--strict]
    whereisclass find-course-in-room <db.json> <room> <time> <day>
    whereisclass empty-rooms <db.json> <time-start> <time-end> <day>

Times are military time codes (e.g. 1335), days are M T W R F or 0-4.

Note:
- This CLI is intentionally simple and prints plain text
- Parse diagnostics go through logging (-v for more, -q for less)
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Callable

from whereisclass.conflicts import find_courses_in_room_at, find_empty_rooms
from whereisclass.errors import ScheduleParseError
from whereisclass.model import CourseDB, Day, TimeCode
from whereisclass.parse import parse_html_file
from whereisclass.parse_xml import parse_xml_file
from whereisclass.storage import load_course_db, save_course_db


# ---------------------------------------------------------------------------
# Argument types
# ---------------------------------------------------------------------------


def _existing_file(value: str) -> Path:
    path = Path(value)
    if not path.is_file():
        raise argparse.ArgumentTypeError("File does not exist!")
    return path


def _time_code(value: str) -> TimeCode:
    try:
        return TimeCode.parse(value)
    except ScheduleParseError as err:
        raise argparse.ArgumentTypeError(str(err))


def _day(value: str) -> Day:
    try:
        return Day.parse(value)
    except ScheduleParseError as err:
        raise argparse.ArgumentTypeError(str(err))


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_parse(args: argparse.Namespace, parser: Callable[..., CourseDB]) -> int:
    """
    Shared body of parse-html / parse-xml.

    Strict mode either writes a complete database or nothing at all.
    """
    out_path: Path = args.output
    if out_path.exists() and not args.force:
        print(f"Refusing to overwrite {out_path} (use --force).")
        return 1

    try:
        db = parser(args.file, strict=args.strict)
    except ScheduleParseError as err:
        print(f"Parse failed: {err}")
        return 1
    except (OSError, UnicodeDecodeError) as err:
        print(f"Could not read {args.file}: {err}")
        return 1

    print(f"Read {len(db.courses)} courses")
    save_course_db(db, out_path, force=args.force)
    return 0


def _cmd_parse_html(args: argparse.Namespace) -> int:
    return _run_parse(args, parse_html_file)


def _cmd_parse_xml(args: argparse.Namespace) -> int:
    return _run_parse(args, parse_xml_file)


def _load_db(path: Path) -> CourseDB | None:
    try:
        return load_course_db(path)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, ScheduleParseError) as err:
        print(f"Could not load course database {path}: {err}")
        return None


def _cmd_find_course_in_room(args: argparse.Namespace) -> int:
    db = _load_db(args.db)
    if db is None:
        return 1

    print(f"{args.room} -- ")
    courses = find_courses_in_room_at(db, args.room, args.time, args.day)
    print(f"Found the following course{_plural(len(courses))}:")
    for course in courses:
        print(f"{course.dept} {course.num} -- {course.name}")
    return 0


def _cmd_empty_rooms(args: argparse.Namespace) -> int:
    db = _load_db(args.db)
    if db is None:
        return 1

    if args.time_end < args.time_start:
        print(f"End time {args.time_end} is before start time {args.time_start}.")
        return 1

    empty = find_empty_rooms(db, args.time_start, args.time_end, args.day)
    print(f"{len(empty)} empty room{_plural(len(empty))} found between {args.time_start} and {args.time_end}:\n")
    for room in empty:
        print(room)
    return 0


# ---------------------------------------------------------------------------
# Parser / entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(
        prog="whereisclass",
        description="A toolkit to find out nifty information about the master schedule.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (repeat for debug)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text, fn in (
        ("parse-html", "Parse an HTML file containing a SIS class table into JSON", _cmd_parse_html),
        ("parse-xml", "Parse a ROCS XML file into JSON", _cmd_parse_xml),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("file", type=_existing_file, help="Input file to parse")
        p.add_argument("output", type=Path, help="Output JSON file")
        p.add_argument("-f", "--force", action="store_true", help="Overwrite the output file")
        p.add_argument("--strict", action="store_true", help="Abort on the first malformed entry")
        p.set_defaults(func=fn)

    p_find = sub.add_parser("find-course-in-room", help="Which courses are held in a room at a given time")
    p_find.add_argument("db", type=_existing_file, help="The JSON course DB to scan")
    p_find.add_argument("room", type=str, help="The SIS room name (e.g. 'SAGE 2715')")
    p_find.add_argument("time", type=_time_code, help="Military time code (e.g. 1335)")
    p_find.add_argument("day", type=_day, help="M, T, W, R, F or 0-4")
    p_find.set_defaults(func=_cmd_find_course_in_room)

    p_empty = sub.add_parser("empty-rooms", help="Find empty rooms for a given time range")
    p_empty.add_argument("db", type=_existing_file, help="The JSON course DB to scan")
    p_empty.add_argument("time_start", metavar="time-start", type=_time_code, help="Start time code")
    p_empty.add_argument("time_end", metavar="time-end", type=_time_code, help="End time code")
    p_empty.add_argument("day", type=_day, help="M, T, W, R, F or 0-4")
    p_empty.set_defaults(func=_cmd_empty_rooms)

    return parser


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    raise SystemExit(args.func(args))
