"""
Parsing (SIS HTML listing table -> CourseDB).

The SIS table is flat: one <tr> per meeting, no nesting. The tree is rebuilt
from the section marker cell of each row:

- "H01"          header/meta row, skipped
- "01"           first section of a NEW course
- other digits   a new section of the current course
- non-digit      one more meeting period of the current section

Rows must therefore be processed strictly in order; a continuation row has
nothing but its position to tie it to its section.

Important rules (DO NOT CHANGE):
- a row that fails only drops what that row would have added
- columns are positional, see SIS_COLUMNS
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from whereisclass.errors import (
    RowStructureError,
    RowStructureKind,
    ScheduleParseError,
    ValueParseError,
    recover,
)
from whereisclass.model import Course, CourseDB, Day, Period, Section, TimeCode

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Table layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnMap:
    """
    Cell index of every field we read from a row.

    The SIS table has no usable header, so this is the whole schema. If the
    registrar reshuffles columns, only this mapping changes.
    """

    crn: int
    dept: int
    catalog_num: int
    section_marker: int
    course_name: int
    days: int
    time_range: int
    instructor: int
    location: int


SIS_COLUMNS = ColumnMap(
    crn=1,
    dept=2,
    catalog_num=3,
    section_marker=4,
    course_name=7,
    days=8,
    time_range=9,
    instructor=19,
    location=21,
)

FULL_ROW_CELLS = 22

HEADER_MARKER = "H01"
FIRST_SECTION_MARKER = "01"
# What an empty marker cell is read as
DEFAULT_MARKER = "00"
TBA = "TBA"

DAY_CELL_RE = re.compile(r"^[MTWRF]*$")


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def _cell(row: Sequence[str], index: int, name: str) -> str:
    """Required cell, a short row is a structural error."""
    if index >= len(row):
        raise RowStructureError(
            RowStructureKind.MISSING_CELL,
            f"{name} (index {index}) in a row of {len(row)} cells",
        )
    return row[index]


def _optional_cell(row: Sequence[str], index: int) -> str:
    if index >= len(row):
        return ""
    return row[index]


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _parse_int(text: str, what: str) -> int:
    raw = text.strip()
    if not raw or not all(_is_digit(c) for c in raw):
        raise ValueParseError(f"Invalid {what} {text!r}: expected an unsigned integer")
    return int(raw)


# ---------------------------------------------------------------------------
# Time parsing
# ---------------------------------------------------------------------------


def parse_time_token(token: str) -> TimeCode:
    """
    Parse one side of a SIS time range, e.g. "1:35 pm" -> 1335.

    Non-digits are stripped from the clock part; "pm" adds 1200 unless the
    value is already 12xx (so "12:35 pm" stays 1235).
    """
    parts = token.strip().split(" ")
    if len(parts) != 2:
        raise RowStructureError(RowStructureKind.MISSING_AMPM, repr(token))

    clock, suffix = parts
    if suffix == "am":
        pm = False
    elif suffix == "pm":
        pm = True
    else:
        raise RowStructureError(RowStructureKind.MALFORMED_AMPM, repr(token))

    digits = "".join(c for c in clock if _is_digit(c))
    if not digits:
        raise ValueParseError(f"Invalid time {token!r}: no digits in {clock!r}")
    value = int(digits)

    if pm and value < 1200:
        value += 1200
    return TimeCode.from_int(value)


def parse_time_range(text: str) -> Tuple[TimeCode, TimeCode]:
    """Parse "10:00 am-10:50 am" into (1000, 1050)."""
    parts = text.split("-")
    if len(parts) != 2:
        raise RowStructureError(RowStructureKind.NOT_TWO_TIMES, repr(text))
    return parse_time_token(parts[0]), parse_time_token(parts[1])


def clean_instructor(text: str) -> str:
    # SIS renders the primary instructor as "Lastname   (<abbr>P</abbr>)",
    # whose first text node is "Lastname   ("
    return text.replace("   ", " ").replace(" (", "")


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


@dataclass
class _IngestState:
    """
    Running state of one parse: the courses so far plus the index of the
    course and section that continuation rows attach to.
    """

    courses: List[Course] = field(default_factory=list)
    course_index: Optional[int] = None
    section_index: Optional[int] = None

    def current_course(self) -> Course:
        if self.course_index is None:
            raise RowStructureError(RowStructureKind.NO_OPEN_COURSE)
        return self.courses[self.course_index]

    def current_section(self) -> Section:
        course = self.current_course()
        if self.section_index is None:
            raise RowStructureError(RowStructureKind.NO_OPEN_SECTION, course.code)
        return course.sections[self.section_index]


def _read_course(row: Sequence[str], columns: ColumnMap) -> Course:
    return Course(
        name=_cell(row, columns.course_name, "course name"),
        dept=_cell(row, columns.dept, "department"),
        num=_parse_int(_cell(row, columns.catalog_num, "catalog number"), "catalog number"),
    )


def _read_section(row: Sequence[str], columns: ColumnMap, marker: str) -> Section:
    return Section(
        crn=_parse_int(_cell(row, columns.crn, "CRN"), "CRN"),
        num=_parse_int(marker, "section number"),
    )


def _read_days(day_str: str, strict: bool, where: str) -> List[Day]:
    days: List[Day] = []
    for ch in day_str:
        try:
            days.append(Day.parse(ch))
        except ScheduleParseError as err:
            recover(err, strict, "day", where)
    return days


def _read_period(row: Sequence[str], columns: ColumnMap, strict: bool, where: str) -> Optional[Period]:
    """
    Build the period described by a row, or None when the row carries no
    schedule (TBA days/times, no days at all).
    """
    day_str = _cell(row, columns.days, "days")
    if day_str == TBA or not DAY_CELL_RE.match(day_str):
        return None

    days = _read_days(day_str, strict, where)
    if not days:
        return None

    time_str = _cell(row, columns.time_range, "time range")
    if time_str == TBA:
        return None
    start, end = parse_time_range(time_str)

    instructor = clean_instructor(_optional_cell(row, columns.instructor))
    location = _optional_cell(row, columns.location).strip()

    return Period(
        time_start=start,
        time_end=end,
        instructor=instructor,
        days=days,
        location=location if location else None,
    )


def _ingest_row(state: _IngestState, row: Sequence[str], columns: ColumnMap, strict: bool, where: str) -> None:
    marker = _cell(row, columns.section_marker, "section marker") or DEFAULT_MARKER
    if marker == HEADER_MARKER:
        return

    # Read identity fields before touching the state. A row that fails to
    # open a course/section closes the current one, so the rows after it
    # cannot attach to the wrong parent.
    try:
        new_course = _read_course(row, columns) if marker == FIRST_SECTION_MARKER else None
    except ScheduleParseError:
        state.course_index = None
        state.section_index = None
        raise
    try:
        new_section = _read_section(row, columns, marker) if _is_digit(marker[0]) else None
    except ScheduleParseError:
        if marker == FIRST_SECTION_MARKER:
            state.course_index = None
        state.section_index = None
        raise

    if new_course is None:
        course = state.current_course()
    else:
        state.courses.append(new_course)
        state.course_index = len(state.courses) - 1
        state.section_index = None
        course = new_course

    if new_section is None:
        section = state.current_section()
    else:
        course.sections.append(new_section)
        state.section_index = len(course.sections) - 1
        section = new_section

    try:
        period = _read_period(row, columns, strict, where)
    except ScheduleParseError as err:
        recover(err, strict, "period", where)
        return

    if period is not None:
        section.periods.append(period)
        logger.debug("%s: %s %s section %02d +period", where, course.dept, course.num, section.num)


def parse_rows(
    rows: Iterable[Sequence[str]],
    strict: bool = False,
    columns: ColumnMap = SIS_COLUMNS,
) -> CourseDB:
    """
    Run the SIS state machine over table rows (each a list of cell texts).

    Lenient (default): a bad row is logged and skipped.
    Strict: the first error is raised and no database is returned.
    """
    state = _IngestState()

    for line_no, row in enumerate(rows, start=1):
        if len(row) == 0:
            continue
        if len(row) < FULL_ROW_CELLS:
            logger.debug("row %d: unexpected row with %d cells", line_no, len(row))

        where = f"row {line_no}"
        try:
            _ingest_row(state, row, columns, strict, where)
        except ScheduleParseError as err:
            recover(err, strict, "row", where)

    logger.info("Parsed %d courses", len(state.courses))
    return CourseDB(courses=state.courses)


# ---------------------------------------------------------------------------
# HTML input
# ---------------------------------------------------------------------------


def _cell_text(td) -> str:
    # Only the first text node counts; later nodes are markup noise
    # such as the "(P)" abbreviation after the primary instructor.
    first = td.find(string=True)
    return str(first) if first is not None else ""


def rows_from_html(html: str) -> List[List[str]]:
    """
    Turn every <tr> of the document into a list of cell texts.
    """
    soup = BeautifulSoup(html.replace("\n", ""), "html.parser")

    rows: List[List[str]] = []
    for tr in soup.select("tr"):
        rows.append([_cell_text(td) for td in tr.find_all("td")])
    return rows


def parse_html(html: str, strict: bool = False, columns: ColumnMap = SIS_COLUMNS) -> CourseDB:
    return parse_rows(rows_from_html(html), strict=strict, columns=columns)


def parse_html_file(path: str | Path, strict: bool = False) -> CourseDB:
    html = Path(path).read_text(encoding="utf-8")
    return parse_html(html, strict=strict)
