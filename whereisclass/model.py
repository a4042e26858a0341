"""
Central data model definitions used across the project.

This module defines:
- the validated value types TimeCode and Day
- the CourseDB -> Course -> Section -> Period tree that both parsers build
  and the query engine reads

The tree is plain dataclasses so that equality is structural and the JSON
layer (storage.py) can walk it without any magic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from whereisclass.errors import DayParseError, TimeCodeError, TimeCodeErrorKind


# ---------------------------------------------------------------------------
# Value model
# ---------------------------------------------------------------------------

TIME_MIN = 700
TIME_MAX = 2350

_DIGITS_RE = re.compile(r"^\d+$")


@dataclass(frozen=True, order=True)
class TimeCode:
    """
    A 24h military time `hhmm` between 7:00 and 23:50, e.g. 1:35 PM -> 1335.

    Ordering is by raw value, which matches clock order for valid codes.
    """

    value: int

    def __post_init__(self) -> None:
        _check_time_code(self.value, str(self.value))

    @classmethod
    def from_int(cls, value: int) -> "TimeCode":
        return cls(value)

    @classmethod
    def parse(cls, text: str) -> "TimeCode":
        """
        Parse an unsigned integer time code.
        Raises TimeCodeError (NOT_A_NUMBER / OUT_OF_BOUNDS / INVALID_MINUTES).
        """
        raw = str(text).strip()
        if not _DIGITS_RE.match(raw):
            raise TimeCodeError(str(text), TimeCodeErrorKind.NOT_A_NUMBER)
        value = int(raw)
        _check_time_code(value, str(text))
        return cls(value)

    @property
    def hour(self) -> int:
        return self.value // 100

    @property
    def minute(self) -> int:
        return self.value % 100

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.hour}:{self.minute:02d}"


def _check_time_code(value: int, text: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TimeCodeError(text, TimeCodeErrorKind.NOT_A_NUMBER)
    if value < TIME_MIN or value > TIME_MAX:
        raise TimeCodeError(text, TimeCodeErrorKind.OUT_OF_BOUNDS)
    if value % 100 >= 60:
        raise TimeCodeError(text, TimeCodeErrorKind.INVALID_MINUTES)


class Day(Enum):
    """A weekday. SIS spells them M T W R F, the XML dumps use 0-4."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"

    @classmethod
    def parse(cls, text: str) -> "Day":
        day = _DAY_CODES.get(text)
        if day is None:
            raise DayParseError(text)
        return day

    @property
    def letter(self) -> str:
        return _DAY_LETTERS[self]

    @property
    def index(self) -> int:
        return _DAY_ORDER.index(self)

    def __str__(self) -> str:
        return self.value


_DAY_ORDER = [Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY, Day.FRIDAY]
_DAY_LETTERS = dict(zip(_DAY_ORDER, "MTWRF"))
_DAY_CODES = {str(i): day for i, day in enumerate(_DAY_ORDER)}
_DAY_CODES.update({letter: day for day, letter in _DAY_LETTERS.items()})


# ---------------------------------------------------------------------------
# Record model
# ---------------------------------------------------------------------------


class PeriodKind(Enum):
    LECTURE = "Lecture"
    RECITATION = "Recitation"
    LAB = "Lab"
    TEST = "Test"
    OTHER = "Other"


_PERIOD_CODES = {
    "LEC": PeriodKind.LECTURE,
    "REC": PeriodKind.RECITATION,
    "LAB": PeriodKind.LAB,
    "TST": PeriodKind.TEST,
}


@dataclass(frozen=True)
class PeriodType:
    """
    What kind of meeting a period is. `other` holds the raw code when the
    kind is PeriodKind.OTHER.
    """

    kind: PeriodKind
    other: Optional[str] = None

    @classmethod
    def from_code(cls, code: str) -> "PeriodType":
        kind = _PERIOD_CODES.get(code)
        if kind is None:
            return cls(PeriodKind.OTHER, code)
        return cls(kind)

    def __str__(self) -> str:
        if self.kind is PeriodKind.OTHER:
            return f"Other({self.other})"
        return self.kind.value


NO_ROOM = "TBA"


@dataclass
class Period:
    """
    One weekly meeting block of a section.
    """

    time_start: TimeCode
    time_end: TimeCode
    instructor: str
    days: List[Day]
    location: Optional[str] = None
    period_type: Optional[PeriodType] = None

    @property
    def room(self) -> Optional[str]:
        """Location usable as a room name, None for missing/blank/TBA."""
        if self.location is None:
            return None
        loc = self.location.strip()
        if not loc or loc == NO_ROOM:
            return None
        return loc


@dataclass
class Section:
    """
    One registrable section of a course (identified by its CRN).
    """

    crn: int
    num: int
    periods: List[Period] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


@dataclass
class Course:
    name: str
    dept: str
    num: int
    sections: List[Section] = field(default_factory=list)

    @property
    def code(self) -> str:
        return f"{self.dept} {self.num}"


@dataclass
class CourseDB:
    """Root of the tree. Literally just the list of courses."""

    courses: List[Course] = field(default_factory=list)

    def iter_periods(self):
        """Yield (course, section, period) for every period, in order."""
        for course in self.courses:
            for section in course.sections:
                for period in section.periods:
                    yield course, section, period
