"""
Error kinds shared by the value model and both ingestion paths.

Every failure that can happen while turning registrar data into a CourseDB
is one of these, so the HTML and XML parsers report problems the same way.

Policy:
- lenient mode: the broken unit (a day, a period, a note, a row ...) is
  dropped, a warning is logged, and parsing continues
- strict mode: the first error is raised to the caller
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ScheduleParseError(ValueError):
    """Base class for everything the parsers can complain about."""


class ValueParseError(ScheduleParseError):
    """A single value (time, day, number) could not be read."""


class TimeCodeErrorKind(Enum):
    NOT_A_NUMBER = "not a number"
    OUT_OF_BOUNDS = "outside 7:00-23:50"
    INVALID_MINUTES = "minutes must be below 60"


class TimeCodeError(ValueParseError):
    def __init__(self, text: str, kind: TimeCodeErrorKind) -> None:
        self.text = text
        self.kind = kind
        super().__init__(f"Invalid time code {text!r}: {kind.value}")


class DayParseError(ValueParseError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Unknown day {text!r} (expected one of 0-4 or M, T, W, R, F)")


class RowStructureKind(Enum):
    NO_OPEN_COURSE = "continuation row before any course"
    NO_OPEN_SECTION = "period row before any section"
    MISSING_CELL = "row is missing a required cell"
    NOT_TWO_TIMES = "two times should be present"
    MISSING_AMPM = "missing AM/PM - should be \"am\" or \"pm\""
    MALFORMED_AMPM = "AM/PM is malformed - should be \"am\" or \"pm\""


class RowStructureError(ScheduleParseError):
    def __init__(self, kind: RowStructureKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        msg = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(msg)


class RequiredFieldMissing(ScheduleParseError):
    """An XML element (or JSON object) lacks an attribute/text it must have."""

    def __init__(self, element: str, field: str) -> None:
        self.element = element
        self.field = field
        super().__init__(f"<{element}> is missing required {field}")


def recover(err: ScheduleParseError, strict: bool, what: str, where: str = "") -> None:
    """
    The one place where the strict/lenient decision is made.

    Strict: re-raise err. Lenient: log it and return, the caller then drops
    `what` and moves on.
    """
    if strict:
        raise err
    if where:
        logger.warning("Dropping %s (%s): %s", what, where, err)
    else:
        logger.warning("Dropping %s: %s", what, err)
