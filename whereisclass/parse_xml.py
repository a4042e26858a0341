"""
Parsing (ROCS XML dump -> CourseDB).

Unlike the SIS table, the XML is already a tree:

    <COURSE name dept num>
      <SECTION crn num>
        <PERIOD start end [location] [type] [instructor]>
          <DAY>0</DAY> ...
        </PERIOD>
        <NOTE>text</NOTE>
      </SECTION>
    </COURSE>

so no marker heuristics are needed. Every child is parsed on its own and a
broken child only drops itself (lenient) or aborts the parse (strict).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, List, TypeVar

from bs4 import BeautifulSoup, Tag

from whereisclass.errors import (
    RequiredFieldMissing,
    ScheduleParseError,
    ValueParseError,
    recover,
)
from whereisclass.model import Course, CourseDB, Day, Period, PeriodType, Section, TimeCode

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DIGITS_RE = re.compile(r"[0-9]+")


def _attr(node: Tag, name: str) -> str:
    value = node.get(name)
    if value is None:
        raise RequiredFieldMissing(node.name, f"attribute '{name}'")
    return value


def _text(node: Tag) -> str:
    text = node.get_text().strip()
    if not text:
        raise RequiredFieldMissing(node.name, "text")
    return text


def _int_attr(node: Tag, name: str) -> int:
    raw = _attr(node, name)
    if not _DIGITS_RE.fullmatch(raw):
        raise ValueParseError(f"<{node.name}> attribute '{name}' is not a number: {raw!r}")
    return int(raw)


def _time_attr(node: Tag, name: str) -> TimeCode:
    raw = _attr(node, name)
    if not _DIGITS_RE.fullmatch(raw):
        raise RequiredFieldMissing(node.name, f"numeric attribute '{name}'")
    return TimeCode.parse(raw)


def _children(node: Tag, tag: str) -> List[Tag]:
    return node.find_all(tag, recursive=False)


def _collect(nodes: List[Tag], parse_one: Callable[[Tag], T], strict: bool, what: str) -> List[T]:
    """
    Parse each node independently; failures go through the strict/lenient
    policy and drop only that node.
    """
    out: List[T] = []
    for node in nodes:
        try:
            out.append(parse_one(node))
        except ScheduleParseError as err:
            recover(err, strict, what, _describe(node))
    return out


def _describe(node: Tag) -> str:
    attrs = " ".join(f'{k}="{v}"' for k, v in node.attrs.items())
    return f"<{node.name} {attrs}>" if attrs else f"<{node.name}>"


# ---------------------------------------------------------------------------
# Element parsers
# ---------------------------------------------------------------------------


def parse_day(node: Tag) -> Day:
    return Day.parse(_text(node))


def parse_note(node: Tag) -> str:
    return _text(node)


def parse_period(node: Tag, strict: bool = False) -> Period:
    time_start = _time_attr(node, "start")
    time_end = _time_attr(node, "end")

    period_type = node.get("type")
    location = (node.get("location") or "").strip()

    return Period(
        time_start=time_start,
        time_end=time_end,
        instructor=node.get("instructor", ""),
        days=_collect(_children(node, "DAY"), parse_day, strict, "day"),
        location=location if location else None,
        period_type=PeriodType.from_code(period_type) if period_type is not None else None,
    )


def parse_section(node: Tag, strict: bool = False) -> Section:
    crn = _int_attr(node, "crn")
    num = _int_attr(node, "num")

    return Section(
        crn=crn,
        num=num,
        periods=_collect(_children(node, "PERIOD"), lambda n: parse_period(n, strict), strict, "period"),
        notes=_collect(_children(node, "NOTE"), parse_note, strict, "note"),
    )


def parse_course(node: Tag, strict: bool = False) -> Course:
    name = _attr(node, "name")
    dept = _attr(node, "dept")
    num = _int_attr(node, "num")

    return Course(
        name=name,
        dept=dept,
        num=num,
        sections=_collect(_children(node, "SECTION"), lambda n: parse_section(n, strict), strict, "section"),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_xml(xml: str, strict: bool = False) -> CourseDB:
    """
    Parse a whole ROCS XML document.
    """
    root = BeautifulSoup(xml, "xml").find(True) if xml.strip() else None
    if root is None:
        recover(RequiredFieldMissing("document", "root element"), strict, "document")
        return CourseDB()

    courses = _collect(_children(root, "COURSE"), lambda n: parse_course(n, strict), strict, "course")
    logger.info("Parsed %d courses", len(courses))
    return CourseDB(courses=courses)


def parse_xml_file(path: str | Path, strict: bool = False) -> CourseDB:
    xml = Path(path).read_text(encoding="utf-8")
    return parse_xml(xml, strict=strict)
