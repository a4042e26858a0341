"""
JSON persistence of a CourseDB.

The file layout mirrors the model one to one:

    {"courses": [{"name", "dept", "num", "sections": [
        {"crn", "num", "notes": [...], "periods": [
            {"time_start": 1000, "time_end": 1050, "instructor": "...",
             "days": ["Monday", ...], "location": "SAGE 2715" | null,
             "period_type": "Lecture" | {"Other": "SEM"} | null}]}]}]}

A database is written once by parse-html/parse-xml and read back by every
query command, so this format must stay stable.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from whereisclass.errors import RequiredFieldMissing, ValueParseError
from whereisclass.model import (
    Course,
    CourseDB,
    Day,
    Period,
    PeriodKind,
    PeriodType,
    Section,
    TimeCode,
)


# ---------------------------------------------------------------------------
# Model -> JSON
# ---------------------------------------------------------------------------


def _period_type_to_json(pt: Optional[PeriodType]) -> Any:
    if pt is None:
        return None
    if pt.kind is PeriodKind.OTHER:
        return {"Other": pt.other}
    return pt.kind.value


def _period_to_dict(p: Period) -> Dict[str, Any]:
    return {
        "time_start": p.time_start.value,
        "time_end": p.time_end.value,
        "instructor": p.instructor,
        "days": [d.value for d in p.days],
        "location": p.location,
        "period_type": _period_type_to_json(p.period_type),
    }


def db_to_dict(db: CourseDB) -> Dict[str, Any]:
    return {
        "courses": [
            {
                "name": c.name,
                "dept": c.dept,
                "num": c.num,
                "sections": [
                    {
                        "crn": s.crn,
                        "num": s.num,
                        "periods": [_period_to_dict(p) for p in s.periods],
                        "notes": list(s.notes),
                    }
                    for s in c.sections
                ],
            }
            for c in db.courses
        ]
    }


# ---------------------------------------------------------------------------
# JSON -> Model
# ---------------------------------------------------------------------------


def _get(obj: Any, key: str, element: str) -> Any:
    if not isinstance(obj, dict) or key not in obj:
        raise RequiredFieldMissing(element, f"field '{key}'")
    return obj[key]


def _get_int(obj: Any, key: str, element: str) -> int:
    value = _get(obj, key, element)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueParseError(f"{element}.{key} must be an integer, got {value!r}")
    return value


def _day_from_json(name: Any) -> Day:
    try:
        return Day(name)
    except ValueError:
        raise ValueParseError(f"Unknown day name {name!r}") from None


def _period_type_from_json(raw: Any) -> Optional[PeriodType]:
    if raw is None:
        return None
    if isinstance(raw, dict) and "Other" in raw:
        return PeriodType(PeriodKind.OTHER, str(raw["Other"]))
    try:
        kind = PeriodKind(raw)
    except ValueError:
        raise ValueParseError(f"Unknown period type {raw!r}") from None
    return PeriodType(kind)


def _period_from_dict(raw: Any) -> Period:
    return Period(
        time_start=TimeCode.from_int(_get_int(raw, "time_start", "period")),
        time_end=TimeCode.from_int(_get_int(raw, "time_end", "period")),
        instructor=str(_get(raw, "instructor", "period")),
        days=[_day_from_json(d) for d in _get(raw, "days", "period")],
        location=raw.get("location"),
        period_type=_period_type_from_json(raw.get("period_type")),
    )


def _section_from_dict(raw: Any) -> Section:
    return Section(
        crn=_get_int(raw, "crn", "section"),
        num=_get_int(raw, "num", "section"),
        periods=[_period_from_dict(p) for p in _get(raw, "periods", "section")],
        notes=[str(n) for n in raw.get("notes", [])],
    )


def _course_from_dict(raw: Any) -> Course:
    return Course(
        name=str(_get(raw, "name", "course")),
        dept=str(_get(raw, "dept", "course")),
        num=_get_int(raw, "num", "course"),
        sections=[_section_from_dict(s) for s in _get(raw, "sections", "course")],
    )


def db_from_dict(data: Any) -> CourseDB:
    """
    Rebuild a CourseDB from its JSON form.

    Unlike the parsers this is all-or-nothing: a stored database is our own
    output, so anything malformed means the file is wrong, not the source.
    """
    return CourseDB(courses=[_course_from_dict(c) for c in _get(data, "courses", "database")])


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def save_course_db(db: CourseDB, path: str | Path, force: bool = False) -> None:
    """
    Write the database as pretty JSON.

    Refuses to replace an existing file unless force=True.
    Creates parent directories if needed.
    """
    out_path = Path(path)
    if out_path.exists() and not force:
        raise FileExistsError(f"{out_path} already exists (use --force to overwrite)")
    out_path.parent.mkdir(parents=True, exist_ok=True)

    out_path.write_text(json.dumps(db_to_dict(db), indent=2, ensure_ascii=False), encoding="utf-8")


def load_course_db(path: str | Path) -> CourseDB:
    """
    Read a database written by save_course_db.

    Raises OSError if the file cannot be read, json.JSONDecodeError for
    broken JSON and ScheduleParseError for JSON that is not a CourseDB.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return db_from_dict(data)
