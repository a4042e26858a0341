"""
Room occupancy queries.

Given a CourseDB, answer:
- which courses hold room R during [start, end] on day D
- which rooms are free during [start, end] on day D

Conflict rule (endpoints count, a class ending at 10:50 occupies 10:50):
    query start inside the period
    OR query end inside the period
    OR query covers the period
"""

from __future__ import annotations

from typing import List, Set

from whereisclass.model import Course, CourseDB, Day, Period, TimeCode


def _between(t: TimeCode, start: TimeCode, end: TimeCode) -> bool:
    return start <= t <= end


def _overlaps(period: Period, time_start: TimeCode, time_end: TimeCode) -> bool:
    start_inside = _between(time_start, period.time_start, period.time_end)
    end_inside = _between(time_end, period.time_start, period.time_end)
    covers = time_start <= period.time_start and time_end >= period.time_end
    return start_inside or end_inside or covers


def period_conflicts(period: Period, room: str, time_start: TimeCode, time_end: TimeCode, day: Day) -> bool:
    """
    True if the period is in `room` on `day` and touches [time_start, time_end].
    Room names are compared case-sensitively.
    """
    if period.room is None or period.room != room:
        return False
    if day not in period.days:
        return False
    return _overlaps(period, time_start, time_end)


def find_courses_in_room(
    db: CourseDB, room: str, time_start: TimeCode, time_end: TimeCode, day: Day
) -> List[Course]:
    """
    Return the course of every period booked in `room` during the range.

    A course shows up once per conflicting period, so the same course can be
    listed more than once. The length is the number of clashing bookings.
    """
    clash: List[Course] = []
    for course, _section, period in db.iter_periods():
        if period_conflicts(period, room, time_start, time_end, day):
            clash.append(course)
    return clash


def find_courses_in_room_at(db: CourseDB, room: str, time: TimeCode, day: Day) -> List[Course]:
    return find_courses_in_room(db, room, time, time, day)


def known_rooms(db: CourseDB) -> Set[str]:
    """All rooms that appear in at least one period (TBA/blank excluded)."""
    rooms: Set[str] = set()
    for _course, _section, period in db.iter_periods():
        if period.room is not None:
            rooms.add(period.room)
    return rooms


def find_empty_rooms(db: CourseDB, time_start: TimeCode, time_end: TimeCode, day: Day) -> List[str]:
    """
    Rooms with no booking at all during [time_start, time_end] on `day`,
    sorted ascending.
    """
    free = [
        room
        for room in known_rooms(db)
        if not find_courses_in_room(db, room, time_start, time_end, day)
    ]
    return sorted(free)
