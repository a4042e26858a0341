"""
Unit tests for the SIS table state machine.

Rows are built with _row(), which places each field at its SIS_COLUMNS
position in a 22-cell row. The section marker decides what a row means:
"H01" header, "01" new course, other digits new section, anything else
one more period of the current section.
"""

import unittest

from whereisclass.conflicts import find_courses_in_room_at
from whereisclass.errors import (
    RowStructureError,
    RowStructureKind,
    TimeCodeError,
    TimeCodeErrorKind,
    ValueParseError,
)
from whereisclass.model import Course, CourseDB, Day, Period, Section, TimeCode
from whereisclass.parse import (
    SIS_COLUMNS,
    ColumnMap,
    parse_html,
    parse_rows,
    parse_time_range,
    parse_time_token,
    rows_from_html,
)


# SIS fills the marker cell of continuation rows with &nbsp;
CONT = "\xa0"


def _row(
    marker: str,
    crn: str = "10001",
    dept: str = "CSCI",
    num: str = "1200",
    name: str = "Intro to Systems",
    days: str = "MW",
    time: str = "10:00 am-10:50 am",
    instructor: str = "Goldschmidt",
    location: str = "SAGE 2715",
    size: int = 22,
) -> list:
    row = [""] * size
    values = {
        SIS_COLUMNS.crn: crn,
        SIS_COLUMNS.dept: dept,
        SIS_COLUMNS.catalog_num: num,
        SIS_COLUMNS.section_marker: marker,
        SIS_COLUMNS.course_name: name,
        SIS_COLUMNS.days: days,
        SIS_COLUMNS.time_range: time,
        SIS_COLUMNS.instructor: instructor,
        SIS_COLUMNS.location: location,
    }
    for index, value in values.items():
        if index < size:
            row[index] = value
    return row


def _html(rows_html: list) -> str:
    return "<table>\n" + "\n".join(rows_html) + "\n</table>"


def _tr(cells: list) -> str:
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


class TestParseTime(unittest.TestCase):
    def test_am_pm(self) -> None:
        self.assertEqual(parse_time_token("10:00 am"), TimeCode(1000))
        self.assertEqual(parse_time_token("1:35 pm"), TimeCode(1335))
        self.assertEqual(parse_time_token("12:35 pm"), TimeCode(1235))
        self.assertEqual(parse_time_token(" 9:05 am "), TimeCode(905))

    def test_missing_ampm(self) -> None:
        with self.assertRaises(RowStructureError) as ctx:
            parse_time_token("10:00")
        self.assertEqual(ctx.exception.kind, RowStructureKind.MISSING_AMPM)

    def test_malformed_ampm(self) -> None:
        with self.assertRaises(RowStructureError) as ctx:
            parse_time_token("10:00 AM")
        self.assertEqual(ctx.exception.kind, RowStructureKind.MALFORMED_AMPM)

    def test_malformed_number_is_value_error(self) -> None:
        with self.assertRaises(ValueParseError):
            parse_time_token("noon pm")

    def test_out_of_range_goes_through_time_code(self) -> None:
        with self.assertRaises(TimeCodeError) as ctx:
            parse_time_token("11:55 pm")
        self.assertEqual(ctx.exception.kind, TimeCodeErrorKind.OUT_OF_BOUNDS)

    def test_range(self) -> None:
        self.assertEqual(parse_time_range("2:00 pm-2:50 pm"), (TimeCode(1400), TimeCode(1450)))

    def test_range_needs_exactly_two_times(self) -> None:
        for text in ("10:00 am", "10:00 am-10:50 am-11:00 am"):
            with self.assertRaises(RowStructureError) as ctx:
                parse_time_range(text)
            self.assertEqual(ctx.exception.kind, RowStructureKind.NOT_TWO_TIMES)


class TestParseRows(unittest.TestCase):
    def test_course_with_continuation_period(self) -> None:
        rows = [
            _row("01"),
            _row(CONT, days="MW", time="2:00 pm-2:50 pm"),
        ]
        db = parse_rows(rows)

        self.assertEqual(len(db.courses), 1)
        course = db.courses[0]
        self.assertEqual((course.name, course.dept, course.num), ("Intro to Systems", "CSCI", 1200))
        self.assertEqual(len(course.sections), 1)

        section = course.sections[0]
        self.assertEqual((section.crn, section.num), (10001, 1))
        self.assertEqual(len(section.periods), 2)

        first, second = section.periods
        self.assertEqual((first.time_start, first.time_end), (TimeCode(1000), TimeCode(1050)))
        self.assertEqual((second.time_start, second.time_end), (TimeCode(1400), TimeCode(1450)))
        self.assertEqual(second.days, [Day.MONDAY, Day.WEDNESDAY])
        self.assertEqual(second.location, "SAGE 2715")
        self.assertIsNone(second.period_type)

    def test_sections_and_courses(self) -> None:
        rows = [
            _row("01", crn="10001"),
            _row("02", crn="10002", days="TF", time="4:00 pm-5:50 pm"),
            _row("01", crn="20001", dept="MATH", num="1010", name="Calculus I", days="MR"),
        ]
        db = parse_rows(rows)

        self.assertEqual([c.dept for c in db.courses], ["CSCI", "MATH"])
        csci, math = db.courses
        self.assertEqual([s.crn for s in csci.sections], [10001, 10002])
        self.assertEqual([s.num for s in csci.sections], [1, 2])
        self.assertEqual(csci.sections[1].periods[0].days, [Day.TUESDAY, Day.FRIDAY])
        self.assertEqual(math.sections[0].crn, 20001)
        self.assertEqual(math.num, 1010)

    def test_header_and_empty_rows_are_skipped(self) -> None:
        rows = [
            [],
            _row("H01", crn="CRN", num="Crse"),
            _row("01"),
            [],
        ]
        db = parse_rows(rows)
        self.assertEqual(len(db.courses), 1)
        self.assertEqual(len(db.courses[0].sections[0].periods), 1)

    def test_tba_and_empty_days_record_no_period(self) -> None:
        rows = [
            _row("01", days="TBA"),
            _row(CONT, days=""),
            _row(CONT, days="Sat"),
            _row(CONT, time="TBA"),
        ]
        db = parse_rows(rows)
        self.assertEqual(len(db.courses[0].sections), 1)
        self.assertEqual(db.courses[0].sections[0].periods, [])

    def test_instructor_and_location_cleanup(self) -> None:
        rows = [
            _row("01", instructor="Goldschmidt   (", location="  DCC 308  "),
            _row(CONT, instructor="Turner", location="   "),
        ]
        periods = parse_rows(rows).courses[0].sections[0].periods
        self.assertEqual(periods[0].instructor, "Goldschmidt")
        self.assertEqual(periods[0].location, "DCC 308")
        self.assertEqual(periods[1].instructor, "Turner")
        self.assertIsNone(periods[1].location)

    def test_short_row_without_optional_cells(self) -> None:
        db = parse_rows([_row("01", size=10)])
        period = db.courses[0].sections[0].periods[0]
        self.assertEqual(period.instructor, "")
        self.assertIsNone(period.location)

    def test_empty_marker_reads_as_new_section(self) -> None:
        row = _row("01")
        blank = _row("", crn="10009")
        db = parse_rows([row, _row("X"), blank])
        # "X" continues section 1, a blank marker opens section 0
        self.assertEqual([s.num for s in db.courses[0].sections], [1, 0])
        self.assertEqual(len(db.courses[0].sections[0].periods), 2)

    def test_custom_column_map(self) -> None:
        columns = ColumnMap(
            crn=0,
            dept=1,
            catalog_num=2,
            section_marker=3,
            course_name=4,
            days=5,
            time_range=6,
            instructor=7,
            location=8,
        )
        row = ["30001", "ITWS", "4500", "01", "Web Science", "TR", "12:00 pm-1:50 pm", "Kuruzovich", "LALLY 104"]
        db = parse_rows([row], columns=columns)
        period = db.courses[0].sections[0].periods[0]
        self.assertEqual(db.courses[0].name, "Web Science")
        self.assertEqual((period.time_start, period.time_end), (TimeCode(1200), TimeCode(1350)))
        self.assertEqual(period.location, "LALLY 104")


class TestLenientAndStrict(unittest.TestCase):
    def test_continuation_before_course_lenient(self) -> None:
        with self.assertLogs("whereisclass", level="WARNING") as logs:
            db = parse_rows([_row(CONT), _row("01")])
        self.assertEqual(len(db.courses), 1)
        self.assertTrue(any("continuation row before any course" in m for m in logs.output))

    def test_continuation_before_course_strict(self) -> None:
        with self.assertRaises(RowStructureError) as ctx:
            parse_rows([_row("02")], strict=True)
        self.assertEqual(ctx.exception.kind, RowStructureKind.NO_OPEN_COURSE)

    def test_bad_time_drops_only_the_period(self) -> None:
        rows = [
            _row("01"),
            _row(CONT, time="2:00-2:50 pm"),
            _row(CONT, time="3:00 pm-3:50 pm"),
        ]
        with self.assertLogs("whereisclass", level="WARNING"):
            db = parse_rows(rows)
        periods = db.courses[0].sections[0].periods
        self.assertEqual([p.time_start for p in periods], [TimeCode(1000), TimeCode(1500)])

    def test_bad_time_strict(self) -> None:
        rows = [_row("01"), _row(CONT, time="2:00 pm-2:50 pm-3:00 pm")]
        with self.assertRaises(RowStructureError) as ctx:
            parse_rows(rows, strict=True)
        self.assertEqual(ctx.exception.kind, RowStructureKind.NOT_TWO_TIMES)

    def test_bad_period_keeps_new_course_and_section(self) -> None:
        with self.assertLogs("whereisclass", level="WARNING"):
            db = parse_rows([_row("01", time="10:00 xm-10:50 am")])
        self.assertEqual(len(db.courses), 1)
        self.assertEqual(len(db.courses[0].sections), 1)
        self.assertEqual(db.courses[0].sections[0].periods, [])

    def test_bad_section_row_does_not_corrupt_siblings(self) -> None:
        rows = [
            _row("01", crn="10001"),
            _row("02", crn="abc"),
            _row(CONT, time="3:00 pm-3:50 pm", location="JEC 4107"),
        ]
        with self.assertLogs("whereisclass", level="WARNING") as logs:
            db = parse_rows(rows)
        # the continuation belonged to the broken section and goes with it
        self.assertEqual(len(logs.records), 2)
        sections = db.courses[0].sections
        self.assertEqual([s.crn for s in sections], [10001])
        self.assertEqual([p.location for p in sections[0].periods], ["SAGE 2715"])

    def test_bad_course_row_after_valid_course(self) -> None:
        rows = [
            _row("01", crn="10001"),
            _row("01", crn="20001", dept="MATH", num="10l0", name="Calculus I"),
            _row("02", crn="20002", dept="MATH", num="1010", name="Calculus I",
                 time="2:00 pm-2:50 pm", location="DCC 308"),
        ]
        with self.assertLogs("whereisclass", level="WARNING") as logs:
            db = parse_rows(rows)
        self.assertEqual(len(logs.records), 2)
        self.assertEqual([c.dept for c in db.courses], ["CSCI"])
        self.assertEqual([s.crn for s in db.courses[0].sections], [10001])
        self.assertEqual(find_courses_in_room_at(db, "DCC 308", TimeCode(1430), Day.MONDAY), [])

    def test_bad_course_row_closes_open_section(self) -> None:
        rows = [
            _row("01", crn="10001"),
            _row("01", crn="20001", dept="MATH", num="10l0"),
            _row(CONT, time="3:00 pm-3:50 pm"),
        ]
        with self.assertLogs("whereisclass", level="WARNING"):
            db = parse_rows(rows)
        self.assertEqual(len(db.courses[0].sections[0].periods), 1)

    def test_bad_course_row_appends_nothing(self) -> None:
        rows = [_row("01", num="12OO"), _row(CONT, time="3:00 pm-3:50 pm")]
        with self.assertLogs("whereisclass", level="WARNING"):
            db = parse_rows(rows)
        self.assertEqual(db, CourseDB(courses=[]))

    def test_bad_course_row_strict(self) -> None:
        with self.assertRaises(ValueParseError):
            parse_rows([_row("01", num="12OO")], strict=True)

    def test_row_too_short_for_marker(self) -> None:
        with self.assertLogs("whereisclass", level="WARNING"):
            db = parse_rows([["only", "three", "cells"]])
        self.assertEqual(db.courses, [])

        with self.assertRaises(RowStructureError) as ctx:
            parse_rows([["only", "three", "cells"]], strict=True)
        self.assertEqual(ctx.exception.kind, RowStructureKind.MISSING_CELL)

    def test_strict_accepts_clean_input(self) -> None:
        db = parse_rows([_row("01"), _row(CONT, time="2:00 pm-2:50 pm")], strict=True)
        self.assertEqual(len(db.courses[0].sections[0].periods), 2)


class TestParseHtml(unittest.TestCase):
    def test_rows_from_html_takes_first_text_node(self) -> None:
        html = _html([_tr(["a", "<b>bold</b> tail", "", "Smith   (<abbr>P</abbr>)"])])
        self.assertEqual(rows_from_html(html), [["a", "bold", "", "Smith   ("]])

    def test_parse_html_end_to_end(self) -> None:
        first = _row("01", instructor="Goldschmidt   (<abbr title='Primary'>P</abbr>)")
        second = _row(CONT, time="2:00 pm-2:50 pm")
        html = _html(
            [
                "<tr><th>CRN</th><th>Subj</th></tr>",
                _tr(_row("H01")),
                _tr(first),
                _tr(second),
            ]
        )
        db = parse_html(html)

        expected = CourseDB(
            courses=[
                Course(
                    name="Intro to Systems",
                    dept="CSCI",
                    num=1200,
                    sections=[
                        Section(
                            crn=10001,
                            num=1,
                            periods=[
                                Period(
                                    TimeCode(1000),
                                    TimeCode(1050),
                                    "Goldschmidt",
                                    [Day.MONDAY, Day.WEDNESDAY],
                                    "SAGE 2715",
                                ),
                                Period(
                                    TimeCode(1400),
                                    TimeCode(1450),
                                    "Goldschmidt",
                                    [Day.MONDAY, Day.WEDNESDAY],
                                    "SAGE 2715",
                                ),
                            ],
                        )
                    ],
                )
            ]
        )
        self.assertEqual(db, expected)


if __name__ == "__main__":
    unittest.main()
