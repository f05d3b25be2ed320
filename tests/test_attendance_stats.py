import math
import unittest
from datetime import date

from ipm_tracker.models import CourseStat, UserProfile
from ipm_tracker.utils.attendance_stats import (
    attendance_percentage,
    calculate_stats,
    course_progress,
    filter_classes_for_user,
    group_upcoming,
    leave_status,
    sanitize_attendance,
    todays_classes,
)
from tests.fakes import course, session

COURSES = {
    "DT": course("DT", "Design Thinking", "Core"),
    "GT": course("GT", "Game Theory", "Elective"),
    "FIN": course("FIN", "Finance", "Unknown", label="Compl. Elective"),
}


class TestFilterClassesForUser(unittest.TestCase):
    def test_elective_included_only_for_enrolled_students(self) -> None:
        gt = session(code="GT", number="1")
        enrolled = UserProfile(email="a@x.in", section="A", electives=frozenset({"GT"}))
        not_enrolled = UserProfile(email="b@x.in", section="A")

        self.assertEqual(filter_classes_for_user([gt], COURSES, enrolled), [gt])
        self.assertEqual(filter_classes_for_user([gt], COURSES, not_enrolled), [])

    def test_core_section_matching(self) -> None:
        a = session(number="1", section="A")
        b = session(number="2", section="B")
        common = session(number="3", section=None)
        profile = UserProfile(email="a@x.in", section="B")

        self.assertEqual(filter_classes_for_user([a, b, common], COURSES, profile), [b, common])

    def test_unknown_course_is_included(self) -> None:
        """Fail-open policy: sessions for courses missing from the catalog stay visible."""
        stray = session(code="XYZ")
        profile = UserProfile(email="a@x.in")
        self.assertEqual(filter_classes_for_user([stray], {}, profile), [stray])

    def test_other_course_types_are_included(self) -> None:
        fin = session(code="FIN", section="B")
        profile = UserProfile(email="a@x.in", section="A")
        self.assertEqual(filter_classes_for_user([fin], COURSES, profile), [fin])


class TestCalculateStats(unittest.TestCase):
    def test_counts_marks(self) -> None:
        sessions = [session(number=str(n)) for n in range(1, 11)] + [session(code="GT", number="1")]
        attendance = {"DT-1": "Present", "DT-2": "Present", "DT-3": "Absent", "GT-1": "Absent"}

        stats = calculate_stats(sessions, attendance)

        self.assertEqual(stats["DT"], CourseStat(total=10, attended=2, leaves=1, allowed_leaves=2))
        self.assertEqual(stats["GT"], CourseStat(total=1, attended=0, leaves=1, allowed_leaves=0))

    def test_total_includes_future_sessions(self) -> None:
        sessions = [session(date="01-Jan-2020"), session(date="01-Jan-2099", number="2")]
        self.assertEqual(calculate_stats(sessions, {})["DT"].total, 2)

    def test_unmarked_sessions_count_towards_neither(self) -> None:
        stats = calculate_stats([session()], {"DT-9": "Present"})
        self.assertEqual((stats["DT"].attended, stats["DT"].leaves), (0, 0))

    def test_allowed_leaves_and_bounds(self) -> None:
        for total in (0, 1, 4, 5, 9, 14, 15, 23):
            sessions = [session(number=str(n)) for n in range(total)]
            marks = {f"DT-{n}": ("Present" if n % 3 else "Absent") for n in range(0, total, 2)}
            stats = calculate_stats(sessions, marks)
            if total == 0:
                self.assertEqual(stats, {})
                continue
            stat = stats["DT"]
            self.assertEqual(stat.allowed_leaves, math.floor(total * 0.2))
            self.assertLessEqual(stat.attended + stat.leaves, stat.total)

    def test_empty_session_list(self) -> None:
        self.assertEqual(calculate_stats([], {"DT-1": "Present"}), {})


class TestProgress(unittest.TestCase):
    def test_percentage(self) -> None:
        self.assertEqual(attendance_percentage(CourseStat(total=0)), 0)
        self.assertEqual(attendance_percentage(CourseStat(total=3, attended=2)), 67)
        self.assertEqual(attendance_percentage(CourseStat(total=8, attended=1)), 13)

    def test_leave_status(self) -> None:
        self.assertEqual(leave_status(CourseStat(total=20, leaves=0, allowed_leaves=4)), "safe")
        self.assertEqual(leave_status(CourseStat(total=20, leaves=3, allowed_leaves=4)), "warning")
        self.assertEqual(leave_status(CourseStat(total=20, leaves=4, allowed_leaves=4)), "warning")
        self.assertEqual(leave_status(CourseStat(total=20, leaves=5, allowed_leaves=4)), "exhausted")

    def test_course_progress_payload(self) -> None:
        stats = {"DT": CourseStat(total=10, attended=5, leaves=1, allowed_leaves=2), "ZZ": CourseStat(total=1)}
        progress = course_progress(stats, COURSES)
        self.assertEqual(progress["DT"]["name"], "Design Thinking")
        self.assertEqual(progress["DT"]["percentage"], 50)
        self.assertEqual(progress["DT"]["leavesRemaining"], 1)
        self.assertEqual(progress["DT"]["allowedLeaves"], 2)
        self.assertEqual(progress["ZZ"]["name"], "ZZ")


class TestAttendanceInput(unittest.TestCase):
    def test_sanitize(self) -> None:
        raw = {"DT-1": "Present", "DT-2": "Absent", "DT-3": "Late", "DT-4": None}
        self.assertEqual(sanitize_attendance(raw), {"DT-1": "Present", "DT-2": "Absent"})
        self.assertEqual(sanitize_attendance(None), {})
        self.assertEqual(sanitize_attendance(["DT-1"]), {})


class TestDayViews(unittest.TestCase):
    def test_todays_classes(self) -> None:
        sessions = [session(date="09-Jan-2026"), session(date="10-Jan-2026", number="2")]
        self.assertEqual(todays_classes(sessions, date(2026, 1, 9)), sessions[:1])

    def test_group_upcoming_sorted_and_future_only(self) -> None:
        sessions = [
            session(date="12-Jan-2026", number="3"),
            session(date="08-Jan-2026", number="1"),
            session(date="09-Jan-2026", number="2"),
            session(date="not a date", number="4"),
            session(date="12-Jan-2026", code="GT", number="1"),
        ]
        grouped = group_upcoming(sessions, date(2026, 1, 9))
        self.assertEqual(list(grouped), ["09-Jan-2026", "12-Jan-2026"])
        self.assertEqual([s.course_code for s in grouped["12-Jan-2026"]], ["DT", "GT"])


if __name__ == "__main__":
    unittest.main()
