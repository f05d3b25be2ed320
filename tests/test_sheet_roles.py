import unittest

from ipm_tracker.integrations.sheet_roles import (
    discover_base_roles,
    discover_electives,
    discover_roles,
    is_elective,
)
from tests.fakes import course

TITLES = [
    "Course Details",
    "Time Table Term 3",
    "Section A",
    "Section B",
    "List of students - Game Theory",
]


class TestBaseRoles(unittest.TestCase):
    def test_keyword_matches(self) -> None:
        roles = discover_base_roles(TITLES)
        self.assertEqual(roles.catalog, "Course Details")
        self.assertEqual(roles.timetable, "Time Table Term 3")
        self.assertEqual(roles.section_a, "Section A")
        self.assertEqual(roles.section_b, "Section B")

    def test_matching_is_case_insensitive(self) -> None:
        roles = discover_base_roles(["TIME TABLE", "course DETAILS", "SECTION b students"])
        self.assertEqual(roles.catalog, "course DETAILS")
        self.assertEqual(roles.timetable, "TIME TABLE")
        self.assertIsNone(roles.section_a)
        self.assertEqual(roles.section_b, "SECTION b students")

    def test_positional_fallback(self) -> None:
        roles = discover_base_roles(["Courses", "Grid", "Other"])
        self.assertEqual(roles.catalog, "Courses")
        self.assertEqual(roles.timetable, "Grid")
        self.assertTrue(any("first sheet" in line for line in roles.log))
        self.assertTrue(any("second sheet" in line for line in roles.log))

    def test_first_matching_title_wins(self) -> None:
        roles = discover_base_roles(["Details old", "Details new", "Time Table"])
        self.assertEqual(roles.catalog, "Details old")

    def test_empty_workbook(self) -> None:
        roles = discover_base_roles([])
        self.assertIsNone(roles.catalog)
        self.assertIsNone(roles.timetable)
        self.assertIn("catalog: no matching sheet", roles.log)


class TestElectiveDiscovery(unittest.TestCase):
    def test_match_by_course_name(self) -> None:
        courses = {"GT": course("GT", "Game Theory", "Elective")}
        roles = discover_roles(TITLES, courses)
        self.assertEqual(roles.electives, {"GT": "List of students - Game Theory"})

    def test_match_by_code_and_list(self) -> None:
        titles = ["Details", "Time Table", "BA list"]
        courses = {"BA": course("BA", "Business Analytics", "Elective")}
        self.assertEqual(discover_roles(titles, courses).electives, {"BA": "BA list"})

    def test_code_without_list_word_is_not_enough(self) -> None:
        titles = ["Details", "Time Table", "BA students"]
        courses = {"BA": course("BA", "Business Analytics", "Elective")}
        self.assertEqual(discover_roles(titles, courses).electives, {})

    def test_match_by_code_prefix_and_list(self) -> None:
        titles = ["Details", "Time Table", "FIN List"]
        courses = {"FIN-2": course("FIN-2", "Corporate Finance II", "Elective")}
        self.assertEqual(discover_roles(titles, courses).electives, {"FIN-2": "FIN List"})

    def test_single_character_prefix_is_ignored(self) -> None:
        titles = ["Details", "Time Table", "F list"]
        courses = {"F-2": course("F-2", "Forecasting", "Elective")}
        self.assertEqual(discover_roles(titles, courses).electives, {})

    def test_strategy_order(self) -> None:
        titles = ["Details", "Time Table", "GT list", "Game Theory roster"]
        courses = {"GT": course("GT", "Game Theory", "Elective")}
        self.assertEqual(discover_roles(titles, courses).electives["GT"], "Game Theory roster")

    def test_only_elective_like_types_are_considered(self) -> None:
        titles = ["Details", "Time Table", "Design Thinking list", "Finance list"]
        courses = {
            "DT": course("DT", "Design Thinking", "Core"),
            "FIN": course("FIN", "Finance", "Unknown", label="Compl. Elective"),
        }
        roles = discover_roles(titles, courses)
        self.assertEqual(roles.electives, {"FIN": "Finance list"})

    def test_unmatched_elective_is_logged_not_fatal(self) -> None:
        roles = discover_base_roles(TITLES)
        found = discover_electives(TITLES, {"QM": course("QM", "Quant Methods", "Elective")}, roles)
        self.assertEqual(found, {})
        self.assertIn("elective QM: no matching sheet", roles.log)

    def test_is_elective_markers(self) -> None:
        self.assertTrue(is_elective(course(type="Elective")))
        self.assertTrue(is_elective(course(type="Unknown", label="COMPL. course")))
        self.assertFalse(is_elective(course(type="Core")))


class TestRosterRanges(unittest.TestCase):
    def test_sections_first_then_distinct_electives(self) -> None:
        titles = ["Details", "Time Table", "Section A", "Section B", "Electives list GT BA"]
        courses = {
            "GT": course("GT", "Game Theory", "Elective"),
            "BA": course("BA", "Business Analytics", "Elective"),
        }
        roles = discover_roles(titles, courses)
        self.assertEqual(roles.roster_ranges(), ["Section A", "Section B", "Electives list GT BA"])


if __name__ == "__main__":
    unittest.main()
