import unittest
from datetime import datetime, timedelta, timezone

from logit.services.validation import (
    AssessmentPayload,
    GradeEntryPayload,
    InvalidInput,
    SessionPayload,
    clean_name,
    clean_target,
    parse,
    require_category,
    require_new_category,
)


class ValidationTests(unittest.TestCase):
    def test_session_duration_is_floored(self):
        payload = parse(
            SessionPayload,
            subject="Calculus",
            start_time=datetime(2024, 3, 1, 10, 0, 0),
            end_time=datetime(2024, 3, 1, 10, 0, 59, 999999),
        )
        self.assertEqual(payload.duration_seconds, 59)

    def test_end_before_start_message(self):
        with self.assertRaises(InvalidInput) as ctx:
            parse(SessionPayload, subject="Calculus", start_time="2024-03-01T11:00", end_time="2024-03-01T10:00")
        self.assertEqual(str(ctx.exception), "End time must be after start time")

    def test_missing_field_is_labelled(self):
        with self.assertRaises(InvalidInput) as ctx:
            parse(GradeEntryPayload, name="HW", score=3, total_points=0, category="Quiz")
        self.assertTrue(str(ctx.exception).startswith("Total points:"))

    def test_grade_must_be_numeric(self):
        with self.assertRaises(InvalidInput):
            parse(AssessmentPayload, name="Quiz 1", type="Quiz", date="2024-03-01", grade="A+")

    def test_huge_grade_is_invalid_input(self):
        with self.assertRaises(InvalidInput) as ctx:
            parse(AssessmentPayload, name="Quiz 1", type="Quiz", date="2024-03-01", grade="1e30")
        self.assertTrue(str(ctx.exception).startswith("Grade:"))
        with self.assertRaises(InvalidInput):
            parse(AssessmentPayload, name="Quiz 1", type="Quiz", date="2024-03-01", grade="inf")

    def test_grade_entry_numbers_are_bounded(self):
        with self.assertRaises(InvalidInput) as ctx:
            parse(GradeEntryPayload, name="HW", score=1e30, total_points=1, category="Quiz")
        self.assertTrue(str(ctx.exception).startswith("Score:"))
        with self.assertRaises(InvalidInput):
            parse(GradeEntryPayload, name="HW", score=float("inf"), total_points=10, category="Quiz")
        with self.assertRaises(InvalidInput):
            parse(GradeEntryPayload, name="HW", score=5, total_points=1e30, category="Quiz")

    def test_target_grade(self):
        self.assertEqual(clean_target("85.5"), 85.5)
        for bad in ("inf", "nan", "abc", "", "-5", "1e30"):
            with self.assertRaises(InvalidInput) as ctx:
                clean_target(bad)
            self.assertTrue(str(ctx.exception).startswith("Target grade:"))

    def test_mixed_aware_and_naive_times(self):
        start = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        local_start = start.astimezone().replace(tzinfo=None)
        payload = parse(SessionPayload, subject="Calculus", start_time=start, end_time=local_start + timedelta(hours=1))
        self.assertIsNone(payload.start_time.tzinfo)
        self.assertEqual(payload.start_time, local_start)
        self.assertEqual(payload.duration_seconds, 3600)
        with self.assertRaises(InvalidInput):
            parse(SessionPayload, subject="Calculus", start_time=start, end_time=local_start)

    def test_names_are_trimmed(self):
        self.assertEqual(clean_name("  Physics "), "Physics")
        with self.assertRaises(InvalidInput):
            clean_name(None)

    def test_category_rules(self):
        self.assertEqual(require_new_category(" Lab ", ["Quiz"]), "Lab")
        with self.assertRaises(InvalidInput) as ctx:
            require_new_category("Quiz", ["Quiz"])
        self.assertEqual(str(ctx.exception), "Type already exists")
        self.assertEqual(require_new_category("Quiz", ["Quiz"], allow="Quiz"), "Quiz")
        with self.assertRaises(InvalidInput):
            require_category("Lab", ["Quiz"])


if __name__ == "__main__":
    unittest.main()
