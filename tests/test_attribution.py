import unittest
from datetime import date, datetime, timedelta, timezone

from logit.core.attribution import annotate_assessments, end_of_day, seconds_in_window, sessions_for_subject
from logit.models.entities import Assessment, Session


def session(sid, start, seconds, subject="Math"):
    return Session(sid, 1, subject, start, start + timedelta(seconds=seconds), seconds)


def assessment(aid, kind, day, grade):
    return Assessment(aid, 1, f"{kind} {aid}", kind, day, grade)


SESSIONS = [
    session(1, datetime(2024, 2, 20, 9, 0), 1800),
    session(2, datetime(2024, 3, 1, 23, 59, 59), 600),
    session(3, datetime(2024, 3, 5, 10, 0), 3600),
    session(4, datetime(2024, 3, 9, 8, 0), 900),
    session(5, datetime(2024, 3, 5, 11, 0), 7200, subject="Physics"),
]

ASSESSMENTS = [
    assessment(1, "Quiz", date(2024, 3, 8), "90.0"),
    assessment(2, "Quiz", date(2024, 3, 1), "80.0"),
    assessment(3, "Exam", date(2024, 3, 6), "70"),
]


class AttributionTests(unittest.TestCase):
    def annotate(self, assessments=ASSESSMENTS, sessions=None, categories=("Quiz", "Exam")):
        if sessions is None:
            sessions = sessions_for_subject(SESSIONS, "Math")
        return {a.id: a for a in annotate_assessments(assessments, sessions, list(categories))}

    def test_end_of_day_is_last_millisecond(self):
        self.assertEqual(end_of_day(date(2024, 3, 1)), datetime(2024, 3, 1, 23, 59, 59, 999000))

    def test_session_between_assessments_goes_to_later_one(self):
        result = self.annotate()
        self.assertEqual(result[1].calculated_time, 3600)
        self.assertEqual(result[1].hours, 1.0)

    def test_first_window_starts_at_time_zero(self):
        result = self.annotate()
        # Feb 20 and the last second of Mar 1 both belong to the first quiz.
        self.assertEqual(result[2].calculated_time, 2400)
        self.assertEqual(result[2].hours, 0.7)

    def test_categories_have_independent_windows(self):
        result = self.annotate()
        self.assertEqual(result[3].calculated_time, 1800 + 600 + 3600)
        self.assertEqual(result[3].hours, 1.7)

    def test_sessions_after_last_assessment_are_unattributed(self):
        result = self.annotate()
        total = sum(a.calculated_time for a in result.values() if a.type == "Quiz")
        self.assertEqual(total, 1800 + 600 + 3600)

    def test_other_subjects_do_not_contribute_when_prefiltered(self):
        self.assertEqual(len(sessions_for_subject(SESSIONS, "Math")), 4)
        unfiltered = self.annotate(sessions=SESSIONS)
        self.assertEqual(unfiltered[1].calculated_time, 3600 + 7200)
        self.assertEqual(self.annotate()[1].calculated_time, 3600)

    def test_durations_are_never_split(self):
        long_session = session(9, datetime(2024, 3, 1, 23, 0), 3 * 3600)
        result = self.annotate(sessions=[long_session], categories=("Quiz",))
        self.assertEqual(result[2].calculated_time, 3 * 3600)
        self.assertEqual(result[1].calculated_time, 0)

    def test_efficiency_and_numeric_grade(self):
        result = self.annotate()
        self.assertEqual(result[2].numeric_grade, 80.0)
        self.assertEqual(result[2].efficiency, 114.3)
        self.assertEqual(result[1].efficiency, 90.0)
        self.assertEqual(result[3].efficiency, 41.2)

    def test_zero_hours_means_zero_efficiency(self):
        result = self.annotate(sessions=[], categories=("Quiz",))
        self.assertEqual(result[1].hours, 0.0)
        self.assertEqual(result[1].efficiency, 0)

    def test_blank_grade_reads_as_zero(self):
        blank = [assessment(7, "Quiz", date(2024, 3, 1), "")]
        result = self.annotate(assessments=blank, categories=("Quiz",))
        self.assertEqual(result[7].numeric_grade, 0.0)

    def test_unknown_category_is_not_annotated(self):
        result = self.annotate(categories=("Quiz",))
        self.assertNotIn(3, result)

    def test_output_is_sorted_by_date(self):
        ordered = annotate_assessments(ASSESSMENTS, sessions_for_subject(SESSIONS, "Math"), ["Quiz", "Exam"])
        self.assertEqual([a.id for a in ordered], [2, 3, 1])

    def test_same_day_ties_keep_input_order(self):
        same_day = [
            assessment(1, "Quiz", date(2024, 3, 1), "50"),
            assessment(2, "Quiz", date(2024, 3, 1), "60"),
        ]
        ordered = annotate_assessments(same_day, SESSIONS[:2], ["Quiz"])
        self.assertEqual([a.id for a in ordered], [1, 2])
        self.assertEqual(ordered[0].calculated_time, 2400)
        self.assertEqual(ordered[1].calculated_time, 0)

    def test_no_assessments(self):
        self.assertEqual(annotate_assessments([], SESSIONS, ["Quiz"]), [])

    def test_window_accepts_aware_start_times(self):
        local = datetime(2024, 3, 5, 10, 0).astimezone()
        aware = Session(1, 1, "Math", local.astimezone(timezone.utc), local.astimezone(timezone.utc), 60)
        upper = end_of_day(date(2024, 3, 5))
        self.assertEqual(seconds_in_window([aware], None, upper), 60)


if __name__ == "__main__":
    unittest.main()
