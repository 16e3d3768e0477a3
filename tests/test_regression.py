import unittest
from datetime import date

from logit.core.regression import Regression, fit_regression
from logit.models.entities import AnnotatedAssessment


def point(hours, grade, aid=1):
    return AnnotatedAssessment(aid, 1, "a", "Quiz", date(2024, 1, 1), str(grade), int(hours * 3600), hours, grade, 0)


class RegressionTests(unittest.TestCase):
    def test_fits_exact_line(self):
        fit = fit_regression([point(1, 60), point(2, 70), point(3, 80)])
        self.assertIsNotNone(fit)
        self.assertAlmostEqual(fit.slope, 10.0)
        self.assertAlmostEqual(fit.intercept, 50.0)
        self.assertAlmostEqual(fit.predict_grade(4), 90.0)
        self.assertAlmostEqual(fit.hours_for_grade(90), 4.0)

    def test_least_squares_on_noisy_points(self):
        fit = fit_regression([point(1, 55), point(2, 75), point(3, 80), point(4, 95)])
        self.assertAlmostEqual(fit.slope, 12.5)
        self.assertAlmostEqual(fit.intercept, 45.0)

    def test_fewer_than_two_points(self):
        self.assertIsNone(fit_regression([]))
        self.assertIsNone(fit_regression([point(2, 80)]))

    def test_ungraded_and_untimed_points_are_ignored(self):
        self.assertIsNone(fit_regression([point(2, 80), point(3, 0), point(0, 95)]))

    def test_identical_hours_has_no_prediction(self):
        self.assertIsNone(fit_regression([point(2.0, 70), point(2.0, 90), point(2.0, 80)]))

    def test_flat_slope_cannot_be_inverted(self):
        fit = fit_regression([point(1, 80), point(3, 80)])
        self.assertEqual(fit.slope, 0)
        self.assertIsNone(fit.hours_for_grade(90))
        self.assertIsNone(Regression(0, 50).hours_for_grade(60))


if __name__ == "__main__":
    unittest.main()
