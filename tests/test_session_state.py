import asyncio
import unittest
from datetime import datetime, timedelta

from logit.services.validation import InvalidInput
from logit.state.app_state import AppState
from logit.state.session_state import ElapsedTicker, StudySession


class FakeClock:
    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **delta):
        self.current += timedelta(**delta)


class StudySessionTests(unittest.TestCase):
    def test_start_and_stop(self):
        clock = FakeClock(datetime(2024, 3, 1, 10, 0))
        study = StudySession(now=clock)
        study.start("Calculus")
        clock.advance(minutes=25, seconds=3)
        self.assertTrue(study.is_studying)
        self.assertEqual(study.elapsed_seconds(), 1503)
        subject, started, finished = study.stop()
        self.assertEqual(subject, "Calculus")
        self.assertEqual(finished - started, timedelta(minutes=25, seconds=3))
        self.assertFalse(study.is_studying)

    def test_class_is_required(self):
        with self.assertRaises(InvalidInput):
            StudySession().start("")

    def test_stop_without_start(self):
        with self.assertRaises(InvalidInput):
            StudySession().stop()

    def test_double_start(self):
        study = StudySession()
        study.start("Calculus")
        with self.assertRaises(InvalidInput):
            study.start("Calculus")


class AppStateTests(unittest.TestCase):
    def test_selecting_semester_clears_subject(self):
        state = AppState()
        state.select_subject(3, "Calculus", ("Quiz", "Exam"))
        self.assertEqual(state.visible_types, {"Quiz": True, "Exam": True})
        state.select_semester(2)
        self.assertIsNone(state.selected_subject_id)
        self.assertEqual(state.visible_types, {})

    def test_toggle_type(self):
        state = AppState()
        state.select_subject(3, "Calculus", ("Quiz",))
        state.toggle_type("Quiz")
        self.assertFalse(state.visible_types["Quiz"])
        state.toggle_type("Quiz")
        self.assertTrue(state.visible_types["Quiz"])


class ElapsedTickerTests(unittest.IsolatedAsyncioTestCase):
    async def test_ticks_until_cancelled(self):
        ticks = []
        ticker = ElapsedTicker(ticks.append, interval=0.01)
        ticker.start()
        self.assertTrue(ticker.running)
        await asyncio.sleep(0.08)
        ticker.cancel()
        self.assertFalse(ticker.running)
        seen = len(ticks)
        self.assertGreater(seen, 0)
        self.assertTrue(all(b >= a for a, b in zip(ticks, ticks[1:])))
        await asyncio.sleep(0.05)
        self.assertEqual(len(ticks), seen)

    async def test_restart_cancels_previous_task(self):
        handles = []

        def spawn(fn):
            task = asyncio.get_running_loop().create_task(fn())
            handles.append(task)
            return task

        ticker = ElapsedTicker(lambda _: None, interval=0.01, spawn=spawn)
        ticker.start()
        ticker.start()
        await asyncio.sleep(0.005)
        self.assertTrue(handles[0].cancelled())
        ticker.cancel()
        await asyncio.sleep(0.005)
        self.assertTrue(all(h.done() for h in handles))

    async def test_cancel_when_idle_is_a_no_op(self):
        ticker = ElapsedTicker(lambda _: None)
        ticker.cancel()
        self.assertFalse(ticker.running)


if __name__ == "__main__":
    unittest.main()
