import os
import unittest
from unittest import mock

from logit.config.settings import Settings, load_settings
from logit.services.validation import InvalidInput
from logit.ui.theme import ThemeConfig


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(load_settings(), Settings())

    def test_environment_overrides(self):
        env = {
            "LOGIT_DB_PATH": "/tmp/logit-test.db",
            "LOGIT_LOG_LEVEL": "debug",
            "LOGIT_WEB": "1",
            "PORT": "9000",
            "LOGIT_TARGET_GRADE": "85.5",
            "LOGIT_TICK_SECONDS": "0.5",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_settings()
        self.assertEqual(config.db_path, "/tmp/logit-test.db")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertTrue(config.web_mode)
        self.assertEqual(config.port, 9000)
        self.assertEqual(config.target_grade, 85.5)
        self.assertEqual(config.tick_seconds, 0.5)

    def test_target_grade_must_be_finite(self):
        with mock.patch.dict(os.environ, {"LOGIT_TARGET_GRADE": "inf"}, clear=True):
            with self.assertRaises(InvalidInput):
                load_settings()


class ThemeTests(unittest.TestCase):
    def test_reset_restores_defaults(self):
        theme = ThemeConfig().update(primary_color="#ff0000", text_color="#000000")
        self.assertEqual(theme.primary_color, "#ff0000")
        self.assertEqual(theme.reset(), ThemeConfig())

    def test_preferences_round_trip(self):
        theme = ThemeConfig(accent_color="#123456")
        prefs = theme.to_preferences()
        self.assertEqual(prefs["theme.accent_color"], "#123456")
        self.assertEqual(ThemeConfig.from_preferences(prefs), theme)

    def test_unknown_preferences_are_ignored(self):
        theme = ThemeConfig.from_preferences({"theme.font": "Comic Sans", "other": "x", "theme.text_color": 3})
        self.assertEqual(theme, ThemeConfig())


if __name__ == "__main__":
    unittest.main()
