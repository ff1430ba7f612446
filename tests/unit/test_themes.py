import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "desktop"))

from glance_app.themes import THEMES, get_palette, stylesheet


class ThemeTests(unittest.TestCase):
    def test_auto_follows_os_style(self):
        self.assertIsNone(get_palette("auto"))
        self.assertEqual(stylesheet("auto"), "")
        self.assertEqual(stylesheet(None), "")

    def test_named_themes_render_a_stylesheet(self):
        for name, palette in THEMES.items():
            with self.subTest(theme=name):
                sheet = stylesheet(name)
                self.assertIn(palette.background, sheet)
                self.assertIn(palette.text_primary, sheet)

    def test_unknown_theme_is_treated_as_auto(self):
        self.assertEqual(stylesheet("neon"), "")


if __name__ == "__main__":
    unittest.main()
