import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from glance_core.os_settings import SETTINGS_TARGETS, open_settings, settings_command


class SettingsCommandTests(unittest.TestCase):
    def test_windows_uses_ms_settings_uris(self):
        self.assertEqual(settings_command("location", system="Windows"), "ms-settings:privacy-location")
        self.assertEqual(settings_command("power", system="Windows"), "ms-settings:powersleep")

    def test_macos_and_linux(self):
        self.assertTrue(settings_command("network", system="Darwin").startswith("open x-apple.systempreferences:"))
        self.assertEqual(settings_command("network", system="Linux"), "gnome-control-center network")

    def test_every_target_resolves_everywhere(self):
        for system in ("Windows", "Darwin", "Linux"):
            for target in SETTINGS_TARGETS:
                with self.subTest(system=system, target=target):
                    self.assertTrue(settings_command(target, system=system))

    def test_unknown_target(self):
        with self.assertRaises(ValueError):
            settings_command("bluetooth", system="Linux")
        with self.assertRaises(ValueError):
            open_settings("bluetooth", system="Linux")


class OpenSettingsTests(unittest.TestCase):
    def test_linux_launches_control_center(self):
        with patch("glance_core.os_settings.subprocess.Popen") as popen:
            self.assertTrue(open_settings("location", system="Linux"))
        popen.assert_called_once_with(["gnome-control-center", "location"])

    def test_macos_uses_open(self):
        with patch("glance_core.os_settings.subprocess.Popen") as popen:
            self.assertTrue(open_settings("storage", system="Darwin"))
        self.assertEqual(popen.call_args[0][0][0], "open")

    def test_launch_failure_is_reported_not_raised(self):
        with patch("glance_core.os_settings.subprocess.Popen", side_effect=FileNotFoundError("gnome-control-center")):
            with self.assertLogs("glance.os_settings", level="WARNING"):
                self.assertFalse(open_settings("network", system="Linux"))


if __name__ == "__main__":
    unittest.main()
