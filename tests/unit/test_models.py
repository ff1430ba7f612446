import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from glance_telemetry.models import (
    BatteryReading,
    ChargeLevel,
    ConnectionClass,
    NetworkReading,
    Snapshot,
    VolumeUsage,
    connection_from_quality,
    format_bytes,
)


class SignalQualityTests(unittest.TestCase):
    def test_band_edges(self):
        expected = {
            0: ConnectionClass.NONE,
            19: ConnectionClass.NONE,
            20: ConnectionClass.WEAK,
            39: ConnectionClass.WEAK,
            40: ConnectionClass.MEDIUM,
            59: ConnectionClass.MEDIUM,
            60: ConnectionClass.STRONG,
            79: ConnectionClass.STRONG,
            80: ConnectionClass.FULL,
            100: ConnectionClass.FULL,
        }
        for quality, klass in expected.items():
            with self.subTest(quality=quality):
                self.assertIs(connection_from_quality(quality), klass)

    def test_unmeasured_signal_defaults_to_medium(self):
        reading = NetworkReading.wireless("home", None)
        self.assertIs(reading.connection, ConnectionClass.MEDIUM)
        self.assertEqual(reading.display_name, "home")

    def test_display_names(self):
        self.assertEqual(NetworkReading().display_name, "Not Connected")
        self.assertEqual(NetworkReading.wired().display_name, "Wired Connection")

    def test_ssid_dropped_for_non_wireless_classes(self):
        self.assertEqual(NetworkReading(ConnectionClass.WIRED, "stale").ssid, "")
        self.assertEqual(NetworkReading.wireless("faint", 5).ssid, "")


class BatteryTests(unittest.TestCase):
    def test_charge_level_thresholds(self):
        expected = {
            86: ChargeLevel.HIGH,
            85: ChargeLevel.MEDIUM,
            41: ChargeLevel.MEDIUM,
            40: ChargeLevel.LOW,
            11: ChargeLevel.LOW,
            10: ChargeLevel.CRITICAL,
            0: ChargeLevel.CRITICAL,
        }
        for percent, level in expected.items():
            with self.subTest(percent=percent):
                self.assertIs(BatteryReading(percent_charge=percent).charge_level, level)

    def test_percent_is_clamped(self):
        self.assertEqual(BatteryReading(percent_charge=255).percent_charge, 100)
        self.assertEqual(BatteryReading(percent_charge=-4).percent_charge, 0)

    def test_default_reading_for_hosts_without_battery(self):
        reading = BatteryReading()
        self.assertFalse(reading.present)
        self.assertEqual(reading.percent_text, "100%")


class VolumeUsageTests(unittest.TestCase):
    def test_used_plus_free_equals_total(self):
        vol = VolumeUsage.from_capacity("/", 1000, 250)
        self.assertEqual(vol.used_bytes + vol.free_bytes, vol.total_bytes)
        self.assertEqual(vol.used_bytes, 750)
        self.assertAlmostEqual(vol.used_percent, 75.0)
        self.assertAlmostEqual(vol.used_percent_angle, 270.0)
        self.assertEqual(vol.used_percent_text, "75.00%")

    def test_degraded_entry_is_zeroed_and_labelled(self):
        vol = VolumeUsage.degraded("E:\\", "The device is not ready")
        self.assertTrue(vol.is_degraded)
        self.assertEqual((vol.total_bytes, vol.used_bytes, vol.free_bytes), (0, 0, 0))
        self.assertEqual(vol.label, "E:\\ (Error: The device is not ready)")
        self.assertEqual(vol.used_percent, 0.0)

    def test_missing_label(self):
        self.assertEqual(VolumeUsage.from_capacity(None, 10, 5).label, "Unknown Disk")

    def test_format_bytes(self):
        self.assertEqual(format_bytes(512), "512.00 B")
        self.assertEqual(format_bytes(1536), "1.50 KB")
        self.assertEqual(format_bytes(3 * 1024**3), "3.00 GB")
        self.assertEqual(format_bytes(2048 * 1024**4), "2048.00 TB")


class SnapshotTests(unittest.TestCase):
    def _snapshot(self, *labels):
        return Snapshot(
            volumes=tuple(VolumeUsage.from_capacity(label, 100, 50) for label in labels),
            network=NetworkReading(),
            battery=BatteryReading(),
            sampled_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )

    def test_volume_for_path_prefers_longest_mount(self):
        snap = self._snapshot("/", "/home", "/home/media")
        self.assertEqual(snap.volume_for_path("/home/alice/games").label, "/home")
        self.assertEqual(snap.volume_for_path("/home/media/x").label, "/home/media")
        self.assertEqual(snap.volume_for_path("/opt").label, "/")

    def test_volume_for_path_windows_drive(self):
        snap = self._snapshot("C:\\", "D:\\")
        self.assertEqual(snap.volume_for_path("d:\\Games\\Thing").label, "D:\\")
        self.assertEqual(snap.volume_for_path("C:").label, "C:\\")
        self.assertIsNone(snap.volume_for_path("E:\\Other"))
        self.assertIsNone(snap.volume_for_path("  "))

    def test_to_dict_shape(self):
        payload = self._snapshot("/").to_dict()
        self.assertEqual(payload["network"]["display_name"], "Not Connected")
        self.assertEqual(payload["volumes"][0]["used_bytes"], 50)
        self.assertEqual(payload["battery"]["charge_level"], "High")


if __name__ == "__main__":
    unittest.main()
