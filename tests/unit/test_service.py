import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from glance_core.config import AppConfig
from glance_core.service import build_aggregator
from glance_telemetry import NotificationCenter, PsutilVolumeReader


class BuildAggregatorTests(unittest.TestCase):
    def test_settings_flow_into_aggregator(self):
        cfg = AppConfig()
        cfg.sampling.all_partitions = True
        cfg.network.wired_fallback = False
        aggregator = build_aggregator(cfg)

        self.assertIsInstance(aggregator._volumes, PsutilVolumeReader)
        self.assertTrue(aggregator._volumes.all_partitions)
        self.assertFalse(aggregator._wired_fallback)
        self.assertIsInstance(aggregator._notifications, NotificationCenter)
        self.assertIsNone(aggregator.latest())
        self.assertFalse(aggregator.running)

    def test_shared_notification_center_is_used(self):
        center = NotificationCenter()
        aggregator = build_aggregator(AppConfig(), notifications=center)
        self.assertIs(aggregator._notifications, center)

    def test_permission_prompts_disabled(self):
        cfg = AppConfig()
        cfg.notifications.permission_prompts = False
        aggregator = build_aggregator(cfg, notifications=NotificationCenter())
        self.assertIsNone(aggregator._notifications)


if __name__ == "__main__":
    unittest.main()
