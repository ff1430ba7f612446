import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from glance_telemetry.notifications import Notification, NotificationCenter, network_permission_notice
from glance_telemetry.outcomes import FailureKind, ReadStatus, classify_failure, guarded


class NotificationCenterTests(unittest.TestCase):
    def test_duplicate_ids_are_suppressed(self):
        center = NotificationCenter()
        received = []
        center.subscribe(received.append)

        self.assertTrue(center.post(network_permission_notice()))
        self.assertFalse(center.post(network_permission_notice()))
        self.assertTrue(center.post(Notification(id="other", source_id="disk", message="x")))

        self.assertEqual([n.id for n in received], ["network_location_access", "other"])
        self.assertTrue(center.has("other"))

    def test_listener_failure_does_not_block_others(self):
        center = NotificationCenter()
        received = []

        def _broken(_n):
            raise RuntimeError("ui gone")

        center.subscribe(_broken)
        center.subscribe(received.append)
        center.post(network_permission_notice())
        self.assertEqual(len(received), 1)

    def test_unsubscribe(self):
        center = NotificationCenter()
        received = []
        unsubscribe = center.subscribe(received.append)
        unsubscribe()
        center.post(network_permission_notice())
        self.assertEqual(received, [])
        self.assertEqual(len(center.posted()), 1)


class OutcomeTests(unittest.TestCase):
    def test_guarded_success(self):
        outcome = guarded("battery", lambda: (50, False))
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.value, (50, False))

    def test_guarded_classifies_permission(self):
        def _denied():
            raise PermissionError("nope")

        outcome = guarded("network", _denied)
        self.assertEqual(outcome.status, ReadStatus.FAILED)
        self.assertEqual(outcome.failure, FailureKind.PERMISSION)
        self.assertEqual(outcome.error_type, "PermissionError")
        self.assertEqual(outcome.to_dict()["failure"], "permission")

    def test_classify_other_errors(self):
        self.assertIs(classify_failure(OSError("io")), FailureKind.ERROR)
        self.assertIs(classify_failure(ValueError("bad")), FailureKind.ERROR)


if __name__ == "__main__":
    unittest.main()
