"""Local machine telemetry: readers, snapshot models, and the aggregation loop."""

from .aggregator import TelemetryAggregator
from .models import (
    BatteryReading,
    ChargeLevel,
    ConnectionClass,
    NetworkReading,
    Snapshot,
    VolumeUsage,
    connection_from_quality,
    format_bytes,
)
from .notifications import NETWORK_ACCESS_ID, Notification, NotificationCenter, network_permission_notice
from .outcomes import FailureKind, ReadOutcome, ReadStatus, guarded
from .readers import (
    BatterySource,
    NetworkSource,
    PsutilBatteryReader,
    PsutilVolumeReader,
    SystemNetworkReader,
    VolumeSource,
)

__all__ = [
    "BatteryReading",
    "BatterySource",
    "ChargeLevel",
    "ConnectionClass",
    "FailureKind",
    "NETWORK_ACCESS_ID",
    "NetworkReading",
    "NetworkSource",
    "Notification",
    "NotificationCenter",
    "PsutilBatteryReader",
    "PsutilVolumeReader",
    "ReadOutcome",
    "ReadStatus",
    "Snapshot",
    "SystemNetworkReader",
    "TelemetryAggregator",
    "VolumeSource",
    "VolumeUsage",
    "connection_from_quality",
    "format_bytes",
    "guarded",
    "network_permission_notice",
]
