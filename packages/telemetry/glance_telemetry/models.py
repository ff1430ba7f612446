"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from .outcomes import ReadOutcome


_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(value: int) -> str:
    size = float(value)
    idx = 0
    while size >= 1024 and idx < len(_BYTE_UNITS) - 1:
        size /= 1024
        idx += 1
    return f"{size:.2f} {_BYTE_UNITS[idx]}"


class ConnectionClass(str, Enum):
    NONE = "None"
    WEAK = "Weak"
    MEDIUM = "Medium"
    STRONG = "Strong"
    FULL = "Full"
    WIRED = "Wired"

    @property
    def is_wireless(self) -> bool:
        return self in (ConnectionClass.WEAK, ConnectionClass.MEDIUM, ConnectionClass.STRONG, ConnectionClass.FULL)


def connection_from_quality(quality: int) -> ConnectionClass:
    """Map a 0-100 signal quality onto the fixed tier bands."""
    if quality >= 80:
        return ConnectionClass.FULL
    if quality >= 60:
        return ConnectionClass.STRONG
    if quality >= 40:
        return ConnectionClass.MEDIUM
    if quality >= 20:
        return ConnectionClass.WEAK
    return ConnectionClass.NONE


class ChargeLevel(str, Enum):
    CRITICAL = "Critical"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class VolumeUsage:
    label: str
    total_bytes: int
    used_bytes: int
    free_bytes: int

    @classmethod
    def from_capacity(cls, label: str | None, total_bytes: int, free_bytes: int) -> "VolumeUsage":
        total = max(int(total_bytes), 0)
        free = min(max(int(free_bytes), 0), total)
        return cls(label=label or "Unknown Disk", total_bytes=total, used_bytes=total - free, free_bytes=free)

    @classmethod
    def degraded(cls, label: str | None, error: str) -> "VolumeUsage":
        return cls(label=f"{label or 'Unknown Disk'} (Error: {error})", total_bytes=0, used_bytes=0, free_bytes=0)

    @property
    def is_degraded(self) -> bool:
        return self.total_bytes == 0 and self.used_bytes == 0 and self.free_bytes == 0

    @property
    def used_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.used_bytes / self.total_bytes * 100

    @property
    def used_percent_angle(self) -> float:
        return self.used_percent * 3.6

    @property
    def used_percent_text(self) -> str:
        return f"{self.used_percent:.2f}%"

    @property
    def total_text(self) -> str:
        return format_bytes(self.total_bytes)

    @property
    def used_text(self) -> str:
        return format_bytes(self.used_bytes)

    @property
    def free_text(self) -> str:
        return format_bytes(self.free_bytes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "total_bytes": self.total_bytes,
            "used_bytes": self.used_bytes,
            "free_bytes": self.free_bytes,
            "used_percent": round(self.used_percent, 2),
        }


@dataclass(frozen=True)
class NetworkReading:
    connection: ConnectionClass = ConnectionClass.NONE
    ssid: str = ""

    def __post_init__(self) -> None:
        if not self.connection.is_wireless and self.ssid:
            object.__setattr__(self, "ssid", "")

    @classmethod
    def wireless(cls, ssid: str, quality: int | None) -> "NetworkReading":
        # Connected but unmeasured signal reads as a middling tier.
        connection = ConnectionClass.MEDIUM if quality is None else connection_from_quality(quality)
        return cls(connection=connection, ssid=ssid if connection.is_wireless else "")

    @classmethod
    def wired(cls) -> "NetworkReading":
        return cls(connection=ConnectionClass.WIRED)

    @property
    def display_name(self) -> str:
        if self.connection is ConnectionClass.NONE:
            return "Not Connected"
        if self.connection is ConnectionClass.WIRED:
            return "Wired Connection"
        return self.ssid

    def to_dict(self) -> dict[str, Any]:
        return {
            "connection": self.connection.value,
            "ssid": self.ssid,
            "display_name": self.display_name,
        }


@dataclass(frozen=True)
class BatteryReading:
    percent_charge: int = 100
    is_charging: bool = False
    present: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent_charge", max(0, min(100, int(self.percent_charge))))

    @property
    def charge_level(self) -> ChargeLevel:
        charge = self.percent_charge
        if charge > 85:
            return ChargeLevel.HIGH
        if charge > 40:
            return ChargeLevel.MEDIUM
        if charge > 10:
            return ChargeLevel.LOW
        return ChargeLevel.CRITICAL

    @property
    def percent_text(self) -> str:
        return f"{self.percent_charge}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "percent_charge": self.percent_charge,
            "is_charging": self.is_charging,
            "present": self.present,
            "charge_level": self.charge_level.value,
        }


def _normalize_root(path: str) -> str:
    value = path.replace("\\", "/").rstrip("/").lower()
    return value or "/"


@dataclass(frozen=True)
class Snapshot:
    volumes: tuple[VolumeUsage, ...]
    network: NetworkReading
    battery: BatteryReading
    sampled_at: datetime
    cycle: int = 0
    outcomes: Mapping[str, ReadOutcome] = field(default_factory=dict)

    @property
    def local_time_text(self) -> str:
        return self.sampled_at.astimezone().strftime("%H:%M")

    @property
    def degraded_sources(self) -> list[str]:
        return sorted(name for name, outcome in self.outcomes.items() if not outcome.ok)

    def volume_for_path(self, path: str) -> VolumeUsage | None:
        """Return the volume whose mount label is the longest prefix of ``path``."""
        if not path or not path.strip():
            return None
        target = _normalize_root(path.strip())
        best: VolumeUsage | None = None
        best_len = -1
        for volume in self.volumes:
            root = _normalize_root(volume.label)
            matches = target == root or target.startswith(root if root == "/" else root + "/")
            if not matches and len(root) == 2 and root[1] == ":":
                # bare drive letter, e.g. "c:"
                matches = target[:2] == root
            if matches and len(root) > best_len:
                best = volume
                best_len = len(root)
        return best

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle": self.cycle,
            "sampled_at": self.sampled_at.isoformat(),
            "volumes": [v.to_dict() for v in self.volumes],
            "network": self.network.to_dict(),
            "battery": self.battery.to_dict(),
            "outcomes": {name: outcome.to_dict() for name, outcome in sorted(self.outcomes.items())},
        }
