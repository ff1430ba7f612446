"""Wiring of the telemetry aggregator from persisted settings."""

from __future__ import annotations

from glance_telemetry import (
    NotificationCenter,
    PsutilBatteryReader,
    PsutilVolumeReader,
    SystemNetworkReader,
    TelemetryAggregator,
)

from .config import AppConfig


def build_aggregator(cfg: AppConfig, notifications: NotificationCenter | None = None) -> TelemetryAggregator:
    if not cfg.notifications.permission_prompts:
        notifications = None
    elif notifications is None:
        notifications = NotificationCenter()
    return TelemetryAggregator(
        volumes=PsutilVolumeReader(all_partitions=cfg.sampling.all_partitions),
        network=SystemNetworkReader(),
        battery=PsutilBatteryReader(),
        notifications=notifications,
        wired_fallback=cfg.network.wired_fallback,
    )
