"""Background sampling loop that merges reader results into published snapshots."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable

from .models import BatteryReading, NetworkReading, Snapshot, VolumeUsage
from .notifications import NotificationCenter, network_permission_notice
from .outcomes import FailureKind, ReadOutcome, ReadStatus, guarded
from .readers import (
    BatterySource,
    NetworkSource,
    PsutilBatteryReader,
    PsutilVolumeReader,
    SystemNetworkReader,
    VolumeSource,
)


_log = logging.getLogger("glance.telemetry")

SnapshotListener = Callable[[Snapshot], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TelemetryAggregator:
    """Owns the sampling schedule and the single current Snapshot.

    Cycles never overlap: every cycle runs under ``_cycle_lock``. A
    ``trigger_now()`` that arrives while a cycle is in flight is coalesced
    into exactly one follow-up cycle. ``stop()`` lets an in-flight cycle
    finish and publish.
    """

    def __init__(
        self,
        volumes: VolumeSource | None = None,
        network: NetworkSource | None = None,
        battery: BatterySource | None = None,
        notifications: NotificationCenter | None = None,
        wired_fallback: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._volumes = volumes or PsutilVolumeReader()
        self._network = network or SystemNetworkReader()
        self._battery = battery or PsutilBatteryReader()
        self._notifications = notifications
        self._wired_fallback = wired_fallback
        self._clock = clock

        self._lock = threading.RLock()
        self._cycle_lock = threading.Lock()
        self._wake = threading.Event()
        self._stop_event: threading.Event | None = None
        self._worker: threading.Thread | None = None
        self._drainer: threading.Thread | None = None
        self._interval: float | None = None
        self._listeners: list[SnapshotListener] = []

        self._snapshot: Snapshot | None = None
        self._cycles = 0

    @property
    def running(self) -> bool:
        stop = self._stop_event
        return stop is not None and not stop.is_set()

    @property
    def interval(self) -> float | None:
        return self._interval

    def latest(self) -> Snapshot | None:
        """Most recently published snapshot, or None before the first cycle completes."""
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def start(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")

        with self._lock:
            if self.running:
                return
            stop = threading.Event()
            self._stop_event = stop
            self._interval = float(interval)
            self._worker = threading.Thread(
                target=self._loop,
                args=(stop, float(interval)),
                name="glance-sampler",
                daemon=True,
            )
            self._worker.start()
        _log.info(
            f"aggregator started interval_s={interval}",
            extra={"event": "aggregator_started", "interval_s": interval},
        )

    def stop(self) -> None:
        with self._lock:
            stop = self._stop_event
            if stop is None or stop.is_set():
                return
            stop.set()
            self._wake.set()
        _log.info("aggregator stopped", extra={"event": "aggregator_stopped"})

    def trigger_now(self) -> None:
        with self._lock:
            self._wake.set()
            if self.running or self._drainer is not None:
                return
            self._drainer = threading.Thread(target=self._drain, name="glance-trigger", daemon=True)
            self._drainer.start()

    def join(self, timeout: float | None = None) -> None:
        with self._lock:
            threads = [t for t in (self._worker, self._drainer) if t is not None]
        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)

    def run_cycle(self) -> Snapshot:
        """Sample all sources once on the calling thread and publish the result."""
        with self._cycle_lock:
            volumes, network, battery = self._sample()
            snapshot = self._merge(volumes, network, battery)
            self._publish(snapshot)
            return snapshot

    def _loop(self, stop: threading.Event, interval: float) -> None:
        deadline = time.monotonic()
        while not stop.is_set():
            self._wake.clear()
            self._run_guarded_cycle()
            if stop.is_set():
                break

            now = time.monotonic()
            if deadline <= now:
                # anchored period; ticks missed during an overrun are skipped
                deadline += ((now - deadline) // interval + 1) * interval
            self._wake.wait(deadline - now)

    def _drain(self) -> None:
        while True:
            with self._lock:
                if self.running or not self._wake.is_set():
                    self._drainer = None
                    return
                self._wake.clear()
            self._run_guarded_cycle()

    def _run_guarded_cycle(self) -> None:
        try:
            self.run_cycle()
        except Exception:
            _log.exception("telemetry cycle failed", extra={"event": "cycle_failed", "cycle": self._cycles + 1})

    def _sample(self) -> tuple[ReadOutcome, ReadOutcome, ReadOutcome]:
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="glance-reader") as pool:
            volumes = pool.submit(self._read_volumes)
            network = pool.submit(self._read_network)
            battery = pool.submit(self._read_battery)
        return volumes.result(), network.result(), battery.result()

    def _merge(self, volumes: ReadOutcome, network: ReadOutcome, battery: ReadOutcome) -> Snapshot:
        sampled_at = self._clock()
        return Snapshot(
            volumes=tuple(volumes.value or ()),
            network=network.value if network.value is not None else NetworkReading(),
            battery=battery.value if battery.value is not None else BatteryReading(),
            sampled_at=sampled_at,
            cycle=self._cycles + 1,
            outcomes=MappingProxyType({o.source: o for o in (volumes, network, battery)}),
        )

    def _publish(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
            self._cycles = snapshot.cycle
            listeners = list(self._listeners)

        _log.debug(
            f"snapshot published cycle={snapshot.cycle}",
            extra={"event": "snapshot_published", "cycle": snapshot.cycle},
        )
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                _log.exception("snapshot listener failed", extra={"event": "listener_failed"})

    def _read_volumes(self) -> ReadOutcome:
        listing = guarded("volumes", _mount_labels, self._volumes)
        if not listing.ok:
            _log_source_failure(listing)
            return replace(listing, value=())

        entries: list[VolumeUsage] = []
        first_error: Exception | None = None
        for label in listing.value:
            try:
                total, free = self._volumes.usage(label)
                entries.append(VolumeUsage.from_capacity(label, total, free))
            except Exception as exc:
                _log.warning(
                    f"volume read failed label={label} error={exc}",
                    extra={"event": "volume_failed", "source": "volumes", "label": label},
                )
                entries.append(VolumeUsage.degraded(label, str(exc)))
                first_error = first_error or exc

        if first_error is not None:
            return ReadOutcome.degraded("volumes", tuple(entries), first_error)
        return ReadOutcome.success("volumes", tuple(entries))

    def _read_network(self) -> ReadOutcome:
        outcome = guarded("network", _network_reading, self._network)
        if outcome.ok:
            return outcome

        _log_source_failure(outcome)
        if outcome.failure is FailureKind.PERMISSION and self._notifications is not None:
            self._notifications.post(network_permission_notice("network"))

        fallback = NetworkReading()
        if self._wired_fallback:
            wired = guarded("network", self._network.wired_link_up)
            if not wired.ok:
                _log_source_failure(wired)
            elif wired.value:
                fallback = NetworkReading.wired()
        return replace(outcome, status=ReadStatus.DEGRADED, value=fallback)

    def _read_battery(self) -> ReadOutcome:
        outcome = guarded("battery", _battery_reading, self._battery)
        if not outcome.ok:
            _log_source_failure(outcome)
            return replace(outcome, status=ReadStatus.DEGRADED, value=BatteryReading())
        return outcome


def _mount_labels(source: VolumeSource) -> list[str]:
    labels = source.mounts()
    if isinstance(labels, (str, bytes)) or labels is None:
        raise TypeError(f"mounts() returned {type(labels).__name__}, expected a list of labels")
    return [str(label) for label in labels]


def _network_reading(source: NetworkSource) -> NetworkReading:
    reading = source.current_network()
    if not isinstance(reading, NetworkReading):
        raise TypeError(f"current_network() returned {type(reading).__name__}, expected NetworkReading")
    return reading


def _battery_reading(source: BatterySource) -> BatteryReading:
    status = source.battery_status()
    if status is None:
        # no battery on this host
        return BatteryReading()
    percent, charging = status
    return BatteryReading(percent_charge=percent, is_charging=bool(charging), present=True)


def _log_source_failure(outcome: ReadOutcome) -> None:
    _log.warning(
        f"source read failed source={outcome.source} error={outcome.error_message}",
        extra={
            "event": "source_failed",
            "source": outcome.source,
            "failure": outcome.failure.value if outcome.failure else None,
            "error_type": outcome.error_type,
        },
    )
