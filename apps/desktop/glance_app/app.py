"""Desktop tray runtime and view-model over the published telemetry snapshot."""

from __future__ import annotations

import json
import sys
from importlib import metadata

from PySide6.QtCore import QObject, Property, QTimer, Signal, Slot
from PySide6.QtGui import QAction, QIcon
from PySide6.QtWidgets import QApplication, QLabel, QMenu, QSystemTrayIcon, QVBoxLayout, QWidget

from glance_core import AppConfig, build_aggregator, load_config, open_settings
from glance_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from glance_telemetry import Notification, NotificationCenter, Snapshot, TelemetryAggregator

from .themes import stylesheet


def _app_version() -> str:
    try:
        return metadata.version("glance")
    except Exception:
        return "0.1.0"


class GlanceViewModel(QObject):
    networkNameChanged = Signal()
    connectionClassChanged = Signal()
    batteryTextChanged = Signal()
    batteryLevelChanged = Signal()
    chargingChanged = Signal()
    volumesJsonChanged = Signal()
    clockTextChanged = Signal()
    permissionMessageChanged = Signal()
    snapshotChanged = Signal()

    # emitted from the sampler thread, delivered queued on the GUI thread
    _notificationPosted = Signal(str, str)

    def __init__(
        self,
        aggregator: TelemetryAggregator,
        notifications: NotificationCenter | None = None,
        config: AppConfig | None = None,
    ) -> None:
        super().__init__()
        self.config = config or load_config()
        self.aggregator = aggregator
        self.logger = get_logger()

        self._last: Snapshot | None = None
        self._network_name = "Not Connected"
        self._connection_class = "None"
        self._battery_text = "--%"
        self._battery_level = "High"
        self._charging = False
        self._volumes_json = "[]"
        self._clock_text = "--"
        self._permission_message = ""
        self._permission_target = "location"

        self._notificationPosted.connect(self._on_notification)
        self._unsubscribe = None
        if notifications is not None:
            self._unsubscribe = notifications.subscribe(self._forward_notification)

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._tick)
        self._timer.start(self.config.ui.refresh_ms)

    @Property(str, notify=networkNameChanged)
    def networkName(self) -> str:
        return self._network_name

    @Property(str, notify=connectionClassChanged)
    def connectionClass(self) -> str:
        return self._connection_class

    @Property(str, notify=batteryTextChanged)
    def batteryText(self) -> str:
        return self._battery_text

    @Property(str, notify=batteryLevelChanged)
    def batteryLevel(self) -> str:
        return self._battery_level

    @Property(bool, notify=chargingChanged)
    def charging(self) -> bool:
        return self._charging

    @Property(str, notify=volumesJsonChanged)
    def volumesJson(self) -> str:
        return self._volumes_json

    @Property(str, notify=clockTextChanged)
    def clockText(self) -> str:
        return self._clock_text

    @Property(str, notify=permissionMessageChanged)
    def permissionMessage(self) -> str:
        return self._permission_message

    def _set(self, field: str, value, signal: Signal) -> None:
        if getattr(self, field) != value:
            setattr(self, field, value)
            signal.emit()

    def _forward_notification(self, notification: Notification) -> None:
        self._notificationPosted.emit(notification.message, notification.settings_target or "")

    @Slot(str, str)
    def _on_notification(self, message: str, target: str) -> None:
        if target:
            self._permission_target = target
        self._set("_permission_message", message, self.permissionMessageChanged)

    def _tick(self) -> None:
        snap = self.aggregator.latest()
        if snap is None or snap is self._last:
            return
        self._last = snap

        volumes = [
            {
                "label": v.label,
                "used": v.used_text,
                "free": v.free_text,
                "total": v.total_text,
                "usedPercent": v.used_percent_text,
                "angle": round(v.used_percent_angle, 2),
            }
            for v in snap.volumes
        ]
        self._set("_network_name", snap.network.display_name, self.networkNameChanged)
        self._set("_connection_class", snap.network.connection.value, self.connectionClassChanged)
        self._set("_battery_text", snap.battery.percent_text, self.batteryTextChanged)
        self._set("_battery_level", snap.battery.charge_level.value, self.batteryLevelChanged)
        self._set("_charging", snap.battery.is_charging, self.chargingChanged)
        self._set("_volumes_json", json.dumps(volumes), self.volumesJsonChanged)
        self._set("_clock_text", snap.local_time_text, self.clockTextChanged)
        self.snapshotChanged.emit()

    def latest(self) -> Snapshot | None:
        return self._last

    @Slot()
    def refreshNow(self) -> None:
        self.aggregator.trigger_now()

    @Slot()
    def openPermissionSettings(self) -> None:
        open_settings(self._permission_target)

    @Slot()
    def dismissPermission(self) -> None:
        self._set("_permission_message", "", self.permissionMessageChanged)

    def shutdown(self) -> None:
        self._timer.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.aggregator.stop()


class DetailsWindow:
    """Owned handle for the details window; ``acquire`` shows it, ``release`` destroys it."""

    def __init__(self, vm: GlanceViewModel) -> None:
        self._vm = vm
        self._widget: QWidget | None = None
        self._labels: dict[str, QLabel] = {}

    @property
    def visible(self) -> bool:
        return self._widget is not None and self._widget.isVisible()

    def acquire(self) -> QWidget:
        if self._widget is None:
            widget = QWidget()
            widget.setWindowTitle("Glance")
            widget.setStyleSheet(stylesheet(self._vm.config.ui.theme))
            layout = QVBoxLayout(widget)
            for key in ("clock", "network", "battery", "volumes", "permission"):
                label = QLabel(widget)
                label.setObjectName(key)
                label.setWordWrap(True)
                layout.addWidget(label)
                self._labels[key] = label
            self._widget = widget
            self._vm.snapshotChanged.connect(self._render)
            self._vm.permissionMessageChanged.connect(self._render)
            self._render()
        self._widget.show()
        self._widget.raise_()
        return self._widget

    def release(self) -> None:
        if self._widget is None:
            return
        self._vm.snapshotChanged.disconnect(self._render)
        self._vm.permissionMessageChanged.disconnect(self._render)
        self._widget.close()
        self._widget.deleteLater()
        self._widget = None
        self._labels = {}

    def _render(self) -> None:
        if not self._labels:
            return
        vm = self._vm
        self._labels["clock"].setText(vm.clockText)
        self._labels["network"].setText(f"Network: {vm.networkName} ({vm.connectionClass})")
        charging = " charging" if vm.charging else ""
        self._labels["battery"].setText(f"Battery: {vm.batteryText} {vm.batteryLevel}{charging}")
        lines = [
            f"{v['label']}: {v['used']} / {v['total']} ({v['usedPercent']})" for v in json.loads(vm.volumesJson)
        ]
        self._labels["volumes"].setText("\n".join(lines) or "No volumes")
        self._labels["permission"].setText(vm.permissionMessage)


def run_gui() -> int:
    config = load_config()
    configure_logging(keep_files=config.diagnostics.keep_log_files)
    install_crash_hooks()
    logger = get_logger()

    app = QApplication(sys.argv)
    app.setApplicationName("Glance")
    app.setApplicationVersion(_app_version())
    app.setQuitOnLastWindowClosed(False)

    notifications = NotificationCenter()
    aggregator = build_aggregator(config, notifications)
    vm = GlanceViewModel(aggregator, notifications, config)
    details = DetailsWindow(vm)
    aggregator.start(config.sampling.interval_s)

    tray = None
    if QSystemTrayIcon.isSystemTrayAvailable():
        tray = QSystemTrayIcon(QIcon.fromTheme("utilities-system-monitor"), app)
        tray.setToolTip("Glance")
        menu = QMenu()

        refresh_action = QAction("Refresh Now", menu)
        refresh_action.triggered.connect(vm.refreshNow)
        menu.addAction(refresh_action)

        details_action = QAction("Show Details", menu)
        details_action.triggered.connect(details.acquire)
        menu.addAction(details_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(app.quit)
        menu.addAction(quit_action)

        tray.setContextMenu(menu)
        tray.messageClicked.connect(vm.openPermissionSettings)

        def _show_permission_message() -> None:
            if vm.permissionMessage:
                tray.showMessage("Glance", vm.permissionMessage, QSystemTrayIcon.MessageIcon.Warning)

        vm.permissionMessageChanged.connect(_show_permission_message)
        tray.show()

    if tray is None or config.ui.show_details_on_start:
        details.acquire()

    exit_code = app.exec()
    details.release()
    vm.shutdown()
    aggregator.join(timeout=2.0)
    logger.info("app shutdown", extra={"event": "shutdown", "exit_code": int(exit_code)})
    return int(exit_code)
