"""Cross-platform shortcuts into the operating system's settings pages."""

from __future__ import annotations

import logging
import os
import platform
import subprocess
from typing import Callable


_log = logging.getLogger("glance.os_settings")

SETTINGS_TARGETS = ("location", "network", "storage", "power")

_WINDOWS_URIS = {
    "location": "ms-settings:privacy-location",
    "network": "ms-settings:network",
    "storage": "ms-settings:storagesense",
    "power": "ms-settings:powersleep",
}

_MACOS_URIS = {
    "location": "x-apple.systempreferences:com.apple.preference.security?Privacy_LocationServices",
    "network": "x-apple.systempreferences:com.apple.preference.network",
    "storage": "x-apple.systempreferences:com.apple.settings.Storage",
    "power": "x-apple.systempreferences:com.apple.preference.battery",
}

_LINUX_PANELS = {
    "location": "location",
    "network": "network",
    "storage": "info-overview",
    "power": "power",
}


def _launch_windows(target: str) -> None:
    os.startfile(_WINDOWS_URIS[target])  # type: ignore[attr-defined]


def _launch_macos(target: str) -> None:
    subprocess.Popen(["open", _MACOS_URIS[target]])


def _launch_linux(target: str) -> None:
    subprocess.Popen(["gnome-control-center", _LINUX_PANELS[target]])


def settings_command(target: str, system: str | None = None) -> str:
    """Describe what would be opened for ``target``; used by diagnostics and the CLI."""
    system = system or platform.system()
    if target not in SETTINGS_TARGETS:
        raise ValueError(f"unknown settings target: {target}")
    if system == "Windows":
        return _WINDOWS_URIS[target]
    if system == "Darwin":
        return f"open {_MACOS_URIS[target]}"
    return f"gnome-control-center {_LINUX_PANELS[target]}"


def open_settings(target: str, system: str | None = None) -> bool:
    if target not in SETTINGS_TARGETS:
        raise ValueError(f"unknown settings target: {target}")

    system = system or platform.system()
    launcher: Callable[[str], None]
    if system == "Windows":
        launcher = _launch_windows
    elif system == "Darwin":
        launcher = _launch_macos
    else:
        launcher = _launch_linux

    try:
        launcher(target)
    except Exception as exc:
        _log.warning(
            f"could not open {target} settings: {exc}",
            extra={"event": "settings_open_failed", "target": target},
        )
        return False
    _log.info(f"opened {target} settings", extra={"event": "settings_opened", "target": target})
    return True
