"""Leaf readers for volumes, network connectivity, and battery state.

Each reader is a thin, fallible adapter over psutil or a platform tool. The
aggregator owns all failure handling; readers raise and let it classify.
"""

from __future__ import annotations

import platform
import re
import socket
import subprocess
from pathlib import Path
from typing import Callable, Protocol

import psutil

from .models import NetworkReading


class VolumeSource(Protocol):
    def mounts(self) -> list[str]: ...

    def usage(self, label: str) -> tuple[int, int]: ...


class NetworkSource(Protocol):
    def current_network(self) -> NetworkReading: ...

    def wired_link_up(self) -> bool: ...


class BatterySource(Protocol):
    def battery_status(self) -> tuple[int, bool] | None: ...


CommandRunner = Callable[[list[str]], str]


def _run_command(argv: list[str]) -> str:
    proc = subprocess.run(argv, capture_output=True, text=True, timeout=5, check=False)
    return (proc.stdout or "") + (proc.stderr or "")


class PsutilVolumeReader:
    def __init__(self, all_partitions: bool = False) -> None:
        self.all_partitions = all_partitions

    def mounts(self) -> list[str]:
        seen: list[str] = []
        for part in psutil.disk_partitions(all=self.all_partitions):
            if part.mountpoint and part.mountpoint not in seen:
                seen.append(part.mountpoint)
        return seen

    def usage(self, label: str) -> tuple[int, int]:
        du = psutil.disk_usage(label)
        return int(du.total), int(du.free)


_WIRELESS_HINTS = ("wl", "wi-fi", "wifi", "wireless", "airport")
_VIRTUAL_HINTS = (
    "docker",
    "veth",
    "br-",
    "virbr",
    "vmnet",
    "vboxnet",
    "tun",
    "tap",
    "utun",
    "awdl",
    "llw",
    "zt",
    "tailscale",
    "vethernet",
    "bluetooth",
)
_LOOPBACK_NAMES = ("lo", "lo0")
_ARPHRD_ETHER = "1"


def _is_loopback_name(name: str) -> bool:
    lowered = name.lower()
    return lowered in _LOOPBACK_NAMES or lowered.startswith("loopback pseudo-interface")


def _is_wireless_name(name: str) -> bool:
    lowered = name.lower()
    if lowered.startswith(_WIRELESS_HINTS) or any(hint in lowered for hint in ("wi-fi", "wireless", "wlan")):
        return True
    return Path("/sys/class/net", name, "wireless").exists()


def _is_virtual_name(name: str) -> bool:
    return name.lower().startswith(_VIRTUAL_HINTS)


def _linux_link_is_ethernet(name: str) -> bool:
    type_file = Path("/sys/class/net", name, "type")
    if not type_file.exists():
        return True
    return type_file.read_text(encoding="utf-8").strip() == _ARPHRD_ETHER


def _is_wifi_port(port: str) -> bool:
    lowered = port.lower()
    return "wi-fi" in lowered or "airport" in lowered


def _is_wired_port(port: str) -> bool:
    lowered = port.lower()
    if _is_wifi_port(port) or "bridge" in lowered or "bluetooth" in lowered:
        return False
    return "ethernet" in lowered or "lan" in lowered or "thunderbolt" in lowered


def _usable_ipv4(address: str) -> bool:
    return not address.startswith("127.") and not address.startswith("169.254")


_NETSH_PERMISSION_RE = re.compile(r"location permission|access is denied", re.IGNORECASE)
_AIRPORT_PATH = "/System/Library/PrivateFrameworks/Apple80211.framework/Versions/Current/Resources/airport"


def parse_netsh_interfaces(output: str) -> tuple[str, int | None] | None:
    if _NETSH_PERMISSION_RE.search(output):
        raise PermissionError("WLAN information requires location permission")

    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        # first interface wins
        if key not in fields:
            fields[key] = value.strip()

    if fields.get("state", "").lower() != "connected" or not fields.get("ssid"):
        return None
    signal = fields.get("signal", "").rstrip("%").strip()
    return fields["ssid"], (int(signal) if signal.isdigit() else None)


def _split_nmcli(line: str) -> list[str]:
    parts: list[str] = []
    current = []
    escaped = False
    for ch in line:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == ":":
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def parse_nmcli_wifi(output: str) -> tuple[str, int | None] | None:
    for line in output.splitlines():
        fields = _split_nmcli(line.strip())
        if len(fields) < 3 or fields[0] != "yes":
            continue
        signal = fields[2].strip()
        return fields[1], (int(signal) if signal.isdigit() else None)
    return None


def parse_proc_wireless(contents: str) -> dict[str, int]:
    """Return link quality in percent per interface from /proc/net/wireless."""
    qualities: dict[str, int] = {}
    for line in contents.splitlines()[2:]:
        name, sep, rest = line.partition(":")
        if not sep:
            continue
        parts = rest.split()
        if len(parts) < 2:
            continue
        try:
            link = float(parts[1].rstrip("."))
        except ValueError:
            continue
        qualities[name.strip()] = max(0, min(100, int(round(link / 70 * 100))))
    return qualities


def parse_airport_info(output: str) -> tuple[str, int | None] | None:
    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()

    if fields.get("AirPort", "").lower() == "off" or fields.get("state") not in (None, "running"):
        return None
    ssid = fields.get("SSID", "")
    if not ssid:
        return None
    if ssid == "<redacted>":
        raise PermissionError("SSID is redacted without location services access")
    rssi = fields.get("agrCtlRSSI", "")
    try:
        quality = max(0, min(100, 2 * (int(rssi) + 100)))
    except ValueError:
        quality = None
    return ssid, quality


def parse_netsh_interface_names(output: str) -> set[str]:
    """Names of every WLAN adapter listed by ``netsh wlan show interfaces``."""
    names: set[str] = set()
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip().lower() == "name" and value.strip():
            names.add(value.strip())
    return names


def parse_hardware_ports(output: str) -> dict[str, str]:
    """Map device name to hardware port from ``networksetup -listallhardwareports``."""
    ports: dict[str, str] = {}
    port = ""
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key == "Hardware Port":
            port = value.strip()
        elif key == "Device" and port:
            ports[value.strip()] = port
            port = ""
    return ports


def parse_airport_network(output: str) -> str | None:
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() in ("Current Wi-Fi Network", "Current AirPort Network") and value.strip():
            return value.strip()
    return None


class SystemNetworkReader:
    """Wireless probe per platform, with a psutil wired-link check.

    A link counts as wired only when its interface type is Ethernet-like:
    the hardware port on macOS, the sysfs link type on Linux, and on
    Windows any adapter netsh does not list as WLAN.
    """

    def __init__(self, runner: CommandRunner | None = None, system: str | None = None) -> None:
        self._run = runner or _run_command
        self._system = system or platform.system()

    def current_network(self) -> NetworkReading:
        probe = self._wireless_probe()
        if probe is not None:
            ssid, quality = probe
            return NetworkReading.wireless(ssid, quality)
        if self.wired_link_up():
            return NetworkReading.wired()
        return NetworkReading()

    def wired_link_up(self) -> bool:
        stats = psutil.net_if_stats()
        addrs = psutil.net_if_addrs()
        is_wired = self._wired_filter()
        for name, st in stats.items():
            if not st.isup or _is_loopback_name(name) or not is_wired(name):
                continue
            for addr in addrs.get(name, []):
                if addr.family == socket.AF_INET and _usable_ipv4(addr.address):
                    return True
        return False

    def _wired_filter(self) -> Callable[[str], bool]:
        if self._system == "Darwin":
            ports = self._hardware_ports()
            # unknown devices have no hardware port and are never wired
            return lambda name: name in ports and _is_wired_port(ports[name])

        if self._system == "Windows":
            wlan = self._wlan_adapter_names()
            return lambda name: name not in wlan and not _is_virtual_name(name) and not _is_wireless_name(name)

        return lambda name: (
            not _is_virtual_name(name) and not _is_wireless_name(name) and _linux_link_is_ethernet(name)
        )

    def _hardware_ports(self) -> dict[str, str]:
        try:
            return parse_hardware_ports(self._run(["networksetup", "-listallhardwareports"]))
        except FileNotFoundError:
            return {}

    def _wlan_adapter_names(self) -> set[str]:
        try:
            return parse_netsh_interface_names(self._run(["netsh", "wlan", "show", "interfaces"]))
        except FileNotFoundError:
            return set()

    def _wireless_probe(self) -> tuple[str, int | None] | None:
        try:
            if self._system == "Windows":
                return parse_netsh_interfaces(self._run(["netsh", "wlan", "show", "interfaces"]))
            if self._system == "Darwin":
                return self._darwin_probe()
            return self._linux_probe()
        except FileNotFoundError:
            # no wireless tooling installed: treat as no wireless link
            return None

    def _darwin_probe(self) -> tuple[str, int | None] | None:
        try:
            return parse_airport_info(self._run([_AIRPORT_PATH, "-I"]))
        except FileNotFoundError:
            # airport was removed in macOS 14.4
            pass

        for device, port in self._hardware_ports().items():
            if not _is_wifi_port(port):
                continue
            ssid = parse_airport_network(self._run(["networksetup", "-getairportnetwork", device]))
            if ssid:
                return ssid, None
        return None

    def _linux_probe(self) -> tuple[str, int | None] | None:
        try:
            return parse_nmcli_wifi(self._run(["nmcli", "-t", "-f", "ACTIVE,SSID,SIGNAL", "dev", "wifi"]))
        except FileNotFoundError:
            pass

        ssid = self._run(["iwgetid", "-r"]).strip()
        if not ssid:
            return None
        proc = Path("/proc/net/wireless")
        qualities = parse_proc_wireless(proc.read_text(encoding="utf-8")) if proc.exists() else {}
        quality = next(iter(qualities.values()), None)
        return ssid, quality


class PsutilBatteryReader:
    def battery_status(self) -> tuple[int, bool] | None:
        battery = psutil.sensors_battery()
        if battery is None:
            return None
        percent = int(round(battery.percent))
        return percent, bool(battery.power_plugged) and percent < 100
