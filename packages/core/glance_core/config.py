"""Persistent app settings schema and load/save helpers."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 2

_log = logging.getLogger("glance.config")


@dataclass
class SamplingConfig:
    interval_s: float = 10.0
    all_partitions: bool = False


@dataclass
class NetworkConfig:
    wired_fallback: bool = True


@dataclass
class UiConfig:
    theme: str = "auto"
    refresh_ms: int = 500
    show_details_on_start: bool = False


@dataclass
class NotificationsConfig:
    permission_prompts: bool = True


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    max_bundle_mb: int = 20


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    ui: UiConfig = field(default_factory=UiConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "Glance"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "Glance"
    return Path.home() / ".config" / "glance"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_sampling(cfg: AppConfig) -> None:
    try:
        interval = float(cfg.sampling.interval_s)
    except (TypeError, ValueError):
        interval = SamplingConfig.interval_s
    cfg.sampling.interval_s = max(1.0, min(3600.0, interval))
    cfg.sampling.all_partitions = bool(cfg.sampling.all_partitions)


def _normalize_ui(cfg: AppConfig) -> None:
    if cfg.ui.theme not in ("auto", "dark", "light"):
        cfg.ui.theme = "auto"
    try:
        refresh = int(cfg.ui.refresh_ms)
    except (TypeError, ValueError):
        refresh = UiConfig.refresh_ms
    cfg.ui.refresh_ms = max(100, min(5000, refresh))


def _normalize_diagnostics(cfg: AppConfig) -> None:
    cfg.diagnostics.keep_log_files = max(2, int(cfg.diagnostics.keep_log_files))
    cfg.diagnostics.max_bundle_mb = max(1, int(cfg.diagnostics.max_bundle_mb))


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v1 kept the interval at the top level and had no notifications block.
        sampling = dict(data.get("sampling", {}) or {})
        if "interval_s" in data:
            sampling.setdefault("interval_s", data.pop("interval_s"))
        data["sampling"] = sampling
        data.setdefault("notifications", {})
        data.setdefault("diagnostics", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        _log.warning(f"config unreadable, using defaults: {exc}", extra={"event": "config_invalid"})
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        sampling=_merge(SamplingConfig, data.get("sampling", {})),
        network=_merge(NetworkConfig, data.get("network", {})),
        ui=_merge(UiConfig, data.get("ui", {})),
        notifications=_merge(NotificationsConfig, data.get("notifications", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_sampling(cfg)
    _normalize_ui(cfg)
    _normalize_diagnostics(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
