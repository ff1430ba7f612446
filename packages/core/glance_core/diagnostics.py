"""Diagnostics export helpers for local support bundles."""

from __future__ import annotations

import json
import platform
import re
import tempfile
import zipfile
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import psutil

from glance_telemetry import Snapshot

from .config import AppConfig, config_path
from .logging_setup import log_dir


_SECRET_RE = re.compile(r"(token|secret|password|apikey|api_key|auth)", re.IGNORECASE)


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Path, datetime)):
        return str(value)
    return value


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k):
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def _partitions() -> list[dict[str, Any]]:
    try:
        parts = psutil.disk_partitions(all=False)
    except Exception as exc:
        return [{"error": f"{type(exc).__name__}: {exc}"}]
    return [
        {"device": p.device, "mountpoint": p.mountpoint, "fstype": p.fstype, "opts": p.opts}
        for p in parts
    ]


def build_doctor_payload(cfg: AppConfig, snapshot: Snapshot | None = None) -> dict[str, Any]:
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "psutil": psutil.__version__,
        "config": redact(asdict(cfg)),
        "partitions": _partitions(),
        "snapshot": snapshot.to_dict() if snapshot is not None else None,
        "degraded_sources": snapshot.degraded_sources if snapshot is not None else [],
    }


class DiagnosticsExporter:
    def __init__(self, app_name: str = "Glance") -> None:
        self.app_name = app_name

    def bundle(
        self,
        cfg: AppConfig,
        doctor_payload: dict[str, Any],
        output_dir: Path | None = None,
    ) -> Path:
        output_base = output_dir or Path(tempfile.gettempdir())
        output_base.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        zip_path = output_base / f"glance-diagnostics-{stamp}.zip"

        logs = sorted(log_dir().glob("*.log*"))
        max_bytes = cfg.diagnostics.max_bundle_mb * 1024 * 1024
        written = 0

        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            manifest = {
                "app": self.app_name,
                "created_utc": datetime.now(timezone.utc).isoformat(),
                "host": platform.platform(),
                "python": platform.python_version(),
                "config_path": str(config_path()),
                "log_dir": str(log_dir()),
            }
            zf.writestr("manifest.json", json.dumps(manifest, indent=2, sort_keys=True))
            zf.writestr("doctor.json", json.dumps(redact(doctor_payload), indent=2, sort_keys=True, default=_jsonable))
            zf.writestr("config.redacted.json", json.dumps(redact(asdict(cfg)), indent=2, sort_keys=True))

            # newest logs first so the size cap drops the oldest
            for item in reversed(logs):
                size = item.stat().st_size
                if written + size > max_bytes:
                    continue
                zf.write(item, arcname=f"logs/{item.name}")
                written += size

        return zip_path
