"""Core app services for settings, logging, diagnostics, and OS integration."""

from .config import AppConfig, config_path, load_config, save_config
from .diagnostics import DiagnosticsExporter, build_doctor_payload
from .os_settings import SETTINGS_TARGETS, open_settings, settings_command
from .service import build_aggregator

__all__ = [
    "AppConfig",
    "DiagnosticsExporter",
    "SETTINGS_TARGETS",
    "build_aggregator",
    "build_doctor_payload",
    "config_path",
    "load_config",
    "open_settings",
    "save_config",
    "settings_command",
]
