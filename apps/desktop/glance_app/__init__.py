"""Glance desktop app: tray runtime and command-line tools."""
