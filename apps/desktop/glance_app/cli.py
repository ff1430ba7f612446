"""CLI entrypoints for the Glance tray app, snapshots, and diagnostics."""

from __future__ import annotations

import argparse
import json
import sys
import threading
from pathlib import Path

from glance_core import (
    SETTINGS_TARGETS,
    DiagnosticsExporter,
    build_aggregator,
    build_doctor_payload,
    load_config,
    open_settings,
    settings_command,
)
from glance_core.logging_setup import configure_logging
from glance_telemetry import Snapshot


def _print_json(data: object, compact: bool = False) -> None:
    if compact:
        print(json.dumps(data, sort_keys=True, separators=(",", ":"), default=str), flush=True)
    else:
        print(json.dumps(data, indent=2, sort_keys=True, default=str), flush=True)


def cmd_run(_args: argparse.Namespace) -> int:
    from .app import run_gui

    return run_gui()


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value!r}")
    return number


def cmd_snapshot(args: argparse.Namespace) -> int:
    cfg = load_config()
    aggregator = build_aggregator(cfg)
    snapshot = aggregator.run_cycle()
    if args.path:
        volume = snapshot.volume_for_path(args.path)
        if volume is None:
            print(f"no volume found for {args.path}", file=sys.stderr)
            return 1
        _print_json(volume.to_dict(), compact=args.compact)
        return 0
    _print_json(snapshot.to_dict(), compact=args.compact)
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    cfg = load_config()
    interval = args.interval if args.interval is not None else cfg.sampling.interval_s
    aggregator = build_aggregator(cfg)
    done = threading.Event()
    seen = 0

    def _on_snapshot(snapshot: Snapshot) -> None:
        nonlocal seen
        _print_json(snapshot.to_dict(), compact=True)
        seen += 1
        if args.count and seen >= args.count:
            done.set()

    aggregator.subscribe(_on_snapshot)
    aggregator.start(interval)
    try:
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        aggregator.stop()
        aggregator.join(timeout=5.0)
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = load_config()
    snapshot = build_aggregator(cfg).run_cycle()
    payload = build_doctor_payload(cfg, snapshot)

    if args.export:
        exporter = DiagnosticsExporter()
        out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else None
        bundle = exporter.bundle(cfg=cfg, doctor_payload=payload, output_dir=out_dir)
        payload["diagnostics_bundle"] = str(bundle)

    _print_json(payload)
    return 0


def cmd_open_settings(args: argparse.Namespace) -> int:
    if args.dry_run:
        print(settings_command(args.target))
        return 0
    return 0 if open_settings(args.target) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="glance", description="Glance desktop telemetry widget and tools")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run tray app")
    run_cmd.set_defaults(func=cmd_run)

    snap_cmd = sub.add_parser("snapshot", help="Sample once and print the snapshot as JSON")
    snap_cmd.add_argument("--compact", action="store_true", help="Single-line JSON output")
    snap_cmd.add_argument("--path", default=None, help="Print only the volume that holds this path")
    snap_cmd.set_defaults(func=cmd_snapshot)

    watch_cmd = sub.add_parser("watch", help="Sample on a schedule and print each snapshot")
    watch_cmd.add_argument("--interval", type=_positive_float, default=None, help="Seconds between samples")
    watch_cmd.add_argument("--count", type=int, default=0, help="Stop after N snapshots (0 = forever)")
    watch_cmd.set_defaults(func=cmd_watch)

    doctor_cmd = sub.add_parser("doctor", help="Print diagnostics and the current snapshot")
    doctor_cmd.add_argument("--export", action="store_true", help="Export offline diagnostics bundle")
    doctor_cmd.add_argument("--out-dir", default=None, help="Optional output directory for diagnostics bundle")
    doctor_cmd.set_defaults(func=cmd_doctor)

    settings_cmd = sub.add_parser("open-settings", help="Open an OS settings page")
    settings_cmd.add_argument("target", choices=list(SETTINGS_TARGETS))
    settings_cmd.add_argument("--dry-run", action="store_true", help="Print the command instead of running it")
    settings_cmd.set_defaults(func=cmd_open_settings)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(console=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
