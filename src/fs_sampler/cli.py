"""CLI interface for fs_sampler."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time

from . import __version__
from .config import ConfigError, FsSamplerConfig, load_config, parse_filesystems, parse_interval


def _load(args: argparse.Namespace) -> FsSamplerConfig:
    """Load the config file and apply command-line overrides."""
    cfg = load_config(args.config)
    if getattr(args, "filesystems", None):
        cfg.fs.filesystems = parse_filesystems(args.filesystems)
    if getattr(args, "interval", None) is not None:
        cfg.fs.run_interval = parse_interval(args.interval)
    if getattr(args, "tag", None):
        cfg.fs.tag = args.tag
    if getattr(args, "provider", None):
        cfg.fs.stat_provider = args.provider
    command = list(getattr(args, "command", None) or [])
    if command and command[0] == "--":
        command = command[1:]
    if command:
        cfg.fs.command = command
        cfg.fs.run_interval = None
    return cfg


def _cmd_collect(args: argparse.Namespace) -> None:
    """Run disk-usage collection until interrupted or the tracked process exits."""
    cfg = _load(args)

    from .collector.scheduler import Scheduler
    from .exporter.local import LocalExporter

    exporters = []

    if cfg.local_exporter.enabled:
        exporters.append(LocalExporter(cfg.local_exporter, cfg.default_tag))

    if cfg.mode == "online":
        from .exporter.otel import OtelExporter
        exporters.append(OtelExporter(cfg.otel, cfg.default_tag))

    scheduler = Scheduler(cfg.fs)
    for exp in exporters:
        scheduler.add_sink(exp.emit)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        scheduler.start()
    except ConfigError:
        for exp in exporters:
            exp.shutdown()
        raise

    if cfg.fs.periodic:
        print(f"fs_sampler collecting {', '.join(cfg.fs.filesystems)} every {cfg.fs.run_interval}s")
    else:
        print(f"fs_sampler tracing {' '.join(cfg.fs.command) or f'pid {cfg.fs.pid}'}")
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop and scheduler.is_alive:
            time.sleep(0.5)
    finally:
        scheduler.stop()
        for exp in exporters:
            exp.shutdown()
    print("\nCollection stopped.")


def _cmd_sample(args: argparse.Namespace) -> None:
    """Sample every configured target once and print the records."""
    cfg = _load(args)
    if not cfg.fs.filesystems:
        print("No filesystems configured (use --filesystems or fs.filesystems)", file=sys.stderr)
        sys.exit(2)

    from .collector.scheduler import Scheduler

    try:
        samples = Scheduler(cfg.fs).collect_once()
    except OSError as exc:
        print(f"Cannot stat {exc.filename or ''}: {exc.strerror or exc}", file=sys.stderr)
        sys.exit(1)
    except ConfigError:
        raise
    except ValueError as exc:
        print(f"Invalid filesystem statistics: {exc}", file=sys.stderr)
        sys.exit(1)

    records = [s.to_record() for s in samples]
    if args.json:
        for record in records:
            print(json.dumps(record))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Disk usage")
    table.add_column("Path", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Free", justify="right")
    table.add_column("Use %", justify="right")
    for r in records:
        style = "red" if r["perc"] >= 90 else ""
        perc = f"[{style}]{r['perc']}%[/{style}]" if style else f"{r['perc']}%"
        table.add_row(
            r["path"],
            f"{r['size']} {r['size_unit']}",
            f"{r['used']} {r['used_unit']}",
            f"{r['free']} {r['free_unit']}",
            perc,
        )
    Console().print(table)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"fs_sampler {__version__}")


def _add_target_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--filesystems", "-f", default=None, help="Comma-separated mount points")
    p.add_argument("--provider", default=None, choices=["psutil", "statvfs"], help="Stat provider")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the fs-sampler CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="fs-sampler",
        description="Periodically sample disk usage for a set of mount points",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to fs_sampler.yaml")
    sub = parser.add_subparsers(dest="command_name")

    # collect
    collect_p = sub.add_parser("collect", help="Start disk-usage collection")
    _add_target_options(collect_p)
    collect_p.add_argument("--interval", "-i", default=None, help="Run interval, e.g. 30s or 5m")
    collect_p.add_argument("--tag", "-t", default=None, help="Tag attached to every record")
    collect_p.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to trace (after --); selects external-signal mode",
    )
    collect_p.set_defaults(func=_cmd_collect)

    # sample
    sample_p = sub.add_parser("sample", help="Sample configured filesystems once")
    _add_target_options(sample_p)
    sample_p.add_argument("--json", action="store_true", help="Print JSON lines instead of a table")
    sample_p.set_defaults(func=_cmd_sample)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
