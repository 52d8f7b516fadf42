"""Configuration loading and validation for fs_sampler."""

from __future__ import annotations

import math
import os
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_TAG = "fs"

_INTERVAL_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_INTERVAL_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}
DEFAULT_SHUTDOWN_TIMEOUT = 60.0


class ConfigError(ValueError):
    """Raised for invalid or incomplete configuration."""


def parse_filesystems(value: str | list[str] | None) -> list[str]:
    """Parse a comma-separated target list (or a list) into mount points.

    Order and duplicates are preserved.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        raise ConfigError(f"filesystems must be a string or list, got {type(value).__name__}")

    targets = [p.strip() for p in parts]
    if any(not t for t in targets):
        raise ConfigError(f"filesystems contains an empty entry: {value!r}")
    return targets


def parse_interval(value: Any) -> float | None:
    """Parse an interval such as ``30``, ``"10s"``, ``"5m"`` or ``"1h"``.

    Returns ``None`` for an unset or zero interval, which selects
    external-signal mode.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigError(f"invalid interval: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _INTERVAL_RE.match(str(value))
        if match is None:
            raise ConfigError(f"invalid interval: {value!r}")
        seconds = float(match.group(1)) * _INTERVAL_UNITS[match.group(2)]
    if not math.isfinite(seconds):
        raise ConfigError(f"interval must be finite: {value!r}")
    if seconds < 0:
        raise ConfigError(f"interval must not be negative: {value!r}")
    return seconds or None


def _parse_command(value: str | list[str] | None) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    return [str(v) for v in value]


def _parse_pid(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigError(f"invalid pid: {value!r}")
    try:
        pid = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid pid: {value!r}") from None
    if pid <= 0:
        raise ConfigError(f"pid must be positive: {value!r}")
    return pid


@dataclass
class FsInputConfig:
    """Disk sampling settings."""

    tag: str | None = None
    filesystems: list[str] = field(default_factory=list)
    run_interval: float | None = None
    stat_provider: str = "psutil"
    isolate_failures: bool = False
    command: list[str] = field(default_factory=list)
    pid: int | None = None
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT

    def __post_init__(self) -> None:
        self.filesystems = parse_filesystems(self.filesystems)
        self.run_interval = parse_interval(self.run_interval)
        self.command = _parse_command(self.command)
        self.pid = _parse_pid(self.pid)
        if self.shutdown_timeout is None:
            self.shutdown_timeout = DEFAULT_SHUTDOWN_TIMEOUT
        else:
            self.shutdown_timeout = parse_interval(self.shutdown_timeout) or 0.0

    @property
    def periodic(self) -> bool:
        return self.run_interval is not None

    def validate(self) -> None:
        """Check the settings needed to start a collection cycle."""
        if not self.filesystems:
            raise ConfigError("at least one filesystem must be configured")
        if not self.periodic and not self.command and self.pid is None:
            raise ConfigError(
                "run_interval is unset: a command or pid is required for external-signal mode"
            )


@dataclass
class LocalExporterConfig:
    """Local JSONL sink settings."""

    enabled: bool = True
    output_dir: str = "./fs_data"


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "fs-sampler"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000


@dataclass
class FsSamplerConfig:
    """Top-level fs_sampler configuration."""

    mode: str = "local"
    default_tag: str = DEFAULT_TAG
    fs: FsInputConfig = field(default_factory=FsInputConfig)
    local_exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using FS_SAMPLER_ prefix."""
    env_map = {
        "FS_SAMPLER_MODE": ("mode",),
        "FS_SAMPLER_TAG": ("fs", "tag"),
        "FS_SAMPLER_FILESYSTEMS": ("fs", "filesystems"),
        "FS_SAMPLER_RUN_INTERVAL": ("fs", "run_interval"),
        "FS_SAMPLER_LOCAL_OUTPUT_DIR": ("local_exporter", "output_dir"),
        "FS_SAMPLER_OTEL_ENDPOINT": ("otel", "endpoint"),
    }
    overrides: dict[str, Any] = {}
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = overrides
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            obj[path[-1]] = value
    return _merge_dict(data, overrides)


def _section(cls: type, data: Any) -> Any:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{cls.__name__} section must be a mapping")
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> FsSamplerConfig:
    """Convert a raw dictionary to a :class:`FsSamplerConfig`."""
    return FsSamplerConfig(
        mode=data.get("mode", "local"),
        default_tag=data.get("default_tag", DEFAULT_TAG),
        fs=_section(FsInputConfig, data.get("fs")),
        local_exporter=_section(LocalExporterConfig, data.get("local_exporter")),
        otel=_section(OtelExporterConfig, data.get("otel")),
    )


def load_config(path: str | Path | None = None) -> FsSamplerConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``fs_sampler.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("fs_sampler.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
