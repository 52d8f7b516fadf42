"""Tests for the configuration module."""

import os
import tempfile

import pytest
import yaml

from fs_sampler.config import (
    ConfigError,
    FsInputConfig,
    FsSamplerConfig,
    load_config,
    parse_filesystems,
    parse_interval,
)


def test_load_config_defaults():
    """Loading from a non-existent file returns defaults."""
    cfg = load_config("/tmp/nonexistent_fs_sampler.yaml")
    assert isinstance(cfg, FsSamplerConfig)
    assert cfg.mode == "local"
    assert cfg.default_tag == "fs"
    assert cfg.fs.tag is None
    assert cfg.fs.filesystems == []
    assert cfg.fs.run_interval is None
    assert cfg.fs.stat_provider == "psutil"
    assert cfg.fs.isolate_failures is False
    assert cfg.fs.shutdown_timeout == 60.0
    assert cfg.local_exporter.enabled is True
    assert cfg.otel.endpoint == "http://localhost:4318"


def test_load_config_from_yaml():
    """Loading from a YAML file populates values."""
    data = {
        "mode": "online",
        "fs": {
            "tag": "disk.usage",
            "filesystems": "/, /var ,/home",
            "run_interval": "5m",
            "isolate_failures": True,
            "unknown_key": "ignored",
        },
        "otel": {"endpoint": "http://otel:4318"},
    }
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        path = fh.name

    try:
        cfg = load_config(path)
        assert cfg.mode == "online"
        assert cfg.fs.tag == "disk.usage"
        assert cfg.fs.filesystems == ["/", "/var", "/home"]
        assert cfg.fs.run_interval == 300.0
        assert cfg.fs.periodic is True
        assert cfg.fs.isolate_failures is True
        assert cfg.otel.endpoint == "http://otel:4318"
    finally:
        os.unlink(path)


def test_env_override():
    """Environment variables override YAML values."""
    data = {"fs": {"filesystems": "/", "run_interval": 10}}
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        path = fh.name

    try:
        os.environ["FS_SAMPLER_FILESYSTEMS"] = "/data,/scratch"
        os.environ["FS_SAMPLER_RUN_INTERVAL"] = "30s"
        os.environ["FS_SAMPLER_TAG"] = "env.tag"
        cfg = load_config(path)
        assert cfg.fs.filesystems == ["/data", "/scratch"]
        assert cfg.fs.run_interval == 30.0
        assert cfg.fs.tag == "env.tag"
    finally:
        os.environ.pop("FS_SAMPLER_FILESYSTEMS", None)
        os.environ.pop("FS_SAMPLER_RUN_INTERVAL", None)
        os.environ.pop("FS_SAMPLER_TAG", None)
        os.unlink(path)


def test_parse_filesystems_preserves_order_and_duplicates():
    assert parse_filesystems("/b,/a,/b") == ["/b", "/a", "/b"]
    assert parse_filesystems(["/", "/var"]) == ["/", "/var"]
    assert parse_filesystems(None) == []


@pytest.mark.parametrize("value", ["/,,/var", "/,", " ", 42])
def test_parse_filesystems_malformed(value):
    with pytest.raises(ConfigError):
        parse_filesystems(value)


@pytest.mark.parametrize(
    "value, expected",
    [
        (10, 10.0),
        (0.5, 0.5),
        ("10", 10.0),
        ("10s", 10.0),
        ("2m", 120.0),
        ("1.5h", 5400.0),
        ("1d", 86400.0),
        (None, None),
        ("", None),
        (0, None),
        ("0s", None),
    ],
)
def test_parse_interval(value, expected):
    assert parse_interval(value) == expected


@pytest.mark.parametrize("value", ["soon", "10x", "-5", -1, True, float("inf"), float("nan"), "inf"])
def test_parse_interval_invalid(value):
    with pytest.raises(ConfigError):
        parse_interval(value)


def test_command_string_is_split():
    cfg = FsInputConfig(filesystems="/", command="rsync -a /src '/dst dir'")
    assert cfg.command == ["rsync", "-a", "/src", "/dst dir"]
    assert cfg.periodic is False


def test_validate_requires_filesystems():
    with pytest.raises(ConfigError):
        FsInputConfig(run_interval=5).validate()


def test_validate_signal_mode_requires_command_or_pid():
    with pytest.raises(ConfigError):
        FsInputConfig(filesystems="/").validate()
    FsInputConfig(filesystems="/", pid=os.getpid()).validate()
    FsInputConfig(filesystems="/", command=["true"]).validate()
    FsInputConfig(filesystems="/", run_interval=1).validate()


def test_non_mapping_section_rejected():
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump({"fs": ["not", "a", "mapping"]}, fh)
        path = fh.name
    try:
        with pytest.raises(ConfigError):
            load_config(path)
    finally:
        os.unlink(path)


def test_pid_and_shutdown_timeout_coerced_from_strings():
    cfg = FsInputConfig(filesystems="/", pid="1234", shutdown_timeout="2m")
    assert cfg.pid == 1234
    assert cfg.shutdown_timeout == 120.0
    assert FsInputConfig(shutdown_timeout=None).shutdown_timeout == 60.0
    assert FsInputConfig(shutdown_timeout=0).shutdown_timeout == 0.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pid": "abc"},
        {"pid": 0},
        {"pid": True},
        {"shutdown_timeout": "soon"},
        {"shutdown_timeout": -1},
        {"shutdown_timeout": float("inf")},
    ],
)
def test_invalid_pid_or_shutdown_timeout(kwargs):
    with pytest.raises(ConfigError):
        FsInputConfig(filesystems="/", **kwargs)


def test_yaml_string_pid_and_timeout():
    data = {"fs": {"filesystems": "/", "pid": "4321", "shutdown_timeout": "60s"}}
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        path = fh.name
    try:
        cfg = load_config(path)
        assert cfg.fs.pid == 4321
        assert cfg.fs.shutdown_timeout == 60.0
    finally:
        os.unlink(path)
