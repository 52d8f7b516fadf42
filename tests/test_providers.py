"""Tests for the filesystem-statistics providers."""

import os
import tempfile

import pytest

from fs_sampler.collector.normalize import build_sample
from fs_sampler.collector.providers import (
    PsutilStatProvider,
    StatvfsStatProvider,
    get_provider,
)
from fs_sampler.config import ConfigError


def test_psutil_provider_reports_bytes():
    provider = PsutilStatProvider()
    assert provider.name == "psutil"
    with tempfile.TemporaryDirectory() as tmpdir:
        raw = provider.stat(tmpdir)
    assert raw.block_size == 1
    assert raw.blocks > 0
    assert 0 <= raw.blocks_available <= raw.blocks


@pytest.mark.skipif(not hasattr(os, "statvfs"), reason="statvfs is POSIX only")
def test_statvfs_provider_reports_blocks():
    provider = StatvfsStatProvider()
    assert provider.name == "statvfs"
    with tempfile.TemporaryDirectory() as tmpdir:
        raw = provider.stat(tmpdir)
    assert raw.block_size > 0
    assert raw.blocks > 0
    assert 0 <= raw.blocks_available <= raw.blocks


@pytest.mark.skipif(not hasattr(os, "statvfs"), reason="statvfs is POSIX only")
def test_providers_agree_on_total_size():
    with tempfile.TemporaryDirectory() as tmpdir:
        via_psutil = build_sample(tmpdir, PsutilStatProvider().stat(tmpdir))
        via_statvfs = build_sample(tmpdir, StatvfsStatProvider().stat(tmpdir))
    assert via_psutil.size == via_statvfs.size


@pytest.mark.parametrize("provider", [PsutilStatProvider(), StatvfsStatProvider()])
def test_missing_path_raises_oserror(provider):
    if provider.name == "statvfs" and not hasattr(os, "statvfs"):
        pytest.skip("statvfs is POSIX only")
    with pytest.raises(OSError):
        provider.stat("/nonexistent/fs_sampler/mount")


def test_get_provider():
    assert isinstance(get_provider("psutil"), PsutilStatProvider)
    with pytest.raises(ConfigError):
        get_provider("zfs")
