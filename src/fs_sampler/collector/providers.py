"""Filesystem-statistics providers backed by psutil and ``os.statvfs``."""

from __future__ import annotations

import os

import psutil

from ..config import ConfigError
from .base import BaseStatProvider, RawStats


class PsutilStatProvider(BaseStatProvider):
    """Reads capacity through ``psutil.disk_usage``.

    psutil already multiplies by the fragment size, so counters are
    reported in 1-byte blocks. ``free`` is the space available to
    unprivileged users, matching ``f_bavail``.
    """

    @property
    def name(self) -> str:
        return "psutil"

    def stat(self, path: str) -> RawStats:
        usage = psutil.disk_usage(path)
        return RawStats(block_size=1, blocks=usage.total, blocks_available=usage.free)


class StatvfsStatProvider(BaseStatProvider):
    """Reads native block counters through ``os.statvfs`` (POSIX only)."""

    @property
    def name(self) -> str:
        return "statvfs"

    def stat(self, path: str) -> RawStats:
        st = os.statvfs(path)
        # f_blocks is counted in fragments; some filesystems report f_frsize=0
        block_size = st.f_frsize or st.f_bsize
        return RawStats(
            block_size=block_size,
            blocks=st.f_blocks,
            blocks_available=st.f_bavail,
        )


_PROVIDERS: dict[str, type[BaseStatProvider]] = {
    "psutil": PsutilStatProvider,
    "statvfs": StatvfsStatProvider,
}


def get_provider(name: str) -> BaseStatProvider:
    """Instantiate the provider registered under *name*."""
    try:
        cls = _PROVIDERS[name]
    except KeyError:
        raise ConfigError(
            f"unknown stat provider {name!r} (expected one of {', '.join(sorted(_PROVIDERS))})"
        ) from None
    if cls is StatvfsStatProvider and not hasattr(os, "statvfs"):
        raise ConfigError("the statvfs provider is not available on this platform")
    return cls()
