"""Core data types and the stat-provider interface."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, NamedTuple


@dataclass(frozen=True)
class RawStats:
    """Raw capacity counters for one mount point, as returned by a provider."""

    block_size: int
    blocks: int
    blocks_available: int


class SizeValue(NamedTuple):
    """A truncated magnitude and its unit (``"MB"`` or ``"GB"``)."""

    magnitude: int
    unit: str


@dataclass(frozen=True)
class Sample:
    """Normalized disk usage for one target in one tick."""

    path: str
    size: SizeValue
    free: SizeValue
    used: SizeValue
    perc: int

    def to_record(self) -> dict[str, Any]:
        """Serialize to the record handed to sinks."""
        return {
            "path": self.path,
            "size": self.size.magnitude,
            "size_unit": self.size.unit,
            "free": self.free.magnitude,
            "free_unit": self.free.unit,
            "used": self.used.magnitude,
            "used_unit": self.used.unit,
            "perc": self.perc,
        }


class BaseStatProvider(abc.ABC):
    """Abstract filesystem-statistics provider."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Provider name used in configuration."""

    @abc.abstractmethod
    def stat(self, path: str) -> RawStats:
        """Return raw counters for *path*. Raises ``OSError`` on failure."""
