"""Base interface for record sinks."""

from __future__ import annotations

import abc
from typing import Any


class BaseExporter(abc.ABC):
    """Abstract base for sinks that receive tagged disk-usage records."""

    def __init__(self, default_tag: str) -> None:
        self.default_tag = default_tag

    def resolve_tag(self, tag: str | None) -> str:
        """Apply the default tag when the input has none configured."""
        return tag or self.default_tag

    @abc.abstractmethod
    def emit(self, tag: str | None, timestamp: int, record: dict[str, Any]) -> None:
        """Export one record."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
