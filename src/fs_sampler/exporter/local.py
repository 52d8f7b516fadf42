"""Local file exporter – writes disk-usage records to JSONL files."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import DEFAULT_TAG, LocalExporterConfig
from .base import BaseExporter

logger = logging.getLogger(__name__)


class LocalExporter(BaseExporter):
    """Appends ``{"tag", "time", "record"}`` lines to JSONL files on disk.

    One file per UTC day is created inside the configured *output_dir*.
    """

    def __init__(self, config: LocalExporterConfig, default_tag: str = DEFAULT_TAG) -> None:
        super().__init__(default_tag)
        self._config = config
        self._output_dir = Path(config.output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._fh = None
        self._current_date: str | None = None
        self._lock = threading.Lock()
        logger.info("LocalExporter initialized → %s", self._output_dir)

    def _ensure_file(self) -> None:
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        if self._current_date != today or self._fh is None:
            if self._fh is not None:
                self._fh.close()
            filepath = self._output_dir / f"fs-{today}.jsonl"
            self._fh = open(filepath, "a", encoding="utf-8")  # noqa: SIM115
            self._current_date = today

    def emit(self, tag: str | None, timestamp: int, record: dict[str, Any]) -> None:
        line = json.dumps({"tag": self.resolve_tag(tag), "time": timestamp, "record": record})
        with self._lock:
            self._ensure_file()
            assert self._fh is not None
            self._fh.write(line + "\n")
            self._fh.flush()

    def shutdown(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
        logger.info("LocalExporter shut down")
