"""Collection scheduler: drives sampling ticks and hands records to sinks."""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Any, Callable, Iterator, Optional

from ..config import FsInputConfig
from .base import BaseStatProvider, Sample
from .lifecycle import Lifecycle, make_lifecycle
from .normalize import build_sample
from .providers import get_provider

logger = logging.getLogger(__name__)

Sink = Callable[[Optional[str], int, dict[str, Any]], None]


class ScheduleState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Scheduler:
    """Samples the configured mount points on a background thread.

    Instantiate it with a :class:`FsInputConfig`, register sinks via
    :meth:`add_sink`, then call :meth:`start` / :meth:`stop`. Each sink
    receives ``(tag, timestamp, record)`` once per target per tick, in
    target order.
    """

    def __init__(
        self,
        config: FsInputConfig,
        provider: BaseStatProvider | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._provider = provider
        self._clock = clock
        self._sinks: list[Sink] = []
        self._thread: threading.Thread | None = None
        self._state = ScheduleState.IDLE
        self._state_lock = threading.Lock()
        self.lifecycle: Lifecycle = make_lifecycle(config)
        self.ticks = 0
        self.failed_ticks = 0

    @property
    def state(self) -> ScheduleState:
        return self._state

    @property
    def is_alive(self) -> bool:
        """True while the background thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def provider(self) -> BaseStatProvider:
        if self._provider is None:
            self._provider = get_provider(self._config.stat_provider)
        return self._provider

    def add_sink(self, sink: Sink) -> None:
        """Register a callback to receive emitted records."""
        self._sinks.append(sink)

    def _iter_samples(self) -> Iterator[Sample]:
        for target in self._config.filesystems:
            try:
                raw = self.provider.stat(target)
                yield build_sample(target, raw)
            except (OSError, ValueError):
                if not self._config.isolate_failures:
                    raise
                logger.exception("Sampling %s failed, skipping", target)

    def collect_once(self) -> list[Sample]:
        """Sample every target once without emitting anything."""
        return list(self._iter_samples())

    def _emit(self, sample: Sample) -> None:
        record = sample.to_record()
        timestamp = int(self._clock())
        for sink in self._sinks:
            try:
                sink(self._config.tag, timestamp, record)
            except Exception:
                logger.exception("Sink failed for %s", sample.path)

    def run_tick(self) -> None:
        """Sample and emit every target in configured order.

        Without ``isolate_failures`` the first stat error aborts the rest of
        the tick and propagates.
        """
        for sample in self._iter_samples():
            self._emit(sample)
        self.ticks += 1

    def _safe_tick(self) -> None:
        try:
            self.run_tick()
        except Exception:
            self.failed_ticks += 1
            logger.exception("Tick aborted")

    def _run(self) -> None:
        """Background thread body."""
        try:
            self.lifecycle.run(self._safe_tick)
        except Exception:
            logger.exception("Collection loop crashed")
        finally:
            with self._state_lock:
                if self._state is ScheduleState.RUNNING:
                    self._state = ScheduleState.STOPPED

    def start(self) -> None:
        """Start collecting in the background. Returns immediately.

        Raises :class:`~fs_sampler.config.ConfigError` if the configuration
        cannot start a collection cycle.
        """
        with self._state_lock:
            if self._state is ScheduleState.RUNNING:
                logger.warning("Scheduler already running")
                return
            if self._state is not ScheduleState.IDLE:
                raise RuntimeError(f"cannot start a scheduler in state {self._state.value}")
            self._config.validate()
            # resolve the provider now so a bad name fails the caller
            _ = self.provider
            self.lifecycle.prepare()
            self._thread = threading.Thread(target=self._run, name="fs-sampler", daemon=True)
            self._state = ScheduleState.RUNNING
            self._thread.start()
        logger.info(
            "Scheduler started (mode=%s, interval=%s, targets=%s)",
            self.lifecycle.name,
            self._config.run_interval,
            ",".join(self._config.filesystems),
        )

    def stop(self) -> None:
        """Stop background collection, blocking until the thread has exited."""
        with self._state_lock:
            thread = self._thread
            if thread is None or self._state is ScheduleState.STOPPING:
                return
            self._state = ScheduleState.STOPPING
        self.lifecycle.stop(thread)
        with self._state_lock:
            self._thread = None
            self._state = ScheduleState.STOPPED
        logger.info("Scheduler stopped (%d ticks, %d failed)", self.ticks, self.failed_ticks)
