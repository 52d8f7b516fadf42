"""Lifecycle strategies that drive the scheduler's background thread.

A :class:`PeriodicLifecycle` sleeps between ticks and stops cooperatively
through an event. An :class:`ExternalSignalLifecycle` runs one long-lived
cycle bound to a tracked process and stops it with SIGTERM, escalating to
SIGKILL once the grace period has elapsed.
"""

from __future__ import annotations

import abc
import logging
import threading
from typing import Callable

import psutil

from ..config import ConfigError, FsInputConfig

logger = logging.getLogger(__name__)

Tick = Callable[[], None]


class Lifecycle(abc.ABC):
    """Abstract execution/shutdown strategy."""

    name: str = ""

    def prepare(self) -> None:
        """Acquire resources before the background thread starts."""

    @abc.abstractmethod
    def run(self, tick: Tick) -> None:
        """Body of the background thread. Must return once stopped."""

    @abc.abstractmethod
    def stop(self, thread: threading.Thread) -> None:
        """Request termination and block until *thread* has exited."""


class PeriodicLifecycle(Lifecycle):
    """Sleep ``interval`` seconds, tick, repeat until the stop flag is set."""

    name = "periodic"

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._stop_event = threading.Event()

    def run(self, tick: Tick) -> None:
        while not self._stop_event.is_set():
            if self._stop_event.wait(self.interval):
                break
            tick()

    def stop(self, thread: threading.Thread) -> None:
        self._stop_event.set()
        thread.join()


class ExternalSignalLifecycle(Lifecycle):
    """One collection cycle whose lifetime is that of a tracked process.

    The process is either launched from *command* or attached to by *pid*.
    The thread samples once when the cycle starts and once more after the
    process has exited.
    """

    name = "external-signal"

    def __init__(
        self,
        command: list[str] | None = None,
        pid: int | None = None,
        shutdown_timeout: float = 60.0,
    ) -> None:
        self.command = list(command or [])
        self.pid = pid
        self.shutdown_timeout = shutdown_timeout
        self.forced = False
        self.process: psutil.Process | None = None
        self._exited = threading.Event()

    def prepare(self) -> None:
        if self.command:
            try:
                self.process = psutil.Popen(self.command)
            except OSError as exc:
                raise ConfigError(f"cannot launch {self.command[0]!r}: {exc}") from exc
            logger.info("Launched %s (pid %d)", " ".join(self.command), self.process.pid)
        elif self.pid is not None:
            try:
                self.process = psutil.Process(self.pid)
            except psutil.NoSuchProcess as exc:
                raise ConfigError(f"no process with pid {self.pid}") from exc
            logger.info("Tracking pid %d", self.pid)
        else:
            raise ConfigError("external-signal mode needs a command or a pid")
        self.forced = False
        self._exited.clear()

    def run(self, tick: Tick) -> None:
        assert self.process is not None
        tick()
        try:
            self.process.wait()
        except psutil.NoSuchProcess:
            pass
        self._exited.set()
        logger.info("Tracked process %d exited", self.process.pid)
        tick()

    def _signal(self, method: str) -> None:
        assert self.process is not None
        try:
            getattr(self.process, method)()
        except psutil.NoSuchProcess:
            logger.debug("Process %d already gone", self.process.pid)

    def _process_gone(self) -> bool:
        assert self.process is not None
        try:
            return self.process.status() == psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return True

    def stop(self, thread: threading.Thread) -> None:
        self._signal("terminate")
        # the grace period covers the process only, not the ticks around it
        self._exited.wait(self.shutdown_timeout)
        if self._exited.is_set() or self._process_gone():
            thread.join()
            return
        logger.warning(
            "Process %d did not exit within %.1fs, sending SIGKILL",
            self.process.pid if self.process else -1,
            self.shutdown_timeout,
        )
        self.forced = True
        self._signal("kill")
        thread.join()


def make_lifecycle(config: FsInputConfig) -> Lifecycle:
    """Choose the lifecycle strategy from the presence of ``run_interval``."""
    if config.run_interval is not None:
        return PeriodicLifecycle(config.run_interval)
    return ExternalSignalLifecycle(
        command=config.command,
        pid=config.pid,
        shutdown_timeout=config.shutdown_timeout,
    )
