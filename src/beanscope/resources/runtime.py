"""
Built-in resources describing the running interpreter.

Registered at server startup in the ``local`` store:

- ``python:type=Runtime``  interpreter and process information
- ``python:type=Memory``   garbage collector statistics, ``collect`` operation
- ``python:type=Threads``  live thread information
- ``beanscope:type=Logging``  current log level, ``setLevel`` operation
"""

import gc
import os
import platform
import sys
import threading
import time
from datetime import datetime

from beanscope.logger import get_logger, setup_logging
from beanscope.resources.base import ManagedResource, managed_operation
from beanscope.resources.manager import StoreRegistry
from beanscope.resources.store import InMemoryStore

logger = get_logger(__name__)

LOCAL_STORE = "local"

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class RuntimeInfo:
    """Interpreter and process information."""

    def __init__(self):
        self.implementation = platform.python_implementation()
        self.version = platform.python_version()
        self.executable = sys.executable
        self.platform = platform.platform()
        self.pid = os.getpid()
        self.start_time = datetime.now()
        self._started = time.monotonic()

    @property
    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self._started, 3)

    @property
    def cwd(self) -> str:
        return os.getcwd()

    @property
    def argv(self) -> list[str]:
        return list(sys.argv)

    @property
    def environment(self) -> dict[str, str]:
        return dict(os.environ)


class MemoryInfo:
    """Garbage collector counters and thresholds."""

    @property
    def enabled(self) -> bool:
        return gc.isenabled()

    @property
    def counts(self) -> list[int]:
        return list(gc.get_count())

    @property
    def thresholds(self) -> list[int]:
        return list(gc.get_threshold())

    @property
    def generations(self) -> list[dict]:
        return gc.get_stats()

    @property
    def garbage(self) -> int:
        return len(gc.garbage)

    @managed_operation(name="collect")
    def collect_all(self) -> int:
        """Run a full collection; returns the number of unreachable objects."""
        return gc.collect()

    @managed_operation(name="collect")
    def collect_generation(self, generation: int) -> int:
        """Collect one generation (0, 1 or 2)."""
        if generation not in (0, 1, 2):
            raise ValueError(f"Invalid generation {generation}")
        return gc.collect(generation)


class ThreadsInfo:
    """Live threads of the process."""

    @property
    def count(self) -> int:
        return threading.active_count()

    @property
    def daemon_count(self) -> int:
        return sum(1 for t in threading.enumerate() if t.daemon)

    @property
    def names(self) -> list[str]:
        return sorted(t.name for t in threading.enumerate())

    @property
    def main_thread(self) -> str:
        return threading.main_thread().name


class LoggingControl:
    """Log level of the service."""

    def __init__(self, level: str = "INFO", log_file: str | None = None):
        self.level = level.upper()
        self.log_file = log_file

    @managed_operation(name="setLevel")
    def set_level(self, level: str) -> None:
        """Change the log level of every sink."""
        level = level.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{level}'")
        setup_logging(level, self.log_file)
        self.level = level
        logger.info(f"Log level set to {level}")


def builtin_resources(log_level: str = "INFO", log_file: str | None = None) -> list[ManagedResource]:
    return [
        ManagedResource("python:type=Runtime", RuntimeInfo()),
        ManagedResource("python:type=Memory", MemoryInfo()),
        ManagedResource("python:type=Threads", ThreadsInfo()),
        ManagedResource("beanscope:type=Logging", LoggingControl(log_level, log_file)),
    ]


def register_builtin_resources(
    registry: StoreRegistry,
    log_level: str = "INFO",
    log_file: str | None = None,
) -> InMemoryStore:
    """Create the ``local`` store, fill it and register it."""
    store = InMemoryStore(LOCAL_STORE)
    for resource in builtin_resources(log_level, log_file):
        store.register(resource)
    registry.register_store(store)
    return store
