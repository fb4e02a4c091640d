"""
Process shutdown for the exporter.

SIGINT/SIGTERM flip the process out of RUNNING, wake the scrape loop out of
its refresh or backoff sleep and run the registered cleanup callbacks
(stopping the exposition server) in priority order.
"""
import signal
import threading
import time
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

from kosmoo.common.logging_config import get_logger

logger = get_logger(__name__)


class ShutdownState(Enum):
    """Shutdown manager states"""
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class CleanupCallback(NamedTuple):
    priority: int
    name: str
    func: Callable[[], None]


class ShutdownManager:
    """
    Process-wide shutdown coordinator.

    Callbacks run lowest priority first; the exposition server registers
    at 10. Callbacks still pending when ``timeout`` seconds have passed are
    skipped.

    Usage:
        shutdown = ShutdownManager()
        shutdown.install_signal_handlers()
        shutdown.register(server.stop, priority=10, name="exposition-server")

        while shutdown.is_running:
            orchestrator.run_cycle(clients)
            shutdown.sleep(refresh_interval)
    """

    _instance: Optional['ShutdownManager'] = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        """One manager per process, shared by the entry point and the loop."""
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._initialized = False
                cls._instance = instance
            return cls._instance

    def __init__(self, timeout: float = 30.0):
        if self._initialized:
            return
        self._initialized = True

        self.timeout = timeout
        self.state = ShutdownState.RUNNING
        self._callbacks: List[CleanupCallback] = []
        self._state_lock = threading.Lock()
        self._stopping = threading.Event()

    @classmethod
    def reset(cls):
        """Forget the process-wide instance (for testing)."""
        with cls._lock:
            cls._instance = None

    @property
    def is_running(self) -> bool:
        return self.state == ShutdownState.RUNNING

    def register(self, func: Callable[[], None], priority: int = 20, name: str = "unnamed") -> None:
        """
        Register a cleanup callback.

        Args:
            func: called without arguments during shutdown
            priority: lower runs earlier
            name: used in logs
        """
        self._callbacks.append(CleanupCallback(priority, name, func))
        self._callbacks.sort(key=lambda cb: cb.priority)
        logger.debug(f"Registered shutdown callback {name} (priority={priority})")

    def install_signal_handlers(self) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, self._on_signal)
        logger.info("Signal handlers installed (SIGINT, SIGTERM)")

    def _on_signal(self, signum: int, frame) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        self.initiate_shutdown()

    def initiate_shutdown(self) -> None:
        """
        Leave RUNNING, wake sleepers and run the cleanup callbacks once.
        Safe to call from a signal handler or any thread.
        """
        with self._state_lock:
            if self.state != ShutdownState.RUNNING:
                logger.debug("Shutdown already in progress")
                return
            self.state = ShutdownState.SHUTTING_DOWN

        self._stopping.set()
        self._run_callbacks()

        with self._state_lock:
            self.state = ShutdownState.STOPPED
        logger.info("Shutdown complete")

    def _run_callbacks(self) -> None:
        deadline = time.monotonic() + self.timeout
        for callback in self._callbacks:
            if time.monotonic() >= deadline:
                skipped = [cb.name for cb in self._callbacks if cb.priority >= callback.priority]
                logger.error(f"Shutdown timeout ({self.timeout}s) exceeded, skipping {skipped}")
                return
            try:
                callback.func()
            except Exception as e:
                logger.error(f"Shutdown callback {callback.name} failed: {e}")
            else:
                logger.info(f"Shutdown callback {callback.name} done")

    def sleep(self, seconds: float) -> bool:
        """
        Wait *seconds* or until shutdown begins.

        Returns:
            True if the full duration elapsed, False if shutdown interrupted it
        """
        return not self._stopping.wait(timeout=seconds)
