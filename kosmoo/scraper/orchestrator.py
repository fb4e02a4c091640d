"""
Scrape orchestrator.

Drives the exporter's state machine:

    AUTHENTICATING -> CYCLE_RUNNING -> SLEEPING -> CYCLE_RUNNING -> ...
                          |
                          +-> BACKING_OFF -> AUTHENTICATING

A cycle runs every collector in a fixed order while holding the exposition
lock. A failure of any domain marks the whole cycle failed: the
orchestrator backs off exponentially and starts over with freshly built
clients. Only an unusable configuration aborts the loop.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from kosmoo.collectors.base import ResourceCollector
from kosmoo.common.context import CycleLogContext
from kosmoo.common.exceptions import (
    AuthenticationError,
    ClientConstructionError,
    CollectorError,
    ConfigurationError,
    ScrapeError,
)
from kosmoo.common.logging_config import get_logger
from kosmoo.monitoring.exposition import ExpositionGuard
from kosmoo.monitoring.registry import MetricsRegistry
from kosmoo.scraper.backoff import BackoffState
from kosmoo.scraper.clients import ScrapeClients

logger = get_logger(__name__)


class ScrapeState(Enum):
    """Orchestrator states"""
    AUTHENTICATING = "authenticating"
    CYCLE_RUNNING = "cycle_running"
    SLEEPING = "sleeping"
    BACKING_OFF = "backing_off"
    ABORTED = "aborted"
    STOPPED = "stopped"


@dataclass
class CycleResult:
    """Outcome of one scrape cycle."""
    started_at: float
    duration: float
    refresh_interval: int
    errors: List[CollectorError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class ScrapeOrchestrator:
    """
    Runs scrape cycles sequentially on the calling thread.

    Args:
        metrics: registry the cycle gauges are published to
        collectors: collectors in the order a cycle runs them
        connect: builds fresh ``ScrapeClients``; called on every
            (re)authentication
        guard: lock shared with the exposition server
        refresh_interval: seconds to sleep after a successful cycle
        backoff: backoff state for failed attempts
        shutdown: object with ``is_running`` and an interruptible
            ``sleep(seconds)``, normally the ``ShutdownManager``
        clock: wall clock used for cycle timestamps
    """

    def __init__(
        self,
        metrics: MetricsRegistry,
        collectors: Sequence[ResourceCollector],
        connect: Callable[[], ScrapeClients],
        guard: ExpositionGuard,
        shutdown,
        refresh_interval: int = 120,
        backoff: Optional[BackoffState] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.metrics = metrics
        self.collectors = list(collectors)
        self.connect = connect
        self.guard = guard
        self.shutdown = shutdown
        self.refresh_interval = refresh_interval
        self.backoff = backoff or BackoffState()
        self.clock = clock
        self.state = ScrapeState.AUTHENTICATING
        self.cycles = 0

    # -- Single cycle -------------------------------------------------------

    def run_cycle(self, clients: ScrapeClients) -> CycleResult:
        """
        Run every collector once and publish the cycle gauges.

        Domain failures are collected, never short-circuited.
        """
        self.state = ScrapeState.CYCLE_RUNNING
        self.cycles += 1

        with CycleLogContext() as ctx, self.guard.cycle():
            started_at = self.clock()
            start = time.monotonic()
            logger.debug(f"Scrape cycle #{self.cycles} started ({ctx.cycle_id})")

            errors: List[CollectorError] = []
            for collector in self.collectors:
                try:
                    collector.collect(clients.openstack, clients.platform)
                except CollectorError as e:
                    logger.error(f"scraping {e.domain} metrics failed: {e}")
                    errors.append(e)
                except Exception as e:
                    logger.exception(f"unexpected error scraping {collector.domain} metrics: {e}")
                    errors.append(CollectorError(collector.domain, str(e)))

            result = CycleResult(
                started_at=started_at,
                duration=time.monotonic() - start,
                refresh_interval=self.refresh_interval,
                errors=errors,
            )
            self._publish_cycle(result)

        logger.info(
            f"Scrape cycle #{self.cycles} {'succeeded' if result.succeeded else 'failed'} "
            f"in {result.duration:.2f}s ({len(errors)} failed domain(s))"
        )
        return result

    def _publish_cycle(self, result: CycleResult) -> None:
        labels = [str(result.refresh_interval)]
        self.metrics.set("scrape_duration", labels, result.duration)
        self.metrics.set("scraped_at", labels, result.started_at)
        self.metrics.set("scrape_status_succeeded", labels, 1 if result.succeeded else 0)

    # -- Loops --------------------------------------------------------------

    def serve(self, clients: ScrapeClients) -> None:
        """
        Run cycles with the given clients until one fails or shutdown begins.

        Raises:
            ScrapeError: a cycle had at least one failed domain
        """
        while self.shutdown.is_running:
            result = self.run_cycle(clients)
            if not result.succeeded:
                raise ScrapeError(result.errors)

            self.backoff.record_success()
            self.state = ScrapeState.SLEEPING
            self.shutdown.sleep(self.refresh_interval)

    def run_forever(self) -> ScrapeState:
        """
        Authenticate and scrape until shutdown, backing off after failures.

        Returns:
            The final state, ``STOPPED`` or ``ABORTED``
        """
        while self.shutdown.is_running:
            self.state = ScrapeState.AUTHENTICATING
            try:
                clients = self.connect()
                self.serve(clients)
            except ConfigurationError as e:
                if self.cycles == 0:
                    logger.critical(f"invalid configuration, giving up: {e}")
                    self.state = ScrapeState.ABORTED
                    return self.state
                self._back_off(e)
            except (AuthenticationError, ClientConstructionError, ScrapeError) as e:
                self._back_off(e)
            except Exception as e:
                logger.exception(f"unexpected error in scrape loop: {e}")
                self._back_off(e)

        self.state = ScrapeState.STOPPED
        return self.state

    def _back_off(self, error: Exception) -> None:
        delay = self.backoff.record_failure()
        self.state = ScrapeState.BACKING_OFF
        logger.error(f"error during run - sleeping {delay:.0f}s: {error}")
        self.shutdown.sleep(delay)
