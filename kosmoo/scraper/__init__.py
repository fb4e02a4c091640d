"""
Scrape loop - client bootstrap, backoff and orchestration.
"""
from kosmoo.scraper.backoff import BackoffState
from kosmoo.scraper.clients import ScrapeClients, connect
from kosmoo.scraper.orchestrator import CycleResult, ScrapeOrchestrator, ScrapeState

__all__ = [
    "BackoffState",
    "ScrapeClients",
    "connect",
    "CycleResult",
    "ScrapeOrchestrator",
    "ScrapeState",
]
