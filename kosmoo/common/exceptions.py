"""
Custom exceptions for the kosmoo exporter.
Hierarchical exception structure separating startup, connection and
per-domain scrape failures.
"""
from typing import List


class KosmooError(Exception):
    """Base exception for the exporter"""
    pass


class ConfigurationError(KosmooError):
    """Error in configuration loading or validation (not retried)"""
    pass


class AuthenticationError(KosmooError):
    """Error authenticating against the OpenStack identity service"""
    pass


class ClientConstructionError(KosmooError):
    """Error building an OpenStack or Kubernetes API client"""
    pass


class CollectorError(KosmooError):
    """Error scraping a single resource domain"""

    def __init__(self, domain: str, message: str):
        super().__init__(f"{domain}: {message}")
        self.domain = domain


class DomainListError(CollectorError):
    """A list or get request against the OpenStack API failed"""
    pass


class ExtractionError(CollectorError):
    """An API response could not be mapped to an entity"""
    pass


class CorrelationError(CollectorError):
    """Listing the Kubernetes PersistentVolumes failed"""
    pass


class ScrapeError(KosmooError):
    """At least one domain failed during a scrape cycle"""

    def __init__(self, errors: List[CollectorError]):
        domains = ", ".join(e.domain for e in errors)
        super().__init__(f"errors during scrape cycle ({domains})")
        self.errors = errors
