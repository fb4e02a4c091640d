"""
Generic resource collector.

A collector owns the gauge families of one resource domain and publishes a
fresh snapshot of that domain on every ``collect`` call:

    1. reset every family the domain owns
    2. probe the backing neutron extension (firewall domains only)
    3. domain preparation (e.g. the PersistentVolume index)
    4. list all entities through the request instrumentation
    5. extract entities and publish their gauges
    6. publish quota usage (cinder, nova)

Because the reset happens before anything can fail, a failed domain reads as
"no data" instead of keeping the values of the previous cycle.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from kosmoo.common.exceptions import DomainListError, ExtractionError
from kosmoo.common.logging_config import get_logger
from kosmoo.monitoring.instrumentation import RequestInstrumentation
from kosmoo.monitoring.registry import MetricsRegistry
from kosmoo.openstack.entities import QuotaUsage

logger = get_logger(__name__)


def bool_value(flag: bool) -> float:
    return 1.0 if flag else 0.0


class ResourceCollector:
    """
    Base class for the per-domain collectors.

    Subclasses set the class attributes and implement ``fetch`` and
    ``publish``; everything else (probe, reset, instrumentation, error
    mapping, one-hot encoding) lives here.

    Attributes:
        domain: domain name used in logs and errors
        request: instrumentation label of the list call
        families: gauge families reset at the start of every collect
        states: known values of the entity status, for one-hot encoding
        entity: entity class with a ``from_resource`` constructor
        extension: neutron extension alias that must be enabled, if any
    """

    domain: str = ""
    request: str = ""
    families: Tuple[str, ...] = ()
    states: Tuple[str, ...] = ()
    entity: Any = None
    extension: Optional[str] = None

    def __init__(self, metrics: MetricsRegistry, instrumentation: RequestInstrumentation):
        self.metrics = metrics
        self.instrumentation = instrumentation
        self._unknown_states: Set[Tuple[str, str]] = set()

    # -- Template -----------------------------------------------------------

    def collect(self, client, platform=None) -> List[Any]:
        """
        Scrape the domain and replace its gauges.

        Args:
            client: ``OpenStackClient`` (or a stand-in with the same methods)
            platform: Kubernetes ``CoreV1Api`` for domains that correlate

        Returns:
            The entities published this cycle

        Raises:
            CollectorError: listing, extraction or preparation failed
        """
        self.reset()

        if self.extension and not self.extension_enabled(client):
            logger.info(
                f"skipping {self.domain} metrics as extension {self.extension} is not enabled"
            )
            return []

        self.prepare(client, platform)

        try:
            raw = self.instrumentation.observe(self.request, self.fetch, client)
        except Exception as e:
            logger.warning(f"Unable to list {self.domain}: {e}", extra={"domain": self.domain})
            raise DomainListError(self.domain, f"list request failed: {e}") from e

        entities = self.extract_all(raw)
        if not entities:
            logger.info(f"No {self.domain} resources found")

        for entity in entities:
            if self.include(entity):
                self.publish(entity, client)

        self.publish_quotas(client)
        return entities

    def extension_enabled(self, client) -> bool:
        try:
            return client.has_network_extension(self.extension)
        except Exception as e:
            logger.warning(
                f"Unable to check extension {self.extension}: {e}", extra={"domain": self.domain}
            )
            raise DomainListError(self.domain, f"extension check failed: {e}") from e

    def extract_all(self, raw: Iterable[Any], entity: Any = None) -> List[Any]:
        entity = entity or self.entity
        try:
            return [entity.from_resource(item) for item in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Unable to extract {self.domain}: {e}", extra={"domain": self.domain})
            raise ExtractionError(self.domain, f"unable to extract entities: {e}") from e

    # -- Hooks --------------------------------------------------------------

    def fetch(self, client) -> List[Any]:
        raise NotImplementedError

    def publish(self, entity: Any, client) -> None:
        raise NotImplementedError

    def prepare(self, client, platform) -> None:
        """Per-cycle preparation before listing; no-op by default."""

    def include(self, entity: Any) -> bool:
        return True

    def publish_quotas(self, client) -> None:
        """Quota publication for quota-style domains; no-op by default."""

    # -- Helpers ------------------------------------------------------------

    def reset(self) -> None:
        for family in self.families:
            self.metrics.reset(family)

    def publish_one_hot(
        self,
        family: str,
        labels: Sequence[str],
        actual: str,
        states: Optional[Sequence[str]] = None,
        suffix: Sequence[str] = (),
    ) -> None:
        """
        Write one series per known state: 1 for *actual*, 0 for the rest.

        The state label is appended after *labels*; *suffix* labels follow
        it for families that carry labels after the state.
        """
        known = self.states if states is None else states
        if actual not in known and (family, actual) not in self._unknown_states:
            self._unknown_states.add((family, actual))
            logger.warning(
                f"{self.domain}: unknown state {actual!r} in {family}, all state rows are 0",
                extra={"domain": self.domain},
            )
        for state in known:
            self.metrics.set(
                family,
                list(labels) + [state] + list(suffix),
                bool_value(actual == state),
            )

    def observe_get(self, request: str, call: Callable[..., Any], *args: Any) -> Optional[Any]:
        """
        Instrumented single-resource get that logs and returns None on failure
        instead of failing the domain.
        """
        try:
            return self.instrumentation.observe(request, call, *args)
        except Exception as e:
            logger.warning(f"{request} failed for {args}: {e}", extra={"domain": self.domain})
            return None

    def fetch_quota(self, request: str, call: Callable[..., Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return self.instrumentation.observe(request, call)
        except Exception as e:
            logger.warning(f"Unable to get {self.domain} quotas: {e}", extra={"domain": self.domain})
            raise DomainListError(self.domain, f"quota request failed: {e}") from e

    def publish_quota_set(
        self,
        quota_set: Dict[str, Any],
        quotas: Sequence[Tuple[str, str]],
        allocated: bool = False,
    ) -> None:
        """
        Publish the usage figures of a ``quota_set`` response.

        Args:
            quota_set: resource name -> {in_use, reserved, limit[, allocated]}
            quotas: (resource name, gauge family) pairs; absent resources are skipped
            allocated: always publish the allocated figure (0 when absent)
        """
        for resource, family in quotas:
            if resource not in quota_set:
                continue
            try:
                usage = QuotaUsage.from_resource(quota_set[resource])
            except (KeyError, TypeError, ValueError) as e:
                raise ExtractionError(self.domain, f"unable to extract {resource} quota: {e}") from e
            for kind, value in usage.by_kind(allocated):
                self.metrics.set(family, [kind], value)

