"""
Metric snapshot registry for the exporter.

Owns every gauge family the collectors publish to, registered once in a
private ``CollectorRegistry`` under an optional name prefix. Collectors
receive the registry and address families by their unprefixed name:

    registry = MetricsRegistry(prefix="kos")
    registry.reset("cinder_volume_size")
    registry.set("cinder_volume_size", labels, 20)

The registry does no locking; the exposition guard serialises writers and
readers.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from prometheus_client import CollectorRegistry, Gauge

DEFAULT_METRICS_PREFIX = "kos"

# ---------------------------------------------------------------------------
# Label schemas
# ---------------------------------------------------------------------------

CINDER_VOLUME_LABELS = (
    "id", "description", "name", "status", "cinder_availability_zone",
    "volume_type", "pvc_name", "pvc_namespace", "pv_name",
    "pv_storage_class", "pv_reclaim_policy", "pv_fs_type",
)
CINDER_ATTACHMENT_LABELS = CINDER_VOLUME_LABELS + ("server_id", "device", "hostname")

FLOATING_IP_LABELS = ("id", "floating_ip", "fixed_ip", "port_id")

LOADBALANCER_LABELS = ("id", "name", "vip_address", "provider", "port_id")
POOL_LABELS = ("pool_id", "pool_name")
POOL_MEMBER_LABELS = ("member_id", "member_name")

SERVER_LABELS = ("id", "name")

FIREWALL_V1_LABELS = ("id", "name", "description", "policyID", "projectID")
FIREWALL_V2_LABELS = (
    "id", "name", "description", "ingressPolicyID", "egressPolicyID", "projectID",
)

QUOTA_LABELS = ("quota_type",)
CYCLE_LABELS = ("refresh_interval",)

# ---------------------------------------------------------------------------
# Gauge family catalogue: (name, help, labels)
# ---------------------------------------------------------------------------

GAUGE_FAMILIES: Tuple[Tuple[str, str, Sequence[str]], ...] = (
    # -- cinder --
    ("cinder_quota_volume_disks", "Cinder volume metric (number of volumes)", QUOTA_LABELS),
    ("cinder_quota_volume_disk_gigabytes", "Cinder volume metric (GB)", QUOTA_LABELS),
    ("cinder_volume_created_at", "Cinder volume created at", CINDER_VOLUME_LABELS),
    ("cinder_volume_updated_at", "Cinder volume updated at", CINDER_VOLUME_LABELS),
    ("cinder_volume_status", "Cinder volume status", CINDER_VOLUME_LABELS),
    ("cinder_volume_size", "Cinder volume size", CINDER_VOLUME_LABELS),
    ("cinder_volume_attached_at", "Cinder volume attached at", CINDER_ATTACHMENT_LABELS),
    # -- neutron --
    ("neutron_floating_ip_status", "Neutron floating ip status",
     FLOATING_IP_LABELS + ("status",)),
    ("neutron_floatingip_created_at", "Neutron floating ip created at", FLOATING_IP_LABELS),
    ("neutron_floatingip_updated_at", "Neutron floating ip updated at", FLOATING_IP_LABELS),
    # -- load balancer --
    ("loadbalancer_admin_state_up", "Load balancer admin state up", LOADBALANCER_LABELS),
    ("loadbalancer_provisioning_status", "Load balancer status",
     LOADBALANCER_LABELS + ("provisioning_status",)),
    ("loadbalancer_pool_provisioning_status", "Load balancer pool provisioning status",
     LOADBALANCER_LABELS + POOL_LABELS + ("pool_provisioning_status",)),
    ("loadbalancer_pool_member_provisioning_status",
     "Load balancer pool member provisioning status",
     LOADBALANCER_LABELS + POOL_LABELS + POOL_MEMBER_LABELS
     + ("pool_member_provisioning_status",)),
    # -- nova --
    ("compute_quota_cores", "Number of instance cores allowed", QUOTA_LABELS),
    ("compute_quota_floating_ips", "Number of floating IPs allowed", QUOTA_LABELS),
    ("compute_quota_instances", "Number of instances (servers) allowed", QUOTA_LABELS),
    ("compute_quota_ram_megabytes", "RAM (in MB) allowed", QUOTA_LABELS),
    ("compute_quota_server_group_members", "Number of members allowed per server group",
     QUOTA_LABELS),
    ("server_status", "Server status", SERVER_LABELS + ("status",)),
    ("server_volume_attachment_count", "Server volume attachment count", SERVER_LABELS),
    ("server_volume_attachment", "Server volume attachment", SERVER_LABELS + ("volume_id",)),
    # -- firewall --
    ("firewall_v1_admin_state_up", "Firewall v1 admin state up", FIREWALL_V1_LABELS),
    ("firewall_v1_status", "Firewall v1 status", FIREWALL_V1_LABELS + ("status",)),
    ("firewall_v2_group_admin_state_up", "Firewall v2 group admin state up",
     FIREWALL_V2_LABELS),
    ("firewall_v2_group_status", "Firewall v2 group status",
     FIREWALL_V2_LABELS + ("status",)),
    # -- scrape cycle --
    ("scrape_duration", "Time in seconds needed for the last scrape", CYCLE_LABELS),
    ("scraped_at", "Timestamp when last scrape started", CYCLE_LABELS),
    ("scrape_status_succeeded", "Scrape status succeeded", CYCLE_LABELS),
)


def add_prefix(name: str, prefix: str) -> str:
    """
    Prepend *prefix* to a metric name.

    An empty prefix leaves the name untouched; otherwise the result is
    ``<prefix>_<name>`` in lower case.
    """
    if not prefix:
        return name
    return f"{prefix}_{name}".lower()


class MetricsRegistry:
    """
    Explicit owner of all gauge families.

    Args:
        prefix: metric name prefix, empty for none
        registry: ``CollectorRegistry`` to register into (a fresh one if
            omitted, so several exporters can coexist in one process)
    """

    def __init__(
        self,
        prefix: str = DEFAULT_METRICS_PREFIX,
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self.prefix = prefix
        self.registry = registry if registry is not None else CollectorRegistry()
        self._families: Dict[str, Gauge] = {}
        self._labels: Dict[str, Tuple[str, ...]] = {}

        for name, documentation, labels in GAUGE_FAMILIES:
            self._families[name] = Gauge(
                self.metric_name(name),
                documentation,
                list(labels),
                registry=self.registry,
            )
            self._labels[name] = tuple(labels)

    def metric_name(self, name: str) -> str:
        """Exposed (prefixed) name of a family."""
        return add_prefix(name, self.prefix)

    def family(self, name: str) -> Gauge:
        try:
            return self._families[name]
        except KeyError:
            raise KeyError(f"unknown gauge family: {name}") from None

    def label_names(self, name: str) -> Tuple[str, ...]:
        self.family(name)
        return self._labels[name]

    # -- Mutation -----------------------------------------------------------

    def reset(self, name: str) -> None:
        """Drop every label combination of a family."""
        self.family(name).clear()

    def set(self, name: str, label_values: Sequence[str], value: float) -> None:
        """Create or overwrite one series of a family."""
        self.family(name).labels(*[str(v) for v in label_values]).set(value)

    # -- Inspection ---------------------------------------------------------

    def value(self, name: str, labels: Dict[str, str]) -> Optional[float]:
        """
        Current value of one series, or None if it does not exist.

        Args:
            name: unprefixed family name
            labels: complete label mapping of the series
        """
        return self.registry.get_sample_value(self.metric_name(name), labels)

    def series(self, name: str) -> List[Tuple[Dict[str, str], float]]:
        """All (labels, value) pairs currently exposed for a family."""
        metric_name = self.metric_name(name)
        result = []
        for metric in self.family(name).collect():
            for sample in metric.samples:
                if sample.name == metric_name:
                    result.append((dict(sample.labels), sample.value))
        return result
