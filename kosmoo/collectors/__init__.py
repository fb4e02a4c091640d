"""
Resource collectors, one per OpenStack domain.
"""
from kosmoo.collectors.base import ResourceCollector
from kosmoo.collectors.cinder import CinderCollector
from kosmoo.collectors.neutron import FloatingIPCollector
from kosmoo.collectors.loadbalancer import LoadBalancerCollector
from kosmoo.collectors.nova import ServerCollector
from kosmoo.collectors.firewall import FirewallV1Collector, FirewallV2Collector


def default_collectors(metrics, instrumentation):
    """All collectors in the fixed order a scrape cycle runs them."""
    return [
        CinderCollector(metrics, instrumentation),
        FloatingIPCollector(metrics, instrumentation),
        LoadBalancerCollector(metrics, instrumentation),
        ServerCollector(metrics, instrumentation),
        FirewallV1Collector(metrics, instrumentation),
        FirewallV2Collector(metrics, instrumentation),
    ]


__all__ = [
    "ResourceCollector",
    "CinderCollector",
    "FloatingIPCollector",
    "LoadBalancerCollector",
    "ServerCollector",
    "FirewallV1Collector",
    "FirewallV2Collector",
    "default_collectors",
]
