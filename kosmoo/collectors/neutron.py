"""
Neutron floating IP collector.
"""
from typing import List

from kosmoo.collectors.base import ResourceCollector
from kosmoo.openstack.entities import FloatingIP

# floating ip states reported by neutron (neutron_lib.constants)
FLOATING_IP_STATES = ("ACTIVE", "DOWN", "ERROR")


class FloatingIPCollector(ResourceCollector):
    domain = "neutron"
    request = "floating_ip_list"
    families = (
        "neutron_floating_ip_status",
        "neutron_floatingip_created_at",
        "neutron_floatingip_updated_at",
    )
    states = FLOATING_IP_STATES
    entity = FloatingIP

    def fetch(self, client) -> List[dict]:
        return client.list_floating_ips()

    def publish(self, fip: FloatingIP, client) -> None:
        labels = [fip.id, fip.floating_ip, fip.fixed_ip, fip.port_id]

        self.metrics.set("neutron_floatingip_created_at", labels, fip.created_at)
        self.metrics.set("neutron_floatingip_updated_at", labels, fip.updated_at)
        self.publish_one_hot("neutron_floating_ip_status", labels, fip.status)
