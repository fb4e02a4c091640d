"""
Neutron FWaaS collectors (v1 firewalls and v2 firewall groups).

Both extensions are optional in neutron; when the extension is not enabled
the families are emptied and the domain counts as successful.
"""
from typing import List

from kosmoo.collectors.base import ResourceCollector, bool_value
from kosmoo.openstack.entities import FirewallGroupV2, FirewallV1

# firewall states, from the nl_constants used by neutron_fwaas
FIREWALL_V1_STATES = (
    "ACTIVE", "DOWN", "ERROR", "INACTIVE", "PENDING_CREATE", "PENDING_UPDATE",
    "PENDING_DELETE",
)
FIREWALL_V2_STATES = (
    "ACTIVE", "DOWN", "ERROR", "INACTIVE", "PENDING_CREATE", "PENDING_DELETE",
    "PENDING_UPDATE",
)


class FirewallV1Collector(ResourceCollector):
    domain = "firewall_v1"
    request = "firewall_list"
    families = ("firewall_v1_admin_state_up", "firewall_v1_status")
    states = FIREWALL_V1_STATES
    entity = FirewallV1
    extension = "fwaas"

    def fetch(self, client) -> List[dict]:
        return client.list_firewalls_v1()

    def publish(self, fw: FirewallV1, client) -> None:
        labels = [fw.id, fw.name, fw.description, fw.policy_id, fw.project_id]
        self.metrics.set("firewall_v1_admin_state_up", labels, bool_value(fw.admin_state_up))
        self.publish_one_hot("firewall_v1_status", labels, fw.status)


class FirewallV2Collector(ResourceCollector):
    domain = "firewall_v2"
    request = "firewallv2_group_list"
    families = ("firewall_v2_group_admin_state_up", "firewall_v2_group_status")
    states = FIREWALL_V2_STATES
    entity = FirewallGroupV2
    extension = "fwaas_v2"

    def fetch(self, client) -> List[dict]:
        return client.list_firewall_groups_v2()

    def include(self, group: FirewallGroupV2) -> bool:
        # every project has an implicit default group
        return group.name != "default"

    def publish(self, group: FirewallGroupV2, client) -> None:
        labels = [
            group.id, group.name, group.description,
            group.ingress_policy_id, group.egress_policy_id, group.project_id,
        ]
        self.metrics.set(
            "firewall_v2_group_admin_state_up", labels, bool_value(group.admin_state_up)
        )
        self.publish_one_hot("firewall_v2_group_status", labels, group.status)
