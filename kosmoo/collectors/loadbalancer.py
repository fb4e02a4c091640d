"""
Octavia load balancer collector.

Load balancers only reference their pools, and pools their members, by id,
so every pool and member is fetched individually. A failed pool or member
get is logged and skipped; it does not fail the domain.
"""
from typing import List

from kosmoo.collectors.base import ResourceCollector, bool_value
from kosmoo.openstack.entities import LoadBalancer, Pool, PoolMember

# load balancer provisioning states, from octavia_lib/common/constants.py
PROVISIONING_STATES = (
    "ALLOCATED", "BOOTING", "READY", "ACTIVE", "PENDING_DELETE",
    "PENDING_UPDATE", "PENDING_CREATE", "DELETED", "ERROR",
)

# pools and members are ACTIVE, PENDING_* or ERROR
POOL_PROVISIONING_STATES = (
    "ACTIVE", "PENDING_DELETE", "PENDING_CREATE", "PENDING_UPDATE", "ERROR",
)


class LoadBalancerCollector(ResourceCollector):
    domain = "loadbalancer"
    request = "loadbalancer_list"
    families = (
        "loadbalancer_admin_state_up",
        "loadbalancer_provisioning_status",
        "loadbalancer_pool_provisioning_status",
        "loadbalancer_pool_member_provisioning_status",
    )
    states = PROVISIONING_STATES
    entity = LoadBalancer

    def fetch(self, client) -> List[dict]:
        return client.list_load_balancers()

    def publish(self, lb: LoadBalancer, client) -> None:
        labels = [lb.id, lb.name, lb.vip_address, lb.provider, lb.vip_port_id]

        self.metrics.set("loadbalancer_admin_state_up", labels, bool_value(lb.admin_state_up))
        self.publish_one_hot("loadbalancer_provisioning_status", labels, lb.provisioning_status)

        pools = [pool for pool in (self._get_pool(client, pool_id) for pool_id in lb.pool_ids) if pool]
        if not pools:
            self.metrics.set("loadbalancer_pool_provisioning_status", labels + ["", "", ""], 0)
            self.metrics.set(
                "loadbalancer_pool_member_provisioning_status", labels + ["", "", "", "", ""], 0
            )
            return

        for pool in pools:
            self.publish_pool(labels, pool, client)

    def publish_pool(self, lb_labels: List[str], pool: Pool, client) -> None:
        labels = lb_labels + [pool.id, pool.name]
        self.publish_one_hot(
            "loadbalancer_pool_provisioning_status",
            labels,
            pool.provisioning_status,
            states=POOL_PROVISIONING_STATES,
        )

        members = [
            member for member in
            (self._get_member(client, pool.id, member_id) for member_id in pool.member_ids)
            if member
        ]
        if not members:
            self.metrics.set(
                "loadbalancer_pool_member_provisioning_status", labels + ["", "", ""], 0
            )
            return

        for member in members:
            self.publish_one_hot(
                "loadbalancer_pool_member_provisioning_status",
                labels + [member.id, member.name],
                member.provisioning_status,
                states=POOL_PROVISIONING_STATES,
            )

    def _get_pool(self, client, pool_id: str):
        data = self.observe_get("loadbalancer_pool_get", client.get_pool, pool_id)
        return self._extract_optional(Pool, data)

    def _get_member(self, client, pool_id: str, member_id: str):
        data = self.observe_get(
            "loadbalancer_pool_member_get", client.get_pool_member, pool_id, member_id
        )
        return self._extract_optional(PoolMember, data)

    def _extract_optional(self, entity, data):
        if data is None:
            return None
        return self.extract_all([data], entity)[0]
