"""
Nova (compute) collector.

Publishes server status, the volumes attached to each server and the
compute quota usage of the project.
"""
from typing import List

from kosmoo.collectors.base import ResourceCollector
from kosmoo.openstack.entities import Server

# nova vm states (nova/objects/fields.py) followed by the statuses the
# compute API reports for them
SERVER_STATES = (
    "ACTIVE", "BUILDING", "PAUSED", "SUSPENDED", "STOPPED", "RESCUED",
    "RESIZED", "SOFT_DELETED", "DELETED", "ERROR", "SHELVED",
    "SHELVED_OFFLOADED",
    "BUILD", "SHUTOFF", "REBOOT", "HARD_REBOOT", "MIGRATING", "PASSWORD",
    "REBUILD", "RESCUE", "RESIZE", "REVERT_RESIZE", "VERIFY_RESIZE", "UNKNOWN",
)

# quota_set resource -> gauge family
COMPUTE_QUOTAS = (
    ("cores", "compute_quota_cores"),
    ("floating_ips", "compute_quota_floating_ips"),
    ("instances", "compute_quota_instances"),
    ("ram", "compute_quota_ram_megabytes"),
    ("server_group_members", "compute_quota_server_group_members"),
)


class ServerCollector(ResourceCollector):
    domain = "nova"
    request = "server_list"
    families = (
        "server_status",
        "server_volume_attachment_count",
        "server_volume_attachment",
    )
    states = SERVER_STATES
    entity = Server

    def fetch(self, client) -> List[dict]:
        return client.list_servers()

    def publish(self, server: Server, client) -> None:
        labels = [server.id, server.name]

        self.metrics.set(
            "server_volume_attachment_count", labels, len(server.attached_volume_ids)
        )
        if not server.attached_volume_ids:
            self.metrics.set("server_volume_attachment", labels + [""], 0)
        for volume_id in server.attached_volume_ids:
            self.metrics.set("server_volume_attachment", labels + [volume_id], 1)

        self.publish_one_hot("server_status", labels, server.status)

    def publish_quotas(self, client) -> None:
        quota_set = self.fetch_quota("compute_quotasets_detail_get", client.get_compute_quota_detail)
        # newer microversions drop the network quotas from the response
        self.publish_quota_set(quota_set, COMPUTE_QUOTAS)
