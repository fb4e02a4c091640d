"""
Thin facade over an openstacksdk ``Connection``.

Every list method drains pagination completely and returns plain dicts, so
collectors never see lazy generators or SDK resource objects. Endpoints
openstacksdk has no proxy for (FWaaS v1, quota usage) are requested through
the service proxy directly.
"""
from typing import Any, Dict, List, Optional

from openstack import exceptions as os_exceptions

from kosmoo.common.logging_config import get_logger

logger = get_logger(__name__)


def _to_dict(resource: Any) -> Dict[str, Any]:
    if isinstance(resource, dict) and not hasattr(resource, "to_dict"):
        return resource
    return resource.to_dict()


class OpenStackClient:
    """
    Drained, dict-returning access to the OpenStack services the exporter
    scrapes.

    Args:
        connection: authenticated ``openstack.connection.Connection``
        project_id: project (tenant) the quotas are read for
    """

    def __init__(self, connection, project_id: str):
        self.connection = connection
        self.project_id = project_id

    # -- Capability probe ---------------------------------------------------

    def has_network_extension(self, alias: str) -> bool:
        """True if the neutron extension *alias* (e.g. "fwaas_v2") is enabled."""
        extension = self.connection.network.find_extension(alias, ignore_missing=True)
        return extension is not None

    # -- Block storage ------------------------------------------------------

    def list_volumes(self) -> List[Dict[str, Any]]:
        return [_to_dict(v) for v in self.connection.block_storage.volumes(details=True)]

    def get_volume_quota_usage(self) -> Dict[str, Any]:
        """``quota_set`` of the project with in_use/reserved/limit/allocated per resource."""
        body = self._get_json(
            self.connection.block_storage,
            f"/os-quota-sets/{self.project_id}?usage=True",
        )
        return body["quota_set"]

    # -- Networking ---------------------------------------------------------

    def list_floating_ips(self) -> List[Dict[str, Any]]:
        return [_to_dict(ip) for ip in self.connection.network.ips()]

    def list_firewalls_v1(self) -> List[Dict[str, Any]]:
        return self._paginate(self.connection.network, "/fw/firewalls", "firewalls")

    def list_firewall_groups_v2(self) -> List[Dict[str, Any]]:
        return [_to_dict(g) for g in self.connection.network.firewall_groups()]

    # -- Load balancing -----------------------------------------------------

    def list_load_balancers(self) -> List[Dict[str, Any]]:
        return [_to_dict(lb) for lb in self.connection.load_balancer.load_balancers()]

    def get_pool(self, pool_id: str) -> Dict[str, Any]:
        return _to_dict(self.connection.load_balancer.get_pool(pool_id))

    def get_pool_member(self, pool_id: str, member_id: str) -> Dict[str, Any]:
        return _to_dict(self.connection.load_balancer.get_member(member_id, pool_id))

    # -- Compute ------------------------------------------------------------

    def list_servers(self) -> List[Dict[str, Any]]:
        return [_to_dict(s) for s in self.connection.compute.servers(details=True)]

    def get_compute_quota_detail(self) -> Dict[str, Any]:
        """``quota_set`` of the project with in_use/reserved/limit per resource."""
        body = self._get_json(
            self.connection.compute,
            f"/os-quota-sets/{self.project_id}/detail",
        )
        return body["quota_set"]

    # -- Raw requests -------------------------------------------------------

    @staticmethod
    def _get_json(proxy, url: str) -> Dict[str, Any]:
        response = proxy.get(url)
        os_exceptions.raise_from_response(response)
        return response.json()

    def _paginate(self, proxy, url: str, key: str) -> List[Dict[str, Any]]:
        """
        Follow neutron-style ``<key>_links`` next references until exhausted.
        """
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        while next_url:
            body = self._get_json(proxy, next_url)
            items.extend(body.get(key) or [])
            next_url = None
            for link in body.get(f"{key}_links") or []:
                if link.get("rel") == "next":
                    next_url = link.get("href")
                    break
        return items
