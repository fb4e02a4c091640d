"""
OpenStack access - connection bootstrap, drained API facade and entity
snapshots.
"""
from kosmoo.openstack.client import OpenStackClient
from kosmoo.openstack.auth import connect_openstack, load_cloud_conf

__all__ = ["OpenStackClient", "connect_openstack", "load_cloud_conf"]
