"""
Construction of the API clients a scrape needs.

The clients are rebuilt from scratch on every authentication attempt.
"""
from dataclasses import dataclass
from typing import Any, Optional

from kosmoo.common.exceptions import AuthenticationError, ClientConstructionError
from kosmoo.common.logging_config import get_logger
from kosmoo.k8s.correlator import build_core_v1
from kosmoo.openstack.auth import connect_openstack
from kosmoo.openstack.client import OpenStackClient

logger = get_logger(__name__)


@dataclass
class ScrapeClients:
    """Clients handed to the collectors for one or more cycles."""
    openstack: OpenStackClient
    platform: Any
    project_id: str


def connect(cloud_conf: Optional[str] = None, kubeconfig: Optional[str] = None) -> ScrapeClients:
    """
    Authenticate to OpenStack and build the Kubernetes client.

    Raises:
        ConfigurationError: cloud.conf unusable
        AuthenticationError: OpenStack rejected the credentials
        ClientConstructionError: Kubernetes client could not be built
    """
    platform = build_core_v1(kubeconfig)

    connection = connect_openstack(cloud_conf)
    try:
        project_id = connection.current_project_id
    except Exception as e:
        raise AuthenticationError(f"unable to determine the project of the token: {e}") from e
    if not project_id:
        raise ClientConstructionError("token is not scoped to a project")

    logger.info(f"OpenStack authentication was successful: project-id={project_id}")
    return ScrapeClients(
        openstack=OpenStackClient(connection, project_id),
        platform=platform,
        project_id=project_id,
    )
