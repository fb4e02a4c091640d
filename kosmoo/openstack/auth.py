"""
OpenStack credential loading and connection bootstrap.

Credentials come either from the ``[Global]`` section of a Kubernetes
cloud-provider style ``cloud.conf`` file or, when no file is configured,
from the usual ``OS_*`` environment variables read by openstacksdk.
"""
import configparser
import os
from typing import Any, Dict, Optional

import openstack

from kosmoo.common.exceptions import AuthenticationError, ConfigurationError
from kosmoo.common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_REGION = "nova"

# cloud.conf [Global] key -> keystoneauth password plugin argument
_AUTH_KEYS = {
    "auth-url": "auth_url",
    "username": "username",
    "user-id": "user_id",
    "password": "password",
    "tenant-id": "project_id",
    "tenant-name": "project_name",
    "domain-id": "user_domain_id",
    "domain-name": "user_domain_name",
    "trust-id": "trust_id",
}


def load_cloud_conf(path: str) -> Dict[str, Any]:
    """
    Read connection arguments from a cloud.conf file.

    Args:
        path: path to an INI file with a ``[Global]`` section

    Returns:
        Keyword arguments for ``openstack.connect``

    Raises:
        ConfigurationError: file unreadable or ``[Global]`` missing
    """
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, encoding="utf-8") as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        raise ConfigurationError(f"unable to read cloud.conf content: {e}") from e

    if not parser.has_section("Global"):
        raise ConfigurationError(f"unable to get Global section from {path}")
    global_section = parser["Global"]

    auth = {
        arg: global_section[key].strip()
        for key, arg in _AUTH_KEYS.items()
        if global_section.get(key, "").strip()
    }
    # the domain of the user also scopes the project
    if "user_domain_id" in auth:
        auth["project_domain_id"] = auth["user_domain_id"]
    if "user_domain_name" in auth:
        auth["project_domain_name"] = auth["user_domain_name"]

    kwargs: Dict[str, Any] = {
        "auth_type": "password",
        "auth": auth,
        "region_name": global_section.get("region", "").strip() or DEFAULT_REGION,
    }
    ca_file = global_section.get("ca-file", "").strip()
    if ca_file:
        kwargs["cacert"] = ca_file
    return kwargs


def connect_openstack(cloud_conf: Optional[str] = None):
    """
    Build an authenticated openstacksdk connection.

    Args:
        cloud_conf: optional cloud.conf path; environment variables otherwise

    Returns:
        ``openstack.connection.Connection`` with a valid token

    Raises:
        ConfigurationError: cloud.conf cannot be used
        AuthenticationError: the identity service rejected the credentials
    """
    if cloud_conf:
        kwargs = load_cloud_conf(cloud_conf)
        logger.info(f"OpenStack credentials read from cloud.conf file at {cloud_conf}")
    else:
        kwargs = {"region_name": os.environ.get("OS_REGION_NAME") or DEFAULT_REGION}
        logger.info("OpenStack credentials read from environment")

    try:
        connection = openstack.connect(**kwargs)
        connection.authorize()
    except Exception as e:
        raise AuthenticationError(f"unable to authenticate to OpenStack: {e}") from e

    return connection
