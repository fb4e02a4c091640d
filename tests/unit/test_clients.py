"""
Unit tests for scrape client construction.
"""
import pytest
from unittest.mock import MagicMock, PropertyMock, patch

from kosmoo.common.exceptions import AuthenticationError, ClientConstructionError
from kosmoo.openstack.client import OpenStackClient
from kosmoo.scraper.clients import connect


@pytest.fixture
def mock_core_v1():
    with patch("kosmoo.scraper.clients.build_core_v1") as mock:
        yield mock


@pytest.fixture
def mock_connect_openstack():
    with patch("kosmoo.scraper.clients.connect_openstack") as mock:
        mock.return_value.current_project_id = "proj-1"
        yield mock


class TestConnect:

    def test_builds_clients(self, mock_core_v1, mock_connect_openstack):
        clients = connect(cloud_conf="/etc/cloud.conf", kubeconfig="/etc/kubeconfig")

        mock_core_v1.assert_called_once_with("/etc/kubeconfig")
        mock_connect_openstack.assert_called_once_with("/etc/cloud.conf")
        assert clients.platform is mock_core_v1.return_value
        assert clients.project_id == "proj-1"
        assert isinstance(clients.openstack, OpenStackClient)
        assert clients.openstack.project_id == "proj-1"
        assert clients.openstack.connection is mock_connect_openstack.return_value

    def test_kubernetes_failure_skips_openstack(self, mock_core_v1, mock_connect_openstack):
        mock_core_v1.side_effect = ClientConstructionError("not in a cluster")
        with pytest.raises(ClientConstructionError):
            connect()
        mock_connect_openstack.assert_not_called()

    def test_unscoped_token(self, mock_core_v1, mock_connect_openstack):
        mock_connect_openstack.return_value.current_project_id = None
        with pytest.raises(ClientConstructionError, match="project"):
            connect()

    def test_project_lookup_failure(self, mock_core_v1, mock_connect_openstack):
        connection = MagicMock()
        type(connection).current_project_id = PropertyMock(side_effect=Exception("expired"))
        mock_connect_openstack.return_value = connection
        with pytest.raises(AuthenticationError, match="expired"):
            connect()
