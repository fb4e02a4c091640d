"""
Unit tests for the exporter entry point.
"""
import pytest
from unittest.mock import MagicMock, patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import exporter
from kosmoo.scraper.orchestrator import ScrapeState


@pytest.fixture
def mock_components():
    with patch("exporter.configure_defaults") as configure, \
            patch("exporter.ExporterServer") as server_cls, \
            patch("exporter.ShutdownManager") as shutdown_cls, \
            patch("exporter.ScrapeOrchestrator") as orchestrator_cls:
        orchestrator_cls.return_value.run_forever.return_value = ScrapeState.STOPPED
        yield {
            "configure": configure,
            "server": server_cls,
            "shutdown": shutdown_cls,
            "orchestrator": orchestrator_cls,
        }


class TestParseArgs:

    def test_defaults_from_settings(self):
        args = exporter.parse_args([])
        assert args.refresh_interval == exporter.settings.exporter.refresh_interval
        assert args.addr == exporter.settings.exporter.addr
        assert args.metrics_prefix == exporter.settings.exporter.metrics_prefix

    def test_flags(self):
        args = exporter.parse_args([
            "--refresh-interval", "30", "--addr", ":9999",
            "--cloud-conf", "/etc/cloud.conf", "--kubeconfig", "/etc/kubeconfig",
            "--metrics-prefix", "", "--log-level", "DEBUG",
        ])
        assert args.refresh_interval == 30
        assert args.addr == ":9999"
        assert args.cloud_conf == "/etc/cloud.conf"
        assert args.kubeconfig == "/etc/kubeconfig"
        assert args.metrics_prefix == ""
        assert args.log_level == "DEBUG"

    def test_non_positive_interval_rejected(self):
        with pytest.raises(SystemExit):
            exporter.parse_args(["--refresh-interval", "0"])


class TestRun:

    def test_wires_components(self, mock_components):
        args = exporter.parse_args(["--refresh-interval", "30", "--addr", ":9999"])

        assert exporter.run(args) == 0

        mock_components["server"].assert_called_once()
        assert mock_components["server"].call_args.kwargs["addr"] == ":9999"
        mock_components["server"].return_value.start.assert_called_once()

        shutdown = mock_components["shutdown"].return_value
        shutdown.install_signal_handlers.assert_called_once()
        shutdown.register.assert_called_once()

        kwargs = mock_components["orchestrator"].call_args.kwargs
        assert kwargs["refresh_interval"] == 30
        assert kwargs["shutdown"] is shutdown
        assert [c.domain for c in kwargs["collectors"]] == [
            "cinder", "neutron", "loadbalancer", "nova", "firewall_v1", "firewall_v2",
        ]

    def test_connect_uses_flags(self, mock_components):
        args = exporter.parse_args(["--cloud-conf", "/c.conf", "--kubeconfig", "/k"])
        exporter.run(args)

        connect = mock_components["orchestrator"].call_args.kwargs["connect"]
        with patch("exporter.connect") as mock_connect:
            connect()
        mock_connect.assert_called_once_with(cloud_conf="/c.conf", kubeconfig="/k")

    def test_aborted_exits_non_zero(self, mock_components):
        mock_components["orchestrator"].return_value.run_forever.return_value = ScrapeState.ABORTED
        assert exporter.run(exporter.parse_args([])) == 1
        mock_components["server"].return_value.stop.assert_called_once()

    def test_bind_failure_exits_non_zero(self, mock_components):
        mock_components["server"].return_value.start.side_effect = OSError("address in use")
        assert exporter.run(exporter.parse_args([])) == 1
        mock_components["orchestrator"].assert_not_called()

    def test_invalid_address_exits_non_zero(self, mock_components):
        mock_components["server"].side_effect = ValueError("invalid listen address")
        assert exporter.run(exporter.parse_args(["--addr", "nope"])) == 1


class TestMain:

    def test_exit_code(self, mock_components):
        with pytest.raises(SystemExit) as exc_info:
            exporter.main([])
        assert exc_info.value.code == 0

    def test_unusable_settings(self):
        with patch("exporter.settings", None):
            with pytest.raises(SystemExit) as exc_info:
                exporter.main([])
        assert exc_info.value.code == 1
