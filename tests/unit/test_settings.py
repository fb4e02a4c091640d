"""
Unit tests for environment-driven settings.
"""
import pytest
from pydantic import ValidationError

from config.settings import ExporterSettings, KubernetesSettings, LoggingSettings, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "KOSMOO_REFRESH_INTERVAL", "KOSMOO_ADDR", "KOSMOO_METRICS_PREFIX",
        "KOSMOO_CLOUD_CONF", "KOSMOO_BACKOFF_INITIAL_SECONDS",
        "KOSMOO_BACKOFF_MAX_SECONDS", "KUBECONFIG", "LOG_LEVEL", "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestExporterSettings:

    def test_defaults(self):
        cfg = ExporterSettings()
        assert cfg.refresh_interval == 120
        assert cfg.addr == ":9183"
        assert cfg.metrics_prefix == "kos"
        assert cfg.cloud_conf is None
        assert cfg.backoff_initial_seconds == 1.0
        assert cfg.backoff_max_seconds == 3600.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("KOSMOO_REFRESH_INTERVAL", "60")
        monkeypatch.setenv("KOSMOO_ADDR", "127.0.0.1:9999")
        monkeypatch.setenv("KOSMOO_CLOUD_CONF", "/etc/kubernetes/cloud.conf")
        monkeypatch.setenv("KOSMOO_METRICS_PREFIX", "")

        cfg = ExporterSettings()
        assert cfg.refresh_interval == 60
        assert cfg.addr == "127.0.0.1:9999"
        assert cfg.cloud_conf == "/etc/kubernetes/cloud.conf"
        assert cfg.metrics_prefix == ""

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_invalid_refresh_interval(self, monkeypatch, value):
        monkeypatch.setenv("KOSMOO_REFRESH_INTERVAL", value)
        with pytest.raises(ValidationError):
            ExporterSettings()


class TestKubernetesSettings:

    def test_kubeconfig_from_standard_variable(self, monkeypatch):
        monkeypatch.setenv("KUBECONFIG", "/home/ops/.kube/config")
        assert KubernetesSettings().kubeconfig == "/home/ops/.kube/config"

    def test_in_cluster_by_default(self):
        assert KubernetesSettings().kubeconfig is None


class TestSettings:

    def test_aggregates_sections(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        cfg = Settings()
        assert cfg.logging.level == "DEBUG"
        assert cfg.logging.format == "json"
        assert cfg.exporter.refresh_interval == 120

    def test_logging_defaults(self):
        assert LoggingSettings().level == "INFO"
