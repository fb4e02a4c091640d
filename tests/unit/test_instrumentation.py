"""
Unit tests for OpenStack request instrumentation.
"""
import pytest

from kosmoo.monitoring.instrumentation import RequestInstrumentation, request_name
from kosmoo.monitoring.registry import MetricsRegistry


@pytest.fixture
def metrics():
    return MetricsRegistry(prefix="kos")


@pytest.fixture
def instrumentation(metrics):
    return RequestInstrumentation(metrics)


def _sample(metrics, name, request):
    return metrics.registry.get_sample_value(f"kos_{name}", {"request": request})


class TestRequestName:

    def test_joins_resource_and_verb(self):
        assert request_name("server", "list") == "server_list"
        assert request_name("loadbalancer_pool", "get") == "loadbalancer_pool_get"


class TestObserve:
    """Test RequestInstrumentation.observe"""

    def test_returns_result(self, instrumentation):
        assert instrumentation.observe("volume_list", lambda: [1, 2]) == [1, 2]

    def test_passes_arguments(self, instrumentation):
        result = instrumentation.observe("pool_get", lambda a, b=0: a + b, 2, b=3)
        assert result == 5

    def test_success_counts_call_not_error(self, metrics, instrumentation):
        instrumentation.observe("volume_list", lambda: None)

        assert _sample(metrics, "openstack_api_requests_total", "volume_list") == 1.0
        assert _sample(metrics, "openstack_api_request_errors_total", "volume_list") is None
        assert _sample(
            metrics, "openstack_api_request_duration_seconds_count", "volume_list"
        ) == 1.0

    def test_failure_reraises_unchanged(self, metrics, instrumentation):
        error = RuntimeError("503 Service Unavailable")

        def failing():
            raise error

        with pytest.raises(RuntimeError) as exc_info:
            instrumentation.observe("server_list", failing)

        assert exc_info.value is error
        assert _sample(metrics, "openstack_api_requests_total", "server_list") == 1.0
        assert _sample(metrics, "openstack_api_request_errors_total", "server_list") == 1.0

    def test_counts_accumulate_per_request(self, metrics, instrumentation):
        for _ in range(3):
            instrumentation.observe("floating_ip_list", lambda: None)
        instrumentation.observe("server_list", lambda: None)

        assert _sample(metrics, "openstack_api_requests_total", "floating_ip_list") == 3.0
        assert _sample(metrics, "openstack_api_requests_total", "server_list") == 1.0


class TestInstrumentedDecorator:

    def test_decorated_function_is_observed(self, metrics, instrumentation):
        @instrumentation.instrumented("loadbalancer_list")
        def list_load_balancers():
            return ["lb"]

        assert list_load_balancers() == ["lb"]
        assert list_load_balancers.__name__ == "list_load_balancers"
        assert _sample(metrics, "openstack_api_requests_total", "loadbalancer_list") == 1.0
