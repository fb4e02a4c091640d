"""
OpenStack API request instrumentation.

Every call the collectors make against OpenStack goes through
``RequestInstrumentation.observe`` (or the ``instrumented`` decorator),
which records latency, call count and error count labeled by the logical
request name, e.g. ``volume_list``.
"""
import functools
import time
from typing import Any, Callable, TypeVar

from prometheus_client import Counter, Histogram

from kosmoo.monitoring.registry import MetricsRegistry

T = TypeVar("T")


def request_name(resource: str, verb: str) -> str:
    """Build the ``request`` label value, e.g. ("server", "list") -> "server_list"."""
    return f"{resource}_{verb}"


class RequestInstrumentation:
    """
    Latency and count metrics for OpenStack API calls, registered in the
    same ``CollectorRegistry`` as the business gauges but never reset.
    """

    def __init__(self, metrics: MetricsRegistry) -> None:
        self.duration = Histogram(
            metrics.metric_name("openstack_api_request_duration_seconds"),
            "Latency of an OpenStack API call",
            ["request"],
            registry=metrics.registry,
        )
        self.total = Counter(
            metrics.metric_name("openstack_api_requests_total"),
            "Total number of OpenStack API calls",
            ["request"],
            registry=metrics.registry,
        )
        self.errors = Counter(
            metrics.metric_name("openstack_api_request_errors_total"),
            "Total number of errors for an OpenStack API call",
            ["request"],
            registry=metrics.registry,
        )

    def observe(self, request: str, call: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run *call* and record its outcome under *request*.

        The result is returned and any exception re-raised unchanged.
        """
        start = time.monotonic()
        try:
            result = call(*args, **kwargs)
        except Exception:
            self._record(request, start, failed=True)
            raise
        self._record(request, start, failed=False)
        return result

    def instrumented(self, request: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
        """
        Decorator form of ``observe``.

        Usage:
            @instrumentation.instrumented("server_list")
            def list_servers():
                ...
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> T:
                return self.observe(request, func, *args, **kwargs)
            return wrapper
        return decorator

    def _record(self, request: str, start: float, failed: bool) -> None:
        self.duration.labels(request).observe(time.monotonic() - start)
        self.total.labels(request).inc()
        if failed:
            self.errors.labels(request).inc()
