"""
Monitoring module - metric snapshot registry, OpenStack request
instrumentation and HTTP exposition.
"""
from kosmoo.monitoring.registry import MetricsRegistry, add_prefix, DEFAULT_METRICS_PREFIX
from kosmoo.monitoring.instrumentation import RequestInstrumentation
from kosmoo.monitoring.exposition import ExpositionGuard, ExporterServer

__all__ = [
    "MetricsRegistry",
    "add_prefix",
    "DEFAULT_METRICS_PREFIX",
    "RequestInstrumentation",
    "ExpositionGuard",
    "ExporterServer",
]
