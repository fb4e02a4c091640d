#!/usr/bin/env python3
"""
Kosmoo Exporter - OpenStack resource metrics for Prometheus
Scrapes block storage volumes, floating IPs, load balancers, servers,
firewalls and quotas of one OpenStack project on a fixed interval,
correlates volumes with Kubernetes PersistentVolumes and serves the
snapshot on /metrics.
"""
import sys
import argparse
from typing import List, Optional

from config.settings import settings
from kosmoo.collectors import default_collectors
from kosmoo.common.context import set_component
from kosmoo.common.logging_config import configure_defaults, get_logger
from kosmoo.common.shutdown import ShutdownManager
from kosmoo.monitoring import ExporterServer, ExpositionGuard, MetricsRegistry, RequestInstrumentation
from kosmoo.scraper import BackoffState, ScrapeOrchestrator, ScrapeState, connect

logger = get_logger("exporter")

# Set component name for logging
set_component("exporter")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Command line flags; defaults come from the environment."""
    parser = argparse.ArgumentParser(
        description="Kosmoo - export OpenStack resource metrics correlated with Kubernetes"
    )
    parser.add_argument(
        "--refresh-interval",
        type=int,
        default=settings.exporter.refresh_interval,
        help=f"Seconds between scrapes (default: {settings.exporter.refresh_interval})"
    )
    parser.add_argument(
        "--addr",
        default=settings.exporter.addr,
        help=f"Address to listen on (default: {settings.exporter.addr})"
    )
    parser.add_argument(
        "--cloud-conf",
        default=settings.exporter.cloud_conf,
        help="Path to an OpenStack cloud.conf; OS_* variables are used when unset"
    )
    parser.add_argument(
        "--kubeconfig",
        default=settings.kubernetes.kubeconfig,
        help="Path to a kubeconfig; in-cluster configuration is used when unset"
    )
    parser.add_argument(
        "--metrics-prefix",
        default=settings.exporter.metrics_prefix,
        help=f"Prefix for all metric names (default: {settings.exporter.metrics_prefix})"
    )
    parser.add_argument(
        "--log-level",
        default=settings.logging.level,
        help=f"Log level (default: {settings.logging.level})"
    )

    args = parser.parse_args(argv)
    if args.refresh_interval <= 0:
        parser.error("--refresh-interval must be positive")
    return args


def run(args: argparse.Namespace) -> int:
    """
    Start the exposition server and the scrape loop.

    Returns:
        Process exit code
    """
    configure_defaults(args.log_level, settings.logging.format)

    metrics = MetricsRegistry(prefix=args.metrics_prefix)
    instrumentation = RequestInstrumentation(metrics)
    guard = ExpositionGuard()

    try:
        server = ExporterServer(metrics, guard, addr=args.addr)
        server.start()
    except (ValueError, OSError) as e:
        logger.critical(f"Unable to serve metrics on {args.addr}: {e}")
        return 1

    shutdown = ShutdownManager()
    shutdown.install_signal_handlers()
    shutdown.register(server.stop, priority=10, name="exposition-server")

    orchestrator = ScrapeOrchestrator(
        metrics=metrics,
        collectors=default_collectors(metrics, instrumentation),
        connect=lambda: connect(cloud_conf=args.cloud_conf, kubeconfig=args.kubeconfig),
        guard=guard,
        shutdown=shutdown,
        refresh_interval=args.refresh_interval,
        backoff=BackoffState(
            initial_delay=settings.exporter.backoff_initial_seconds,
            max_delay=settings.exporter.backoff_max_seconds,
        ),
    )

    logger.info(
        f"Starting kosmoo: refresh-interval={args.refresh_interval}s, "
        f"addr={args.addr}, prefix={args.metrics_prefix}"
    )
    state = orchestrator.run_forever()

    if state == ScrapeState.ABORTED:
        server.stop()
        return 1

    logger.info("Exporter terminated")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    if settings is None:
        logger.critical("Invalid configuration in the environment, refusing to start")
        sys.exit(1)

    sys.exit(run(parse_args(argv)))


if __name__ == "__main__":
    main()
