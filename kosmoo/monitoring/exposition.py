"""
Exposition of the metric snapshot over HTTP.

Runs in a separate thread so scraping by Prometheus never blocks the scrape
loop beyond the shared lock.

Endpoints:
    GET /metrics  - Prometheus text format of the current snapshot
    GET /healthz  - Liveness: always 200 "OK" once the server is up
"""
import threading
from contextlib import contextmanager
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterator, Optional, Tuple

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kosmoo.common.logging_config import get_logger
from kosmoo.monitoring.registry import MetricsRegistry

logger = get_logger(__name__)

HEALTH_BODY = b"OK"


class ExpositionGuard:
    """
    Single lock shared by the scrape loop and metric readers.

    The scrape loop holds it for a whole cycle (reset and repopulate of all
    domains); each reader holds it while rendering, so a reader never sees a
    domain half-way through its reset.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @contextmanager
    def cycle(self) -> Iterator[None]:
        with self._lock:
            yield

    def render(self, metrics: MetricsRegistry) -> bytes:
        with self._lock:
            return generate_latest(metrics.registry)

    @property
    def locked(self) -> bool:
        return self._lock.locked()


def parse_listen_address(addr: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` listen address; an empty host binds all interfaces.

    >>> parse_listen_address(":9183")
    ('0.0.0.0', 9183)
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


class ExporterHTTPHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the metrics and health endpoints."""

    # Class-level references (set by ExporterServer)
    metrics: Optional[MetricsRegistry] = None
    guard: Optional[ExpositionGuard] = None

    def do_GET(self):
        path = self.path.split("?", 1)[0]
        if path == "/metrics":
            body = self.guard.render(self.metrics)
            self._send(200, CONTENT_TYPE_LATEST, body)
        elif path == "/healthz":
            self._send(200, "text/plain; charset=utf-8", HEALTH_BODY)
        else:
            self._send(404, "text/plain; charset=utf-8", b"Not Found")

    def _send(self, status_code: int, content_type: str, body: bytes):
        self.send_response(status_code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        """Suppress default access logging to avoid noise."""
        pass


class ExporterServer:
    """
    Threaded HTTP server for /metrics and /healthz.
    Each request is served on its own thread; the server itself runs in a
    daemon thread so it doesn't block shutdown.

    Usage:
        server = ExporterServer(metrics, guard, addr=":9183")
        server.start()
        # ... scrape loop ...
        server.stop()
    """

    def __init__(self, metrics: MetricsRegistry, guard: ExpositionGuard, addr: str = ":9183"):
        self.metrics = metrics
        self.guard = guard
        self.host, self.port = parse_listen_address(addr)
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """
        Start serving in a daemon thread.

        Raises:
            OSError: if the address cannot be bound
        """
        handler = type(
            'KosmooHandler',
            (ExporterHTTPHandler,),
            {'metrics': self.metrics, 'guard': self.guard}
        )

        self._server = ThreadingHTTPServer((self.host, self.port), handler)
        self._server.daemon_threads = True
        # Port 0 binds an ephemeral port; report the real one
        self.port = self._server.server_address[1]
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="exposition-server",
            daemon=True
        )
        self._thread.start()
        logger.info(
            f"Exposition server started on {self.host}:{self.port} "
            f"(/metrics, /healthz)"
        )

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            logger.info("Exposition server stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
