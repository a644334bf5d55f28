"""HTTP request handler for the exporter.

Serves:
- ``GET <metrics_path>``: Prometheus text exposition (one scrape per request)
- ``GET /``: a static landing page linking to the metrics path
"""

from __future__ import annotations

import html
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import urlparse

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>PBS Exporter</title></head>
<body>
<h1>Proxmox Backup Server Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


class ExporterRequestHandler(BaseHTTPRequestHandler):
    """Request handler for the metrics and landing page routes."""

    # These will be set by the server
    registry: Optional[CollectorRegistry] = None
    metrics_path: str = "/metrics"

    def do_GET(self):
        self._dispatch(send_body=True)

    def do_HEAD(self):
        self._dispatch(send_body=False)

    def _dispatch(self, *, send_body: bool) -> None:
        path = urlparse(self.path).path
        if path == self.metrics_path:
            return self._handle_metrics(send_body)
        if path == "/":
            return self._handle_landing(send_body)
        self.send_error(HTTPStatus.NOT_FOUND, "Unknown endpoint")

    def _handle_metrics(self, send_body: bool) -> None:
        if self.registry is None:
            self.send_error(HTTPStatus.SERVICE_UNAVAILABLE, "Server not initialized.")
            return
        body = generate_latest(self.registry)
        self._send_body(body, CONTENT_TYPE_LATEST, send_body)

    def _handle_landing(self, send_body: bool) -> None:
        page = LANDING_PAGE.format(metrics_path=html.escape(self.metrics_path, quote=True))
        self._send_body(page.encode("utf-8"), "text/html; charset=utf-8", send_body)

    def _send_body(self, body: bytes, content_type: str, send_body: bool) -> None:
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store, max-age=0")
        self.end_headers()
        if send_body:
            self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("[server] %s - %s", self.address_string(), format % args)
