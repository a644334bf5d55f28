#!/usr/bin/env python3
"""
PBS Exporter - Main entry point.

Resolves the configuration, registers the exporter on a Prometheus
registry, and serves the metrics endpoint until interrupted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from http.server import ThreadingHTTPServer
from typing import List, Optional

from prometheus_client import CollectorRegistry

from .. import __version__
from .config import Config, ConfigError, add_arguments
from .exporter import Exporter
from .routes import ExporterRequestHandler

logger = logging.getLogger("pbs_exporter")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level_name: str) -> None:
    """Configure root logging. Unknown level names fall back to INFO."""
    level = logging.getLevelName(level_name.upper())
    unknown = not isinstance(level, int)
    logging.basicConfig(
        level=logging.INFO if unknown else level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,
    )
    if unknown:
        logger.warning("[config] Unknown log level %r, using info", level_name)


def create_server(
    config: Config,
    registry: Optional[CollectorRegistry] = None,
    exporter: Optional[Exporter] = None,
) -> ThreadingHTTPServer:
    """Build the HTTP server with the exporter registered.

    Args:
        config: Resolved configuration
        registry: Registry to register the exporter on (a fresh one by default)
        exporter: Exporter to register (built from ``config`` by default)

    Raises:
        OSError: If the listen address cannot be bound.
    """
    if registry is None:
        registry = CollectorRegistry()
    registry.register(exporter or Exporter(config.endpoint))

    handler = type(
        "BoundExporterRequestHandler",
        (ExporterRequestHandler,),
        {"registry": registry, "metrics_path": config.server.metrics_path},
    )
    return ThreadingHTTPServer((config.server.host, config.server.port), handler)


def run_server(config: Config) -> int:
    """Run the exporter until interrupted. Returns the process exit status."""
    logger.debug("[config] Effective configuration: %s", config.to_dict())
    if config.endpoint.debug_credentials:
        logger.warning("[config] Credential logging is enabled; debug logs contain the API token")

    try:
        server = create_server(config)
    except OSError as e:
        logger.error("[server] Unable to listen on %s: %s", config.server.listen_address, e)
        return 1

    logger.info("[server] Using connection endpoint: %s", config.endpoint.endpoint)
    logger.info("[server] Listening on: %s", config.server.listen_address)
    logger.info("[server] Metrics path: %s", config.server.metrics_path)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("[server] Shutting down...")
    finally:
        server.server_close()
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prometheus exporter for Proxmox Backup Server",
    )
    parser.add_argument("--version", action="version", version=f"pbs-exporter {__version__}")
    add_arguments(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the pbs-exporter command."""
    args = parse_args(argv)
    try:
        config = Config.load(args)
    except ConfigError as e:
        configure_logging("info")
        logger.error("[config] %s", e)
        return 1

    configure_logging(config.log_level)
    return run_server(config)


if __name__ == "__main__":
    sys.exit(main())
