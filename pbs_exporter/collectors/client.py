"""HTTP client for the Proxmox Backup Server API.

Issues authenticated GET requests against the configured endpoint and
decodes the ``{"data": ...}`` envelope into the typed models. Every call is
a single attempt: there are no retries, and the first failure is final.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import certifi
import requests
import urllib3
from requests.adapters import HTTPAdapter

from .base import DecodeError, StatusError, TransportError
from ..data.models import DatastoreUsage, HostStatus, Snapshot, namespace_from_dict
from ..server.config import REDACTED, EndpointConfig

logger = logging.getLogger(__name__)

DATASTORE_USAGE_API = "/api2/json/status/datastore-usage"
DATASTORE_API = "/api2/json/admin/datastore"
NODE_API = "/api2/json/nodes"

# The API requires a node name here but accepts any, so a fixed alias is used.
NODE_NAME = "localhost"


class APIClient:
    """Single-attempt JSON client for the PBS API.

    One client (and one ``requests.Session``) is created per scrape and
    closed at its end, so concurrent scrapes never share a connection pool.
    """

    def __init__(self, config: EndpointConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.endpoint.rstrip("/")
        self._session = session if session is not None else self._build_session()
        self._session.headers["Authorization"] = config.authorization_header

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        # No retries: a failed call fails the scrape
        adapter = HTTPAdapter(max_retries=0, pool_connections=1, pool_maxsize=2)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        if self.config.insecure:
            session.verify = False
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        else:
            session.verify = certifi.where()
        session.headers.update({"User-Agent": "pbs-exporter", "Accept": "application/json"})
        return session

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self) -> None:
        """Close the session and release pooled connections."""
        self._session.close()

    def __enter__(self) -> "APIClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _loggable_headers(self) -> Dict[str, str]:
        headers = dict(self._session.headers)
        if not self.config.debug_credentials and "Authorization" in headers:
            headers["Authorization"] = REDACTED
        return headers

    def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Raises:
            TransportError: On connection, DNS, TLS or timeout failure.
            StatusError: If the response status is not 200.
            DecodeError: If the body is not valid JSON.
        """
        url = self.base_url + path
        logger.debug("[api] Request URL: %s params=%s", url, params or {})
        logger.debug("[api] Request headers: %s", self._loggable_headers())

        try:
            resp = self._session.get(url, params=params, timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(path, f"Request failed: {e}", e)

        logger.debug("[api] Status code %d returned from endpoint: %s", resp.status_code, self.base_url)
        if resp.status_code != 200:
            raise StatusError(path, resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(path, f"Invalid JSON in response: {e}", e)

    def _get_data(self, path: str, expected: type, params: Optional[Dict[str, str]] = None) -> Any:
        """GET ``path`` and unwrap the ``data`` envelope, checking its type."""
        payload = self.get(path, params)
        if not isinstance(payload, dict) or "data" not in payload:
            raise DecodeError(path, "Response has no 'data' field")
        data = payload["data"]
        if not isinstance(data, expected):
            raise DecodeError(
                path, f"Expected 'data' to be {expected.__name__}, got {type(data).__name__}"
            )
        return data

    def datastore_usage(self) -> List[DatastoreUsage]:
        """Usage totals of every datastore."""
        path = DATASTORE_USAGE_API
        data = self._get_data(path, list)
        try:
            return [DatastoreUsage.from_dict(entry) for entry in data]
        except ValueError as e:
            raise DecodeError(path, str(e), e)

    def namespaces(self, store: str) -> List[str]:
        """Namespace names of ``store``, including the root namespace ``""``."""
        path = f"{DATASTORE_API}/{quote(store, safe='')}/namespace"
        data = self._get_data(path, list)
        try:
            return [namespace_from_dict(entry) for entry in data]
        except ValueError as e:
            raise DecodeError(path, str(e), e)

    def snapshots(self, store: str, namespace: str = "") -> List[Snapshot]:
        """Snapshots of ``store`` in ``namespace``.

        The root namespace is requested without an ``ns`` filter.
        """
        path = f"{DATASTORE_API}/{quote(store, safe='')}/snapshots"
        params = {"ns": namespace} if namespace else None
        data = self._get_data(path, list, params)
        try:
            return [Snapshot.from_dict(entry) for entry in data]
        except ValueError as e:
            raise DecodeError(path, str(e), e)

    def node_status(self, node: str = NODE_NAME) -> HostStatus:
        """Resource usage of the backup server host."""
        path = f"{NODE_API}/{quote(node, safe='')}/status"
        data = self._get_data(path, dict)
        try:
            return HostStatus.from_dict(data)
        except ValueError as e:
            raise DecodeError(path, str(e), e)
