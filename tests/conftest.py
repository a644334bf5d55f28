"""Pytest configuration and shared fixtures."""

import pytest
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

from pbs_exporter.collectors.client import APIClient
from pbs_exporter.server.config import EndpointConfig


BASE_URL = "https://pbs.example.test:8007"

USAGE_PATH = "/api2/json/status/datastore-usage"
NODE_PATH = "/api2/json/nodes/localhost/status"


def namespace_path(store: str) -> str:
    return f"/api2/json/admin/datastore/{store}/namespace"


def snapshots_path(store: str, ns: Optional[str] = None) -> str:
    path = f"/api2/json/admin/datastore/{store}/snapshots"
    return f"{path}?ns={ns}" if ns else path


def make_response(status_code: int = 200, payload: Any = None, invalid_json: bool = False):
    """Build a stand-in for ``requests.Response``."""
    resp = MagicMock()
    resp.status_code = status_code
    if invalid_json:
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        resp.json.return_value = payload
    return resp


class FakeSession:
    """Stands in for ``requests.Session``.

    Routes map ``path`` (plus ``?ns=<namespace>`` when the namespace
    parameter is sent) to a payload, a response built with
    ``make_response``, or an exception to raise. Unknown routes answer 404.
    """

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.headers: Dict[str, str] = {}
        self.calls: List[Tuple[str, Optional[Dict[str, str]], Any]] = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        assert url.startswith(BASE_URL)
        self.calls.append((url, params, timeout))
        key = url[len(BASE_URL):]
        if params:
            key += f"?ns={params['ns']}"
        route = self.routes.get(key)
        if route is None:
            return make_response(404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, MagicMock):
            return route
        return make_response(200, route)

    def close(self):
        self.closed = True

    @property
    def requested_paths(self) -> List[str]:
        paths = []
        for url, params, _ in self.calls:
            path = url[len(BASE_URL):]
            paths.append(f"{path}?ns={params['ns']}" if params else path)
        return paths


@pytest.fixture
def endpoint_config():
    return EndpointConfig(
        endpoint=BASE_URL,
        username="root@pam",
        api_token="s3cr3t-token",
        api_token_name="exporter",
        timeout=5.0,
    )


@pytest.fixture
def sample_node_status():
    """Sample node status payload."""
    return {
        "data": {
            "cpu": 0.0523,
            "memory": {"free": 2_000_000_000, "total": 8_000_000_000, "used": 6_000_000_000},
            "swap": {"free": 1_000_000_000, "total": 1_073_741_824, "used": 73_741_824},
            "root": {"avail": 40_000_000_000, "total": 100_000_000_000, "used": 60_000_000_000},
            "uptime": 86400,
            "wait": 0.0125,
            "loadavg": [0.1, 0.2, 0.3],
        }
    }


@pytest.fixture
def pbs_routes(sample_node_status):
    """A backup server with one datastore and two named namespaces."""
    return {
        USAGE_PATH: {
            "data": [
                {"store": "store1", "avail": 600, "total": 1000, "used": 400, "ns": ""},
            ]
        },
        namespace_path("store1"): {
            "data": [{"ns": ""}, {"ns": "prod"}, {"ns": "dev"}],
        },
        snapshots_path("store1", "prod"): {
            "data": [
                {"backup-id": "100", "backup-type": "vm", "backup-time": 1700000000},
                {"backup-id": "100", "backup-type": "vm", "backup-time": 1700086400},
                {"backup-id": "101", "backup-type": "ct", "backup-time": 1700000000},
            ]
        },
        snapshots_path("store1", "dev"): {"data": []},
        NODE_PATH: sample_node_status,
    }


@pytest.fixture
def session_factory(pbs_routes):
    """Returns a client factory; every session it creates is recorded."""
    sessions: List[FakeSession] = []

    def factory(config: EndpointConfig) -> APIClient:
        session = FakeSession(pbs_routes)
        sessions.append(session)
        return APIClient(config, session=session)

    factory.sessions = sessions
    return factory
