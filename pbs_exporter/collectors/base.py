"""Base collector interface and the collection error taxonomy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..data.metrics import MetricSample


class BaseCollector(ABC):
    """Abstract base class for PBS collectors.

    A collector is built for one unit of work (the host, one datastore, one
    namespace) and turns the API responses for it into metric samples.
    Collectors never catch API errors: the first failure propagates to the
    exporter, which abandons the whole scrape.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in log lines (e.g. 'host', 'datastore')."""
        pass

    @abstractmethod
    def collect(self) -> List[MetricSample]:
        """Fetch data from the API and convert it to samples.

        Raises:
            CollectorError: If any API call fails.
        """
        pass


class CollectorError(Exception):
    """Base exception for failures talking to the PBS API."""

    def __init__(self, path: str, message: str, cause: Optional[Exception] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"[{path}] {message}")


class TransportError(CollectorError):
    """Connection, DNS, TLS or timeout failure."""


class StatusError(CollectorError):
    """The API answered with a status other than 200."""

    def __init__(self, path: str, status_code: int, cause: Optional[Exception] = None):
        self.status_code = status_code
        super().__init__(path, f"Status code {status_code} returned from endpoint", cause)


class DecodeError(CollectorError):
    """The response body is not JSON or does not have the expected shape."""
