"""PBS API client and the collectors built on it."""

from .base import BaseCollector, CollectorError, TransportError, StatusError, DecodeError
from .client import APIClient
from .host import HostCollector
from .datastore import DatastoreCollector
from .namespace import NamespaceCollector, count_by_backup_id

__all__ = [
    "BaseCollector",
    "CollectorError",
    "TransportError",
    "StatusError",
    "DecodeError",
    "APIClient",
    "HostCollector",
    "DatastoreCollector",
    "NamespaceCollector",
    "count_by_backup_id",
]
