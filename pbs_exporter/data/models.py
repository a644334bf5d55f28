"""Data models for Proxmox Backup Server API responses.

Every PBS API response wraps its payload in a ``{"data": ...}`` envelope.
The models in this module describe the payloads the exporter consumes,
following these principles:

1. EXPLICIT UNITS
   - Storage and memory: bytes (integers)
   - Time: seconds (integers)
   - CPU and IO wait: fractions in [0, 1] (floats)

2. LENIENT ON ABSENCE, STRICT ON TYPE
   - The API omits fields it cannot fill (e.g. usage of an unavailable
     datastore), so a missing field decodes to zero or an empty string.
   - A field with the wrong JSON type raises ``ValueError``; the API client
     turns that into a ``DecodeError``.

All models are request-scoped: they are built fresh for each scrape and
discarded once converted into metric samples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


# =============================================================================
# Field helpers
# =============================================================================


def _require_mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected an object, got {type(data).__name__}")
    return data


def _number_field(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass but never a valid quantity
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r}: expected a number, got {type(value).__name__}")
    # 1e400, Infinity and NaN all parse as JSON numbers
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"field {key!r}: expected a finite number, got {value!r}")
    return value


def _int_field(data: Dict[str, Any], key: str) -> int:
    value = _number_field(data, key)
    return 0 if value is None else int(value)


def _float_field(data: Dict[str, Any], key: str) -> float:
    value = _number_field(data, key)
    return 0.0 if value is None else float(value)


def _str_field(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r}: expected a string, got {type(value).__name__}")
    return value


# =============================================================================
# Datastore Models
# =============================================================================


@dataclass
class DatastoreUsage:
    """One entry of the datastore usage listing.

    Values are bytes of the storage backing the datastore.
    """

    store: str
    total: int = 0
    used: int = 0
    avail: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "DatastoreUsage":
        data = _require_mapping(data, "datastore usage")
        return cls(
            store=_str_field(data, "store"),
            total=_int_field(data, "total"),
            used=_int_field(data, "used"),
            avail=_int_field(data, "avail"),
        )


def namespace_from_dict(data: Any) -> str:
    """Extract the namespace name from a namespace listing entry.

    The root namespace is reported as an entry without ``ns`` (or with an
    empty one) and decodes to ``""``.
    """
    return _str_field(_require_mapping(data, "namespace"), "ns")


@dataclass
class Snapshot:
    """A single backup snapshot.

    Only ``backup_id`` is exported (as a per-source count). The type and
    time only show up in debug logs.
    """

    backup_id: str
    backup_type: str = ""
    backup_time: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        data = _require_mapping(data, "snapshot")
        backup_time = _int_field(data, "backup-time") if "backup-time" in data else None
        return cls(
            backup_id=_str_field(data, "backup-id"),
            backup_type=_str_field(data, "backup-type"),
            backup_time=backup_time,
        )


# =============================================================================
# Host Models
# =============================================================================


@dataclass
class MemoryUsage:
    """Free/total/used triple in bytes (used for both RAM and swap)."""

    free: int = 0
    total: int = 0
    used: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "MemoryUsage":
        if data is None:
            return cls()
        data = _require_mapping(data, "memory")
        return cls(
            free=_int_field(data, "free"),
            total=_int_field(data, "total"),
            used=_int_field(data, "used"),
        )


@dataclass
class DiskUsage:
    """Avail/total/used triple in bytes for the host root disk."""

    avail: int = 0
    total: int = 0
    used: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "DiskUsage":
        if data is None:
            return cls()
        data = _require_mapping(data, "root disk")
        return cls(
            avail=_int_field(data, "avail"),
            total=_int_field(data, "total"),
            used=_int_field(data, "used"),
        )


@dataclass
class HostStatus:
    """Node-level resource usage of the backup server."""

    cpu: float = 0.0  # Fraction of CPU in use
    memory: MemoryUsage = field(default_factory=MemoryUsage)
    swap: MemoryUsage = field(default_factory=MemoryUsage)
    root: DiskUsage = field(default_factory=DiskUsage)
    uptime: int = 0  # Seconds
    wait: float = 0.0  # IO wait fraction

    @classmethod
    def from_dict(cls, data: Any) -> "HostStatus":
        data = _require_mapping(data, "node status")
        return cls(
            cpu=_float_field(data, "cpu"),
            memory=MemoryUsage.from_dict(data.get("memory")),
            swap=MemoryUsage.from_dict(data.get("swap")),
            root=DiskUsage.from_dict(data.get("root")),
            uptime=_int_field(data, "uptime"),
            wait=_float_field(data, "wait"),
        )
