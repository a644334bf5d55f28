"""Data layer - API response models and metric definitions."""

from .models import (
    DatastoreUsage,
    Snapshot,
    MemoryUsage,
    DiskUsage,
    HostStatus,
    namespace_from_dict,
)
from .metrics import MetricSpec, MetricSample, METRICS, gauge

__all__ = [
    "DatastoreUsage",
    "Snapshot",
    "MemoryUsage",
    "DiskUsage",
    "HostStatus",
    "namespace_from_dict",
    "MetricSpec",
    "MetricSample",
    "METRICS",
    "gauge",
]
