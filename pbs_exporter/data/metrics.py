"""Metric definitions and sample values.

Every exported metric is a gauge in the ``pbs`` namespace. The table below
is the single source of metric names, help texts, and label schemas; the
collectors produce ``MetricSample`` values against it and the exporter
turns them into Prometheus metric families.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


NAMESPACE = "pbs"


@dataclass(frozen=True)
class MetricSpec:
    """Name, help text, and label schema of one exported gauge."""

    name: str
    documentation: str
    labelnames: Tuple[str, ...] = ()


@dataclass
class MetricSample:
    """One labeled gauge value produced by a collector."""

    name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Identity of the time series this sample belongs to."""
        return self.name, tuple(sorted(self.labels.items()))


def _spec(suffix: str, documentation: str, *labelnames: str) -> MetricSpec:
    return MetricSpec(f"{NAMESPACE}_{suffix}", documentation, tuple(labelnames))


# =============================================================================
# Metric table
# =============================================================================

UP = _spec("up", "Was the last query of PBS successful.")

# Datastore usage (unlabeled)
AVAILABLE = _spec("available", "The available bytes of the underlying storage.")
SIZE = _spec("size", "The size of the underlying storage in bytes.")
USED = _spec("used", "The used bytes of the underlying storage.")

# Snapshots
SNAPSHOT_COUNT = _spec("snapshot_count", "The total number of backups.", "namespace")
SNAPSHOT_VM_COUNT = _spec(
    "snapshot_vm_count", "The total number of backups per VM.", "namespace", "vm_id"
)

# Host
HOST_CPU_USAGE = _spec("host_cpu_usage", "The CPU usage of the host.")
HOST_MEMORY_FREE = _spec("host_memory_free", "The free memory of the host.")
HOST_MEMORY_TOTAL = _spec("host_memory_total", "The total memory of the host.")
HOST_MEMORY_USED = _spec("host_memory_used", "The used memory of the host.")
HOST_SWAP_FREE = _spec("host_swap_free", "The free swap of the host.")
HOST_SWAP_TOTAL = _spec("host_swap_total", "The total swap of the host.")
HOST_SWAP_USED = _spec("host_swap_used", "The used swap of the host.")
# Historic name; dashboards in the wild query it as-is.
HOST_DISK_AVAILABLE = _spec(
    "host_available_free", "The available disk of the local root disk in bytes."
)
HOST_DISK_TOTAL = _spec("host_disk_total", "The total disk of the local root disk in bytes.")
HOST_DISK_USED = _spec("host_disk_used", "The used disk of the local root disk in bytes.")
HOST_UPTIME = _spec("host_uptime", "The uptime of the host.")
HOST_IO_WAIT = _spec("host_io_wait", "The io wait of the host.")

METRICS: List[MetricSpec] = [
    UP,
    AVAILABLE,
    SIZE,
    USED,
    SNAPSHOT_COUNT,
    SNAPSHOT_VM_COUNT,
    HOST_CPU_USAGE,
    HOST_MEMORY_FREE,
    HOST_MEMORY_TOTAL,
    HOST_MEMORY_USED,
    HOST_SWAP_FREE,
    HOST_SWAP_TOTAL,
    HOST_SWAP_USED,
    HOST_DISK_AVAILABLE,
    HOST_DISK_TOTAL,
    HOST_DISK_USED,
    HOST_UPTIME,
    HOST_IO_WAIT,
]

def gauge(
    spec: MetricSpec,
    value: float,
    labels: Optional[Dict[str, str]] = None,
) -> MetricSample:
    """Create a gauge sample for ``spec``.

    Args:
        spec: Metric definition from the table above
        value: Current gauge value
        labels: Label values; keys must match ``spec.labelnames``

    Raises:
        ValueError: If the label keys do not match the metric's schema.
    """
    labels = dict(labels or {})
    if set(labels) != set(spec.labelnames):
        raise ValueError(
            f"{spec.name}: labels {sorted(labels)} do not match {list(spec.labelnames)}"
        )
    return MetricSample(name=spec.name, value=float(value), labels=labels)
