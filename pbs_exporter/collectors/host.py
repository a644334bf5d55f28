"""Host collector.

Reports node-level resource usage of the backup server: CPU, memory, swap,
root disk, uptime and IO wait.
"""

from __future__ import annotations

from typing import List

from .base import BaseCollector
from .client import APIClient
from ..data import metrics
from ..data.metrics import MetricSample, gauge
from ..data.models import HostStatus


class HostCollector(BaseCollector):
    """Collector for the node status endpoint. All samples are unlabeled."""

    def __init__(self, client: APIClient):
        self.client = client

    @property
    def name(self) -> str:
        return "host"

    def collect(self) -> List[MetricSample]:
        return self.to_samples(self.client.node_status())

    @staticmethod
    def to_samples(status: HostStatus) -> List[MetricSample]:
        return [
            gauge(metrics.HOST_CPU_USAGE, status.cpu),
            gauge(metrics.HOST_MEMORY_FREE, status.memory.free),
            gauge(metrics.HOST_MEMORY_TOTAL, status.memory.total),
            gauge(metrics.HOST_MEMORY_USED, status.memory.used),
            gauge(metrics.HOST_SWAP_FREE, status.swap.free),
            gauge(metrics.HOST_SWAP_TOTAL, status.swap.total),
            gauge(metrics.HOST_SWAP_USED, status.swap.used),
            gauge(metrics.HOST_DISK_AVAILABLE, status.root.avail),
            gauge(metrics.HOST_DISK_TOTAL, status.root.total),
            gauge(metrics.HOST_DISK_USED, status.root.used),
            gauge(metrics.HOST_UPTIME, status.uptime),
            gauge(metrics.HOST_IO_WAIT, status.wait),
        ]
