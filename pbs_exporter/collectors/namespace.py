"""Namespace collector.

Counts the snapshots of one datastore namespace, in total and per backup
source (the ``backup-id`` of a snapshot, usually a VM or container ID).
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List

from .base import BaseCollector
from .client import APIClient
from ..data import metrics
from ..data.metrics import MetricSample, gauge
from ..data.models import Snapshot

logger = logging.getLogger(__name__)


def count_by_backup_id(snapshots: Iterable[Snapshot]) -> Dict[str, int]:
    """Number of snapshots per backup-id."""
    return dict(Counter(snapshot.backup_id for snapshot in snapshots))


class NamespaceCollector(BaseCollector):
    """Collector for the snapshots of one datastore+namespace pair.

    The root namespace (``""``) is queried without a namespace filter.
    """

    def __init__(self, client: APIClient, store: str, namespace: str):
        self.client = client
        self.store = store
        self.namespace = namespace

    @property
    def name(self) -> str:
        return "namespace"

    def collect(self) -> List[MetricSample]:
        logger.debug("[namespace] %s/%s", self.store, self.namespace or "<root>")
        snapshots = self.client.snapshots(self.store, self.namespace)
        for snapshot in snapshots:
            logger.debug(
                "[namespace] snapshot %s/%s at %s",
                snapshot.backup_type or "?",
                snapshot.backup_id,
                snapshot.backup_time,
            )

        samples = [
            gauge(metrics.SNAPSHOT_COUNT, len(snapshots), {"namespace": self.namespace}),
        ]
        for backup_id, count in count_by_backup_id(snapshots).items():
            samples.append(
                gauge(
                    metrics.SNAPSHOT_VM_COUNT,
                    count,
                    {"namespace": self.namespace, "vm_id": backup_id},
                )
            )
        return samples
