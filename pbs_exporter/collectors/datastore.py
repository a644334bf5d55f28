"""Datastore collector.

Reports the usage totals of one datastore and walks its namespaces.
"""

from __future__ import annotations

import logging
from typing import List

from .base import BaseCollector
from .client import APIClient
from .namespace import NamespaceCollector
from ..data import metrics
from ..data.metrics import MetricSample, gauge
from ..data.models import DatastoreUsage

logger = logging.getLogger(__name__)


class DatastoreCollector(BaseCollector):
    """Collector for one datastore.

    The usage entry comes from the datastore usage listing the exporter
    fetched once for the scrape; it is not re-fetched here.

    Note: the usage gauges carry no datastore label, so with several
    datastores the last one reported wins in the exposed metric set.
    """

    def __init__(self, client: APIClient, usage: DatastoreUsage):
        self.client = client
        self.usage = usage

    @property
    def name(self) -> str:
        return "datastore"

    def collect(self) -> List[MetricSample]:
        usage = self.usage
        logger.debug(
            "[datastore] store=%s avail=%d total=%d used=%d",
            usage.store, usage.avail, usage.total, usage.used,
        )

        samples = [
            gauge(metrics.AVAILABLE, usage.avail),
            gauge(metrics.SIZE, usage.total),
            gauge(metrics.USED, usage.used),
        ]

        for namespace in self.client.namespaces(usage.store):
            # Root namespace is implicit; it is not reported as a named namespace
            if namespace == "":
                continue
            samples.extend(NamespaceCollector(self.client, usage.store, namespace).collect())

        return samples
