"""Scrape orchestration and the Prometheus collector bridge.

One scrape is a short pipeline of fallible stages run left to right:

    datastores: usage listing -> per datastore -> per namespace
    host:       node status

Samples are buffered for the whole scrape. The first ``CollectorError``
stops the pipeline and the scrape publishes nothing but ``pbs_up 0``; a
complete run publishes every sample plus ``pbs_up 1``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from prometheus_client.core import GaugeMetricFamily

from ..collectors.base import CollectorError
from ..collectors.client import APIClient
from ..collectors.datastore import DatastoreCollector
from ..collectors.host import HostCollector
from ..data import metrics
from ..data.metrics import METRICS, MetricSample, gauge
from .config import EndpointConfig

logger = logging.getLogger(__name__)

ClientFactory = Callable[[EndpointConfig], APIClient]
Stage = Tuple[str, Callable[[], List[MetricSample]]]


@dataclass
class ScrapeResult:
    """Outcome of one scrape."""

    samples: List[MetricSample] = field(default_factory=list)
    error: Optional[CollectorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_families(samples: List[MetricSample]) -> List[GaugeMetricFamily]:
    """Group samples into gauge families, in metric-table order.

    Samples with the same name and label set overwrite each other, the last
    one winning. Metrics without samples are left out.
    """
    latest: Dict[Tuple, MetricSample] = {}
    for sample in samples:
        latest[sample.key] = sample

    by_name: Dict[str, List[MetricSample]] = {}
    for sample in latest.values():
        by_name.setdefault(sample.name, []).append(sample)

    families = []
    for spec in METRICS:
        family_samples = by_name.get(spec.name)
        if not family_samples:
            continue
        family = GaugeMetricFamily(spec.name, spec.documentation, labels=spec.labelnames)
        for sample in family_samples:
            family.add_metric([sample.labels[label] for label in spec.labelnames], sample.value)
        families.append(family)
    return families


class Exporter:
    """Runs one independent scrape of the PBS API per ``collect`` call.

    Implements the ``prometheus_client`` custom collector protocol
    (``collect``/``describe``), so it can be registered on a registry.
    Holds no mutable state: the endpoint config is frozen and each scrape
    builds its own client.
    """

    def __init__(self, config: EndpointConfig, client_factory: ClientFactory = APIClient):
        self.config = config
        self.client_factory = client_factory

    def _collect_datastores(self, client: APIClient) -> List[MetricSample]:
        samples: List[MetricSample] = []
        for usage in client.datastore_usage():
            samples.extend(DatastoreCollector(client, usage).collect())
        return samples

    def _stages(self, client: APIClient) -> List[Stage]:
        return [
            ("datastores", lambda: self._collect_datastores(client)),
            ("host", HostCollector(client).collect),
        ]

    def scrape(self) -> ScrapeResult:
        """Run every stage once and return the samples for this scrape."""
        samples: List[MetricSample] = []
        client = self.client_factory(self.config)
        try:
            for stage, run in self._stages(client):
                try:
                    samples.extend(run())
                except CollectorError as exc:
                    logger.error("[scrape] %s failed: %s", stage, exc)
                    return ScrapeResult(samples=[gauge(metrics.UP, 0)], error=exc)
        finally:
            client.close()

        samples.append(gauge(metrics.UP, 1))
        return ScrapeResult(samples=samples)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        yield from build_families(self.scrape().samples)

    def describe(self) -> Iterator[GaugeMetricFamily]:
        # Defined so registration does not trigger a scrape
        for spec in METRICS:
            yield GaugeMetricFamily(spec.name, spec.documentation, labels=spec.labelnames)
