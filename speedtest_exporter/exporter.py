"""Prometheus exposition of scrape results."""

from __future__ import annotations

from typing import Dict, Iterator, List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from .measurements.labels import DOWNLOAD, LABEL_NAMES, LATENCY, SCRAPE_DURATION, UP, UPLOAD
from .measurements.models import RunOutcome
from .measurements.orchestrator import ScrapeOrchestrator
from .measurements.scope import ScrapeScope

# Name, help text and whether the metric carries the per-server label set.
DESCRIPTORS = (
    (UP, "Whether the last speedtest was successful", False),
    (SCRAPE_DURATION, "Duration of the last speedtest scrape in seconds", False),
    (LATENCY, "Measured latency in seconds from the last speedtest", True),
    (UPLOAD, "Upload speed in bytes per second from the last speedtest", True),
    (DOWNLOAD, "Download speed in bytes per second from the last speedtest", True),
)


def _new_families() -> Dict[str, GaugeMetricFamily]:
    return {
        name: GaugeMetricFamily(name, documentation, labels=list(LABEL_NAMES) if labelled else None)
        for name, documentation, labelled in DESCRIPTORS
    }


class MetricsExporter:
    """Runs the orchestrator once per collection and renders gauge families."""

    def __init__(self, orchestrator: ScrapeOrchestrator):
        self.orchestrator = orchestrator

    def describe(self) -> List[GaugeMetricFamily]:
        return list(_new_families().values())

    def collect(self, scope: ScrapeScope) -> List[GaugeMetricFamily]:
        return self.render(self.orchestrator.run(scope))

    @staticmethod
    def render(outcome: RunOutcome) -> List[GaugeMetricFamily]:
        families = _new_families()
        for observation in outcome.observations:
            family = families[observation.metric]
            if observation.labels:
                family.add_metric(list(observation.labels), observation.value)
            else:
                family.add_metric([], observation.value)
        # up and scrape duration are always emitted, per-server families only when measured.
        return [
            family
            for name, family in families.items()
            if family.samples or name in (UP, SCRAPE_DURATION)
        ]


class ScrapeCollector(Collector):
    """Binds one scrape's scope to the prometheus_client collector protocol."""

    def __init__(self, exporter: MetricsExporter, scope: ScrapeScope):
        self.exporter = exporter
        self.scope = scope

    def describe(self) -> Iterator[GaugeMetricFamily]:
        return iter(self.exporter.describe())

    def collect(self) -> Iterator[GaugeMetricFamily]:
        return iter(self.exporter.collect(self.scope))
