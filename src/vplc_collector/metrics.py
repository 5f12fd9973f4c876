"""
Metric registry for vPLC cyclic-backup statistics

Holds the Prometheus counters and gauges exported for every vPLC instance
and the descriptor table that maps API fields onto them.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import structlog
from prometheus_client import CollectorRegistry, Gauge, generate_latest
from prometheus_client.metrics_core import Metric

from .buckets import cumulative_counts, format_bound
from .delta import DeltaTracker
from .exceptions import PayloadParseError
from .models import HistogramReport

logger = structlog.get_logger(__name__)

INSTANCE_LABEL = "vplc_instance"
BOUND_LABEL = "le"
PERFORMANCE_ROOT = "performanceMetrics"


class MetricKind(Enum):
    """Exported metric kind"""
    COUNTER = "counter"
    GAUGE = "gauge"


class HistogramKind(Enum):
    """Histograms reported by the cyclic-backup API"""
    CYCLE_EXTENSION = "cycle_extension"
    WRITE_DURATION = "write_duration"


@dataclass(frozen=True)
class MetricDescriptor:
    """Maps one API field onto one exported metric"""
    source_path: str
    name: str
    description: str
    kind: MetricKind


# Edit here if the cyclic-backup API changes
CRB_METRIC_DESCRIPTORS: Sequence[MetricDescriptor] = (
    MetricDescriptor("writeSuccesses", "crb_successful_cycle_count",
                     "Total number of successful cycles", MetricKind.COUNTER),
    MetricDescriptor("writeAttempts", "crb_total_cycle_count",
                     "Total number of cycles", MetricKind.COUNTER),
    MetricDescriptor("cycleDelay/totalNs", "crb_sum_cycle_extension_duration",
                     "Sum of cycle extension durations", MetricKind.COUNTER),
    MetricDescriptor("cycleDelay/minNs", "crb_min_cycle_extension_duration",
                     "Minimum cycle extension duration", MetricKind.GAUGE),
    MetricDescriptor("cycleDelay/maxNs", "crb_max_cycle_extension_duration",
                     "Maximum cycle extension duration", MetricKind.GAUGE),
    MetricDescriptor("writeDuration/minNs", "crb_min_write_duration",
                     "Minimum write duration", MetricKind.GAUGE),
    MetricDescriptor("writeDuration/maxNs", "crb_max_write_duration",
                     "Maximum write duration", MetricKind.GAUGE),
    MetricDescriptor("writeDuration/totalNs", "crb_sum_write_duration",
                     "Sum of write durations", MetricKind.COUNTER),
)

HISTOGRAM_METRICS: Dict[HistogramKind, tuple] = {
    HistogramKind.CYCLE_EXTENSION: (
        "cycle_extension_bucket", "Cycle extension histogram buckets (cumulative)"),
    HistogramKind.WRITE_DURATION: (
        "write_duration_bucket", "Write duration histogram buckets (cumulative)"),
}


def split_path(path: str) -> List[str]:
    """Split a field path on '/' or '.' separators."""
    return [part for part in path.replace(".", "/").split("/") if part]


def extract_value(document: Any, path: str) -> Optional[float]:
    """Walk ``path`` through nested mappings and return a numeric leaf.

    Returns None when the path is empty, a segment is missing, an
    intermediate value is not a mapping, or the leaf is not a number.
    """
    parts = split_path(path)
    if not parts:
        return None

    current = document
    for part in parts:
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]

    if isinstance(current, bool) or not isinstance(current, (int, float)):
        return None
    return float(current)


class CounterFamilies:
    """Custom collector for cumulative counters exported under their exact names.

    ``prometheus_client.Counter`` appends ``_total`` and adds a ``_created``
    series, and its text writer renames the TYPE line of any ``counter``
    family. Families here are exposed as untyped so the HELP/TYPE lines and
    the samples share the descriptor name.
    """

    def __init__(self):
        self._families: Dict[str, Tuple[str, Tuple[str, ...]]] = {}
        self._values: Dict[str, Dict[Tuple[str, ...], float]] = {}

    def add_family(self, name: str, documentation: str, labelnames: Sequence[str]) -> None:
        self._families[name] = (documentation, tuple(labelnames))
        self._values[name] = {}

    def inc(self, name: str, labelvalues: Sequence[str], amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts.")
        series = self._values[name]
        key = tuple(labelvalues)
        series[key] = series.get(key, 0.0) + amount

    def get(self, name: str, labelvalues: Sequence[str]) -> Optional[float]:
        return self._values.get(name, {}).get(tuple(labelvalues))

    def collect(self) -> Iterator[Metric]:
        for name, (documentation, labelnames) in self._families.items():
            family = Metric(name, documentation, "unknown")
            # Insertion order keeps histogram bounds ascending
            for labelvalues, value in self._values[name].items():
                family.add_sample(name, dict(zip(labelnames, labelvalues)), value)
            yield family


class MetricsRegistry:
    """Process wide registry of exported vPLC metrics.

    Every update of a single metric and every render run under one lock, so
    a scrape never observes a half applied update.
    """

    def __init__(self, descriptors: Sequence[MetricDescriptor] = CRB_METRIC_DESCRIPTORS,
                 tracker: Optional[DeltaTracker] = None,
                 registry: Optional[CollectorRegistry] = None):
        self.descriptors = tuple(descriptors)
        self.tracker = tracker or DeltaTracker()
        self.registry = registry or CollectorRegistry()
        self.metrics: Dict[str, Any] = {}
        self.counters = CounterFamilies()
        self._lock = threading.Lock()

        self._init_metrics()

    def _init_metrics(self) -> None:
        for desc in self.descriptors:
            if desc.kind is MetricKind.COUNTER:
                self.counters.add_family(desc.name, desc.description, [INSTANCE_LABEL])
            else:
                self.metrics[desc.name] = Gauge(
                    desc.name, desc.description, [INSTANCE_LABEL],
                    registry=self.registry
                )

        for name, description in HISTOGRAM_METRICS.values():
            self.counters.add_family(name, description, [INSTANCE_LABEL, BOUND_LABEL])

        # Collector self-observability
        self.counters.add_family("vplc_collector_cycles", "Collection cycles by outcome",
                                 [INSTANCE_LABEL, "result"])
        self.registry.register(self.counters)

        self.metrics["vplc_collector_authenticated"] = Gauge(
            "vplc_collector_authenticated",
            "Whether the collector holds a valid session for the instance",
            [INSTANCE_LABEL],
            registry=self.registry
        )

    def update(self, instance: str, document: Mapping[str, Any]) -> int:
        """Apply a cyclic-backup document to the counters and gauges.

        Returns the number of descriptors that were updated. Fields missing
        from the document are skipped individually.
        """
        performance = document.get(PERFORMANCE_ROOT) if isinstance(document, Mapping) else None
        if not isinstance(performance, Mapping):
            raise PayloadParseError(f"{PERFORMANCE_ROOT} not found for vplc {instance}")

        updated = 0
        for desc in self.descriptors:
            value = extract_value(performance, desc.source_path)
            if value is None:
                logger.debug("Metric field absent", instance=instance,
                             field=desc.source_path, metric=desc.name)
                continue

            with self._lock:
                if desc.kind is MetricKind.COUNTER:
                    increment = self.tracker.apply((desc.name, instance), value)
                    self.counters.inc(desc.name, (instance,), increment)
                else:
                    self.metrics[desc.name].labels(instance).set(value)
            updated += 1

        return updated

    def update_histograms(self, instance: str, report: HistogramReport) -> None:
        """Apply a histogram report to the cumulative bucket counters."""
        self._update_histogram(instance, HistogramKind.CYCLE_EXTENSION, report.cycle_delay)
        self._update_histogram(instance, HistogramKind.WRITE_DURATION, report.write_duration)

    def _update_histogram(self, instance: str, kind: HistogramKind,
                          buckets: Mapping[str, float]) -> None:
        name = HISTOGRAM_METRICS[kind][0]
        cumulative = cumulative_counts(dict(buckets))

        with self._lock:
            for bound, count in cumulative:
                increment = self.tracker.apply((kind.value, instance, bound), count)
                self.counters.inc(name, (instance, format_bound(bound)), increment)

    def record_cycle(self, instance: str, result: str) -> None:
        """Count one collection cycle outcome."""
        with self._lock:
            self.counters.inc("vplc_collector_cycles", (instance, result))

    def set_authenticated(self, instance: str, authenticated: bool) -> None:
        with self._lock:
            self.metrics["vplc_collector_authenticated"].labels(instance).set(
                1 if authenticated else 0)

    def get_value(self, name: str, labels: Dict[str, str]) -> Optional[float]:
        """Return the current value of an exported sample, if present."""
        with self._lock:
            return self.registry.get_sample_value(name, labels)

    def render(self) -> bytes:
        """Serialize the current state in the Prometheus text format."""
        with self._lock:
            return generate_latest(self.registry)
