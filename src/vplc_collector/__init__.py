"""
vPLC Collector

Prometheus collector for virtual PLC cyclic-backup statistics. Polls every
configured vPLC instance, converts its running totals and duration
histograms into monotonic counters and cumulative buckets, and serves them
on a scrape endpoint.

Author: uldyssian-sh
License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "uldyssian-sh"
__license__ = "MIT"
__description__ = "vPLC Collector - Prometheus metrics for vPLC cyclic-backup statistics"

from .buckets import OPEN_BUCKET_BOUND, cumulative_counts, parse_upper_bound
from .client import VPLCClient
from .collector import CollectorState, CycleResult, InstanceCollector
from .config import CollectorSettings, load_device_records
from .delta import DeltaTracker
from .exceptions import (
    CollectionFault,
    ConfigurationError,
    PayloadParseError,
    VPLCAuthenticationError,
    VPLCCollectorError,
    VPLCConnectionError,
)
from .metrics import CRB_METRIC_DESCRIPTORS, MetricDescriptor, MetricKind, MetricsRegistry, extract_value
from .models import DeviceRecord, HistogramReport
from .session import VPLCSession
from .supervisor import CollectorSupervisor


def get_version():
    """Get the current version of vPLC Collector."""
    return __version__


def get_info():
    """Get information about vPLC Collector."""
    return {
        "name": "vPLC Collector",
        "version": __version__,
        "author": __author__,
        "license": __license__,
        "description": __description__,
    }


__all__ = [
    # Metadata
    "__version__",
    "__author__",
    "__license__",
    "__description__",

    # Core functions
    "get_version",
    "get_info",

    # Components
    "OPEN_BUCKET_BOUND",
    "cumulative_counts",
    "parse_upper_bound",
    "DeltaTracker",
    "MetricDescriptor",
    "MetricKind",
    "MetricsRegistry",
    "CRB_METRIC_DESCRIPTORS",
    "extract_value",
    "DeviceRecord",
    "HistogramReport",
    "VPLCSession",
    "VPLCClient",
    "InstanceCollector",
    "CollectorState",
    "CycleResult",
    "CollectorSupervisor",
    "CollectorSettings",
    "load_device_records",

    # Exceptions
    "VPLCCollectorError",
    "ConfigurationError",
    "VPLCAuthenticationError",
    "VPLCConnectionError",
    "PayloadParseError",
    "CollectionFault",
]
