"""
Histogram bucket label handling

The vPLC API reports duration histograms as a map of human readable range
labels ("0.0-1.0ms", "20.0+ms") to per-range observation counts. This module
turns those labels into numeric upper bounds and the per-range counts into
cumulative counts per bound.
"""

import re
from typing import Dict, List, Tuple

# Upper bound used for open ended buckets ("20.0+ms"). Finite so that it
# sorts after every real bound and renders as a plain number.
OPEN_BUCKET_BOUND = 1e9

DEFAULT_UNIT = "ms"

_LABEL_PATTERNS: Dict[str, "re.Pattern[str]"] = {}


def _label_pattern(unit: str) -> "re.Pattern[str]":
    pattern = _LABEL_PATTERNS.get(unit)
    if pattern is None:
        pattern = re.compile(r"(\d+(?:\.\d+)?)(\+)?" + re.escape(unit) + r"$")
        _LABEL_PATTERNS[unit] = pattern
    return pattern


def parse_upper_bound(label: str, unit: str = DEFAULT_UNIT) -> float:
    """Return the upper bound encoded in a bucket label.

    Unrecognised labels map to 0 so that a single odd label cannot abort a
    collection cycle.
    """
    match = _label_pattern(unit).search(label.strip())
    if not match:
        return 0.0
    if match.group(2) == "+":
        return OPEN_BUCKET_BOUND
    return float(match.group(1))


def format_bound(bound: float) -> str:
    """Format a bound for the ``le`` label ("1", "2.5", "1000000000")."""
    if bound == int(bound):
        return str(int(bound))
    return repr(bound)


def cumulative_counts(buckets: Dict[str, float],
                      unit: str = DEFAULT_UNIT) -> List[Tuple[float, float]]:
    """Convert per-range counts into (upper bound, cumulative count) pairs.

    Pairs are ordered by ascending bound. Labels resolving to the same bound
    are merged.
    """
    per_bound: Dict[float, float] = {}
    for label, count in buckets.items():
        bound = parse_upper_bound(label, unit)
        per_bound[bound] = per_bound.get(bound, 0.0) + float(count)

    result = []
    running = 0.0
    for bound in sorted(per_bound):
        running += per_bound[bound]
        result.append((bound, running))
    return result
