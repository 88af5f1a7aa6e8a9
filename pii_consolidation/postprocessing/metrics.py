"""
Prometheus Metrics — consolidation observability.

Exposes counters and histograms for:
- Overlaps resolved
- Addresses consolidated
- Logical-ID groups formed
- Invalid spans dropped at the boundary
- Per-pass processing latency

Metric objects are process-wide aggregates only; they never feed back into a
consolidation run, so concurrent documents stay independent.

Usage
-----
    from pii_consolidation.postprocessing.metrics import timed_pass, record_run

    with timed_pass("overlap"):
        resolved = resolve_overlaps(entities)

    record_run(result.metadata)
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram

from pii_consolidation.config.settings import METRICS_ENABLED
from pii_consolidation.models.consolidation_io import ConsolidationMetadata


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

OVERLAPS_RESOLVED: Counter = Counter(
    "consolidation_overlaps_resolved_total",
    "Entities removed by overlap resolution",
)

ADDRESSES_CONSOLIDATED: Counter = Counter(
    "consolidation_addresses_consolidated_total",
    "Address entities built from fragments",
)

ENTITY_GROUPS_LINKED: Counter = Counter(
    "consolidation_entity_groups_linked_total",
    "Repeated-mention groups assigned a logical ID",
)

INVALID_SPANS: Counter = Counter(
    "consolidation_invalid_spans_total",
    "Entities dropped because of degenerate or out-of-bounds spans",
)

RUNS: Counter = Counter(
    "consolidation_runs_total",
    "Completed consolidation runs",
)

PASS_LATENCY: Histogram = Histogram(
    "consolidation_pass_processing_seconds",
    "Processing time per consolidation pass in seconds",
    ["pass_name"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0),
)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------

def record_run(metadata: ConsolidationMetadata) -> None:
    """Add the counts of one finished run to the process-wide counters."""
    if not METRICS_ENABLED:
        return
    RUNS.inc()
    OVERLAPS_RESOLVED.inc(metadata.overlaps_resolved)
    ADDRESSES_CONSOLIDATED.inc(metadata.addresses_consolidated)
    ENTITY_GROUPS_LINKED.inc(metadata.entities_linked)
    INVALID_SPANS.inc(metadata.invalid_spans_dropped)


@contextmanager
def timed_pass(pass_name: str) -> Generator[None, None, None]:
    """
    Context manager that records pass latency.

    Usage::

        with timed_pass("address"):
            entities, count = consolidate_addresses(...)
    """
    if not METRICS_ENABLED:
        yield
        return
    with PASS_LATENCY.labels(pass_name=pass_name).time():
        yield
