"""Daily valuation orchestrator: loads prices, values indexes, stores snapshots."""

from index_core.orchestrator.persistence import persist_snapshot, record_collection
from index_core.orchestrator.snapshot import build_inception, build_price_snapshot, compute_snapshot

__all__ = [
    "build_inception",
    "build_price_snapshot",
    "compute_snapshot",
    "persist_snapshot",
    "record_collection",
]
