"""Import all table modules so Base.metadata knows about them."""

from index_core.db.tables.indexes import IndexConfigRow, IndexSnapshotRow
from index_core.db.tables.prices import CollectionLogRow, PriceRow

__all__ = [
    "CollectionLogRow",
    "IndexConfigRow",
    "IndexSnapshotRow",
    "PriceRow",
]
