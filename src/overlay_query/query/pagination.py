"""Sorted, paginated record retrieval with an unpaginated total count."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from overlay_query.query.filters import CREATED_AT_FIELD, OUTPUT_INDEX_FIELD, TXID_FIELD
from overlay_query.query.validation import QuerySpec, SortOrder
from overlay_query.store.record_store import RecordStore

RECORD_PROJECTION = {"_id": 0, TXID_FIELD: 1, OUTPUT_INDEX_FIELD: 1, CREATED_AT_FIELD: 1}


@dataclass(frozen=True)
class Page:
    """One page of records plus the number of records matching the filter."""

    records: List[Dict[str, Any]] = field(default_factory=list)
    count: int = 0


def sort_keys(sort_order: SortOrder) -> List[tuple]:
    """Sort on ``createdAt``, ties broken by ``txid`` then ``outputIndex``."""
    direction = RecordStore.ASCENDING if sort_order == SortOrder.ASCENDING else RecordStore.DESCENDING
    return [(CREATED_AT_FIELD, direction), (TXID_FIELD, direction), (OUTPUT_INDEX_FIELD, direction)]


def fetch_page(store: RecordStore, spec: QuerySpec, query_filter: Dict[str, Any]) -> Page:
    """Run the count and the paginated find for ``query_filter``.

    The count is a separate round-trip so that it reflects the whole filter,
    not the page size.
    """
    count = store.count(query_filter)
    records = store.find(
        query_filter,
        sort=sort_keys(spec.sort_order),
        skip=spec.skip,
        limit=spec.limit,
        projection=RECORD_PROJECTION,
    )
    return Page(records=records, count=count)
