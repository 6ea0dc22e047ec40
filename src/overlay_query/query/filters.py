"""Mongo filter construction from a validated query."""

from __future__ import annotations

from typing import Any, Dict

from overlay_query.query.validation import QuerySpec

TXID_FIELD = "txid"
OUTPUT_INDEX_FIELD = "outputIndex"
CREATED_AT_FIELD = "createdAt"


def build_filter(spec: QuerySpec) -> Dict[str, Any]:
    """Translate ``spec`` into a Mongo filter.

    Top-level keys are implicitly ANDed by Mongo. Date bounds are inclusive
    and either one may be omitted. An empty dict matches every record.
    """
    query_filter: Dict[str, Any] = {}
    if spec.txid is not None:
        query_filter[TXID_FIELD] = spec.txid

    date_range: Dict[str, Any] = {}
    if spec.start_date is not None:
        date_range["$gte"] = spec.start_date
    if spec.end_date is not None:
        date_range["$lte"] = spec.end_date
    if date_range:
        query_filter[CREATED_AT_FIELD] = date_range

    return query_filter
