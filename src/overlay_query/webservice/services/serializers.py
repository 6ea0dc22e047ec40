"""Serialization helpers for API responses."""

from __future__ import annotations

from typing import Any, Dict, List

from overlay_query.query.filters import OUTPUT_INDEX_FIELD, TXID_FIELD


def summarize_record(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a stored record to its public ``{txid, outputIndex}`` view."""
    return {"txid": str(doc[TXID_FIELD]), "outputIndex": int(doc[OUTPUT_INDEX_FIELD])}


def summarize_records(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Summarize result documents for a JSON API response."""
    return [summarize_record(doc) for doc in docs]

