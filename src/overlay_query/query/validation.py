"""Validation of untrusted query parameters into a bounded ``QuerySpec``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from overlay_query.commons.errors import QueryValidationError
from overlay_query.commons.utils import iso_timestamp

TXID_PATTERN = re.compile(r"[0-9a-fA-F]{64}")
INTEGER_PATTERN = re.compile(r"[0-9]+")

DEFAULT_LIMIT = 50
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_SKIP = 0
# Largest skip the store accepts (BSON int64).
MAX_SKIP = 2**63 - 1


class SortOrder(str, Enum):
    """Sort direction on ``createdAt``."""

    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class QuerySpec:
    """Validated record query. Build it with ``validate_query``."""

    txid: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    skip: int = DEFAULT_SKIP
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_order: SortOrder = SortOrder.DESCENDING

    def to_echo(self) -> Dict[str, Any]:
        """Return the effective query as reported back to callers."""
        return {
            "txid": self.txid,
            "limit": self.limit,
            "skip": self.skip,
            "startDate": None if self.start_date is None else iso_timestamp(self.start_date),
            "endDate": None if self.end_date is None else iso_timestamp(self.end_date),
            "sortOrder": self.sort_order.value,
        }


def _present(params: Mapping[str, Any], key: str) -> Optional[str]:
    value = params.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _significant_digits(raw: str, kind: str, name: str) -> str:
    if not INTEGER_PATTERN.fullmatch(raw):
        raise QueryValidationError(kind, f"{name} must be a non-negative integer.")
    return raw.lstrip("0") or "0"


def _parse_limit(raw: str) -> int:
    digits = _significant_digits(raw, QueryValidationError.INVALID_LIMIT, "limit")
    # More digits than MAX_LIMIT means above it.
    if len(digits) > len(str(MAX_LIMIT)):
        return MAX_LIMIT
    return min(max(int(digits), MIN_LIMIT), MAX_LIMIT)


def _parse_skip(raw: str) -> int:
    digits = _significant_digits(raw, QueryValidationError.INVALID_SKIP, "skip")
    if len(digits) > len(str(MAX_SKIP)) or int(digits) > MAX_SKIP:
        raise QueryValidationError(QueryValidationError.INVALID_SKIP, f"skip must not exceed {MAX_SKIP}.")
    return int(digits)


def parse_date(raw: str) -> datetime:
    """Parse an ISO 8601 date or datetime into an aware UTC datetime.

    Raises
    ------
    QueryValidationError
        With kind ``InvalidDate`` when ``raw`` is not ISO 8601.
    """
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError as exc:
        raise QueryValidationError(QueryValidationError.INVALID_DATE, f"Invalid date: {raw}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise QueryValidationError(QueryValidationError.INVALID_DATE, f"Date out of range: {raw}") from exc


def validate_query(params: Mapping[str, Any]) -> QuerySpec:
    """Turn raw request parameters into a ``QuerySpec``.

    Recognized keys are ``txid``, ``limit``, ``skip``, ``startDate``,
    ``endDate`` and ``sortOrder``; empty values count as absent. Out-of-range
    ``limit`` values are clamped into [1, 100], not rejected; ``skip`` must fit
    in a signed 64-bit integer.

    Raises
    ------
    QueryValidationError
        On the first invalid parameter.
    """
    txid = _present(params, "txid")
    if txid is not None and not TXID_PATTERN.fullmatch(txid):
        raise QueryValidationError(
            QueryValidationError.INVALID_TXID,
            "txid must be a 64-character hexadecimal string.",
        )

    limit = DEFAULT_LIMIT
    raw_limit = _present(params, "limit")
    if raw_limit is not None:
        limit = _parse_limit(raw_limit)

    skip = DEFAULT_SKIP
    raw_skip = _present(params, "skip")
    if raw_skip is not None:
        skip = _parse_skip(raw_skip)

    raw_start = _present(params, "startDate")
    raw_end = _present(params, "endDate")
    start_date = None if raw_start is None else parse_date(raw_start)
    end_date = None if raw_end is None else parse_date(raw_end)
    if start_date is not None and end_date is not None and start_date > end_date:
        raise QueryValidationError(
            QueryValidationError.INVALID_DATE_RANGE,
            "startDate must not be after endDate.",
        )

    sort_order = SortOrder.DESCENDING
    raw_sort = params.get("sortOrder")
    if raw_sort is not None and raw_sort != "":
        try:
            sort_order = SortOrder(raw_sort)
        except ValueError as exc:
            raise QueryValidationError(
                QueryValidationError.INVALID_SORT_ORDER,
                "sortOrder must be 'asc' or 'desc'.",
            ) from exc

    return QuerySpec(
        txid=txid,
        limit=limit,
        skip=skip,
        start_date=start_date,
        end_date=end_date,
        sort_order=sort_order,
    )
