"""Public dashboard endpoint."""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends

from overlay_query.query.pagination import RECORD_PROJECTION, sort_keys
from overlay_query.query.statistics import DASHBOARD_WINDOWS, count_windows
from overlay_query.query.validation import SortOrder
from overlay_query.store.record_store import RecordStore
from overlay_query.webservice.deps import get_clock, get_record_store
from overlay_query.webservice.schemas.common import DashboardResponse
from overlay_query.webservice.services.serializers import summarize_records

router = APIRouter(prefix="/mainpage", tags=["mainpage"])

RECENT_RECORDS_LIMIT = 10


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    store: RecordStore = Depends(get_record_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> DashboardResponse:
    """Total record count, the most recent records and trailing-window statistics."""
    now = clock()
    total = store.count({})
    recent = store.find(
        {},
        sort=sort_keys(SortOrder.DESCENDING),
        limit=RECENT_RECORDS_LIMIT,
        projection=RECORD_PROJECTION,
    )
    return DashboardResponse(
        data={
            "totalRecords": total,
            "recentRecords": summarize_records(recent),
            "statistics": count_windows(store, DASHBOARD_WINDOWS, now),
        }
    )
