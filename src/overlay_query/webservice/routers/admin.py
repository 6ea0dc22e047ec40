"""Admin endpoints, guarded by the bearer-token gate."""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends

from overlay_query.query.statistics import ADMIN_WINDOWS, count_windows
from overlay_query.store.record_store import RecordStore
from overlay_query.webservice.auth import require_admin
from overlay_query.webservice.deps import get_clock, get_record_store
from overlay_query.webservice.schemas.common import AdminStatsResponse, ErrorResponse, HealthResponse
from overlay_query.commons.utils import iso_timestamp

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}},
)


@router.get("/stats", response_model=AdminStatsResponse)
def get_admin_stats(
    store: RecordStore = Depends(get_record_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AdminStatsResponse:
    """Record totals, database metadata and activity over the admin windows."""
    now = clock()
    return AdminStatsResponse(
        data={
            "totalRecords": store.count({}),
            "databaseStats": store.database_stats(),
            "recentActivity": count_windows(store, ADMIN_WINDOWS, now),
        }
    )


@router.get("/health", response_model=HealthResponse)
def get_health(
    store: RecordStore = Depends(get_record_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> HealthResponse:
    """Store connectivity. An unreachable store is reported, not raised."""
    database = "connected" if store.ping() else "disconnected"
    return HealthResponse(data={"database": database, "timestamp": iso_timestamp(clock())})
