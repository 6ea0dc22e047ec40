"""Public record query endpoint."""

from fastapi import APIRouter, Depends, Query

from overlay_query.query.filters import build_filter
from overlay_query.query.pagination import fetch_page
from overlay_query.query.validation import validate_query
from overlay_query.store.record_store import RecordStore
from overlay_query.webservice.deps import get_record_store
from overlay_query.webservice.schemas.common import ErrorResponse, QueryResponse
from overlay_query.webservice.services.serializers import summarize_records

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/records", response_model=QueryResponse, responses={400: {"model": ErrorResponse}})
def query_records(
    txid: str | None = None,
    limit: str | None = None,
    skip: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    store: RecordStore = Depends(get_record_store),
) -> QueryResponse:
    """Query records by txid and/or creation date, sorted by creation time and paginated.

    Parameters arrive as raw strings so that malformed values produce the
    service's own validation codes.
    """
    spec = validate_query(
        {
            "txid": txid,
            "limit": limit,
            "skip": skip,
            "startDate": start_date,
            "endDate": end_date,
            "sortOrder": sort_order,
        }
    )
    page = fetch_page(store, spec, build_filter(spec))
    return QueryResponse(
        data={
            "records": summarize_records(page.records),
            "count": page.count,
            "query": spec.to_echo(),
        }
    )
