"""Webservice API tests with an in-memory record store."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from overlay_query.commons.overlay_logger import OverlayLogger
from overlay_query.configs import Settings
from overlay_query.webservice.auth import extract_bearer_token, verify_bearer
from overlay_query.webservice.main import create_app
from tests.fake_record_store import (
    NOW,
    FakeRecordStore,
    TimingOutRecordStore,
    make_record,
    records_every_hour,
    txid_for,
)

ADMIN_TOKEN = "admin-s3cret-token"
AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def build_client(store=None, **client_kwargs) -> tuple[TestClient, FakeRecordStore]:
    settings = Settings(mongo_url="mongodb://localhost:27017", admin_token=ADMIN_TOKEN, mongo_tls=False)
    store = store if store is not None else FakeRecordStore()
    app = create_app(settings=settings, store=store, clock=lambda: NOW)
    return TestClient(app, **client_kwargs), store


def scenario_store() -> FakeRecordStore:
    return FakeRecordStore(
        [
            make_record(1, NOW - timedelta(minutes=30)),
            make_record(2, NOW - timedelta(days=2)),
            make_record(3, NOW - timedelta(days=40)),
        ]
    )


def test_root_and_openapi_endpoints():
    client, _ = build_client()

    root = client.get("/")
    assert root.status_code == 200
    body = root.json()
    assert body["status"] == "success"
    assert body["endpoints"]["admin"] == "/api/admin/stats"

    assert client.get("/openapi.json").status_code == 200
    assert client.get("/docs").status_code == 200


def test_dashboard():
    client, _ = build_client(scenario_store())

    rs = client.get("/api/mainpage")
    assert rs.status_code == 200
    data = rs.json()["data"]
    assert data["totalRecords"] == 3
    assert data["statistics"] == {"last24h": 1, "last7d": 2, "last30d": 2}
    assert data["recentRecords"] == [
        {"txid": txid_for(1), "outputIndex": 0},
        {"txid": txid_for(2), "outputIndex": 0},
        {"txid": txid_for(3), "outputIndex": 0},
    ]


def test_dashboard_recent_records_are_capped():
    client, _ = build_client(FakeRecordStore(records_every_hour(30)))
    data = client.get("/api/mainpage").json()["data"]
    assert data["totalRecords"] == 30
    assert len(data["recentRecords"]) == 10
    assert data["recentRecords"][0]["txid"] == txid_for(0)


def test_dashboard_does_not_need_auth():
    client, _ = build_client()
    assert client.get("/api/mainpage", headers={"Authorization": "Bearer wrong"}).status_code == 200


def test_query_defaults_and_echo():
    client, _ = build_client(FakeRecordStore(records_every_hour(60)))

    rs = client.get("/api/user/records")
    assert rs.status_code == 200
    data = rs.json()["data"]
    assert data["count"] == 60
    assert len(data["records"]) == 50
    assert set(data["records"][0].keys()) == {"txid", "outputIndex"}
    assert data["query"] == {
        "txid": None,
        "limit": 50,
        "skip": 0,
        "startDate": None,
        "endDate": None,
        "sortOrder": "desc",
    }


def test_query_count_reflects_filter_not_page():
    client, _ = build_client(FakeRecordStore(records_every_hour(25)))

    data = client.get("/api/user/records", params={"limit": 10, "skip": 0}).json()["data"]
    assert len(data["records"]) == 10
    assert data["count"] == 25


def test_query_limit_is_clamped():
    client, store = build_client(FakeRecordStore(records_every_hour(150)))

    data = client.get("/api/user/records", params={"limit": 1000}).json()["data"]
    assert data["query"]["limit"] == 100
    assert len(data["records"]) == 100
    assert store.find_calls[-1]["limit"] == 100

    data = client.get("/api/user/records", params={"limit": 0}).json()["data"]
    assert data["query"]["limit"] == 1
    assert len(data["records"]) == 1


def test_query_limit_with_many_digits_is_clamped():
    client, store = build_client(FakeRecordStore(records_every_hour(150)))

    rs = client.get("/api/user/records", params={"limit": "1" * 5000})
    assert rs.status_code == 200
    assert rs.json()["data"]["query"]["limit"] == 100
    assert store.find_calls[-1]["limit"] == 100


def test_query_echo_dates_use_utc_z_suffix():
    client, _ = build_client()

    rs = client.get("/api/user/records", params={"startDate": "2025-01-01T00:00:00Z", "endDate": "2025-01-02"})
    assert rs.status_code == 200
    query = rs.json()["data"]["query"]
    assert query["startDate"] == "2025-01-01T00:00:00.000Z"
    assert query["endDate"] == "2025-01-02T00:00:00.000Z"


def test_query_by_txid():
    txid = txid_for(7)
    client, _ = build_client(FakeRecordStore(records_every_hour(20)))

    rs = client.get("/api/user/records", params={"txid": txid, "limit": 5})
    assert rs.status_code == 200
    data = rs.json()["data"]
    assert data["count"] == 1
    assert data["records"] == [{"txid": txid, "outputIndex": 0}]
    assert data["query"]["txid"] == txid


def test_query_by_date_range_and_order():
    client, _ = build_client(FakeRecordStore(records_every_hour(10)))

    rs = client.get(
        "/api/user/records",
        params={
            "startDate": (NOW - timedelta(hours=4)).isoformat().replace("+00:00", "Z"),
            "endDate": (NOW - timedelta(hours=2)).isoformat().replace("+00:00", "Z"),
            "sortOrder": "asc",
        },
    )
    assert rs.status_code == 200
    data = rs.json()["data"]
    assert data["count"] == 3
    assert [r["txid"] for r in data["records"]] == [txid_for(3), txid_for(2), txid_for(1)]


def test_query_future_start_date_is_empty():
    client, _ = build_client(scenario_store())

    rs = client.get("/api/user/records", params={"startDate": "2099-01-01"})
    assert rs.status_code == 200
    data = rs.json()["data"]
    assert data["count"] == 0
    assert data["records"] == []


@pytest.mark.parametrize(
    "params, code",
    [
        ({"txid": "abc"}, "INVALID_TXID"),
        ({"limit": "ten"}, "INVALID_LIMIT"),
        ({"limit": "-1"}, "INVALID_LIMIT"),
        ({"skip": "-5"}, "INVALID_SKIP"),
        ({"skip": str(2**63)}, "INVALID_SKIP"),
        ({"skip": "1" * 5000}, "INVALID_SKIP"),
        ({"startDate": "not-a-date"}, "INVALID_DATE"),
        ({"endDate": "2025-02-31"}, "INVALID_DATE"),
        ({"startDate": "0001-01-01T00:00:00+01:00"}, "INVALID_DATE"),
        ({"endDate": "9999-12-31T23:59:59-01:00"}, "INVALID_DATE"),
        ({"startDate": "2025-03-01", "endDate": "2025-01-01"}, "INVALID_DATE_RANGE"),
        ({"sortOrder": "ASC"}, "INVALID_SORT_ORDER"),
        ({"sortOrder": "newest"}, "INVALID_SORT_ORDER"),
    ],
)
def test_query_validation_errors(params, code):
    client, store = build_client(scenario_store())

    rs = client.get("/api/user/records", params=params)
    assert rs.status_code == 400
    assert rs.json() == {"status": "error", "message": rs.json()["message"], "code": code}
    assert store.find_calls == []
    assert store.count_filters == []


def test_admin_stats():
    client, _ = build_client(scenario_store())

    rs = client.get("/api/admin/stats", headers=AUTH)
    assert rs.status_code == 200
    data = rs.json()["data"]
    assert data["totalRecords"] == 3
    assert data["databaseStats"] == {"collections": 2, "indexes": 5, "storageSize": 40960}
    assert data["recentActivity"] == {"last1h": 1, "last24h": 1, "last7d": 2, "last30d": 2}

    activity = data["recentActivity"]
    assert activity["last1h"] <= activity["last24h"] <= activity["last7d"] <= activity["last30d"]


def test_admin_health():
    client, _ = build_client()

    rs = client.get("/api/admin/health", headers=AUTH)
    assert rs.status_code == 200
    assert rs.json()["data"] == {"database": "connected", "timestamp": "2026-10-19T12:00:00.000Z"}

    client, _ = build_client(FakeRecordStore(alive=False))
    rs = client.get("/api/admin/health", headers=AUTH)
    assert rs.status_code == 200
    assert rs.json()["data"]["database"] == "disconnected"


@pytest.mark.parametrize("path", ["/api/admin/stats", "/api/admin/health"])
@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": ADMIN_TOKEN},
        {"Authorization": f"Basic {ADMIN_TOKEN}"},
        {"Authorization": f"bearer {ADMIN_TOKEN}"},
        {"Authorization": "Bearer "},
        {"Authorization": f"Bearer {ADMIN_TOKEN[:-1]}X"},
        {"Authorization": f"Bearer {ADMIN_TOKEN}x"},
    ],
)
def test_admin_unauthorized(path, headers):
    client, store = build_client(scenario_store())

    rs = client.get(path, headers=headers)
    assert rs.status_code == 401
    assert rs.json() == {"status": "error", "message": "Unauthorized", "code": "UNAUTHORIZED"}
    assert store.count_filters == []


def test_verify_bearer():
    assert verify_bearer("Bearer abc", "abc")
    assert not verify_bearer(None, "abc")
    assert not verify_bearer("", "abc")
    assert not verify_bearer("Bearer abd", "abc")
    assert not verify_bearer("Token abc", "abc")
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("Bearer ") is None


def test_store_timeout_is_503():
    client, _ = build_client(TimingOutRecordStore())

    for path, headers in (("/api/mainpage", {}), ("/api/user/records", {}), ("/api/admin/stats", AUTH)):
        rs = client.get(path, headers=headers)
        assert rs.status_code == 503
        assert rs.json() == {"status": "error", "message": "Record store timed out", "code": "STORE_TIMEOUT"}


def test_unknown_route_is_404():
    client, _ = build_client()

    rs = client.get("/api/does-not-exist")
    assert rs.status_code == 404
    assert rs.json() == {"status": "error", "message": "Endpoint not found", "code": "NOT_FOUND"}


def test_unexpected_error_is_500_without_details():
    client, _ = build_client(FakeRecordStore(fail_with=RuntimeError("secret driver detail")), raise_server_exceptions=False)

    rs = client.get("/api/mainpage")
    assert rs.status_code == 500
    assert rs.json() == {"status": "error", "message": "Internal server error", "code": "INTERNAL_SERVER_ERROR"}
    assert "secret" not in rs.text


def test_unexpected_error_is_logged_with_request_line():
    client, _ = build_client(FakeRecordStore(fail_with=RuntimeError("boom")), raise_server_exceptions=False)

    with patch.object(OverlayLogger(), "info") as info:
        assert client.get("/api/mainpage").status_code == 500
    lines = [call.args[0] for call in info.call_args_list]
    assert any(line.startswith("GET /api/mainpage -> 500 (") for line in lines)


def test_request_line_is_logged():
    client, _ = build_client()

    with patch.object(OverlayLogger(), "info") as info:
        assert client.get("/api/mainpage").status_code == 200
    lines = [call.args[0] for call in info.call_args_list]
    assert any(line.startswith("GET /api/mainpage -> 200 (") for line in lines)


def test_cors_headers():
    client, _ = build_client()

    rs = client.get("/api/mainpage", headers={"Origin": "https://dashboard.example"})
    assert rs.headers["access-control-allow-origin"] == "*"


def test_lifespan_closes_store():
    client, store = build_client()
    with client:
        assert client.get("/api/mainpage").status_code == 200
    assert store.closed


def test_lifespan_fails_fast_when_store_unreachable():
    client, store = build_client(FakeRecordStore(alive=False))
    with pytest.raises(Exception):
        with client:
            pass
    assert store.closed
