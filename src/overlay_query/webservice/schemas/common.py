"""Shared response schemas for webservice endpoints."""

from typing import List, Literal

from pydantic import BaseModel, Field


class RecordSummary(BaseModel):
    """Public view of an overlay record."""

    txid: str
    outputIndex: int = Field(..., ge=0)


class EchoedQuery(BaseModel):
    """Effective query after validation, defaults and clamping."""

    txid: str | None = None
    limit: int
    skip: int
    startDate: str | None = None
    endDate: str | None = None
    sortOrder: Literal["asc", "desc"]


class DashboardStatistics(BaseModel):
    last24h: int
    last7d: int
    last30d: int


class DashboardData(BaseModel):
    totalRecords: int
    recentRecords: List[RecordSummary]
    statistics: DashboardStatistics


class QueryData(BaseModel):
    records: List[RecordSummary]
    count: int
    query: EchoedQuery


class DatabaseStats(BaseModel):
    collections: int
    indexes: int
    storageSize: int


class RecentActivity(BaseModel):
    last1h: int
    last24h: int
    last7d: int
    last30d: int


class AdminStatsData(BaseModel):
    totalRecords: int
    databaseStats: DatabaseStats
    recentActivity: RecentActivity


class HealthData(BaseModel):
    database: Literal["connected", "disconnected"]
    timestamp: str


class DashboardResponse(BaseModel):
    status: Literal["success"] = "success"
    data: DashboardData


class QueryResponse(BaseModel):
    status: Literal["success"] = "success"
    data: QueryData


class AdminStatsResponse(BaseModel):
    status: Literal["success"] = "success"
    data: AdminStatsData


class HealthResponse(BaseModel):
    status: Literal["success"] = "success"
    data: HealthData


class ErrorResponse(BaseModel):
    """Error response envelope."""

    status: Literal["error"] = "error"
    message: str
    code: str
