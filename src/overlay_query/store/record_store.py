"""Record store adapter over the MongoDB overlay collection."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Sequence, Tuple

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import ExecutionTimeout, NetworkTimeout, PyMongoError, ServerSelectionTimeoutError

from overlay_query.commons.errors import StoreUnavailable
from overlay_query.commons.overlay_logger import OverlayLogger
from overlay_query.configs import Settings

TIMEOUT_ERRORS = (ServerSelectionTimeoutError, NetworkTimeout, ExecutionTimeout)

SortSpec = Sequence[Tuple[str, int]]


class RecordStore(object):
    """Read-only access to the overlay record collection.

    Every driver failure is converted into ``StoreUnavailable``; timeouts set
    ``timed_out=True``. Calls are never retried here.
    """

    ASCENDING = 1
    DESCENDING = -1

    def __init__(self, collection: Collection, client: MongoClient | None = None, operation_timeout_ms: int = 10000):
        self.logger = OverlayLogger()
        self._collection = collection
        self._client = client
        self._operation_timeout_ms = operation_timeout_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecordStore":
        """Create a store backed by a pooled ``MongoClient`` built from settings."""
        client_kwargs: Dict[str, Any] = {
            "serverSelectionTimeoutMS": settings.server_selection_timeout_ms,
            "connectTimeoutMS": settings.connect_timeout_ms,
            "socketTimeoutMS": settings.operation_timeout_ms,
            "tls": settings.mongo_tls,
        }
        if settings.mongo_tls and settings.mongo_tls_allow_invalid:
            client_kwargs["tlsAllowInvalidCertificates"] = True
            client_kwargs["tlsAllowInvalidHostnames"] = True
        client = MongoClient(settings.mongo_url, **client_kwargs)
        collection = client[settings.mongo_db_name][settings.mongo_collection]
        return cls(collection, client=client, operation_timeout_ms=settings.operation_timeout_ms)

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except TIMEOUT_ERRORS as exc:
            self.logger.error(f"Record store {operation} timed out: {exc}")
            raise StoreUnavailable("Record store timed out", timed_out=True) from exc
        except PyMongoError as exc:
            self.logger.error(f"Record store {operation} failed: {exc}")
            raise StoreUnavailable() from exc

    def count(self, filter: Dict[str, Any]) -> int:
        """Count records matching ``filter``."""
        with self._guard("count"):
            return self._collection.count_documents(filter, maxTimeMS=self._operation_timeout_ms)

    def find(
        self,
        filter: Dict[str, Any],
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
        projection: Dict[str, int] | None = None,
    ) -> List[Dict[str, Any]]:
        """Return records matching ``filter``.

        Parameters
        ----------
        filter : dict
            Mongo filter expression.
        sort : list of (field, direction), optional
            Sort keys, most significant first.
        skip : int, optional
            Number of matching records to skip.
        limit : int, optional
            Maximum number of records to return. ``0`` means no limit.
        projection : dict, optional
            Mongo projection.

        Returns
        -------
        list of dict
            The matching documents, fully materialized.
        """
        with self._guard("find"):
            cursor = self._collection.find(filter, projection)
            if sort:
                cursor = cursor.sort(list(sort))
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            cursor = cursor.max_time_ms(self._operation_timeout_ms)
            return list(cursor)

    def database_stats(self) -> Dict[str, int]:
        """Return collection count, index count and storage size of the database."""
        with self._guard("dbStats"):
            stats = self._collection.database.command("dbStats")
        return {
            "collections": int(stats.get("collections", 0)),
            "indexes": int(stats.get("indexes", 0)),
            "storageSize": int(stats.get("storageSize", 0)),
        }

    def ping(self) -> bool:
        """Check connectivity. Returns ``False`` instead of raising."""
        try:
            with self._guard("ping"):
                self._collection.database.command("ping")
        except StoreUnavailable:
            return False
        return True

    def close(self):
        """Close the underlying client, if this store owns one."""
        if self._client is not None:
            self._client.close()
