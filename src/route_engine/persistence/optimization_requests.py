"""Persistence sinks for optimization request records.

Every store replaces a record as a whole: readers see either the previous
record or the new one, never a partially updated mix.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import PersistenceError, RequestNotFoundError
from ..models.domain import OptimizationRequestRecord, OptimizationStatus, OptimizedSnapshot

logger = logging.getLogger(__name__)

REQUESTS_TABLE = "route_optimization_requests"


class OptimizationRequestStore(Protocol):
    def insert(self, record: OptimizationRequestRecord) -> None:
        ...

    def save(self, record: OptimizationRequestRecord) -> None:
        ...

    def get(self, request_id: str) -> OptimizationRequestRecord | None:
        ...

    def list_for_requester(self, requester_id: str, limit: int) -> list[OptimizationRequestRecord]:
        ...


def record_to_dict(record: OptimizationRequestRecord) -> dict[str, Any]:
    data = asdict(record)
    data["status"] = record.status.value
    data["created_at"] = record.created_at.isoformat()
    data["updated_at"] = record.updated_at.isoformat()
    data["preferred_carrier_ids"] = list(record.preferred_carrier_ids)
    return data


def record_from_dict(data: dict[str, Any]) -> OptimizationRequestRecord:
    payload = dict(data)
    payload["status"] = OptimizationStatus(payload["status"])
    for key in ("created_at", "updated_at"):
        if isinstance(payload.get(key), str):
            payload[key] = datetime.fromisoformat(payload[key])
    payload["preferred_carrier_ids"] = tuple(payload.get("preferred_carrier_ids") or ())
    payload["constraints"] = payload.get("constraints") or {}
    payload["preferences"] = payload.get("preferences") or {}
    payload["metadata"] = payload.get("metadata") or {}
    if payload.get("optimized"):
        payload["optimized"] = OptimizedSnapshot(**payload["optimized"])
    known = set(OptimizationRequestRecord.__dataclass_fields__)
    return OptimizationRequestRecord(**{key: value for key, value in payload.items() if key in known})


def _newest_first(records: list[OptimizationRequestRecord], limit: int) -> list[OptimizationRequestRecord]:
    return sorted(records, key=lambda record: record.created_at, reverse=True)[:limit]


class InMemoryRequestStore:
    """Process-local store, mainly for tests and single-process runs."""

    def __init__(self) -> None:
        self._records: dict[str, OptimizationRequestRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: OptimizationRequestRecord) -> None:
        with self._lock:
            if record.id in self._records:
                raise PersistenceError(f"Optimization request {record.id} already exists")
            self._records[record.id] = record

    def save(self, record: OptimizationRequestRecord) -> None:
        with self._lock:
            if record.id not in self._records:
                raise RequestNotFoundError(record.id)
            self._records[record.id] = record

    def get(self, request_id: str) -> OptimizationRequestRecord | None:
        with self._lock:
            return self._records.get(request_id)

    def list_for_requester(self, requester_id: str, limit: int) -> list[OptimizationRequestRecord]:
        with self._lock:
            records = [record for record in self._records.values() if record.requester_id == requester_id]
        return _newest_first(records, limit)


class FileRequestStore:
    """One JSON document per request under the data root."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.directory = self.root / "optimization_requests"
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, request_id: str) -> Path:
        return self.directory / f"{request_id}.json"

    def _write(self, record: OptimizationRequestRecord) -> None:
        path = self._path(record.id)
        temp_name = None
        try:
            handle, temp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{record.id}.", suffix=".tmp")
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(record_to_dict(record), stream, ensure_ascii=False, indent=2, default=str)
            os.replace(temp_name, path)
        except OSError as exc:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            logger.error(f"Failed to write optimization request {record.id}: {exc}")
            raise PersistenceError(f"Failed to write optimization request {record.id}: {exc}") from exc

    def insert(self, record: OptimizationRequestRecord) -> None:
        if self._path(record.id).exists():
            raise PersistenceError(f"Optimization request {record.id} already exists")
        self._write(record)

    def save(self, record: OptimizationRequestRecord) -> None:
        if not self._path(record.id).exists():
            raise RequestNotFoundError(record.id)
        self._write(record)

    def _read(self, path: Path) -> OptimizationRequestRecord:
        try:
            with path.open("r", encoding="utf-8") as stream:
                return record_from_dict(json.load(stream))
        except (OSError, ValueError, TypeError, KeyError) as exc:
            raise PersistenceError(f"Failed to read optimization request from {path.name}: {exc}") from exc

    def get(self, request_id: str) -> OptimizationRequestRecord | None:
        path = self._path(request_id)
        if not path.exists():
            return None
        return self._read(path)

    def list_for_requester(self, requester_id: str, limit: int) -> list[OptimizationRequestRecord]:
        records = [self._read(path) for path in self.directory.glob("*.json")]
        return _newest_first([record for record in records if record.requester_id == requester_id], limit)


class SupabaseRequestStore:
    """Stores requests in the ``route_optimization_requests`` table."""

    def __init__(self, client: Any | None = None) -> None:
        self.client = client or get_supabase_client()
        if self.client is None:
            raise PersistenceError(
                "Supabase not configured. Set ROUTE_ENGINE_SUPABASE_URL and ROUTE_ENGINE_SUPABASE_KEY."
            )

    def _table(self):
        return self.client.table(REQUESTS_TABLE)

    def insert(self, record: OptimizationRequestRecord) -> None:
        try:
            self._table().insert(record_to_dict(record)).execute()
        except Exception as exc:
            logger.error(f"Failed to insert optimization request {record.id}: {exc}")
            raise PersistenceError(f"Failed to insert optimization request {record.id}: {exc}") from exc

    def save(self, record: OptimizationRequestRecord) -> None:
        row = record_to_dict(record)
        try:
            response = self._table().update(row).eq("id", record.id).execute()
        except Exception as exc:
            logger.error(f"Failed to update optimization request {record.id}: {exc}")
            raise PersistenceError(f"Failed to update optimization request {record.id}: {exc}") from exc
        if not response.data:
            raise RequestNotFoundError(record.id)

    def get(self, request_id: str) -> OptimizationRequestRecord | None:
        try:
            response = self._table().select("*").eq("id", request_id).limit(1).execute()
        except Exception as exc:
            raise PersistenceError(f"Failed to load optimization request {request_id}: {exc}") from exc
        rows = response.data or []
        return record_from_dict(rows[0]) if rows else None

    def list_for_requester(self, requester_id: str, limit: int) -> list[OptimizationRequestRecord]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("requester_id", requester_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as exc:
            raise PersistenceError(f"Failed to list optimization requests for {requester_id}: {exc}") from exc
        return [record_from_dict(row) for row in response.data or []]


def build_request_store(kind: str | None = None) -> OptimizationRequestStore:
    match kind or settings.request_store:
        case "memory":
            return InMemoryRequestStore()
        case "file":
            return FileRequestStore()
        case "supabase":
            return SupabaseRequestStore()
        case other:
            raise ValueError(f"Unknown request store '{other}'.")
