from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

from route_engine.errors import PersistenceError, RequestNotFoundError
from route_engine.models.domain import OptimizationRequestRecord, OptimizationStatus, OptimizedSnapshot
from route_engine.persistence.optimization_requests import (
    FileRequestStore,
    InMemoryRequestStore,
    SupabaseRequestStore,
    build_request_store,
    record_from_dict,
    record_to_dict,
)


def _record(rid: str = "req-1", requester: str = "user-1", minute: int = 0) -> OptimizationRequestRecord:
    created = datetime(2025, 3, 1, 12, minute, tzinfo=timezone.utc)
    return OptimizationRequestRecord(
        id=rid,
        requester_id=requester,
        origin="Hamburg",
        destination="Rotterdam",
        criteria="combined",
        status=OptimizationStatus.PENDING,
        created_at=created,
        updated_at=created,
        cargo_type="general",
        constraints={"strict_mode": True},
        preferences={"algorithm": "heuristic_combined"},
        preferred_carrier_ids=("C1",),
        max_cost=1500,
    )


def _completed(record: OptimizationRequestRecord) -> OptimizationRequestRecord:
    snapshot = OptimizedSnapshot(
        route_id="R1",
        cost=1000,
        distance=480,
        duration=9,
        carbon_footprint=120,
        reliability_score=91,
        safety_score=94,
        algorithm="heuristic_combined",
    )
    return replace(record, status=OptimizationStatus.COMPLETED, optimized=snapshot, results={"total_score": 87.5})


def test_record_dict_round_trip_preserves_snapshot():
    record = _completed(_record())

    assert record_from_dict(record_to_dict(record)) == record


def test_file_store_creates_request_directory(tmp_path: Path) -> None:
    store = FileRequestStore(root=tmp_path)

    assert store.directory.exists()
    assert store.directory.parent == tmp_path


def test_file_store_writes_and_replaces_records(tmp_path: Path) -> None:
    store = FileRequestStore(root=tmp_path)
    record = _record()
    store.insert(record)
    store.save(_completed(record))

    loaded = store.get(record.id)
    assert loaded.status == OptimizationStatus.COMPLETED
    assert loaded.optimized.route_id == "R1"
    assert [path.name for path in store.directory.iterdir()] == ["req-1.json"]


def test_file_store_rejects_duplicates_and_unknown_ids(tmp_path: Path) -> None:
    store = FileRequestStore(root=tmp_path)
    store.insert(_record())

    with pytest.raises(PersistenceError):
        store.insert(_record())
    with pytest.raises(RequestNotFoundError):
        store.save(_record(rid="other"))
    assert store.get("other") is None


def test_file_store_removes_temp_file_when_write_fails(tmp_path: Path, monkeypatch) -> None:
    from route_engine.persistence import optimization_requests

    store = FileRequestStore(root=tmp_path)

    def refuse_replace(source, target):
        raise OSError("read-only file system")

    monkeypatch.setattr(optimization_requests.os, "replace", refuse_replace)

    with pytest.raises(PersistenceError, match="read-only"):
        store.insert(_record())
    assert list(store.directory.iterdir()) == []


def test_file_store_lists_newest_first(tmp_path: Path) -> None:
    store = FileRequestStore(root=tmp_path)
    store.insert(_record("old", minute=1))
    store.insert(_record("new", minute=5))
    store.insert(_record("foreign", requester="user-2", minute=9))

    assert [record.id for record in store.list_for_requester("user-1", 10)] == ["new", "old"]


def test_memory_store_rejects_duplicates():
    store = InMemoryRequestStore()
    store.insert(_record())

    with pytest.raises(PersistenceError):
        store.insert(_record())


def test_supabase_store_requires_configuration(monkeypatch):
    from route_engine.persistence import optimization_requests

    monkeypatch.setattr(optimization_requests, "get_supabase_client", lambda: None)

    with pytest.raises(PersistenceError):
        SupabaseRequestStore()


def test_supabase_store_wraps_client_errors():
    class BrokenClient:
        def table(self, name):
            raise ConnectionError("network down")

    store = SupabaseRequestStore(client=BrokenClient())

    with pytest.raises(PersistenceError, match="network down"):
        store.insert(_record())


def test_build_request_store_selects_backend(tmp_path: Path, monkeypatch):
    from route_engine.persistence import optimization_requests

    monkeypatch.setattr(optimization_requests.settings, "data_root", tmp_path)

    assert isinstance(build_request_store("memory"), InMemoryRequestStore)
    assert isinstance(build_request_store("file"), FileRequestStore)
    with pytest.raises(ValueError):
        build_request_store("redis")
