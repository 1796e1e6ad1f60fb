"""State machine for optimization requests.

PENDING -> PROCESSING -> COMPLETED | FAILED, and PENDING | PROCESSING -> CANCELLED.
Terminal states never change: a transition attempted on a terminal request is a
no-op, so when a cancel races a completion, whichever lands first wins.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from ...errors import InvalidTransitionError, PersistenceError, RequestNotFoundError, RouteEngineError
from ...models.domain import OptimizationRequestRecord, OptimizationStatus, OptimizedSnapshot
from ...persistence.optimization_requests import OptimizationRequestStore
from ...schemas.optimization import OptimizeRouteRequest

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[OptimizationStatus, frozenset[OptimizationStatus]] = {
    OptimizationStatus.PENDING: frozenset({OptimizationStatus.PROCESSING, OptimizationStatus.CANCELLED}),
    OptimizationStatus.PROCESSING: frozenset(
        {OptimizationStatus.COMPLETED, OptimizationStatus.FAILED, OptimizationStatus.CANCELLED}
    ),
    OptimizationStatus.COMPLETED: frozenset(),
    OptimizationStatus.FAILED: frozenset(),
    OptimizationStatus.CANCELLED: frozenset(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OptimizationLifecycle:
    """Creates optimization requests and moves them through their states."""

    def __init__(self, store: OptimizationRequestStore) -> None:
        self.store = store
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, request_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(request_id, threading.Lock())

    def _release_lock(self, request_id: str) -> None:
        # Terminal requests never change again, so their lock can go.
        with self._locks_guard:
            self._locks.pop(request_id, None)

    def create(self, payload: OptimizeRouteRequest, requester_id: str) -> OptimizationRequestRecord:
        now = _now()
        record = OptimizationRequestRecord(
            id=str(uuid.uuid4()),
            requester_id=requester_id,
            origin=payload.origin,
            destination=payload.destination,
            criteria=payload.criteria,
            status=OptimizationStatus.PENDING,
            created_at=now,
            updated_at=now,
            weight=payload.weight,
            volume=payload.volume,
            cargo_type=payload.cargo_type,
            constraints=payload.constraints.model_dump(),
            preferences=payload.preferences.model_dump(),
            preferred_carrier_ids=tuple(payload.preferred_carrier_ids or ()),
            max_cost=payload.max_cost,
            max_duration=payload.max_duration,
            max_distance=payload.max_distance,
            min_reliability_score=payload.min_reliability_score,
            min_safety_score=payload.min_safety_score,
            max_carbon_footprint=payload.max_carbon_footprint,
            metadata=dict(payload.metadata or {}),
        )
        self.store.insert(record)
        logger.info(f"Created optimization request {record.id} for {payload.origin} -> {payload.destination}")
        return record

    def get(self, request_id: str) -> OptimizationRequestRecord:
        record = self.store.get(request_id)
        if record is None:
            raise RequestNotFoundError(request_id)
        return record

    def history(self, requester_id: str, limit: int) -> list[OptimizationRequestRecord]:
        return self.store.list_for_requester(requester_id, limit)

    def _transition(self, request_id: str, target: OptimizationStatus, **changes: Any) -> bool:
        """Move a request to ``target`` and store the whole new record in one write.

        Returns False without writing when the request is already terminal.
        """
        with self._lock_for(request_id):
            try:
                current = self.get(request_id)
            except RequestNotFoundError:
                self._release_lock(request_id)
                raise
            if current.status.is_terminal:
                self._release_lock(request_id)
                logger.info(
                    f"Ignoring {target.value} for request {request_id}: already {current.status.value}"
                )
                return False
            if target not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(
                    f"Cannot move optimization request {request_id} from {current.status.value} to {target.value}"
                )
            updated = replace(current, status=target, updated_at=_now(), **changes)
            try:
                self.store.save(updated)
            except RouteEngineError:
                raise
            except Exception as exc:
                raise PersistenceError(f"Failed to store optimization request {request_id}: {exc}") from exc
            if target.is_terminal:
                self._release_lock(request_id)
            return True

    def begin(self, request_id: str) -> bool:
        return self._transition(request_id, OptimizationStatus.PROCESSING)

    def complete(self, request_id: str, snapshot: OptimizedSnapshot, results: dict[str, Any]) -> bool:
        return self._transition(
            request_id,
            OptimizationStatus.COMPLETED,
            optimized=snapshot,
            results=results,
            error_message=None,
        )

    def fail(self, request_id: str, message: str) -> bool:
        logger.error(f"Optimization request {request_id} failed: {message}")
        return self._transition(request_id, OptimizationStatus.FAILED, error_message=message)

    def cancel(self, request_id: str) -> bool:
        return self._transition(request_id, OptimizationStatus.CANCELLED)
