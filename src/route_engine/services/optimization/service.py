"""Route optimization orchestration service."""

from __future__ import annotations

import logging
from dataclasses import asdict
from functools import lru_cache
from typing import Any

import numpy as np

from ...config import settings
from ...data.catalog_repository import RouteCatalog, load_catalog
from ...errors import OptimizationCancelledError, RoutesNotFoundError, UnsatisfiableError
from ...models.domain import OptimizationRequestRecord, OptimizedSnapshot
from ...persistence.optimization_requests import OptimizationRequestStore, build_request_store
from ...schemas.optimization import OptimizeRouteRequest, RouteOptimizationResponse
from ..rules.base import OptimizationResult
from ..rules.engine import RulesEngine
from .composer import compose_result
from .lifecycle import OptimizationLifecycle
from .strategies import apply_strategy, resolve_algorithm

logger = logging.getLogger(__name__)


def _results_payload(result: OptimizationResult) -> dict[str, Any]:
    return {
        "total_score": result.total_score,
        "passed": result.passed,
        "rule_results": [asdict(rule_result) for rule_result in result.rule_results],
        "metadata": result.metadata,
    }


class RouteOptimizationService:
    """Scores catalog routes for a request, picks the best one and records the attempt."""

    def __init__(
        self,
        catalog: RouteCatalog,
        store: OptimizationRequestStore,
        engine: RulesEngine | None = None,
    ) -> None:
        self.catalog = catalog
        self.engine = engine or RulesEngine()
        self.lifecycle = OptimizationLifecycle(store)

    def optimize_route(
        self,
        payload: OptimizeRouteRequest,
        requester_id: str,
        *,
        rng: np.random.Generator | None = None,
    ) -> RouteOptimizationResponse:
        rng = rng if rng is not None else np.random.default_rng(settings.random_seed)
        record = self.lifecycle.create(payload, requester_id)
        if not self.lifecycle.begin(record.id):
            raise OptimizationCancelledError(record.id)

        try:
            algorithm = resolve_algorithm(payload)
            routes = self.catalog.find_routes(payload.origin, payload.destination, payload.hard_constraints())
            if not routes:
                raise RoutesNotFoundError(payload.origin, payload.destination)

            carriers = self.catalog.find_carriers(payload.preferred_carrier_ids)
            results = self.engine.evaluate_routes(routes, carriers, payload)
            if payload.constraints.strict_mode:
                results = [result for result in results if result.passed]
            if not results:
                raise UnsatisfiableError("No suitable routes found based on the specified criteria")

            ranked = apply_strategy(results, payload, rng)
            best = ranked[0]
            response = compose_result(best.route, best, carriers, request_id=record.id)
            response.metadata["algorithm"] = algorithm
            response.metadata["candidates"] = len(ranked)
        except Exception as exc:
            self.lifecycle.fail(record.id, str(exc))
            raise

        snapshot = OptimizedSnapshot.from_route(best.route, algorithm)
        if not self.lifecycle.complete(record.id, snapshot, _results_payload(best)):
            raise OptimizationCancelledError(record.id)
        logger.info(
            f"Optimization request {record.id} completed: route {best.route.id} "
            f"scored {best.total_score:.1f} using {algorithm}"
        )
        return response

    def cancel_optimization(self, request_id: str) -> OptimizationRequestRecord:
        self.lifecycle.cancel(request_id)
        return self.lifecycle.get(request_id)

    def get_optimization_request(self, request_id: str) -> OptimizationRequestRecord:
        return self.lifecycle.get(request_id)

    def get_optimization_history(self, requester_id: str, limit: int | None = None) -> list[OptimizationRequestRecord]:
        return self.lifecycle.history(requester_id, limit or settings.history_limit)


@lru_cache(maxsize=1)
def get_optimization_service() -> RouteOptimizationService:
    """Service wired to the configured catalog and request store."""
    return RouteOptimizationService(catalog=load_catalog(), store=build_request_store())


def optimize_route(payload: OptimizeRouteRequest, requester_id: str) -> RouteOptimizationResponse:
    return get_optimization_service().optimize_route(payload, requester_id)
