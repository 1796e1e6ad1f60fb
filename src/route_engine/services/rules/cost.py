"""Cost rule: hard ceiling on base cost, cheaper routes score higher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest
from .base import RuleContext, RuleResult, score_against_ceiling


@dataclass(frozen=True, slots=True)
class CostOptimizationRule:
    name: str = "Cost Optimization"
    description: str = "Rejects routes above the cost budget and rewards cheaper candidates."
    priority: int = 1

    def evaluate(
        self,
        route: Route,
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        *,
        context: Optional[RuleContext] = None,
    ) -> RuleResult:
        return score_against_ceiling(
            route,
            context,
            accessor=lambda candidate: candidate.base_cost,
            limit=request.max_cost,
            label="Cost",
        )
