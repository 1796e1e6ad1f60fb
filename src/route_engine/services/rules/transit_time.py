"""Time rule: hard ceiling on estimated duration, faster routes score higher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest
from .base import RuleContext, RuleResult, score_against_ceiling


@dataclass(frozen=True, slots=True)
class TimeOptimizationRule:
    name: str = "Time Optimization"
    description: str = "Rejects routes slower than the maximum duration and rewards faster candidates."
    priority: int = 2

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
            accessor=lambda candidate: candidate.estimated_duration,
            limit=request.max_duration,
            label="Duration",
        )
