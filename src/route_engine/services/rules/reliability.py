"""Reliability rule: minimum reliability, scored on the route's own rating."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest
from .base import RuleContext, RuleResult, score_against_floor


@dataclass(frozen=True, slots=True)
class ReliabilityRule:
    name: str = "Reliability"
    description: str = "Requires a minimum route reliability score."
    priority: int = 3

    def evaluate(
        self,
        route: Route,
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        *,
        context: Optional[RuleContext] = None,
    ) -> RuleResult:
        return score_against_floor(
            route,
            value=route.reliability_score,
            minimum=request.min_reliability_score,
            label="Reliability score",
        )
