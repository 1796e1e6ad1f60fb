"""Carbon footprint rule."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest
from .base import RuleContext, RuleResult, score_against_ceiling


@dataclass(frozen=True, slots=True)
class CarbonFootprintRule:
    name: str = "Carbon Footprint"
    description: str = "Rejects routes above the emission cap and rewards cleaner candidates."
    priority: int = 5

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
            accessor=lambda candidate: candidate.carbon_footprint,
            limit=request.max_carbon_footprint,
            label="Carbon footprint",
        )
