"""Carrier availability rule.

A route is only viable when at least one active carrier can move the requested
cargo. The score blends a preferred-carrier bonus with the average quality
(reliability, safety, cost) of the carriers able to take the shipment.
"""

from __future__ import annotations

from dataclasses import dataclass
from statistics import mean
from typing import Optional, Sequence

from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest
from .base import RuleContext, RuleResult, clamp_score, hard_fail

PREFERRED_WEIGHT = 0.3
QUALITY_WEIGHT = 0.7
NO_PREFERENCE_BONUS = 50.0


def carrier_accepts_cargo(carrier: Carrier, request: OptimizeRouteRequest) -> bool:
    capabilities = carrier.capabilities
    if request.cargo_type and capabilities.cargo_types and request.cargo_type not in capabilities.cargo_types:
        return False
    if request.weight is not None and capabilities.max_weight is not None and request.weight > capabilities.max_weight:
        return False
    if request.volume is not None and capabilities.max_volume is not None and request.volume > capabilities.max_volume:
        return False
    return True


def suitable_carriers(carriers: Sequence[Carrier], request: OptimizeRouteRequest) -> list[Carrier]:
    return [carrier for carrier in carriers if carrier.is_available and carrier_accepts_cargo(carrier, request)]


@dataclass(frozen=True, slots=True)
class CarrierAvailabilityRule:
    name: str = "Carrier Availability"
    description: str = "Requires an active carrier able to handle the cargo type, weight and volume."
    priority: int = 6

    def evaluate(
        self,
        route: Route,
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        *,
        context: Optional[RuleContext] = None,
    ) -> RuleResult:
        suitable = suitable_carriers(carriers, request)
        if not suitable:
            return hard_fail(
                "No suitable carriers available for the requested cargo",
                total_carriers=len(carriers),
                suitable_carriers=0,
            )

        preferred_ids = set(request.preferred_carrier_ids or ())
        preferred_suitable = [carrier.id for carrier in suitable if carrier.id in preferred_ids]
        if not preferred_ids:
            bonus = NO_PREFERENCE_BONUS
        else:
            bonus = 100.0 if preferred_suitable else 0.0

        quality = mean(
            (carrier.reliability_score + carrier.safety_score + carrier.cost_score) / 3 for carrier in suitable
        )
        score = clamp_score(bonus * PREFERRED_WEIGHT + quality * QUALITY_WEIGHT)
        return RuleResult(
            passed=True,
            score=score,
            message=f"{len(suitable)} suitable carrier(s) available",
            metadata={
                "total_carriers": len(carriers),
                "suitable_carriers": len(suitable),
                "preferred_carriers": preferred_suitable,
                "average_quality": quality,
            },
        )
