"""Builds the optimization response for the winning route."""

from __future__ import annotations

from typing import Optional, Sequence

from ...models.domain import Carrier, Route, RouteSegment
from ...schemas.optimization import CarrierSummaryModel, RouteOptimizationResponse, SegmentResultModel
from ..rules.base import OptimizationResult


def carrier_serves_segment(carrier: Carrier, segment: RouteSegment) -> bool:
    if not carrier.is_available:
        return False
    capabilities = carrier.capabilities
    if capabilities.segment_types and segment.mode not in capabilities.segment_types:
        return False
    if segment.cargo_types and capabilities.cargo_types:
        return bool(set(segment.cargo_types) & set(capabilities.cargo_types))
    return True


def best_carrier_for_segment(carriers: Sequence[Carrier], segment: RouteSegment) -> Optional[Carrier]:
    """Highest reliability + safety among carriers able to serve the segment; earliest wins ties."""
    best: Optional[Carrier] = None
    for carrier in carriers:
        if not carrier_serves_segment(carrier, segment):
            continue
        if best is None or (carrier.reliability_score + carrier.safety_score) > (
            best.reliability_score + best.safety_score
        ):
            best = carrier
    return best


def _carrier_summary(carrier: Carrier) -> CarrierSummaryModel:
    return CarrierSummaryModel(
        id=carrier.id,
        name=carrier.name,
        type=carrier.carrier_type,
        reliability_score=carrier.reliability_score,
        safety_score=carrier.safety_score,
        cost_score=carrier.cost_score,
        speed_score=carrier.speed_score,
    )


def _segment_result(segment: RouteSegment, carrier: Optional[Carrier]) -> SegmentResultModel:
    return SegmentResultModel(
        segment_id=segment.id,
        type=segment.mode,
        origin=segment.origin,
        destination=segment.destination,
        distance=segment.distance,
        duration=segment.duration,
        cost=segment.cost,
        currency=segment.currency,
        carbon_footprint=segment.carbon_footprint,
        reliability_score=segment.reliability_score,
        safety_score=segment.safety_score,
        carrier=_carrier_summary(carrier) if carrier else None,
    )


def compose_result(
    route: Route,
    optimization_result: OptimizationResult,
    carriers: Sequence[Carrier],
    *,
    request_id: str | None = None,
) -> RouteOptimizationResponse:
    segments = sorted(route.segments, key=lambda segment: segment.sequence)
    return RouteOptimizationResponse(
        request_id=request_id,
        route_id=route.id,
        route_name=route.name,
        origin=route.origin,
        destination=route.destination,
        optimized_cost=route.base_cost,
        optimized_distance=route.total_distance,
        optimized_duration=route.estimated_duration,
        carbon_footprint=route.carbon_footprint,
        reliability_score=route.reliability_score,
        safety_score=route.safety_score,
        currency=route.currency,
        segments=[_segment_result(segment, best_carrier_for_segment(carriers, segment)) for segment in segments],
        metadata={
            **optimization_result.metadata,
            "total_score": optimization_result.total_score,
            "passed": optimization_result.passed,
        },
    )
