"""Optimization request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

OptimizationCriteria = Literal["cost", "time", "distance", "carbon_footprint", "reliability", "safety", "combined"]


class OptimizationConstraints(BaseModel):
    strict_mode: bool = Field(
        default=False,
        description="If True, any route failing a single rule is excluded from the results.",
    )


class OptimizationPreferences(BaseModel):
    algorithm: Optional[str] = Field(
        default=None,
        description="Re-ranking strategy (e.g., 'weighted_shortest_path', 'heuristic_combined').",
    )


class OptimizeRouteRequest(BaseModel):
    origin: str
    destination: str
    criteria: OptimizationCriteria = "combined"
    weight: Optional[float] = Field(None, ge=0)
    volume: Optional[float] = Field(None, ge=0)
    cargo_type: Optional[str] = None
    constraints: OptimizationConstraints = Field(default_factory=OptimizationConstraints)
    preferences: OptimizationPreferences = Field(default_factory=OptimizationPreferences)
    preferred_carrier_ids: Optional[List[str]] = None
    max_cost: Optional[float] = Field(None, ge=0)
    max_duration: Optional[float] = Field(None, ge=0)
    max_distance: Optional[float] = Field(None, ge=0)
    min_reliability_score: Optional[float] = Field(None, ge=0, le=100)
    min_safety_score: Optional[float] = Field(None, ge=0, le=100)
    max_carbon_footprint: Optional[float] = Field(None, ge=0)
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Free-form data stored with the request.")

    def hard_constraints(self) -> Dict[str, float]:
        """Hard limits that were actually set, keyed by field name."""
        fields = (
            "max_cost",
            "max_duration",
            "max_distance",
            "min_reliability_score",
            "min_safety_score",
            "max_carbon_footprint",
        )
        return {name: getattr(self, name) for name in fields if getattr(self, name) is not None}


class CarrierSummaryModel(BaseModel):
    id: str
    name: str
    type: str
    reliability_score: float
    safety_score: float
    cost_score: float
    speed_score: float


class SegmentResultModel(BaseModel):
    segment_id: str
    type: str
    origin: str
    destination: str
    distance: float
    duration: float
    cost: float
    currency: str
    carbon_footprint: float
    reliability_score: float
    safety_score: float
    carrier: Optional[CarrierSummaryModel] = None


class RouteOptimizationResponse(BaseModel):
    request_id: Optional[str] = None
    route_id: str
    route_name: str
    origin: str
    destination: str
    optimized_cost: float
    optimized_distance: float
    optimized_duration: float
    carbon_footprint: float
    reliability_score: float
    safety_score: float
    currency: str
    segments: List[SegmentResultModel]
    metadata: dict
