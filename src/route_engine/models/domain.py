"""Domain models for routes, carriers and optimization requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class RouteStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    SUSPENDED = "suspended"


class CarrierStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    BLACKLISTED = "blacklisted"


class OptimizationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {OptimizationStatus.COMPLETED, OptimizationStatus.FAILED, OptimizationStatus.CANCELLED}
)


@dataclass(frozen=True, slots=True)
class RouteSegment:
    """One leg of a route with its own transport mode, cost and scores."""

    id: str
    route_id: str
    sequence: int
    mode: str
    origin: str
    destination: str
    distance: float
    duration: float
    cost: float
    currency: str = "USD"
    carbon_footprint: float = 0.0
    reliability_score: float = 0.0
    safety_score: float = 0.0
    supported_modes: tuple[str, ...] = ()
    cargo_types: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Route:
    """A priced, scored path between an origin and destination.

    Routes belong to the catalog and are never modified by the engine.
    """

    id: str
    name: str
    origin: str
    destination: str
    total_distance: float
    estimated_duration: float
    base_cost: float
    currency: str = "USD"
    carbon_footprint: float = 0.0
    reliability_score: float = 0.0
    safety_score: float = 0.0
    status: RouteStatus = RouteStatus.ACTIVE
    is_active: bool = True
    route_type: str = "domestic"
    segments: tuple[RouteSegment, ...] = ()

    def __post_init__(self) -> None:
        sequences = [segment.sequence for segment in self.segments]
        if any(later <= earlier for earlier, later in zip(sequences, sequences[1:])):
            raise ValueError(f"Route {self.id} segment sequences must be unique and increasing: {sequences}")


@dataclass(frozen=True, slots=True)
class CarrierCapabilities:
    cargo_types: tuple[str, ...] = ()
    max_weight: Optional[float] = None
    max_volume: Optional[float] = None
    segment_types: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Carrier:
    """An external transport provider with capability and performance attributes."""

    id: str
    name: str
    carrier_type: str = "trucking_company"
    capabilities: CarrierCapabilities = field(default_factory=CarrierCapabilities)
    description: str = ""
    headquarters: str = ""
    service_areas: tuple[str, ...] = ()
    status: CarrierStatus = CarrierStatus.ACTIVE
    is_active: bool = True
    reliability_score: float = 0.0
    safety_score: float = 0.0
    cost_score: float = 0.0
    speed_score: float = 0.0

    @property
    def is_available(self) -> bool:
        return self.is_active and self.status == CarrierStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class OptimizedSnapshot:
    """Metrics of the chosen route, written in one piece when a request completes."""

    route_id: str
    cost: float
    distance: float
    duration: float
    carbon_footprint: float
    reliability_score: float
    safety_score: float
    algorithm: str

    @classmethod
    def from_route(cls, route: Route, algorithm: str) -> "OptimizedSnapshot":
        return cls(
            route_id=route.id,
            cost=route.base_cost,
            distance=route.total_distance,
            duration=route.estimated_duration,
            carbon_footprint=route.carbon_footprint,
            reliability_score=route.reliability_score,
            safety_score=route.safety_score,
            algorithm=algorithm,
        )


@dataclass(frozen=True, slots=True)
class OptimizationRequestRecord:
    """Persisted state of one optimization attempt.

    Records are immutable; every lifecycle transition stores a new record.
    """

    id: str
    requester_id: str
    origin: str
    destination: str
    criteria: str
    status: OptimizationStatus
    created_at: datetime
    updated_at: datetime
    weight: Optional[float] = None
    volume: Optional[float] = None
    cargo_type: Optional[str] = None
    constraints: dict[str, Any] = field(default_factory=dict)
    preferences: dict[str, Any] = field(default_factory=dict)
    preferred_carrier_ids: tuple[str, ...] = ()
    max_cost: Optional[float] = None
    max_duration: Optional[float] = None
    max_distance: Optional[float] = None
    min_reliability_score: Optional[float] = None
    min_safety_score: Optional[float] = None
    max_carbon_footprint: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    optimized: Optional[OptimizedSnapshot] = None
    results: Optional[dict[str, Any]] = None
    error_message: Optional[str] = None
