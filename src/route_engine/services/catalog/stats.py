"""Aggregate statistics over catalog routes and carriers."""

from __future__ import annotations

from collections import Counter
from statistics import mean
from typing import Any, Sequence

from ...models.domain import Carrier, Route, RouteStatus


def _average(values: list[float]) -> float:
    return mean(values) if values else 0.0


def route_statistics(routes: Sequence[Route]) -> dict[str, Any]:
    """Summarise active routes: counts by type plus average distance, cost and duration."""
    active = [route for route in routes if route.is_active]
    return {
        "total_routes": len(active),
        "active_routes": sum(1 for route in active if route.status == RouteStatus.ACTIVE),
        "routes_by_type": dict(Counter(route.route_type for route in active)),
        "average_distance": _average([route.total_distance for route in active]),
        "average_cost": _average([route.base_cost for route in active]),
        "average_duration": _average([route.estimated_duration for route in active]),
    }


def carrier_statistics(carriers: Sequence[Carrier]) -> dict[str, Any]:
    active = [carrier for carrier in carriers if carrier.is_active]
    return {
        "total_carriers": len(active),
        "active_carriers": sum(1 for carrier in active if carrier.is_available),
        "carriers_by_type": dict(Counter(carrier.carrier_type for carrier in active)),
        "average_reliability_score": _average([carrier.reliability_score for carrier in active]),
        "average_safety_score": _average([carrier.safety_score for carrier in active]),
        "average_cost_score": _average([carrier.cost_score for carrier in active]),
        "average_speed_score": _average([carrier.speed_score for carrier in active]),
    }


def top_carriers(carriers: Sequence[Carrier], limit: int = 10) -> list[Carrier]:
    available = [carrier for carrier in carriers if carrier.is_available]
    ranked = sorted(
        available,
        key=lambda carrier: (carrier.reliability_score, carrier.safety_score),
        reverse=True,
    )
    return ranked[:limit]
