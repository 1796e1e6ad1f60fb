import pytest

from route_engine.models.domain import Carrier, CarrierCapabilities, CarrierStatus, Route
from route_engine.schemas.optimization import OptimizeRouteRequest
from route_engine.services.rules import (
    CarbonFootprintRule,
    CarrierAvailabilityRule,
    CostOptimizationRule,
    ReliabilityRule,
    RuleContext,
    SafetyRule,
    TimeOptimizationRule,
    normalize_score,
)


def _route(rid: str, cost: float, duration: float, reliability: float, safety: float, carbon: float) -> Route:
    return Route(
        id=rid,
        name=f"Route {rid}",
        origin="New York",
        destination="Los Angeles",
        total_distance=3000,
        estimated_duration=duration,
        base_cost=cost,
        carbon_footprint=carbon,
        reliability_score=reliability,
        safety_score=safety,
    )


def _carrier(cid: str, **overrides) -> Carrier:
    values = dict(
        id=cid,
        name=f"Carrier {cid}",
        capabilities=CarrierCapabilities(cargo_types=("general",), max_weight=1000, max_volume=50),
        reliability_score=85,
        safety_score=90,
        cost_score=80,
        speed_score=75,
    )
    values.update(overrides)
    return Carrier(**values)


def _request(**overrides) -> OptimizeRouteRequest:
    return OptimizeRouteRequest(
        origin="New York",
        destination="Los Angeles",
        weight=500,
        volume=25,
        cargo_type="general",
        **overrides,
    )


ROUTE_A = _route("A", cost=1000, duration=24, reliability=90, safety=95, carbon=300)
ROUTE_B = _route("B", cost=2000, duration=48, reliability=70, safety=80, carbon=600)
CONTEXT = RuleContext.for_routes([ROUTE_A, ROUTE_B])


def test_normalize_score_degenerate_range_is_full_score():
    assert normalize_score(42, 42, 42, lower_is_better=True) == 100
    assert normalize_score(42, 42, 42, lower_is_better=False) == 100


def test_normalize_score_inverts_and_clamps():
    assert normalize_score(1000, 1000, 2000, lower_is_better=True) == 100
    assert normalize_score(2000, 1000, 2000, lower_is_better=True) == 0
    assert normalize_score(1500, 1000, 2000, lower_is_better=False) == pytest.approx(50)
    assert normalize_score(3000, 1000, 2000, lower_is_better=False) == 100


def test_cost_rule_fails_closed_above_budget():
    rule = CostOptimizationRule()
    result = rule.evaluate(ROUTE_B, [], _request(max_cost=1500), context=CONTEXT)

    assert result.passed is False
    assert result.score == 0


def test_cost_rule_rewards_cheapest_candidate():
    rule = CostOptimizationRule()
    cheap = rule.evaluate(ROUTE_A, [], _request(), context=CONTEXT)
    expensive = rule.evaluate(ROUTE_B, [], _request(), context=CONTEXT)

    assert cheap.passed and expensive.passed
    assert cheap.score == 100
    assert expensive.score == 0


def test_single_route_without_context_scores_full():
    result = CostOptimizationRule().evaluate(ROUTE_A, [], _request())

    assert result.passed
    assert result.score == 100


def test_time_rule_fails_closed_above_max_duration():
    result = TimeOptimizationRule().evaluate(ROUTE_B, [], _request(max_duration=36), context=CONTEXT)

    assert result.passed is False
    assert result.score == 0


def test_carbon_rule_fails_closed_even_for_excellent_route():
    result = CarbonFootprintRule().evaluate(ROUTE_A, [], _request(max_carbon_footprint=100), context=CONTEXT)

    assert result.passed is False
    assert result.score == 0


def test_reliability_and_safety_use_raw_scores():
    reliability = ReliabilityRule().evaluate(ROUTE_B, [], _request(), context=CONTEXT)
    safety = SafetyRule().evaluate(ROUTE_B, [], _request(), context=CONTEXT)

    assert reliability.score == 70
    assert safety.score == 80


def test_reliability_below_minimum_fails():
    result = ReliabilityRule().evaluate(ROUTE_B, [], _request(min_reliability_score=75))

    assert result.passed is False
    assert result.score == 0


def test_safety_below_minimum_fails():
    result = SafetyRule().evaluate(ROUTE_B, [], _request(min_safety_score=85))

    assert result.passed is False
    assert result.score == 0


def test_carrier_availability_without_matching_carrier_fails():
    carriers = [
        _carrier("C1", capabilities=CarrierCapabilities(cargo_types=("hazardous",))),
        _carrier("C2", status=CarrierStatus.SUSPENDED),
        _carrier("C3", capabilities=CarrierCapabilities(cargo_types=("general",), max_weight=100)),
    ]
    result = CarrierAvailabilityRule().evaluate(ROUTE_A, carriers, _request(), context=CONTEXT)

    assert result.passed is False
    assert result.score == 0


def test_carrier_availability_preferred_bonus():
    carriers = [_carrier("C1"), _carrier("C2")]
    rule = CarrierAvailabilityRule()

    preferred = rule.evaluate(ROUTE_A, carriers, _request(preferred_carrier_ids=["C2"]))
    neutral = rule.evaluate(ROUTE_A, carriers, _request())
    unmatched = rule.evaluate(ROUTE_A, carriers, _request(preferred_carrier_ids=["C9"]))

    quality = (85 + 90 + 80) / 3
    assert preferred.score == pytest.approx(100 * 0.3 + quality * 0.7)
    assert neutral.score == pytest.approx(50 * 0.3 + quality * 0.7)
    assert unmatched.score == pytest.approx(quality * 0.7)
    assert preferred.metadata["preferred_carriers"] == ["C2"]


def test_all_rule_scores_within_bounds():
    rules = [
        CostOptimizationRule(),
        TimeOptimizationRule(),
        ReliabilityRule(),
        SafetyRule(),
        CarbonFootprintRule(),
        CarrierAvailabilityRule(),
    ]
    request = _request(max_cost=1500, min_safety_score=85)
    for route in (ROUTE_A, ROUTE_B):
        for rule in rules:
            result = rule.evaluate(route, [_carrier("C1")], request, context=CONTEXT)
            assert 0 <= result.score <= 100
