import numpy as np
import pytest

from route_engine.models.domain import Route
from route_engine.schemas.optimization import OptimizeRouteRequest
from route_engine.services.optimization import strategies
from route_engine.services.rules import OptimizationResult


def _route(rid: str, distance: float, cost: float = 1000) -> Route:
    return Route(
        id=rid,
        name=f"Route {rid}",
        origin="Hamburg",
        destination="Rotterdam",
        total_distance=distance,
        estimated_duration=12,
        base_cost=cost,
    )


def _result(rid: str, score: float, distance: float = 1000, cost: float = 1000) -> OptimizationResult:
    return OptimizationResult(
        route=_route(rid, distance, cost),
        total_score=score,
        rule_results=[],
        passed=True,
        metadata={},
    )


def _request(**overrides) -> OptimizeRouteRequest:
    return OptimizeRouteRequest(origin="Hamburg", destination="Rotterdam", **overrides)


def _candidates() -> list[OptimizationResult]:
    return [_result(str(index), score) for index, score in enumerate([62, 88, 75, 40, 91, 55, 70, 83, 66, 79, 58, 95])]


def test_weighted_shortest_path_blends_distance():
    ranked = strategies.weighted_shortest_path([_result("A", 80, distance=1000)], _request(), np.random.default_rng(0))

    assert ranked[0].total_score == pytest.approx(80 * 0.7 + 90 * 0.3)
    assert ranked[0].metadata["rule_score"] == 80


def test_weighted_shortest_path_prefers_shorter_route_on_equal_score():
    results = [_result("long", 80, distance=9000), _result("short", 80, distance=500)]
    ranked = strategies.weighted_shortest_path(results, _request(), np.random.default_rng(0))

    assert [result.route.id for result in ranked] == ["short", "long"]


def test_distance_score_never_negative():
    assert strategies.distance_score(_route("far", 25_000)) == 0


def test_heuristic_combined_uses_budget_headroom():
    rng = np.random.default_rng(0)
    without_budget = strategies.heuristic_combined([_result("A", 80)], _request(), rng)[0]
    with_budget = strategies.heuristic_combined([_result("A", 80, cost=1000)], _request(max_cost=2000), rng)[0]

    assert without_budget.total_score == pytest.approx(80 * 0.6 + ((90 + 50) / 2) * 0.4)
    assert with_budget.total_score == pytest.approx(80 * 0.6 + ((90 + 50) / 2) * 0.4)
    assert with_budget.metadata["heuristic"] == pytest.approx(70)


def test_heuristic_combined_rewards_unused_budget():
    results = [_result("tight", 80, cost=1900), _result("roomy", 80, cost=500)]
    ranked = strategies.heuristic_combined(results, _request(max_cost=2000), np.random.default_rng(0))

    assert ranked[0].route.id == "roomy"


@pytest.mark.parametrize("name", sorted(strategies.STRATEGIES))
def test_strategies_preserve_every_candidate(name):
    candidates = _candidates()
    ranked = strategies.get_strategy(name)(candidates, _request(), np.random.default_rng(7))

    assert sorted(result.route.id for result in ranked) == sorted(result.route.id for result in candidates)
    assert all(0 <= result.total_score <= 100 for result in ranked)


@pytest.mark.parametrize("name", sorted(strategies.STRATEGIES))
def test_strategies_are_reproducible_with_seeded_generator(name):
    first = strategies.get_strategy(name)(_candidates(), _request(), np.random.default_rng(42))
    second = strategies.get_strategy(name)(_candidates(), _request(), np.random.default_rng(42))

    assert [r.route.id for r in first] == [r.route.id for r in second]
    assert [r.total_score for r in first] == [r.total_score for r in second]


@pytest.mark.parametrize("name", sorted(strategies.STRATEGIES))
def test_strategies_handle_empty_input(name):
    assert strategies.get_strategy(name)([], _request(), np.random.default_rng(0)) == []


def test_strategies_do_not_mutate_inputs():
    candidates = _candidates()
    before = [(result.route.id, result.total_score) for result in candidates]
    strategies.bounded_perturbation(candidates, _request(), np.random.default_rng(1))

    assert [(result.route.id, result.total_score) for result in candidates] == before


def test_bounded_perturbation_stays_within_amplitude():
    candidates = _candidates()
    ranked = strategies.bounded_perturbation(candidates, _request(), np.random.default_rng(3), amplitude=10)

    original = {result.route.id: result.total_score for result in candidates}
    for result in ranked:
        assert abs(result.total_score - original[result.route.id]) <= 5


def test_bounded_perturbation_with_empty_population_keeps_scores():
    candidates = _candidates()
    ranked = strategies.bounded_perturbation(candidates, _request(), np.random.default_rng(3), population_size=0)

    original = sorted(candidates, key=lambda result: result.total_score, reverse=True)
    assert [(result.route.id, result.total_score) for result in ranked] == [
        (result.route.id, result.total_score) for result in original
    ]


def test_acceptance_refinement_without_iterations_keeps_starting_candidate_first():
    candidates = _candidates()
    ranked = strategies.acceptance_refinement(candidates, _request(), np.random.default_rng(0), iterations=0)

    assert ranked[0].route.id == "0"
    rest = [result.total_score for result in ranked[1:]]
    assert rest == sorted(rest, reverse=True)


def test_acceptance_refinement_moves_best_visited_to_front():
    candidates = [_result("low", 10), _result("high", 90)]
    ranked = strategies.acceptance_refinement(candidates, _request(), np.random.default_rng(0), iterations=50)

    assert ranked[0].route.id == "high"
    assert ranked[0].metadata["refined_best"] is True


def test_reinforcement_without_agents_falls_back_to_score_order():
    ranked = strategies.reinforcement_reranking(_candidates(), _request(), np.random.default_rng(0), agents=0)
    scores = [result.total_score for result in ranked]

    assert scores == sorted(scores, reverse=True)
    assert all(result.metadata["pheromone"] == 1.0 for result in ranked)


def test_unknown_algorithm_is_rejected():
    with pytest.raises(ValueError, match="Unknown optimization algorithm"):
        strategies.apply_strategy(_candidates(), _request(preferences={"algorithm": "dijkstra"}), np.random.default_rng(0))


def test_default_algorithm_is_weighted_shortest_path():
    assert strategies.resolve_algorithm(_request()) == strategies.WEIGHTED_SHORTEST_PATH
    assert strategies.resolve_algorithm(_request(preferences={"algorithm": "Heuristic-Combined"})) == (
        strategies.HEURISTIC_COMBINED
    )
