"""Re-ranking strategies applied to already-scored candidate routes.

Every strategy takes the rules engine output, the request and a random
generator, and returns the same candidates in a new order. None of them walk a
graph: the weighted strategies blend the rule score with distance and budget
terms, and the stochastic ones run a fixed, small number of random trials over
the scored candidates. They are local heuristics with no guarantee of finding
the global optimum.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Callable, Optional, Sequence

import numpy as np

from ...config import settings
from ...models.domain import Route
from ...schemas.optimization import OptimizeRouteRequest
from ..rules.base import OptimizationResult, clamp_score

Strategy = Callable[[Sequence[OptimizationResult], OptimizeRouteRequest, np.random.Generator], list[OptimizationResult]]

WEIGHTED_SHORTEST_PATH = "weighted_shortest_path"
HEURISTIC_COMBINED = "heuristic_combined"
BOUNDED_PERTURBATION = "bounded_perturbation"
ACCEPTANCE_REFINEMENT = "acceptance_refinement"
REINFORCEMENT_RERANKING = "reinforcement_reranking"

NO_BUDGET_HEADROOM = 50.0


def distance_score(route: Route, reference_max: float | None = None) -> float:
    """Shorter routes score higher against a fixed reference distance."""
    reference = reference_max or settings.reference_max_distance_km
    return max(0.0, (reference - route.total_distance) / reference * 100)


def cost_headroom_score(route: Route, request: OptimizeRouteRequest) -> float:
    if not request.max_cost:
        return NO_BUDGET_HEADROOM
    return max(0.0, (request.max_cost - route.base_cost) / request.max_cost * 100)


def _by_score(results: Sequence[OptimizationResult]) -> list[OptimizationResult]:
    return sorted(results, key=lambda result: result.total_score, reverse=True)


def _rescored(result: OptimizationResult, score: float, strategy: str, **extra) -> OptimizationResult:
    metadata = {
        **result.metadata,
        "rule_score": result.metadata.get("rule_score", result.total_score),
        "strategy": strategy,
        **extra,
    }
    return replace(result, total_score=clamp_score(score), metadata=metadata)


def weighted_shortest_path(
    results: Sequence[OptimizationResult],
    request: OptimizeRouteRequest,
    rng: np.random.Generator,
) -> list[OptimizationResult]:
    rescored = [
        _rescored(
            result,
            result.total_score * 0.7 + distance_score(result.route) * 0.3,
            WEIGHTED_SHORTEST_PATH,
        )
        for result in results
    ]
    return _by_score(rescored)


def heuristic_combined(
    results: Sequence[OptimizationResult],
    request: OptimizeRouteRequest,
    rng: np.random.Generator,
) -> list[OptimizationResult]:
    rescored = []
    for result in results:
        heuristic = (distance_score(result.route) + cost_headroom_score(result.route, request)) / 2
        rescored.append(
            _rescored(
                result,
                result.total_score * 0.6 + heuristic * 0.4,
                HEURISTIC_COMBINED,
                heuristic=heuristic,
            )
        )
    return _by_score(rescored)


def bounded_perturbation(
    results: Sequence[OptimizationResult],
    request: OptimizeRouteRequest,
    rng: np.random.Generator,
    *,
    population_size: Optional[int] = None,
    amplitude: Optional[float] = None,
) -> list[OptimizationResult]:
    """Jitter the scores of the leading candidates by at most ``amplitude / 2``."""
    population_size = settings.perturbation_population_size if population_size is None else population_size
    amplitude = settings.perturbation_amplitude if amplitude is None else amplitude

    ordered = _by_score(results)
    population, rest = ordered[:population_size], ordered[population_size:]
    perturbed = [
        _rescored(
            result,
            result.total_score + (rng.random() - 0.5) * amplitude,
            BOUNDED_PERTURBATION,
        )
        for result in population
    ]
    return _by_score(perturbed) + [_rescored(result, result.total_score, BOUNDED_PERTURBATION) for result in rest]


def acceptance_refinement(
    results: Sequence[OptimizationResult],
    request: OptimizeRouteRequest,
    rng: np.random.Generator,
    *,
    iterations: Optional[int] = None,
    temperature: Optional[float] = None,
    cooling_rate: Optional[float] = None,
) -> list[OptimizationResult]:
    """Random walk with Metropolis acceptance; the best candidate visited moves to the front.

    The walk starts at the first candidate in catalog order, so a short walk may
    never visit the top-scored route.
    """
    if not results:
        return []
    iterations = settings.refinement_iterations if iterations is None else iterations
    temperature = temperature or settings.refinement_temperature
    cooling_rate = cooling_rate or settings.refinement_cooling_rate

    candidates = list(results)
    current = best = 0
    for _ in range(iterations):
        neighbor = int(rng.integers(len(candidates)))
        delta = candidates[neighbor].total_score - candidates[current].total_score
        if delta > 0 or rng.random() < math.exp(delta / temperature):
            current = neighbor
            if candidates[current].total_score > candidates[best].total_score:
                best = current
        temperature *= cooling_rate

    leader = candidates[best]
    others = _by_score(candidate for index, candidate in enumerate(candidates) if index != best)
    return [
        _rescored(result, result.total_score, ACCEPTANCE_REFINEMENT, refined_best=index == 0)
        for index, result in enumerate([leader, *others])
    ]


def reinforcement_reranking(
    results: Sequence[OptimizationResult],
    request: OptimizeRouteRequest,
    rng: np.random.Generator,
    *,
    agents: Optional[int] = None,
    deposit: Optional[float] = None,
) -> list[OptimizationResult]:
    """Agents pick candidates by pheromone roulette and reinforce them in proportion to score."""
    if not results:
        return []
    agents = settings.reinforcement_agents if agents is None else agents
    deposit = settings.reinforcement_deposit if deposit is None else deposit

    ordered = _by_score(results)
    pheromone = np.ones(len(ordered))
    for _ in range(agents):
        choice = int(rng.choice(len(ordered), p=pheromone / pheromone.sum()))
        pheromone[choice] += deposit * ordered[choice].total_score / 100

    ranking = sorted(range(len(ordered)), key=lambda index: pheromone[index], reverse=True)
    return [
        _rescored(
            ordered[index],
            ordered[index].total_score,
            REINFORCEMENT_RERANKING,
            pheromone=float(pheromone[index]),
        )
        for index in ranking
    ]


STRATEGIES: dict[str, Strategy] = {
    WEIGHTED_SHORTEST_PATH: weighted_shortest_path,
    HEURISTIC_COMBINED: heuristic_combined,
    BOUNDED_PERTURBATION: bounded_perturbation,
    ACCEPTANCE_REFINEMENT: acceptance_refinement,
    REINFORCEMENT_RERANKING: reinforcement_reranking,
}


def resolve_algorithm(request: OptimizeRouteRequest) -> str:
    algorithm = request.preferences.algorithm or settings.default_algorithm
    return algorithm.strip().lower().replace("-", "_")


def get_strategy(name: str) -> Strategy:
    strategy = STRATEGIES.get(name)
    if strategy is None:
        raise ValueError(f"Unknown optimization algorithm '{name}'.")
    return strategy


def apply_strategy(
    results: Sequence[OptimizationResult],
    request: OptimizeRouteRequest,
    rng: np.random.Generator,
) -> list[OptimizationResult]:
    strategy = get_strategy(resolve_algorithm(request))
    return strategy(results, request, rng)
