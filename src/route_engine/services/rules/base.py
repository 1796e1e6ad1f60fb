"""Shared types for route scoring rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Sequence

from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest

MIN_SCORE = 0.0
MAX_SCORE = 100.0


@dataclass(slots=True)
class RuleResult:
    passed: bool
    score: float
    message: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class OptimizationResult:
    route: Route
    total_score: float
    rule_results: list[RuleResult]
    passed: bool
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RuleContext:
    """Candidate set a route is scored against."""

    candidates: tuple[Route, ...]

    @classmethod
    def for_routes(cls, routes: Sequence[Route]) -> "RuleContext":
        return cls(candidates=tuple(routes))

    def value_range(self, accessor: Callable[[Route], float]) -> tuple[float, float]:
        values = [accessor(route) for route in self.candidates]
        return min(values), max(values)


class RouteRule(Protocol):
    """Contract for pluggable rules evaluated by the rules engine."""

    name: str
    description: str
    priority: int

    def evaluate(
        self,
        route: Route,
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        *,
        context: Optional[RuleContext] = None,
    ) -> RuleResult:
        ...


def clamp_score(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def normalize_score(value: float, minimum: float, maximum: float, *, lower_is_better: bool) -> float:
    """Scale ``value`` onto 0-100 within the observed ``[minimum, maximum]`` range.

    A degenerate range (all candidates equal) scores 100.
    """
    if maximum == minimum:
        return MAX_SCORE
    normalized = (value - minimum) / (maximum - minimum)
    if lower_is_better:
        normalized = 1 - normalized
    return clamp_score(normalized * 100)


def resolve_context(route: Route, context: Optional[RuleContext]) -> RuleContext:
    if context is None or not context.candidates:
        return RuleContext(candidates=(route,))
    if route not in context.candidates:
        return RuleContext(candidates=context.candidates + (route,))
    return context


def hard_fail(message: str, **metadata: Any) -> RuleResult:
    return RuleResult(passed=False, score=MIN_SCORE, message=message, metadata=metadata)


def score_against_ceiling(
    route: Route,
    context: Optional[RuleContext],
    *,
    accessor: Callable[[Route], float],
    limit: Optional[float],
    label: str,
) -> RuleResult:
    """Fail when the route exceeds ``limit``; otherwise reward the lowest value among candidates."""
    value = accessor(route)
    if limit is not None and value > limit:
        return hard_fail(f"{label} {value} exceeds maximum {limit}", value=value, limit=limit)

    minimum, maximum = resolve_context(route, context).value_range(accessor)
    score = normalize_score(value, minimum, maximum, lower_is_better=True)
    return RuleResult(
        passed=True,
        score=score,
        message=f"{label} {value} scored {score:.1f} within range [{minimum}, {maximum}]",
        metadata={"value": value, "limit": limit, "min": minimum, "max": maximum},
    )


def score_against_floor(
    route: Route,
    *,
    value: float,
    minimum: Optional[float],
    label: str,
) -> RuleResult:
    """Fail when the route is below ``minimum``; otherwise use its raw 0-100 score."""
    if minimum is not None and value < minimum:
        return hard_fail(f"{label} {value} is below minimum {minimum}", value=value, minimum=minimum)
    return RuleResult(
        passed=True,
        score=clamp_score(value),
        message=f"{label} {value} meets requirements",
        metadata={"value": value, "minimum": minimum},
    )
