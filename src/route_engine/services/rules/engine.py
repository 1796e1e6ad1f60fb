"""Rules engine: evaluates candidate routes against the registered rule set."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from statistics import mean
from typing import Iterable, Optional, Sequence

from ...config import settings
from ...errors import RuleEvaluationError
from ...models.domain import Carrier, Route
from ...schemas.optimization import OptimizeRouteRequest
from .base import OptimizationResult, RouteRule, RuleContext, RuleResult, clamp_score
from .carbon import CarbonFootprintRule
from .carrier_availability import CarrierAvailabilityRule
from .cost import CostOptimizationRule
from .reliability import ReliabilityRule
from .safety import SafetyRule
from .transit_time import TimeOptimizationRule

logger = logging.getLogger(__name__)


def default_rules() -> list[RouteRule]:
    return [
        CostOptimizationRule(),
        TimeOptimizationRule(),
        ReliabilityRule(),
        SafetyRule(),
        CarbonFootprintRule(),
        CarrierAvailabilityRule(),
    ]


def _metadata_key(rule_name: str) -> str:
    return re.sub(r"\s+", "_", rule_name.strip().lower())


class RulesEngine:
    """Ordered rule registry plus route evaluation and ranking."""

    def __init__(
        self,
        rules: Iterable[RouteRule] | None = None,
        *,
        parallel_threshold: int | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._rules: list[RouteRule] = []
        for rule in default_rules() if rules is None else rules:
            self._register(rule)
        self._sort()
        self.parallel_threshold = settings.parallel_threshold if parallel_threshold is None else parallel_threshold
        self.max_workers = settings.max_workers if max_workers is None else max_workers

    # Registry ---------------------------------------------------------------

    @property
    def rules(self) -> list[RouteRule]:
        return list(self._rules)

    def get_rule(self, name: str) -> RouteRule | None:
        return next((rule for rule in self._rules if rule.name == name), None)

    def add_rule(self, rule: RouteRule) -> None:
        """Register ``rule``, replacing any rule with the same name."""
        self._register(rule)
        self._sort()

    def remove_rule(self, name: str) -> bool:
        for index, rule in enumerate(self._rules):
            if rule.name == name:
                del self._rules[index]
                self._sort()
                return True
        return False

    def _register(self, rule: RouteRule) -> None:
        self._rules = [existing for existing in self._rules if existing.name != rule.name]
        self._rules.append(rule)

    def _sort(self) -> None:
        self._rules.sort(key=lambda rule: rule.priority)

    # Evaluation -------------------------------------------------------------

    def _run_rule(
        self,
        rule: RouteRule,
        route: Route,
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        context: RuleContext,
    ) -> RuleResult:
        try:
            result = rule.evaluate(route, carriers, request, context=context)
            return RuleResult(
                passed=bool(result.passed),
                score=clamp_score(float(result.score)),
                message=result.message,
                metadata={**result.metadata, "rule_name": rule.name},
            )
        except Exception as exc:
            error = exc if isinstance(exc, RuleEvaluationError) else RuleEvaluationError(rule.name, exc)
            logger.warning(f"Rule '{rule.name}' failed on route {route.id}: {exc}")
            return RuleResult(
                passed=False,
                score=0.0,
                message=str(error),
                metadata={"error": str(exc), "rule_name": rule.name},
            )

    def evaluate_route(
        self,
        route: Route,
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        *,
        context: Optional[RuleContext] = None,
    ) -> OptimizationResult:
        context = context or RuleContext.for_routes([route])
        rule_results: list[RuleResult] = []
        metadata: dict = {}
        for rule in list(self._rules):
            result = self._run_rule(rule, route, carriers, request, context)
            rule_results.append(result)
            metadata[_metadata_key(rule.name)] = {
                "passed": result.passed,
                "score": result.score,
                "message": result.message,
            }

        average_score = mean(result.score for result in rule_results) if rule_results else 0.0
        passed_rules = sum(1 for result in rule_results if result.passed)
        metadata.update(
            {
                "average_score": average_score,
                "total_rules": len(rule_results),
                "passed_rules": passed_rules,
                "failed_rules": len(rule_results) - passed_rules,
            }
        )
        return OptimizationResult(
            route=route,
            total_score=average_score,
            rule_results=rule_results,
            passed=passed_rules == len(rule_results),
            metadata=metadata,
        )

    def evaluate_routes(
        self,
        routes: Sequence[Route],
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
    ) -> list[OptimizationResult]:
        """Evaluate every candidate; results are returned in candidate order."""
        routes = list(routes)
        context = RuleContext.for_routes(routes)
        if len(routes) <= self.parallel_threshold:
            return [self.evaluate_route(route, carriers, request, context=context) for route in routes]

        results: list[OptimizationResult | None] = [None] * len(routes)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self.evaluate_route, route, carriers, request, context=context): index
                for index, route in enumerate(routes)
            }
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()
        logger.debug(f"Evaluated {len(routes)} routes with {self.max_workers} workers")
        return [result for result in results if result is not None]

    def get_best_routes(
        self,
        routes: Sequence[Route],
        carriers: Sequence[Carrier],
        request: OptimizeRouteRequest,
        limit: int | None = None,
    ) -> list[OptimizationResult]:
        limit = settings.best_routes_limit if limit is None else limit
        results = self.evaluate_routes(routes, carriers, request)
        if request.constraints.strict_mode:
            results = [result for result in results if result.passed]
        # sorted() is stable, so equal scores keep catalog order
        return sorted(results, key=lambda result: result.total_score, reverse=True)[:limit]
