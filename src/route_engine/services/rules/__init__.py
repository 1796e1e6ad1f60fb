"""Route scoring rules and the engine that runs them."""

from .base import OptimizationResult, RouteRule, RuleContext, RuleResult, normalize_score
from .carbon import CarbonFootprintRule
from .carrier_availability import CarrierAvailabilityRule
from .cost import CostOptimizationRule
from .engine import RulesEngine, default_rules
from .reliability import ReliabilityRule
from .safety import SafetyRule
from .transit_time import TimeOptimizationRule

__all__ = [
    "CarbonFootprintRule",
    "CarrierAvailabilityRule",
    "CostOptimizationRule",
    "OptimizationResult",
    "ReliabilityRule",
    "RouteRule",
    "RuleContext",
    "RuleResult",
    "RulesEngine",
    "SafetyRule",
    "TimeOptimizationRule",
    "default_rules",
    "normalize_score",
]
