"""Route optimization: strategies, request lifecycle and result composition."""

from .composer import compose_result
from .lifecycle import OptimizationLifecycle
from .service import RouteOptimizationService, optimize_route
from .strategies import STRATEGIES, apply_strategy, get_strategy

__all__ = [
    "OptimizationLifecycle",
    "RouteOptimizationService",
    "STRATEGIES",
    "apply_strategy",
    "compose_result",
    "get_strategy",
    "optimize_route",
]
