"""Exceptions raised by the route optimization engine."""

from __future__ import annotations


class RouteEngineError(Exception):
    """Base class for engine errors surfaced to callers."""


class RoutesNotFoundError(RouteEngineError):
    """Raised when the catalog has no candidate routes for an origin/destination pair."""

    def __init__(self, origin: str, destination: str) -> None:
        super().__init__(f"No routes found for the specified origin and destination ({origin} -> {destination})")
        self.origin = origin
        self.destination = destination


class UnsatisfiableError(RouteEngineError):
    """Raised when strict mode leaves zero passing routes."""


class RuleEvaluationError(RouteEngineError):
    """Raised by, or wrapped around, a rule that could not evaluate a route.

    The rules engine absorbs these into a failing rule result; they never reach the caller.
    """

    def __init__(self, rule_name: str, cause: BaseException) -> None:
        super().__init__(f"Error evaluating rule {rule_name}: {cause}")
        self.rule_name = rule_name
        self.cause = cause


class PersistenceError(RouteEngineError):
    """Raised when an optimization request could not be stored or read."""


class RequestNotFoundError(RouteEngineError):
    """Raised when an optimization request id is unknown."""

    def __init__(self, request_id: str) -> None:
        super().__init__(f"Optimization request not found: {request_id}")
        self.request_id = request_id


class InvalidTransitionError(RouteEngineError):
    """Raised when a lifecycle transition is not allowed from the current state."""


class OptimizationCancelledError(RouteEngineError):
    """Raised when a request was cancelled before its result could be recorded."""

    def __init__(self, request_id: str) -> None:
        super().__init__(f"Optimization request {request_id} was cancelled")
        self.request_id = request_id
