"""Optimization request persistence."""

from .optimization_requests import (
    FileRequestStore,
    InMemoryRequestStore,
    OptimizationRequestStore,
    SupabaseRequestStore,
    build_request_store,
)

__all__ = [
    "FileRequestStore",
    "InMemoryRequestStore",
    "OptimizationRequestStore",
    "SupabaseRequestStore",
    "build_request_store",
]
