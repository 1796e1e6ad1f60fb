"""Catalog statistics helpers."""

from .stats import carrier_statistics, route_statistics, top_carriers

__all__ = ["carrier_statistics", "route_statistics", "top_carriers"]
