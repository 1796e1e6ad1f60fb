"""Route and carrier catalog with a database-first approach, falling back to an Excel workbook."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Protocol, Sequence

from openpyxl import load_workbook

from ..config import settings
from ..db.supabase import fetch_rows, get_supabase_client
from ..models.domain import Carrier, CarrierCapabilities, CarrierStatus, Route, RouteSegment, RouteStatus

ROUTE_COLUMNS = {"id", "name", "origin", "destination", "total_distance", "estimated_duration", "base_cost"}
SEGMENT_COLUMNS = {"id", "route_id", "sequence", "mode", "origin", "destination", "distance", "duration", "cost"}
CARRIER_COLUMNS = {"id", "name"}

# Hard constraint name -> (route attribute, True when the limit is an upper bound)
HARD_CONSTRAINT_FIELDS: dict[str, tuple[str, bool]] = {
    "max_cost": ("base_cost", True),
    "max_duration": ("estimated_duration", True),
    "max_distance": ("total_distance", True),
    "min_reliability_score": ("reliability_score", False),
    "min_safety_score": ("safety_score", False),
    "max_carbon_footprint": ("carbon_footprint", True),
}


class RouteCatalog(Protocol):
    def find_routes(
        self, origin: str, destination: str, hard_constraints: Mapping[str, float] | None = None
    ) -> list[Route]:
        ...

    def find_carriers(self, preferred_ids: Sequence[str] | None = None) -> list[Carrier]:
        ...


def _meets_constraints(route: Route, hard_constraints: Mapping[str, float]) -> bool:
    for name, limit in hard_constraints.items():
        if limit is None or name not in HARD_CONSTRAINT_FIELDS:
            continue
        attribute, upper_bound = HARD_CONSTRAINT_FIELDS[name]
        value = getattr(route, attribute)
        if (upper_bound and value > limit) or (not upper_bound and value < limit):
            return False
    return True


class InMemoryCatalog:
    """Read-only catalog over already-loaded routes and carriers."""

    def __init__(self, routes: Iterable[Route] = (), carriers: Iterable[Carrier] = ()) -> None:
        self._routes: tuple[Route, ...] = tuple(routes)
        self._carriers: tuple[Carrier, ...] = tuple(carriers)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    @property
    def carriers(self) -> tuple[Carrier, ...]:
        return self._carriers

    def get_route(self, route_id: str) -> Route | None:
        return next((route for route in self._routes if route.id == route_id), None)

    def find_routes(
        self, origin: str, destination: str, hard_constraints: Mapping[str, float] | None = None
    ) -> list[Route]:
        """Active routes for the pair that satisfy every hard limit, shortest first."""
        hard_constraints = hard_constraints or {}
        matches = [
            route
            for route in self._routes
            if route.origin == origin
            and route.destination == destination
            and route.is_active
            and route.status == RouteStatus.ACTIVE
            and _meets_constraints(route, hard_constraints)
        ]
        return sorted(matches, key=lambda route: route.total_distance)

    def find_carriers(self, preferred_ids: Sequence[str] | None = None) -> list[Carrier]:
        carriers = [carrier for carrier in self._carriers if carrier.is_available]
        if preferred_ids:
            wanted = set(preferred_ids)
            carriers = [carrier for carrier in carriers if carrier.id in wanted]
        return carriers

    def search_routes(self, term: str) -> list[Route]:
        needle = term.strip().lower()
        matches = [
            route
            for route in self._routes
            if route.is_active
            and any(needle in value.lower() for value in (route.name, route.origin, route.destination))
        ]
        return sorted(matches, key=lambda route: route.total_distance)

    def routes_by_type(self, route_type: str) -> list[Route]:
        matches = [
            route
            for route in self._routes
            if route.route_type == route_type and route.is_active and route.status == RouteStatus.ACTIVE
        ]
        return sorted(matches, key=lambda route: route.total_distance)

    def search_carriers(self, term: str) -> list[Carrier]:
        """Active carriers whose name, description or headquarters mention ``term``, most reliable first."""
        needle = term.strip().lower()
        matches = [
            carrier
            for carrier in self._carriers
            if carrier.is_active
            and any(needle in value.lower() for value in (carrier.name, carrier.description, carrier.headquarters))
        ]
        return _most_reliable_first(matches)

    def carriers_by_type(self, carrier_type: str) -> list[Carrier]:
        return _most_reliable_first(
            carrier for carrier in self._carriers if carrier.carrier_type == carrier_type and carrier.is_available
        )

    def carriers_by_service_area(self, service_area: str) -> list[Carrier]:
        return _most_reliable_first(
            carrier for carrier in self._carriers if service_area in carrier.service_areas and carrier.is_available
        )


def _most_reliable_first(carriers: Iterable[Carrier]) -> list[Carrier]:
    return sorted(carriers, key=lambda carrier: carrier.reliability_score, reverse=True)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item).strip() for item in value if str(item).strip())
    return tuple(item.strip() for item in str(value).split(",") if item.strip())


def _as_float(value: Any, default: float | None = 0.0) -> float | None:
    if value is None or value == "":
        return default
    return float(value)


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def segment_from_row(row: Mapping[str, Any]) -> RouteSegment:
    return RouteSegment(
        id=str(row["id"]),
        route_id=str(row["route_id"]),
        sequence=int(row["sequence"]),
        mode=str(row["mode"]),
        origin=str(row["origin"]),
        destination=str(row["destination"]),
        distance=float(row["distance"]),
        duration=float(row["duration"]),
        cost=float(row["cost"]),
        currency=str(row.get("currency") or "USD"),
        carbon_footprint=_as_float(row.get("carbon_footprint")),
        reliability_score=_as_float(row.get("reliability_score")),
        safety_score=_as_float(row.get("safety_score")),
        supported_modes=_as_tuple(row.get("supported_modes")),
        cargo_types=_as_tuple(row.get("cargo_types")),
    )


def route_from_row(row: Mapping[str, Any], segments: Sequence[RouteSegment] = ()) -> Route:
    return Route(
        id=str(row["id"]),
        name=str(row["name"]),
        origin=str(row["origin"]),
        destination=str(row["destination"]),
        total_distance=float(row["total_distance"]),
        estimated_duration=float(row["estimated_duration"]),
        base_cost=float(row["base_cost"]),
        currency=str(row.get("currency") or "USD"),
        carbon_footprint=_as_float(row.get("carbon_footprint")),
        reliability_score=_as_float(row.get("reliability_score")),
        safety_score=_as_float(row.get("safety_score")),
        status=RouteStatus(str(row.get("status") or "active").lower()),
        is_active=_as_bool(row.get("is_active")),
        route_type=str(row.get("route_type") or "domestic"),
        segments=tuple(sorted(segments, key=lambda segment: segment.sequence)),
    )


def carrier_from_row(row: Mapping[str, Any]) -> Carrier:
    return Carrier(
        id=str(row["id"]),
        name=str(row["name"]),
        carrier_type=str(row.get("carrier_type") or "trucking_company"),
        capabilities=CarrierCapabilities(
            cargo_types=_as_tuple(row.get("cargo_types")),
            max_weight=_as_float(row.get("max_weight"), None),
            max_volume=_as_float(row.get("max_volume"), None),
            segment_types=_as_tuple(row.get("segment_types")),
        ),
        description=str(row.get("description") or ""),
        headquarters=str(row.get("headquarters") or ""),
        service_areas=_as_tuple(row.get("service_areas")),
        status=CarrierStatus(str(row.get("status") or "active").lower()),
        is_active=_as_bool(row.get("is_active")),
        reliability_score=_as_float(row.get("reliability_score")),
        safety_score=_as_float(row.get("safety_score")),
        cost_score=_as_float(row.get("cost_score")),
        speed_score=_as_float(row.get("speed_score")),
    )


def build_catalog(
    route_rows: Iterable[Mapping[str, Any]],
    segment_rows: Iterable[Mapping[str, Any]],
    carrier_rows: Iterable[Mapping[str, Any]],
) -> InMemoryCatalog:
    segments_by_route: dict[str, list[RouteSegment]] = {}
    for row in segment_rows:
        try:
            segment = segment_from_row(row)
        except (KeyError, ValueError, TypeError) as e:
            logging.warning(f"Skipping invalid segment row {row.get('id')}: {e}")
            continue
        segments_by_route.setdefault(segment.route_id, []).append(segment)

    routes: list[Route] = []
    for row in route_rows:
        try:
            routes.append(route_from_row(row, segments_by_route.get(str(row["id"]), [])))
        except (KeyError, ValueError, TypeError) as e:
            # Skip invalid rows but continue processing
            logging.warning(f"Skipping invalid route row {row.get('id')}: {e}")

    carriers: list[Carrier] = []
    for row in carrier_rows:
        try:
            carriers.append(carrier_from_row(row))
        except (KeyError, ValueError, TypeError) as e:
            logging.warning(f"Skipping invalid carrier row {row.get('id')}: {e}")

    return InMemoryCatalog(routes, carriers)


def _load_catalog_from_database() -> InMemoryCatalog | None:
    """Load the catalog from Supabase. Returns None if database not available or empty."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        routes = fetch_rows(supabase, "routes")
        if not routes:
            return None
        segments = fetch_rows(supabase, "route_segments")
        carriers = fetch_rows(supabase, "carriers")
    except Exception as e:
        # If database query fails, return None to fall back to file
        logging.debug(f"Catalog query failed, falling back to file: {e}")
        return None

    return build_catalog(routes, segments, carriers)


def _iter_sheet(workbook, sheet_name: str, required: set[str]) -> Iterator[dict[str, Any]]:
    if sheet_name not in workbook.sheetnames:
        raise ValueError(f"Catalog workbook missing sheet '{sheet_name}'")
    rows = workbook[sheet_name].iter_rows(min_row=1, values_only=True)
    header = next(rows, None)
    if header is None:
        return
    names = [str(name).strip() if name is not None else "" for name in header]
    missing_columns = required - set(names)
    if missing_columns:
        raise ValueError(f"Sheet '{sheet_name}' missing columns: {', '.join(sorted(missing_columns))}")
    for row in rows:
        if row is None or all(value is None for value in row):
            continue
        yield {name: value for name, value in zip(names, row) if name}


def _load_catalog_from_file(source: Path | None = None) -> InMemoryCatalog:
    """Load the catalog from the Excel workbook."""
    workbook_path = source or settings.catalog_file
    if not workbook_path.exists():
        raise FileNotFoundError(f"Catalog workbook not found: {workbook_path}")

    wb = load_workbook(workbook_path, data_only=True, read_only=True)
    try:
        routes = list(_iter_sheet(wb, "routes", ROUTE_COLUMNS))
        segments = list(_iter_sheet(wb, "segments", SEGMENT_COLUMNS))
        carriers = list(_iter_sheet(wb, "carriers", CARRIER_COLUMNS))
    finally:
        wb.close()
    return build_catalog(routes, segments, carriers)


@lru_cache(maxsize=1)
def load_catalog() -> InMemoryCatalog:
    """Load the catalog, trying the database first and falling back to the workbook."""
    catalog = _load_catalog_from_database()
    if catalog is not None:
        logging.info(f"Loaded {len(catalog.routes)} routes and {len(catalog.carriers)} carriers from database")
        return catalog
    catalog = _load_catalog_from_file()
    logging.info(f"Loaded {len(catalog.routes)} routes and {len(catalog.carriers)} carriers from {settings.catalog_file}")
    return catalog
