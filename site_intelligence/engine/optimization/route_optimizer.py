"""
Field Visit Route Optimization Module
Plans multi-stop survey routes across solar sites with a constrained greedy heuristic.
Features:
- Full pairwise Haversine distance matrix
- Priority sites in the order requested, must-visit-first/last sites by proximity
- Nearest-neighbour fill bounded by a travel distance or travel time budget

The planner does not search for an optimal tour.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from site_intelligence.config.logging import log_performance
from site_intelligence.core.exceptions import EmptyVisitListError
from site_intelligence.schemas.route import (
    Coordinates,
    RouteConstraints,
    RoutePlan,
    RouteSite,
    RouteStop,
    UnvisitedSite,
)
from site_intelligence.schemas.site import SiteRecord
from site_intelligence.utils.geo_utils import GeoUtils

logger = logging.getLogger(__name__)


@dataclass
class RouteOptimizerConfig:
    """Configuration for route planning"""
    default_visit_duration: float = 60  # minutes
    average_speed_kmh: float = 40.0


class _RouteBuilder:
    """Mutable route state for a single optimization run."""

    def __init__(self, distance_matrix: np.ndarray, constraints: RouteConstraints,
                 average_speed_kmh: float):
        self.matrix = distance_matrix
        self.constraints = constraints
        self.average_speed_kmh = average_speed_kmh
        self.route: List[int] = [0]
        self.current = 0
        self.total_distance = 0.0
        self.remaining: Set[int] = set(range(1, len(distance_matrix)))

    def distance_to(self, index: int) -> float:
        return float(self.matrix[self.current][index])

    def fits(self, index: int) -> bool:
        """Check the travel budgets for moving from the current stop to index."""
        new_total = self.total_distance + self.distance_to(index)

        max_distance = self.constraints.max_travel_distance
        if max_distance is not None and new_total > max_distance:
            return False

        max_time = self.constraints.max_travel_time
        if max_time is not None and new_total / self.average_speed_kmh * 60 > max_time:
            return False

        return True

    def add(self, index: int):
        self.total_distance += self.distance_to(index)
        self.route.append(index)
        self.current = index
        self.remaining.discard(index)

    def add_all_by_proximity(self, indices: List[int]):
        """Insert indices sorted by distance from the current stop, skipping those over budget."""
        ordered = sorted(indices, key=lambda i: (self.distance_to(i), i))
        for index in ordered:
            if index in self.remaining and self.fits(index):
                self.add(index)


class RouteOptimizer:
    """Constrained greedy route planner over a set of sites."""

    def __init__(self, config: RouteOptimizerConfig = None):
        self.config = config or RouteOptimizerConfig()

    @log_performance("site_intelligence.engine.performance")
    def optimize(self, starting_site: SiteRecord, sites_to_visit: Sequence[SiteRecord],
                 constraints: Optional[RouteConstraints] = None) -> RoutePlan:
        """
        Plan a route from starting_site through sites_to_visit.

        Raises EmptyVisitListError when nothing other than the start remains to visit.
        """
        constraints = constraints or RouteConstraints()

        visit_sites = self._resolve_visit_sites(starting_site, sites_to_visit)
        if not visit_sites:
            raise EmptyVisitListError()

        nodes = [starting_site] + visit_sites
        index_by_id = {site.id: i for i, site in enumerate(nodes)}
        must_visit_last = set(constraints.must_visit_last)

        distance_matrix = GeoUtils.distance_matrix([site.to_location() for site in nodes])
        builder = _RouteBuilder(distance_matrix, constraints, self.config.average_speed_kmh)

        # Priority sites keep the order they were requested in
        for site_id in constraints.priority_sites:
            index = index_by_id.get(site_id)
            if index is None or index == 0 or site_id in must_visit_last:
                continue
            if index in builder.remaining and builder.fits(index):
                builder.add(index)

        builder.add_all_by_proximity(self._indices(constraints.must_visit_first, index_by_id))

        # Nearest neighbour over everything not reserved for the end
        while True:
            candidates = [i for i in builder.remaining if nodes[i].id not in must_visit_last]
            if not candidates:
                break

            nearest = min(candidates, key=lambda i: (builder.distance_to(i), i))
            if not builder.fits(nearest):
                logger.debug(f"Travel budget reached with {len(builder.remaining)} sites left")
                break
            builder.add(nearest)

        builder.add_all_by_proximity(self._indices(constraints.must_visit_last, index_by_id))

        return self._build_plan(nodes, builder, constraints)

    @staticmethod
    def _resolve_visit_sites(starting_site: SiteRecord,
                             sites_to_visit: Sequence[SiteRecord]) -> List[SiteRecord]:
        seen = {starting_site.id}
        resolved = []
        for site in sites_to_visit:
            if site.id in seen:
                continue
            seen.add(site.id)
            resolved.append(site)
        return resolved

    @staticmethod
    def _indices(site_ids: List[str], index_by_id: Dict[str, int]) -> List[int]:
        return [index_by_id[site_id] for site_id in site_ids
                if site_id in index_by_id and index_by_id[site_id] != 0]

    def _build_plan(self, nodes: List[SiteRecord], builder: _RouteBuilder,
                    constraints: RouteConstraints) -> RoutePlan:
        stops = []
        for position, index in enumerate(builder.route):
            site = nodes[index]
            distance_from_previous = 0.0 if position == 0 else float(
                builder.matrix[builder.route[position - 1]][index]
            )
            stops.append(RouteStop(
                site=RouteSite(
                    id=site.id,
                    code=site.site_code,
                    name=site.name,
                    coordinates=Coordinates(latitude=site.latitude, longitude=site.longitude),
                ),
                estimated_visit_time=constraints.visit_durations.get(
                    site.id, self.config.default_visit_duration
                ),
                distance_from_previous=distance_from_previous,
            ))

        unvisited = [
            UnvisitedSite(id=nodes[i].id, code=nodes[i].site_code, name=nodes[i].name)
            for i in sorted(builder.remaining)
        ]

        plan = RoutePlan(
            optimized_route=stops,
            total_distance=builder.total_distance,
            estimated_time=sum(stop.estimated_visit_time for stop in stops),
            unvisited_sites=unvisited or None,
        )

        logger.info(
            f"Planned route with {len(stops)} stops, {plan.total_distance:.1f} km, "
            f"{len(unvisited)} unvisited"
        )
        return plan
