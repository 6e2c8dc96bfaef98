from typing import Dict, List, Optional

from pydantic import Field

from site_intelligence.schemas.base import RecordSchema


class RouteConstraints(RecordSchema):
    max_travel_distance: Optional[float] = Field(default=None, gt=0)
    max_travel_time: Optional[float] = Field(default=None, gt=0)  # minutes of driving
    priority_sites: List[str] = Field(default_factory=list)
    visit_durations: Dict[str, float] = Field(default_factory=dict)  # site id -> minutes
    must_visit_first: List[str] = Field(default_factory=list)
    must_visit_last: List[str] = Field(default_factory=list)


class Coordinates(RecordSchema):
    latitude: float
    longitude: float


class RouteSite(RecordSchema):
    id: str
    code: Optional[str] = None
    name: Optional[str] = None
    coordinates: Coordinates


class RouteStop(RecordSchema):
    site: RouteSite
    estimated_visit_time: float
    distance_from_previous: float


class UnvisitedSite(RecordSchema):
    id: str
    code: Optional[str] = None
    name: Optional[str] = None


class RoutePlan(RecordSchema):
    optimized_route: List[RouteStop] = Field(default_factory=list)
    total_distance: float = 0
    estimated_time: float = 0
    unvisited_sites: Optional[List[UnvisitedSite]] = None

    @property
    def site_ids(self) -> List[str]:
        return [stop.site.id for stop in self.optimized_route]
