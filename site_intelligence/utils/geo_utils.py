"""
Geospatial utility functions for the site intelligence engine.
Handles distance calculations, proximity search and site clustering.
"""

import math
from typing import List, Tuple, Dict, Optional
from dataclasses import dataclass, field

import numpy as np

from site_intelligence.core.exceptions import InvalidCoordinatesError

# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


@dataclass
class Location:
    """Represents a geographical location, optionally tied to a site."""
    latitude: float
    longitude: float
    name: Optional[str] = None
    site_id: Optional[str] = None

    def __post_init__(self):
        self.validate_coordinates()

    def validate_coordinates(self):
        """Validate latitude and longitude ranges."""
        if self.latitude is None or self.longitude is None:
            raise InvalidCoordinatesError()
        if not (-90 <= self.latitude <= 90) or not (-180 <= self.longitude <= 180):
            raise InvalidCoordinatesError(self.latitude, self.longitude)

    def to_tuple(self) -> Tuple[float, float]:
        """Return coordinates as (lat, lon) tuple."""
        return (self.latitude, self.longitude)


@dataclass
class BoundingBox:
    """Represents a geographical bounding box."""
    north: float  # Max latitude
    south: float  # Min latitude
    east: float   # Max longitude
    west: float   # Min longitude

    def contains_point(self, location: Location) -> bool:
        """Check if a point is within the bounding box."""
        return (self.south <= location.latitude <= self.north and
                self.west <= location.longitude <= self.east)


@dataclass
class SiteCluster:
    """A star cluster: every member is within range of the seed site."""
    centroid: Tuple[float, float]
    site_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'centroid': {'lat': self.centroid[0], 'lng': self.centroid[1]},
            'siteIds': list(self.site_ids)
        }


class GeoUtils:
    """Geospatial helpers shared by the clustering, routing and nearby-site logic."""

    @staticmethod
    def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """
        Calculate the great circle distance between two points using Haversine formula.
        Returns distance in kilometers.
        """
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dphi = math.radians(lat2 - lat1)
        dlambda = math.radians(lon2 - lon1)

        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    @staticmethod
    def distance_between(loc1: Location, loc2: Location) -> float:
        """Haversine distance between two locations in kilometers."""
        return GeoUtils.haversine_distance(loc1.latitude, loc1.longitude,
                                           loc2.latitude, loc2.longitude)

    @staticmethod
    def distance_matrix(locations: List[Location]) -> np.ndarray:
        """Calculate the symmetric pairwise distance matrix between all locations."""
        n = len(locations)
        matrix = np.zeros((n, n))

        for i in range(n):
            for j in range(i + 1, n):
                distance = GeoUtils.distance_between(locations[i], locations[j])
                matrix[i][j] = distance
                matrix[j][i] = distance

        return matrix

    @staticmethod
    def bounding_box_around(center: Location, degrees: float) -> BoundingBox:
        """Square lat/lon box of +/- degrees around a point, used as a cheap prefilter."""
        return BoundingBox(
            north=center.latitude + degrees,
            south=center.latitude - degrees,
            east=center.longitude + degrees,
            west=center.longitude - degrees
        )

    @staticmethod
    def get_locations_within_radius(center: Location, locations: List[Location],
                                    radius_km: float) -> List[Tuple[Location, float]]:
        """
        Get all locations within specified radius from center point.
        Returns list of (location, distance) tuples, nearest first.
        """
        nearby_locations = []

        for location in locations:
            distance = GeoUtils.distance_between(center, location)
            if distance <= radius_km:
                nearby_locations.append((location, distance))

        nearby_locations.sort(key=lambda x: x[1])
        return nearby_locations

    @staticmethod
    def cluster_locations(locations: List[Location], max_distance_km: float) -> List[SiteCluster]:
        """
        Single-pass star clustering.

        Each unprocessed location in input order seeds a cluster and pulls in every
        other unprocessed location within max_distance_km of the seed. Members are
        not required to be within range of each other.
        """
        clusters: List[SiteCluster] = []
        processed = set()

        for index, seed in enumerate(locations):
            if index in processed:
                continue

            cluster = SiteCluster(centroid=seed.to_tuple(), site_ids=[seed.site_id])
            processed.add(index)

            for other_index, other in enumerate(locations):
                if other_index in processed:
                    continue
                if GeoUtils.distance_between(seed, other) <= max_distance_km:
                    cluster.site_ids.append(other.site_id)
                    processed.add(other_index)

            clusters.append(cluster)

        return clusters
