from typing import Any, Dict, List

from sqlalchemy.orm import Session

from site_intelligence.config.logging import log_engine_operation
from site_intelligence.config.settings import Settings, get_settings
from site_intelligence.core.exceptions import (
    ProjectRecordNotFoundError,
    SiteNotFoundError,
    handle_service_errors,
)
from site_intelligence.engine.forecasting.risk_predictor import RiskPredictor, RiskPredictorConfig
from site_intelligence.repositories.project_repo import ProjectRepository
from site_intelligence.repositories.site_repo import SiteRepository
from site_intelligence.schemas.insights import NearbySite
from site_intelligence.schemas.site import SiteRecord
from site_intelligence.utils.geo_utils import GeoUtils


class InsightsService:
    def __init__(self, db: Session, settings: Settings = None):
        self.db = db
        self.settings = settings or get_settings()
        self.site_repo = SiteRepository(db)
        self.project_repo = ProjectRepository(db)
        self.predictor = RiskPredictor(RiskPredictorConfig(
            related_site_radius_km=self.settings.RELATED_SITE_RADIUS_KM,
            max_related_sites=self.settings.MAX_RELATED_SITES,
            resource_sharing_radius_km=self.settings.RESOURCE_SHARING_RADIUS_KM,
        ))

    @handle_service_errors("Generate AI insights")
    def generate_ai_insights(self, site_id: str) -> Dict[str, Any]:
        """Predict completion and risk for a site and cache the result on its project record"""
        site = self.site_repo.get_record(site_id)
        if not site:
            raise SiteNotFoundError(site_id)

        project = self.project_repo.get_by_site_id(site_id)
        if not project:
            raise ProjectRecordNotFoundError(site_id)

        nearby_sites = self.nearby_sites(site, self.settings.NEARBY_SEARCH_RADIUS_KM)
        insights = self.predictor.predict(project.to_schema(), site=site, nearby_sites=nearby_sites)

        self.project_repo.save_ai_insights(project, insights)
        log_engine_operation("generate_ai_insights", site_id=site_id,
                             result=insights.risk_assessment.value)

        return {"success": True, "aiInsights": insights.to_record()}

    @handle_service_errors("Find nearby sites")
    def find_nearby_sites(self, site_id: str, max_distance_km: float = 50) -> Dict[str, Any]:
        """Sites within max_distance_km of the given site, closest first"""
        site = self.site_repo.get_record(site_id)
        if not site:
            raise SiteNotFoundError(site_id)

        nearby_sites = [
            {
                "id": nearby.site_id,
                "siteCode": nearby.site_code,
                "name": nearby.name,
                "distance": nearby.distance,
                "coordinates": {
                    "latitude": nearby.latitude,
                    "longitude": nearby.longitude,
                },
                "status": nearby.status,
            }
            for nearby in self.nearby_sites(site, max_distance_km)
        ]

        return {"success": True, "nearbySites": nearby_sites}

    def nearby_sites(self, site: SiteRecord, max_distance_km: float) -> List[NearbySite]:
        center = site.to_location()
        box = GeoUtils.bounding_box_around(center, self.settings.NEARBY_BOUNDING_BOX_DEGREES)
        candidates = {
            candidate.id: candidate
            for candidate in self.site_repo.find_in_bounding_box(box, exclude_id=site.id)
        }

        within_radius = GeoUtils.get_locations_within_radius(
            center, [candidate.to_location() for candidate in candidates.values()], max_distance_km
        )

        return [
            NearbySite(
                site_id=location.site_id,
                site_code=candidates[location.site_id].site_code,
                name=candidates[location.site_id].name,
                distance=distance,
                status=candidates[location.site_id].status,
                latitude=location.latitude,
                longitude=location.longitude,
            )
            for location, distance in within_radius
        ]
