from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from site_intelligence.config.logging import log_engine_operation
from site_intelligence.config.settings import Settings, get_settings
from site_intelligence.core.exceptions import InsufficientDataError, handle_service_errors
from site_intelligence.engine.optimization.resource_allocator import (
    ResourceAllocationAnalyzer,
    ResourceAllocationConfig,
)
from site_intelligence.repositories.project_repo import ProjectRepository
from site_intelligence.repositories.site_repo import SiteRepository


class ResourceService:
    def __init__(self, db: Session, settings: Settings = None):
        self.db = db
        self.settings = settings or get_settings()
        self.site_repo = SiteRepository(db)
        self.project_repo = ProjectRepository(db)
        self.analyzer = ResourceAllocationAnalyzer(ResourceAllocationConfig(
            max_distance_km=self.settings.CLUSTER_MAX_DISTANCE_KM,
        ))

    @handle_service_errors("Analyze resource allocation")
    def analyze_resource_allocation(self, region: Optional[str] = None,
                                    max_distance_km: Optional[float] = None) -> Dict[str, Any]:
        """Cross-site team and equipment analysis over active sites"""
        sites = self.site_repo.get_active(region)
        if not sites:
            raise InsufficientDataError("No active sites found for resource analysis")

        records = self.project_repo.get_records_for_sites([site.id for site in sites])
        analysis = self.analyzer.analyze(sites, records, max_distance_km)

        log_engine_operation("analyze_resource_allocation",
                             result=f"efficiency {analysis.overall_efficiency}")

        return {"success": True, "resourceAnalysis": analysis.to_record()}
