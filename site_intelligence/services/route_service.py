from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from site_intelligence.config.logging import log_engine_operation
from site_intelligence.config.settings import Settings, get_settings
from site_intelligence.core.exceptions import (
    SiteNotFoundError,
    ValidationError,
    handle_service_errors,
)
from site_intelligence.engine.optimization.route_optimizer import RouteOptimizer, RouteOptimizerConfig
from site_intelligence.repositories.site_repo import SiteRepository
from site_intelligence.schemas.route import RouteConstraints


class RouteService:
    def __init__(self, db: Session, settings: Settings = None):
        self.db = db
        self.settings = settings or get_settings()
        self.site_repo = SiteRepository(db)
        self.optimizer = RouteOptimizer(RouteOptimizerConfig(
            default_visit_duration=self.settings.DEFAULT_VISIT_DURATION_MINUTES,
            average_speed_kmh=self.settings.AVERAGE_TRAVEL_SPEED_KMH,
        ))

    @handle_service_errors("Optimize survey route")
    def optimize_survey_route(
        self,
        starting_site_id: str,
        sites_to_visit: List[str],
        constraints: Optional[Union[RouteConstraints, Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Plan a survey route from the starting site through the requested sites"""
        constraints = self._parse_constraints(constraints)

        starting_site = self.site_repo.get_record(starting_site_id)
        if not starting_site:
            raise SiteNotFoundError(starting_site_id, role="Starting site")

        # Unknown site IDs are dropped here and never reported
        visit_sites = self.site_repo.get_records(sites_to_visit)
        plan = self.optimizer.optimize(starting_site, visit_sites, constraints)

        log_engine_operation(
            "optimize_survey_route",
            site_id=starting_site_id,
            result=f"{len(plan.optimized_route)} stops, {plan.total_distance:.1f} km",
        )

        result = plan.to_record()
        if result["unvisitedSites"] is None:
            del result["unvisitedSites"]
        return {"success": True, **result}

    @staticmethod
    def _parse_constraints(constraints) -> RouteConstraints:
        if constraints is None or isinstance(constraints, RouteConstraints):
            return constraints or RouteConstraints()
        try:
            return RouteConstraints.model_validate(constraints)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid route constraints", field="constraints")
