from typing import Dict, Optional, Sequence

from sqlalchemy.orm import Session

from site_intelligence.models.site_project import SiteProject
from site_intelligence.repositories.base import CRUDBase
from site_intelligence.schemas.insights import AIInsights
from site_intelligence.schemas.site import ProjectRecord


class ProjectRepository(CRUDBase[SiteProject]):
    def __init__(self, db: Session):
        super().__init__(SiteProject, db)

    def get_by_site_id(self, site_id: str) -> Optional[SiteProject]:
        """Get extended project data by site ID"""
        return self.db.query(self.model).filter(self.model.site_id == site_id).first()

    def get_record(self, site_id: str) -> Optional[ProjectRecord]:
        project = self.get_by_site_id(site_id)
        return project.to_schema() if project else None

    def get_records_for_sites(self, site_ids: Sequence[str]) -> Dict[str, ProjectRecord]:
        """Project records keyed by site ID; sites without extended data are absent"""
        if not site_ids:
            return {}
        projects = self.db.query(self.model).filter(self.model.site_id.in_(list(site_ids))).all()
        return {project.site_id: project.to_schema() for project in projects}

    def save_record(self, record: ProjectRecord) -> SiteProject:
        """Insert or replace the extended data for a site"""
        existing = self.get_by_site_id(record.site_id)
        if existing is None:
            return self.create(obj_in=SiteProject.from_schema(record))

        data = SiteProject.from_schema(record)
        return self.update(db_obj=existing, obj_in={
            column: getattr(data, column)
            for column in (
                "project_progress", "materials", "team", "weather_history", "equipment",
                "design_parameters", "actual_parameters", "ai_insights",
            )
        })

    def save_ai_insights(self, project: SiteProject, insights: AIInsights) -> SiteProject:
        """Overwrite the stored AI insights"""
        return self.update(db_obj=project, obj_in={"ai_insights": insights.to_record()})
