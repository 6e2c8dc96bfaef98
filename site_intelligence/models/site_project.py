"""
Extended project data for a site. Nested project documents are stored as JSON
in the camelCase shape produced by the record schemas.
"""
from sqlalchemy import JSON, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from site_intelligence.models.base import Base, TimestampMixin
from site_intelligence.schemas.site import ProjectRecord


class SiteProject(TimestampMixin, Base):
    """Project progress, resources, weather and AI insights for one site."""

    __tablename__ = "site_projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(String(64), ForeignKey("sites.id"), unique=True, nullable=False, index=True)

    project_progress = Column(JSON)
    materials = Column(JSON, default=list)
    team = Column(JSON, default=list)
    weather_history = Column(JSON, default=list)
    equipment = Column(JSON, default=list)
    design_parameters = Column(JSON)
    actual_parameters = Column(JSON)
    ai_insights = Column(JSON)

    site = relationship("Site", back_populates="project")

    def to_schema(self) -> ProjectRecord:
        return ProjectRecord.model_validate({
            "siteId": self.site_id,
            "projectProgress": self.project_progress,
            "materials": self.materials or [],
            "team": self.team or [],
            "weatherHistory": self.weather_history or [],
            "equipment": self.equipment or [],
            "designParameters": self.design_parameters,
            "actualParameters": self.actual_parameters,
            "aiInsights": self.ai_insights,
        })

    @classmethod
    def from_schema(cls, record: ProjectRecord) -> "SiteProject":
        data = record.to_record()
        return cls(
            site_id=record.site_id,
            project_progress=data["projectProgress"],
            materials=data["materials"],
            team=data["team"],
            weather_history=data["weatherHistory"],
            equipment=data["equipment"],
            design_parameters=data["designParameters"],
            actual_parameters=data["actualParameters"],
            ai_insights=data["aiInsights"],
        )

    def __repr__(self):
        return f"<SiteProject(site_id='{self.site_id}')>"
