from typing import Any, Dict

from sqlalchemy.orm import Session

from site_intelligence.core.exceptions import (
    ProjectRecordNotFoundError,
    SiteNotFoundError,
    handle_service_errors,
)
from site_intelligence.repositories.project_repo import ProjectRepository
from site_intelligence.repositories.site_repo import SiteRepository
from site_intelligence.utils.date_utils import DateUtils


class ReportService:
    def __init__(self, db: Session):
        self.db = db
        self.site_repo = SiteRepository(db)
        self.project_repo = ProjectRepository(db)

    @handle_service_errors("Generate project report")
    def generate_project_report(self, site_id: str) -> Dict[str, Any]:
        """Summary of site details, progress, materials and cached AI insights"""
        site = self.site_repo.get_record(site_id)
        if not site:
            raise SiteNotFoundError(site_id)

        record = self.project_repo.get_record(site_id)
        if not record:
            raise ProjectRecordNotFoundError(site_id)

        progress_summary = None
        if record.project_progress:
            progress = record.project_progress.to_record()
            progress_summary = {
                "overallCompletion": progress["overallCompletion"],
                "currentPhase": progress["currentPhase"],
                "startDate": progress["startDate"],
                "estimatedCompletionDate": progress["estimatedCompletionDate"],
                "revisedCompletionDate": progress["revisedCompletionDate"],
                "milestones": [
                    {
                        "name": milestone["name"],
                        "status": milestone["status"],
                        "completionPercentage": milestone["completionPercentage"],
                        "plannedDate": milestone["plannedDate"],
                        "actualDate": milestone["actualDate"],
                    }
                    for milestone in progress["milestones"]
                ],
            }

        report = {
            "siteInfo": {
                "id": site.id,
                "siteCode": site.site_code,
                "name": site.name,
                "coordinates": {"latitude": site.latitude, "longitude": site.longitude},
                "status": site.status,
                "region": site.region,
            },
            "progressSummary": progress_summary,
            "materialsStatus": [
                {
                    "name": material.name,
                    "status": material.status.value,
                    "quantity": material.quantity,
                    "unit": material.unit,
                }
                for material in record.materials
            ],
            "teamSize": len(record.team),
            "aiInsights": record.ai_insights.to_record() if record.ai_insights else None,
            "generatedAt": DateUtils.get_utc_now().isoformat(),
        }

        return {"success": True, "report": report}
