from typing import Any, Dict

from sqlalchemy.orm import Session

from site_intelligence.config.logging import log_engine_operation
from site_intelligence.core.exceptions import ProjectRecordNotFoundError, handle_service_errors
from site_intelligence.engine.classification.quality_anomaly import QualityAnomalyDetector
from site_intelligence.repositories.project_repo import ProjectRepository


class QualityService:
    def __init__(self, db: Session):
        self.db = db
        self.project_repo = ProjectRepository(db)
        self.detector = QualityAnomalyDetector()

    @handle_service_errors("Detect quality issues")
    def detect_quality_issues(self, site_id: str) -> Dict[str, Any]:
        record = self.project_repo.get_record(site_id)
        if not record:
            raise ProjectRecordNotFoundError(site_id)

        analysis = self.detector.detect(record)
        log_engine_operation("detect_quality_issues", site_id=site_id,
                             result=analysis.risk_level.value)

        return {"success": True, "qualityAnalysis": analysis.to_record()}
