from typing import Dict, List

from pydantic import Field

from site_intelligence.schemas.base import RecordSchema, RiskLevel


class ResourceAnalysis(RecordSchema):
    overallocated_resources: List[str] = Field(default_factory=list)
    underallocated_resources: List[str] = Field(default_factory=list)
    resource_transfer_suggestions: List[str] = Field(default_factory=list)
    equipment_utilization: Dict[str, float] = Field(default_factory=dict)
    skill_gaps: List[str] = Field(default_factory=list)
    overall_efficiency: int = 0


class QualityAnalysis(RecordSchema):
    potential_issues: List[str] = Field(default_factory=list)
    recommended_checks: List[str] = Field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW
    affected_components: List[str] = Field(default_factory=list)
