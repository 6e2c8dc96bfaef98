from typing import List, Optional

from pydantic import Field

from site_intelligence.schemas.base import RecordSchema, RiskLevel, UTCDateTime


class NearbySite(RecordSchema):
    site_id: str
    site_code: Optional[str] = None
    name: Optional[str] = None
    distance: float
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AIInsights(RecordSchema):
    """Cached decision-support output written back onto the project record."""
    predicted_completion_date: Optional[UTCDateTime] = None
    risk_assessment: RiskLevel = RiskLevel.MEDIUM
    potential_delays: List[str] = Field(default_factory=list)
    suggestion_for_improvement: List[str] = Field(default_factory=list)
    nearby_related_sites: List[NearbySite] = Field(default_factory=list, max_length=5)
    efficiency_score: int = 0
    quality_issues: List[str] = Field(default_factory=list)
    resource_optimizations: List[str] = Field(default_factory=list)
    last_updated: Optional[UTCDateTime] = None
