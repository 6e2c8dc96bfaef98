from typing import List, Optional

from pydantic import Field

from site_intelligence.schemas.base import RecordSchema, UTCDateTime, WeatherImpact


class ForecastDay(RecordSchema):
    date: UTCDateTime
    temperature: Optional[float] = None
    conditions: str = ""
    rainfall: float = Field(default=0, ge=0)
    humidity: Optional[float] = None
    wind_speed: float = Field(default=0, ge=0)
    predicted_impact: Optional[WeatherImpact] = None


class WeatherImpactForecast(RecordSchema):
    forecast: List[ForecastDay] = Field(default_factory=list)
    predicted_delay: float = 0
    recommendations: List[str] = Field(default_factory=list)
    high_impact_days: int = 0
    medium_impact_days: int = 0
    low_impact_days: int = 0
    current_phase: str = "planning"
