from site_intelligence.services.insights_service import InsightsService
from site_intelligence.services.quality_service import QualityService
from site_intelligence.services.report_service import ReportService
from site_intelligence.services.resource_service import ResourceService
from site_intelligence.services.route_service import RouteService
from site_intelligence.services.weather_service import WeatherService

__all__ = [
    "InsightsService",
    "QualityService",
    "ReportService",
    "ResourceService",
    "RouteService",
    "WeatherService",
]
