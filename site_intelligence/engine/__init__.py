from site_intelligence.engine.classification.quality_anomaly import QualityAnomalyDetector
from site_intelligence.engine.forecasting.risk_predictor import RiskPredictor
from site_intelligence.engine.forecasting.weather_impact import (
    SimulatedForecastProvider,
    WeatherImpactForecaster,
)
from site_intelligence.engine.optimization.resource_allocator import ResourceAllocationAnalyzer
from site_intelligence.engine.optimization.route_optimizer import RouteOptimizer

__all__ = [
    "QualityAnomalyDetector",
    "ResourceAllocationAnalyzer",
    "RiskPredictor",
    "RouteOptimizer",
    "SimulatedForecastProvider",
    "WeatherImpactForecaster",
]
