"""
Weather Impact Forecasting Module
Projects weather-driven schedule delay for a site from a daily forecast and the
site's own weather history.

With enough history each forecast day is classified by the average impact of
historical days in the same rainfall bracket; otherwise static rules apply.
Forecast data is supplied by the caller or by a ForecastProvider.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from site_intelligence.config.logging import log_performance
from site_intelligence.schemas.base import IMPACT_ORDINAL, WeatherImpact
from site_intelligence.schemas.site import WeatherRecord
from site_intelligence.schemas.weather import ForecastDay, WeatherImpactForecast
from site_intelligence.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

CONSTRUCTION_PHASES = ("construction", "installation")
DESIGN_PHASES = ("design", "planning")

# (high impact day weight, medium impact day weight) in days of delay
PHASE_DELAY_WEIGHTS = {
    "construction": (1.0, 0.5),
    "design": (0.2, 0.1),
    "other": (0.5, 0.25),
}


@dataclass
class WeatherImpactConfig:
    """Configuration for weather impact forecasting"""
    min_history_records: int = 5
    heavy_rainfall_mm: float = 30.0
    medium_rainfall_mm: float = 10.0
    high_wind_kmh: float = 25.0
    buffer_delay_days: float = 3.0
    high_impact_day_alert: int = 2


class ForecastProvider:
    """Source of daily forecasts for a site."""

    def get_forecast(self, latitude: float, longitude: float, days: int,
                     start: Optional[datetime] = None) -> List[ForecastDay]:
        raise NotImplementedError


class SimulatedForecastProvider(ForecastProvider):
    """
    Seasonal forecast simulator used where no weather service is wired in.

    Rain is more likely in the June-September monsoon months. A seeded provider
    returns the same forecast for the same request on every call.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed

    def get_forecast(self, latitude: float, longitude: float, days: int,
                     start: Optional[datetime] = None) -> List[ForecastDay]:
        start = DateUtils.to_utc(start) if start else DateUtils.get_utc_now()
        rng = np.random.default_rng(self.seed)
        forecast = []

        for offset in range(days):
            forecast_date = start + timedelta(days=offset)
            rain_probability = 0.4 if DateUtils.is_monsoon_month(forecast_date) else 0.1
            will_rain = rng.random() < rain_probability

            if will_rain:
                conditions = "Heavy Rain" if rng.random() > 0.5 else "Light Rain"
            else:
                conditions = "Sunny" if rng.random() > 0.5 else "Partly Cloudy"

            forecast.append(ForecastDay(
                date=forecast_date,
                temperature=round(20 + rng.random() * 15),
                conditions=conditions,
                rainfall=round(rng.random() * 50) if will_rain else 0,
                humidity=round(50 + rng.random() * 50),
                wind_speed=round(rng.random() * 30),
            ))

        return forecast


class WeatherImpactForecaster:
    """Forward delay projection from forecast and historical weather."""

    def __init__(self, config: WeatherImpactConfig = None):
        self.config = config or WeatherImpactConfig()

    @log_performance("site_intelligence.engine.performance")
    def forecast_impact(self, forecast: List[ForecastDay], weather_history: List[WeatherRecord],
                        current_phase: Optional[str] = None) -> WeatherImpactForecast:
        current_phase = current_phase or "planning"
        use_history = len(weather_history) >= self.config.min_history_records

        classified = [
            day.model_copy(update={
                "predicted_impact": self.classify_from_history(day, weather_history)
                if use_history else self.classify_static(day)
            })
            for day in forecast
        ]

        high_days = len([d for d in classified if d.predicted_impact == WeatherImpact.HIGH])
        medium_days = len([d for d in classified if d.predicted_impact == WeatherImpact.MEDIUM])
        low_days = len([d for d in classified if d.predicted_impact == WeatherImpact.LOW])

        predicted_delay = self.estimate_delay(high_days, medium_days, current_phase)
        recommendations = self.recommendations(classified, predicted_delay, high_days, current_phase)

        logger.info(
            f"Weather forecast over {len(classified)} days: {high_days} high, "
            f"{medium_days} medium impact, predicted delay {predicted_delay} days "
            f"({'historical' if use_history else 'static'} rules)"
        )

        return WeatherImpactForecast(
            forecast=classified,
            predicted_delay=predicted_delay,
            recommendations=recommendations,
            high_impact_days=high_days,
            medium_impact_days=medium_days,
            low_impact_days=low_days,
            current_phase=current_phase,
        )

    def classify_static(self, day: ForecastDay) -> WeatherImpact:
        if day.rainfall > self.config.heavy_rainfall_mm:
            return WeatherImpact.HIGH
        if day.rainfall > self.config.medium_rainfall_mm or day.wind_speed > self.config.high_wind_kmh:
            return WeatherImpact.MEDIUM
        if "rain" in day.conditions.lower():
            return WeatherImpact.LOW
        return WeatherImpact.NONE

    def classify_from_history(self, day: ForecastDay, history: List[WeatherRecord]) -> WeatherImpact:
        heavy = self.config.heavy_rainfall_mm
        medium = self.config.medium_rainfall_mm

        if day.rainfall > heavy:
            similar = [h for h in history if h.rainfall > heavy]
            return self._average_impact(similar, default=WeatherImpact.HIGH)

        if day.rainfall > medium:
            similar = [h for h in history if medium < h.rainfall <= heavy]
            return self._average_impact(similar, default=WeatherImpact.MEDIUM)

        if day.wind_speed > self.config.high_wind_kmh:
            return WeatherImpact.MEDIUM

        return WeatherImpact.LOW

    @staticmethod
    def _average_impact(records: List[WeatherRecord], default: WeatherImpact) -> WeatherImpact:
        if not records:
            return default

        average = sum(IMPACT_ORDINAL[r.impact] for r in records) / len(records)
        if average > 2.5:
            return WeatherImpact.HIGH
        elif average > 1.5:
            return WeatherImpact.MEDIUM
        return WeatherImpact.LOW

    @staticmethod
    def phase_weights(current_phase: str):
        phase = current_phase.lower()
        if phase in CONSTRUCTION_PHASES:
            return PHASE_DELAY_WEIGHTS["construction"]
        if phase in DESIGN_PHASES:
            return PHASE_DELAY_WEIGHTS["design"]
        return PHASE_DELAY_WEIGHTS["other"]

    def estimate_delay(self, high_days: int, medium_days: int, current_phase: str) -> float:
        """Weighted impact days, rounded half-up to the nearest half day."""
        high_weight, medium_weight = self.phase_weights(current_phase)
        raw_delay = high_days * high_weight + medium_days * medium_weight
        return max(0.0, math.floor(raw_delay * 2 + 0.5) / 2)

    def recommendations(self, forecast: List[ForecastDay], predicted_delay: float,
                        high_days: int, current_phase: str) -> List[str]:
        recommendations = []

        if predicted_delay > self.config.buffer_delay_days:
            recommendations.append(
                f"Consider adding {math.ceil(predicted_delay)} buffer days to the timeline "
                f"due to forecast adverse weather"
            )
            recommendations.append("Plan indoor work activities during predicted heavy rainfall days")

        if high_days > self.config.high_impact_day_alert and current_phase.lower() in CONSTRUCTION_PHASES:
            recommendations.append(
                "Secure construction materials and equipment for upcoming high impact weather days"
            )

        if any(day.rainfall > self.config.heavy_rainfall_mm for day in forecast):
            recommendations.append("Implement drainage inspection before heavy rainfall days")

        return recommendations
