from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from site_intelligence.config.logging import log_engine_operation
from site_intelligence.config.settings import Settings, get_settings
from site_intelligence.core.exceptions import (
    ProjectRecordNotFoundError,
    SiteNotFoundError,
    handle_service_errors,
)
from site_intelligence.engine.forecasting.weather_impact import (
    ForecastProvider,
    SimulatedForecastProvider,
    WeatherImpactConfig,
    WeatherImpactForecaster,
)
from site_intelligence.repositories.project_repo import ProjectRepository
from site_intelligence.repositories.site_repo import SiteRepository
from site_intelligence.schemas.weather import ForecastDay


class WeatherService:
    def __init__(self, db: Session, settings: Settings = None,
                 provider: Optional[ForecastProvider] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.site_repo = SiteRepository(db)
        self.project_repo = ProjectRepository(db)
        self.provider = provider or SimulatedForecastProvider(seed=self.settings.FORECAST_RANDOM_SEED)
        self.forecaster = WeatherImpactForecaster(WeatherImpactConfig(
            min_history_records=self.settings.MIN_WEATHER_HISTORY_RECORDS,
        ))

    @handle_service_errors("Predict weather impact")
    def predict_weather_impact(
        self,
        site_id: str,
        forecast_days: Optional[int] = None,
        forecast: Optional[List[Union[ForecastDay, Dict[str, Any]]]] = None
    ) -> Dict[str, Any]:
        """
        Project weather-driven delay for a site.

        An explicit forecast takes precedence; otherwise forecast_days days are
        requested from the configured forecast provider.
        """
        site = self.site_repo.get_record(site_id)
        if not site:
            raise SiteNotFoundError(site_id)

        record = self.project_repo.get_record(site_id)
        if not record:
            raise ProjectRecordNotFoundError(site_id)

        if forecast is None:
            forecast = self.provider.get_forecast(
                site.latitude, site.longitude, forecast_days or self.settings.WEATHER_FORECAST_DAYS
            )
        else:
            forecast = [
                day if isinstance(day, ForecastDay) else ForecastDay.model_validate(day)
                for day in forecast
            ]

        current_phase = (
            record.project_progress.current_phase if record.project_progress else "planning"
        )
        impact = self.forecaster.forecast_impact(forecast, record.weather_history, current_phase)

        log_engine_operation("predict_weather_impact", site_id=site_id,
                             result=f"{impact.predicted_delay} days")

        return {"success": True, **impact.to_record()}
