# site_intelligence/config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "Site Intelligence Engine"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Settings
    DATABASE_URL: str = "sqlite:///./site_intelligence.db"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "logs/site_intelligence.log"

    # Geographical Settings
    CLUSTER_MAX_DISTANCE_KM: float = 100.0
    NEARBY_SEARCH_RADIUS_KM: float = 100.0
    NEARBY_BOUNDING_BOX_DEGREES: float = 0.5
    RELATED_SITE_RADIUS_KM: float = 50.0
    MAX_RELATED_SITES: int = 5
    RESOURCE_SHARING_RADIUS_KM: float = 30.0

    # Route Planning
    DEFAULT_VISIT_DURATION_MINUTES: int = 60
    AVERAGE_TRAVEL_SPEED_KMH: float = 40.0

    # Weather Forecasting
    WEATHER_FORECAST_DAYS: int = 15
    MIN_WEATHER_HISTORY_RECORDS: int = 5
    FORECAST_RANDOM_SEED: Optional[int] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


# Environment-specific settings
class DevelopmentSettings(Settings):
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"


class ProductionSettings(Settings):
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"


class TestingSettings(Settings):
    DATABASE_URL: str = "sqlite:///:memory:"
    FORECAST_RANDOM_SEED: Optional[int] = 42


def get_settings_by_env(env: str = "development") -> Settings:
    if env == "development":
        return DevelopmentSettings()
    elif env == "production":
        return ProductionSettings()
    elif env == "testing":
        return TestingSettings()
    else:
        return Settings()
