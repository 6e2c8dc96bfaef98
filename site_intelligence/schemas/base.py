from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from site_intelligence.utils.date_utils import DateUtils


def _parse_record_date(value):
    if isinstance(value, str):
        # Unparseable strings fall through to pydantic's own error
        return DateUtils.parse_flexible_date(value) or value
    return value


# Every datetime crossing the record boundary is normalized to aware UTC
UTCDateTime = Annotated[datetime, BeforeValidator(_parse_record_date), AfterValidator(DateUtils.to_utc)]


class RecordSchema(BaseModel):
    """Base for record schemas: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_record(self) -> dict:
        """Serialize to the camelCase JSON shape used by the record store."""
        return self.model_dump(mode="json", by_alias=True)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WeatherImpact(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}

IMPACT_ORDINAL = {
    WeatherImpact.NONE: 0,
    WeatherImpact.LOW: 1,
    WeatherImpact.MEDIUM: 2,
    WeatherImpact.HIGH: 3,
}


def raise_risk(current: RiskLevel, minimum: RiskLevel) -> RiskLevel:
    """Return the higher of two risk levels."""
    return minimum if RISK_ORDER[minimum] > RISK_ORDER[current] else current
