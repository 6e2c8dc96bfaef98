from enum import Enum
from typing import List, Optional

from pydantic import Field, model_validator

from site_intelligence.schemas.base import RecordSchema, UTCDateTime, WeatherImpact
from site_intelligence.schemas.insights import AIInsights
from site_intelligence.utils.geo_utils import Location


class SiteStatus(str, Enum):
    PLANNING = "planning"
    SURVEY = "survey"
    DESIGN = "design"
    CONSTRUCTION = "construction"
    OPERATIONAL = "operational"
    MAINTENANCE = "maintenance"
    COMPLETED = "completed"


class WorkStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELAYED = "delayed"


class MaterialStatus(str, Enum):
    ORDERED = "ordered"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    INSTALLED = "installed"
    DEFECTIVE = "defective"


class SiteRecord(RecordSchema):
    """Site record as supplied by the persistence layer."""
    id: str
    site_code: Optional[str] = None
    name: Optional[str] = None
    latitude: float
    longitude: float
    status: str = SiteStatus.PLANNING.value
    region: Optional[str] = None
    priority: str = "medium"

    @model_validator(mode="after")
    def check_coordinates(self):
        self.to_location()
        return self

    @property
    def display_name(self) -> str:
        return self.name or self.site_code or self.id

    def to_location(self) -> Location:
        return Location(self.latitude, self.longitude, name=self.display_name, site_id=self.id)


class TaskIssue(RecordSchema):
    type: str
    component: Optional[str] = None


class Task(RecordSchema):
    name: Optional[str] = None
    status: WorkStatus = WorkStatus.PENDING
    completion_percentage: float = Field(default=0, ge=0, le=100)
    planned_end_date: Optional[UTCDateTime] = None
    actual_end_date: Optional[UTCDateTime] = None
    issues: List[TaskIssue] = Field(default_factory=list)


class Milestone(RecordSchema):
    name: str
    phase: Optional[str] = None
    planned_date: Optional[UTCDateTime] = None
    actual_date: Optional[UTCDateTime] = None
    status: WorkStatus = WorkStatus.PENDING
    completion_percentage: float = Field(default=0, ge=0, le=100)
    critical_path: bool = False
    tasks: List[Task] = Field(default_factory=list)
    last_updated: Optional[UTCDateTime] = None


class ProgressPoint(RecordSchema):
    value: float
    date: UTCDateTime


class ProjectProgress(RecordSchema):
    overall_completion: float = Field(default=0, ge=0, le=100)
    current_phase: str = "planning"
    start_date: UTCDateTime
    estimated_completion_date: UTCDateTime
    revised_completion_date: Optional[UTCDateTime] = None
    milestones: List[Milestone] = Field(default_factory=list)
    progress_history: List[ProgressPoint] = Field(default_factory=list)
    last_updated: Optional[UTCDateTime] = None


class Material(RecordSchema):
    name: Optional[str] = None
    status: MaterialStatus = MaterialStatus.ORDERED
    quantity: Optional[float] = None
    unit: Optional[str] = None
    expected_delivery_date: Optional[UTCDateTime] = None
    actual_delivery_date: Optional[UTCDateTime] = None

    @property
    def is_pending(self) -> bool:
        return self.status not in (MaterialStatus.DELIVERED, MaterialStatus.INSTALLED)


class TeamMember(RecordSchema):
    role: str
    name: Optional[str] = None


class EquipmentItem(RecordSchema):
    id: Optional[str] = None
    type: str
    status: str = "idle"
    scheduled_until: Optional[UTCDateTime] = None


class WeatherRecord(RecordSchema):
    date: UTCDateTime
    rainfall: float = 0
    wind_speed: float = 0
    conditions: Optional[str] = None
    temperature: Optional[float] = None
    impact: WeatherImpact = WeatherImpact.NONE


class InstallationParameters(RecordSchema):
    panel_tilt: Optional[float] = None
    azimuth: Optional[float] = None
    string_config: Optional[str] = None


class ProjectRecord(RecordSchema):
    """Extended project record for one site."""
    site_id: str
    project_progress: Optional[ProjectProgress] = None
    materials: List[Material] = Field(default_factory=list)
    team: List[TeamMember] = Field(default_factory=list)
    weather_history: List[WeatherRecord] = Field(default_factory=list)
    equipment: List[EquipmentItem] = Field(default_factory=list)
    design_parameters: Optional[InstallationParameters] = None
    actual_parameters: Optional[InstallationParameters] = None
    ai_insights: Optional[AIInsights] = None

    @property
    def milestones(self) -> List[Milestone]:
        return self.project_progress.milestones if self.project_progress else []

    @property
    def tasks(self) -> List[Task]:
        return [task for milestone in self.milestones for task in milestone.tasks]
