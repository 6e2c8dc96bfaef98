"""
Project Completion & Risk Prediction Module
Predicts site completion dates and classifies delay risk from schedule, weather,
material, milestone, efficiency and staffing signals.

Completion prediction is tiered:
1. Recent milestone offsets (needs >= 3 milestones, >= 2 recent ones completed with dates)
2. Linear extrapolation of the overall completion velocity
3. The original estimate, when no progress has been recorded

Risk is an additive heuristic score, not a trained model.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from site_intelligence.config.logging import log_performance
from site_intelligence.schemas.base import RiskLevel, WeatherImpact
from site_intelligence.schemas.insights import AIInsights, NearbySite
from site_intelligence.schemas.site import (
    Material,
    Milestone,
    ProjectProgress,
    ProjectRecord,
    SiteRecord,
    SiteStatus,
    TeamMember,
    WeatherRecord,
    WorkStatus,
)
from site_intelligence.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

PLANNING_STATUSES = ("planning", "survey", "design")


@dataclass
class RiskPredictorConfig:
    """Configuration for completion and risk prediction"""
    related_site_radius_km: float = 50.0
    max_related_sites: int = 5
    resource_sharing_radius_km: float = 30.0
    recent_milestone_window: int = 3
    recent_weather_window: int = 10
    material_overdue_days: float = 7.0
    efficiency_risk_threshold: int = 60
    efficiency_quality_threshold: int = 70


@dataclass
class CompletionPrediction:
    predicted_date: datetime
    method: str
    velocity: Optional[float] = None
    days_remaining: Optional[float] = None


class RiskPredictor:
    """Completion-date prediction and composite risk scoring for a single site."""

    def __init__(self, config: RiskPredictorConfig = None):
        self.config = config or RiskPredictorConfig()

    @log_performance("site_intelligence.engine.performance")
    def predict(self, record: ProjectRecord, site: Optional[SiteRecord] = None,
                nearby_sites: Optional[List[NearbySite]] = None,
                now: Optional[datetime] = None) -> AIInsights:
        """Build the AI insights for one project record."""
        now = DateUtils.to_utc(now) if now else DateUtils.get_utc_now()
        nearby_sites = sorted(nearby_sites or [], key=lambda s: s.distance)
        progress = record.project_progress

        related_sites = [
            s for s in nearby_sites if s.distance <= self.config.related_site_radius_km
        ][:self.config.max_related_sites]

        if progress is None or progress.overall_completion <= 0:
            return self._insufficient_progress(progress, related_sites, now)

        potential_delays: List[str] = []
        suggestions: List[str] = []
        resource_optimizations: List[str] = []
        quality_issues: List[str] = []

        prediction = self.predict_completion_date(progress, now)
        total_project_days = DateUtils.days_between(progress.start_date,
                                                    progress.estimated_completion_date)
        predicted_delay = DateUtils.days_between(progress.estimated_completion_date,
                                                 prediction.predicted_date)

        risk_score = self.schedule_score(predicted_delay, total_project_days)

        weather_score, weather_delays = self.weather_score(record.weather_history, now)
        risk_score += weather_score
        potential_delays.extend(weather_delays)

        pending_materials = [m for m in record.materials if m.is_pending]
        material_score, material_delays = self.material_score(pending_materials, now)
        risk_score += material_score
        potential_delays.extend(material_delays)

        delayed_critical = self.delayed_critical_milestones(progress.milestones)
        if delayed_critical:
            risk_score += len(delayed_critical) * 0.5
            potential_delays.append(
                f"{len(delayed_critical)} critical path milestones are currently delayed"
            )

        efficiency_score = self.calculate_efficiency_score(progress.milestones)
        if efficiency_score is None:
            efficiency_score = 0
        elif efficiency_score < self.config.efficiency_risk_threshold:
            risk_score += 1.5
            quality_issues.append(
                "Low task completion efficiency indicates possible quality issues"
            )

        team_score, team_delays = self.team_score(record.team)
        risk_score += team_score
        potential_delays.extend(team_delays)

        risk_assessment = self.classify_risk(risk_score)

        # Schedule mitigation
        if predicted_delay > 0:
            if predicted_delay >= total_project_days * 0.3:
                suggestions.append(
                    "Consider revising project timeline and communicating new expectations to stakeholders"
                )
            suggestions.append("Allocate additional resources to critical path activities")

        if pending_materials:
            overdue = [
                m for m in pending_materials
                if m.expected_delivery_date and now > m.expected_delivery_date
            ]
            if overdue:
                suggestions.append(
                    "Escalate procurement for delayed materials and consider alternative suppliers"
                )
            else:
                suggestions.append(
                    "Expedite pending material deliveries to prevent installation delays"
                )

        if delayed_critical:
            suggestions.append("Prioritize completion of delayed critical path milestones")

        resource_optimizations.extend(self.resource_sharing_suggestions(site, nearby_sites))

        if efficiency_score < self.config.efficiency_quality_threshold:
            quality_issues.append("Conduct additional quality checks on recently completed work")

        logger.debug(
            f"Site {record.site_id}: method={prediction.method} score={risk_score} "
            f"risk={risk_assessment.value}"
        )

        return AIInsights(
            predicted_completion_date=prediction.predicted_date,
            risk_assessment=risk_assessment,
            potential_delays=potential_delays,
            suggestion_for_improvement=self._unique(
                suggestions + resource_optimizations + quality_issues
            ),
            nearby_related_sites=related_sites,
            efficiency_score=efficiency_score,
            quality_issues=quality_issues,
            resource_optimizations=resource_optimizations,
            last_updated=now,
        )

    def predict_completion_date(self, progress: ProjectProgress, now: datetime) -> CompletionPrediction:
        """Predict completion from recent milestone offsets, falling back to linear velocity."""
        completion = progress.overall_completion
        estimate = progress.estimated_completion_date

        if completion <= 0:
            return CompletionPrediction(predicted_date=estimate, method="original_estimate")

        milestones = progress.milestones
        if len(milestones) >= self.config.recent_milestone_window:
            recent = sorted(
                milestones, key=lambda m: m.last_updated or _EARLIEST, reverse=True
            )[:self.config.recent_milestone_window]

            dated = [
                m for m in recent
                if m.planned_date and m.actual_date and m.status == WorkStatus.COMPLETED
            ]
            if len(dated) >= 2:
                offsets = [DateUtils.days_between(m.planned_date, m.actual_date) for m in dated]
                average_offset = sum(offsets) / len(offsets)
                return CompletionPrediction(
                    predicted_date=DateUtils.add_days(estimate, average_offset),
                    method="milestone_offset",
                )

        # Guard against a start date that is today or in the future
        days_elapsed = max(DateUtils.days_between(progress.start_date, now), 1.0)
        velocity = completion / days_elapsed
        days_remaining = (100 - completion) / velocity

        return CompletionPrediction(
            predicted_date=DateUtils.add_days(now, days_remaining),
            method="linear_velocity",
            velocity=velocity,
            days_remaining=days_remaining,
        )

    @staticmethod
    def schedule_score(predicted_delay: float, total_project_days: float) -> float:
        if predicted_delay <= 0:
            return 1
        if predicted_delay <= total_project_days * 0.2:
            return 2
        return 3

    def weather_score(self, weather_history: List[WeatherRecord], now: datetime) -> Tuple[float, List[str]]:
        if not weather_history:
            return 0, []

        recent = sorted(weather_history, key=lambda w: w.date, reverse=True)[
            :self.config.recent_weather_window
        ]
        bad_weather_days = len([
            w for w in recent if w.impact in (WeatherImpact.HIGH, WeatherImpact.MEDIUM)
        ])

        score = 0
        delays = []
        if bad_weather_days >= 5:
            score += 1
            delays.append("Adverse weather conditions causing significant delays")

        if DateUtils.is_monsoon_month(now) and bad_weather_days > 2:
            score += 1
            delays.append("Monsoon season likely to cause additional delays")

        return score, delays

    def material_score(self, pending_materials: List[Material], now: datetime) -> Tuple[float, List[str]]:
        if not pending_materials:
            return 0, []

        critical = [
            m for m in pending_materials
            if m.expected_delivery_date
            and DateUtils.days_between(m.expected_delivery_date, now) > self.config.material_overdue_days
        ]
        if critical:
            return 1.5, [
                f"{len(critical)} critical materials overdue by more than "
                f"{self.config.material_overdue_days:g} days"
            ]

        return 0.5, [
            f"{len(pending_materials)} material items still pending delivery or installation"
        ]

    @staticmethod
    def delayed_critical_milestones(milestones: List[Milestone]) -> List[Milestone]:
        return [m for m in milestones if m.critical_path and m.status == WorkStatus.DELAYED]

    @staticmethod
    def calculate_efficiency_score(milestones: List[Milestone]) -> Optional[int]:
        """
        Score 0-100 from completed tasks with planned and actual end dates.

        Returns None when no task carries both dates.
        """
        completions = []
        for milestone in milestones:
            for task in milestone.tasks:
                if task.status != WorkStatus.COMPLETED:
                    continue
                if task.planned_end_date and task.actual_end_date:
                    delay = DateUtils.days_between(task.planned_end_date, task.actual_end_date)
                    completions.append((task.actual_end_date <= task.planned_end_date, delay))

        if not completions:
            return None

        on_time_rate = len([c for c in completions if c[0]]) / len(completions)
        average_delay = sum(c[1] for c in completions) / len(completions)

        score = round(100 * (on_time_rate * 0.7 + max(0.0, 1 - average_delay / 14) * 0.3))
        return min(100, score)

    @staticmethod
    def team_score(team: List[TeamMember]) -> Tuple[float, List[str]]:
        if not team:
            return 1, ["No team members assigned to the project"]
        return 0, []

    @staticmethod
    def classify_risk(score: float) -> RiskLevel:
        if score <= 2:
            return RiskLevel.LOW
        elif score <= 4:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH

    def resource_sharing_suggestions(self, site: Optional[SiteRecord],
                                     nearby_sites: List[NearbySite]) -> List[str]:
        suggestions = []

        sharing_candidates = [
            s for s in nearby_sites
            if s.status == SiteStatus.CONSTRUCTION.value
            and s.distance < self.config.resource_sharing_radius_km
        ]
        if sharing_candidates:
            closest = ", ".join(
                s.name or s.site_code or s.site_id
                for s in sorted(sharing_candidates, key=lambda s: s.distance)[:3]
            )
            suggestions.append(
                f"Consider resource sharing with nearby construction sites ({closest}) "
                f"to optimize crew allocation"
            )

        planning_sites = [s for s in nearby_sites if s.status in PLANNING_STATUSES]
        if planning_sites and site is not None and site.status == SiteStatus.CONSTRUCTION.value:
            suggestions.append(
                "Share lessons learned with planning-phase sites nearby to improve their preparation"
            )

        return suggestions

    def _insufficient_progress(self, progress: Optional[ProjectProgress],
                               related_sites: List[NearbySite], now: datetime) -> AIInsights:
        suggestions = ["Begin tracking detailed progress data to enable accurate predictions"]
        return AIInsights(
            predicted_completion_date=progress.estimated_completion_date if progress else None,
            risk_assessment=RiskLevel.MEDIUM,
            potential_delays=["Insufficient progress data for accurate prediction"],
            suggestion_for_improvement=suggestions,
            nearby_related_sites=related_sites,
            efficiency_score=0,
            quality_issues=[],
            resource_optimizations=[],
            last_updated=now,
        )

    @staticmethod
    def _unique(items: List[str]) -> List[str]:
        return list(dict.fromkeys(items))
