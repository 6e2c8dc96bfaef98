"""
Unit tests for completion prediction and risk classification.
"""
from datetime import datetime, timedelta, timezone

import pytest

from site_intelligence.engine.forecasting.risk_predictor import RiskPredictor
from site_intelligence.schemas.base import RISK_ORDER, RiskLevel
from site_intelligence.schemas.insights import NearbySite
from site_intelligence.schemas.site import ProjectRecord, SiteRecord

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
MONSOON_NOW = datetime(2024, 7, 15, 12, 0, tzinfo=timezone.utc)


def make_record(completion=50, elapsed_days=60, total_days=60, milestones=None,
                team=None, materials=None, weather=None, now=NOW):
    start = now - timedelta(days=elapsed_days)
    return ProjectRecord.model_validate({
        "siteId": "site-1",
        "projectProgress": {
            "overallCompletion": completion,
            "currentPhase": "construction",
            "startDate": start,
            "estimatedCompletionDate": start + timedelta(days=total_days),
            "milestones": milestones or [],
        },
        "team": [{"role": "Installer"}] if team is None else team,
        "materials": materials or [],
        "weatherHistory": weather or [],
    })


def delayed_critical(count):
    return [
        {"name": f"Milestone {i}", "status": "delayed", "criticalPath": True}
        for i in range(count)
    ]


@pytest.fixture
def predictor():
    return RiskPredictor()


@pytest.mark.unit
class TestCompletionPrediction:
    def test_linear_velocity_scenario(self, predictor):
        record = make_record()

        prediction = predictor.predict_completion_date(record.project_progress, NOW)

        assert prediction.method == "linear_velocity"
        assert prediction.velocity == pytest.approx(50 / 60)
        assert prediction.days_remaining == pytest.approx(60)
        assert abs(prediction.predicted_date - (NOW + timedelta(days=60))) < timedelta(seconds=1)

    def test_future_start_date_does_not_divide_by_zero(self, predictor):
        record = make_record(completion=10, elapsed_days=0)

        prediction = predictor.predict_completion_date(record.project_progress, NOW)

        assert prediction.velocity == pytest.approx(10)
        assert prediction.days_remaining == pytest.approx(9)

    def test_milestone_offsets_shift_estimate(self, predictor):
        planned = NOW - timedelta(days=30)
        milestones = [
            {"name": "Survey", "status": "completed", "plannedDate": planned,
             "actualDate": planned + timedelta(days=5), "lastUpdated": NOW - timedelta(days=3)},
            {"name": "Design", "status": "completed", "plannedDate": planned,
             "actualDate": planned + timedelta(days=3), "lastUpdated": NOW - timedelta(days=2)},
            {"name": "Procurement", "status": "in-progress", "lastUpdated": NOW - timedelta(days=1)},
        ]
        record = make_record(milestones=milestones)

        prediction = predictor.predict_completion_date(record.project_progress, NOW)

        assert prediction.method == "milestone_offset"
        assert prediction.predicted_date == (
            record.project_progress.estimated_completion_date + timedelta(days=4)
        )


@pytest.mark.unit
class TestRiskPrediction:
    def test_zero_completion_is_medium_risk(self, predictor):
        record = make_record(completion=0)

        insights = predictor.predict(record, now=NOW)

        assert insights.risk_assessment == RiskLevel.MEDIUM
        assert insights.predicted_completion_date == record.project_progress.estimated_completion_date
        assert insights.potential_delays == ["Insufficient progress data for accurate prediction"]

    def test_missing_progress_is_medium_risk(self, predictor):
        insights = predictor.predict(ProjectRecord(site_id="site-1"), now=NOW)

        assert insights.risk_assessment == RiskLevel.MEDIUM
        assert insights.predicted_completion_date is None

    def test_velocity_scenario_predicts_sixty_days_out(self, predictor):
        insights = predictor.predict(make_record(), now=NOW)

        assert abs(insights.predicted_completion_date - (NOW + timedelta(days=60))) < timedelta(seconds=1)
        assert insights.risk_assessment == RiskLevel.MEDIUM
        assert insights.last_updated == NOW

    def test_on_schedule_project_with_good_efficiency_is_low_risk(self, predictor):
        done = NOW - timedelta(days=5)
        milestones = [{
            "name": "Foundations",
            "status": "in-progress",
            "tasks": [
                {"name": "Pour", "status": "completed", "plannedEndDate": done, "actualEndDate": done},
            ],
        }]
        record = make_record(completion=50, elapsed_days=30, total_days=90, milestones=milestones)

        insights = predictor.predict(record, now=NOW)

        assert insights.risk_assessment == RiskLevel.LOW
        assert insights.efficiency_score == 100
        assert insights.quality_issues == []

    def test_risk_is_monotone_in_delayed_critical_milestones(self, predictor):
        levels = [
            predictor.predict(make_record(milestones=delayed_critical(count)), now=NOW).risk_assessment
            for count in range(6)
        ]

        ordinals = [RISK_ORDER[level] for level in levels]
        assert ordinals == sorted(ordinals)
        assert levels[-1] == RiskLevel.HIGH

    def test_delayed_critical_milestones_reported(self, predictor):
        insights = predictor.predict(make_record(milestones=delayed_critical(2)), now=NOW)

        assert "2 critical path milestones are currently delayed" in insights.potential_delays
        assert "Prioritize completion of delayed critical path milestones" in insights.suggestion_for_improvement

    def test_no_team_adds_delay(self, predictor):
        insights = predictor.predict(make_record(team=[]), now=NOW)

        assert "No team members assigned to the project" in insights.potential_delays

    def test_overdue_materials(self, predictor):
        materials = [
            {"name": "Inverter", "status": "ordered", "expectedDeliveryDate": NOW - timedelta(days=10)},
            {"name": "Panels", "status": "installed"},
        ]

        insights = predictor.predict(make_record(materials=materials), now=NOW)

        assert "1 critical materials overdue by more than 7 days" in insights.potential_delays
        assert (
            "Escalate procurement for delayed materials and consider alternative suppliers"
            in insights.suggestion_for_improvement
        )

    def test_monsoon_weather(self, predictor):
        weather = [
            {"date": MONSOON_NOW - timedelta(days=i), "rainfall": 40, "impact": "high"}
            for i in range(1, 6)
        ]

        insights = predictor.predict(make_record(weather=weather, now=MONSOON_NOW), now=MONSOON_NOW)

        assert "Adverse weather conditions causing significant delays" in insights.potential_delays
        assert "Monsoon season likely to cause additional delays" in insights.potential_delays

    def test_missing_efficiency_data_prompts_quality_checks(self, predictor):
        insights = predictor.predict(make_record(), now=NOW)

        assert insights.efficiency_score == 0
        assert "Conduct additional quality checks on recently completed work" in insights.quality_issues

    def test_nearby_sites(self, predictor):
        site = SiteRecord(id="site-1", name="Main", latitude=22.0, longitude=87.0,
                          status="construction")
        nearby = [
            NearbySite(site_id="far", name="Far", distance=70, status="planning"),
            NearbySite(site_id="crew", name="Crew Yard", distance=10, status="construction"),
            NearbySite(site_id="new", name="New Site", distance=40, status="planning"),
        ]

        insights = predictor.predict(make_record(), site=site, nearby_sites=nearby, now=NOW)

        assert [s.site_id for s in insights.nearby_related_sites] == ["crew", "new"]
        assert insights.resource_optimizations == [
            "Consider resource sharing with nearby construction sites (Crew Yard) "
            "to optimize crew allocation",
            "Share lessons learned with planning-phase sites nearby to improve their preparation",
        ]

    def test_related_sites_capped_at_five(self, predictor):
        nearby = [
            NearbySite(site_id=f"n{i}", distance=i + 1, status="planning")
            for i in range(8)
        ]

        insights = predictor.predict(make_record(), nearby_sites=nearby, now=NOW)

        assert len(insights.nearby_related_sites) == 5

    def test_suggestions_are_unique(self, predictor):
        insights = predictor.predict(make_record(milestones=delayed_critical(3)), now=NOW)

        assert len(insights.suggestion_for_improvement) == len(set(insights.suggestion_for_improvement))


@pytest.mark.unit
class TestEfficiencyScore:
    def test_none_without_dated_tasks(self):
        assert RiskPredictor.calculate_efficiency_score([]) is None

    def test_late_tasks_score_low(self):
        record = make_record(milestones=[{
            "name": "Wiring",
            "tasks": [{
                "status": "completed",
                "plannedEndDate": NOW - timedelta(days=20),
                "actualEndDate": NOW - timedelta(days=6),
            }],
        }])

        assert RiskPredictor.calculate_efficiency_score(record.milestones) == 0
