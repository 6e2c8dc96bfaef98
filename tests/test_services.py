"""
Integration tests running the services against an in-memory database.
"""
from datetime import timedelta

import pytest

from site_intelligence.engine.forecasting.weather_impact import ForecastProvider
from site_intelligence.repositories import ProjectRepository, SiteRepository
from site_intelligence.schemas.site import Material
from site_intelligence.schemas.weather import ForecastDay
from site_intelligence.services import (
    InsightsService,
    QualityService,
    ReportService,
    ResourceService,
    RouteService,
    WeatherService,
)
from site_intelligence.utils.date_utils import DateUtils


class StormProvider(ForecastProvider):
    """Every day brings heavy rain."""

    def __init__(self):
        self.requests = []

    def get_forecast(self, latitude, longitude, days, start=None):
        self.requests.append((latitude, longitude, days))
        today = DateUtils.get_utc_now()
        return [
            ForecastDay(date=today + timedelta(days=i), rainfall=45, conditions="Heavy Rain")
            for i in range(days)
        ]


@pytest.mark.integration
class TestInsightsService:
    def test_generate_ai_insights_writes_back(self, seeded_db, settings):
        service = InsightsService(seeded_db, settings)

        result = service.generate_ai_insights("site-kgp")

        assert result["success"] is True
        insights = result["aiInsights"]
        assert insights["riskAssessment"] in ("low", "medium", "high")
        assert [s["siteId"] for s in insights["nearbyRelatedSites"]] == ["site-kgp-2"]

        stored = ProjectRepository(seeded_db).get_record("site-kgp").ai_insights
        assert stored is not None
        assert stored.to_record() == insights

    def test_regenerating_overwrites_cached_insights(self, seeded_db, settings):
        service = InsightsService(seeded_db, settings)

        service.generate_ai_insights("site-kgp")
        second = service.generate_ai_insights("site-kgp")

        stored = ProjectRepository(seeded_db).get_record("site-kgp").ai_insights
        assert stored.to_record() == second["aiInsights"]

    def test_unknown_site(self, seeded_db, settings):
        result = InsightsService(seeded_db, settings).generate_ai_insights("missing")

        assert result["success"] is False
        assert result["error"] == "Site not found: missing"
        assert result["errorCode"] == "RESOURCE_NOT_FOUND"
        assert result["statusCode"] == 404

    def test_site_without_project_data(self, seeded_db, settings):
        result = InsightsService(seeded_db, settings).generate_ai_insights("site-hwh")

        assert result["success"] is False
        assert result["error"] == "Site extended data not found: site-hwh"

    def test_find_nearby_sites(self, seeded_db, settings):
        result = InsightsService(seeded_db, settings).find_nearby_sites("site-kgp", 50)

        assert result["success"] is True
        assert len(result["nearbySites"]) == 1
        nearby = result["nearbySites"][0]
        assert nearby["id"] == "site-kgp-2"
        assert nearby["siteCode"] == "KGP-02"
        assert nearby["status"] == "design"
        assert nearby["coordinates"] == {"latitude": 22.35, "longitude": 87.35}
        assert nearby["distance"] == pytest.approx(3.4, abs=0.2)

    def test_find_nearby_sites_respects_radius(self, seeded_db, settings):
        result = InsightsService(seeded_db, settings).find_nearby_sites("site-kgp", 1)

        assert result == {"success": True, "nearbySites": []}


@pytest.mark.integration
class TestRouteService:
    def test_route_through_known_sites(self, seeded_db, settings):
        result = RouteService(seeded_db, settings).optimize_survey_route(
            "site-kgp", ["site-hwh", "site-kgp-2", "not-a-site"]
        )

        assert result["success"] is True
        assert [stop["site"]["id"] for stop in result["optimizedRoute"]] == [
            "site-kgp", "site-kgp-2", "site-hwh"
        ]
        assert result["estimatedTime"] == 3 * settings.DEFAULT_VISIT_DURATION_MINUTES
        assert "unvisitedSites" not in result

    def test_camel_case_constraints(self, seeded_db, settings):
        result = RouteService(seeded_db, settings).optimize_survey_route(
            "site-kgp", ["site-hwh", "site-kgp-2"], {"maxTravelDistance": 50}
        )

        assert [stop["site"]["id"] for stop in result["optimizedRoute"]] == ["site-kgp", "site-kgp-2"]
        assert result["unvisitedSites"] == [
            {"id": "site-hwh", "code": "HWH-01", "name": "Howrah Depot"}
        ]

    def test_unknown_starting_site(self, seeded_db, settings):
        result = RouteService(seeded_db, settings).optimize_survey_route("nowhere", ["site-hwh"])

        assert result["success"] is False
        assert result["error"] == "Starting site not found: nowhere"

    def test_no_valid_sites_to_visit(self, seeded_db, settings):
        result = RouteService(seeded_db, settings).optimize_survey_route(
            "site-kgp", ["site-kgp", "ghost"]
        )

        assert result["success"] is False
        assert result["errorCode"] == "EMPTY_VISIT_LIST"
        assert result["error"] == "No valid sites to visit found"

    def test_invalid_constraints(self, seeded_db, settings):
        result = RouteService(seeded_db, settings).optimize_survey_route(
            "site-kgp", ["site-hwh"], {"maxTravelDistance": -5}
        )

        assert result["success"] is False
        assert result["errorCode"] == "VALIDATION_ERROR"
        assert result["field"] == "constraints"


@pytest.mark.integration
class TestWeatherService:
    def test_uses_provider_for_requested_days(self, seeded_db, settings):
        provider = StormProvider()

        result = WeatherService(seeded_db, settings, provider=provider).predict_weather_impact(
            "site-kgp", forecast_days=4
        )

        assert provider.requests == [(22.3316, 87.3231, 4)]
        assert result["success"] is True
        assert result["currentPhase"] == "construction"
        assert result["highImpactDays"] == 4
        assert result["predictedDelay"] == 4.0
        assert len(result["forecast"]) == 4
        assert all(day["predictedImpact"] == "high" for day in result["forecast"])

    def test_explicit_forecast(self, seeded_db, settings):
        today = DateUtils.get_utc_now()
        forecast = [{"date": today.isoformat(), "rainfall": 15, "windSpeed": 5}]

        result = WeatherService(seeded_db, settings).predict_weather_impact("site-kgp", forecast=forecast)

        assert result["mediumImpactDays"] == 1
        assert result["predictedDelay"] == 0.5

    def test_default_provider_is_seeded(self, seeded_db, settings):
        first = WeatherService(seeded_db, settings).predict_weather_impact("site-kgp")
        second = WeatherService(seeded_db, settings).predict_weather_impact("site-kgp")

        assert len(first["forecast"]) == settings.WEATHER_FORECAST_DAYS
        assert [d["rainfall"] for d in first["forecast"]] == [d["rainfall"] for d in second["forecast"]]

    def test_invalid_explicit_forecast(self, seeded_db, settings):
        forecast = [{"date": "not-a-date", "rainfall": -5}]

        result = WeatherService(seeded_db, settings).predict_weather_impact("site-kgp", forecast=forecast)

        assert result["success"] is False
        assert result["errorCode"] == "VALIDATION_ERROR"
        assert {err["field"] for err in result["errors"]} == {"date", "rainfall"}

    def test_provider_forecast_repeats_across_calls(self, seeded_db, settings):
        service = WeatherService(seeded_db, settings)

        first = service.predict_weather_impact("site-kgp")
        second = service.predict_weather_impact("site-kgp")

        assert [d["rainfall"] for d in first["forecast"]] == [d["rainfall"] for d in second["forecast"]]
        assert [d["conditions"] for d in first["forecast"]] == [d["conditions"] for d in second["forecast"]]

    def test_site_without_project_data(self, seeded_db, settings):
        result = WeatherService(seeded_db, settings).predict_weather_impact("site-hwh")

        assert result["success"] is False
        assert result["errorCode"] == "RESOURCE_NOT_FOUND"


@pytest.mark.integration
class TestResourceService:
    def test_analysis_over_active_sites(self, seeded_db, settings):
        result = ResourceService(seeded_db, settings).analyze_resource_allocation()

        assert result["success"] is True
        analysis = result["resourceAnalysis"]
        assert analysis["overallEfficiency"] == 50
        assert "Kharagpur Annex is missing Planner required for planning phase" in analysis["skillGaps"]
        assert not any("Howrah" in gap for gap in analysis["skillGaps"])

    def test_completed_sites_are_excluded(self, seeded_db, settings):
        site = SiteRepository(seeded_db).get("site-hwh")
        SiteRepository(seeded_db).update(db_obj=site, obj_in={"status": "completed"})

        active = SiteRepository(seeded_db).get_active()

        assert sorted(s.id for s in active) == ["site-kgp", "site-kgp-2"]

    def test_no_active_sites_in_region(self, seeded_db, settings):
        result = ResourceService(seeded_db, settings).analyze_resource_allocation(region="northern")

        assert result["success"] is False
        assert result["error"] == "No active sites found for resource analysis"
        assert result["errorCode"] == "INSUFFICIENT_DATA"


@pytest.mark.integration
class TestQualityAndReportServices:
    def test_detect_quality_issues(self, seeded_db):
        result = QualityService(seeded_db).detect_quality_issues("site-kgp")

        assert result["success"] is True
        assert result["qualityAnalysis"]["riskLevel"] == "low"

    def test_quality_for_unknown_site(self, seeded_db):
        result = QualityService(seeded_db).detect_quality_issues("missing")

        assert result["success"] is False
        assert result["error"] == "Site extended data not found: missing"

    def test_project_report(self, seeded_db, settings):
        InsightsService(seeded_db, settings).generate_ai_insights("site-kgp")

        result = ReportService(seeded_db).generate_project_report("site-kgp")

        assert result["success"] is True
        report = result["report"]
        assert report["siteInfo"]["id"] == "site-kgp"
        assert report["progressSummary"]["overallCompletion"] == 50
        assert report["progressSummary"]["currentPhase"] == "construction"
        assert report["teamSize"] == 2
        assert report["aiInsights"] is not None

    def test_report_without_progress(self, seeded_db):
        report = ReportService(seeded_db).generate_project_report("site-kgp-2")["report"]

        assert report["progressSummary"] is None
        assert report["aiInsights"] is None

    def test_corrupt_stored_record(self, seeded_db):
        projects = ProjectRepository(seeded_db)
        projects.update(
            db_obj=projects.get_by_site_id("site-kgp"),
            obj_in={"project_progress": {"overallCompletion": 40}},
        )

        result = QualityService(seeded_db).detect_quality_issues("site-kgp")

        assert result["success"] is False
        assert result["errorCode"] == "VALIDATION_ERROR"
        assert "projectProgress.startDate" in [err["field"] for err in result["errors"]]

    def test_report_lists_material_quantities(self, seeded_db, in_progress_record):
        record = in_progress_record.model_copy(update={"materials": [
            Material(name="Solar panels", status="delivered", quantity=120, unit="panels"),
            Material(name="Inverter", status="ordered"),
        ]})
        ProjectRepository(seeded_db).save_record(record)

        materials = ReportService(seeded_db).generate_project_report("site-kgp")["report"]["materialsStatus"]

        assert materials == [
            {"name": "Solar panels", "status": "delivered", "quantity": 120, "unit": "panels"},
            {"name": "Inverter", "status": "ordered", "quantity": None, "unit": None},
        ]
