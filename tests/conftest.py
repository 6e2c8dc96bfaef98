"""
Pytest configuration and shared fixtures.
"""
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from site_intelligence.config.settings import TestingSettings, reset_settings
from site_intelligence.core.database import Base
from site_intelligence.models import Site
from site_intelligence.repositories import ProjectRepository
from site_intelligence.schemas.site import ProjectRecord, SiteRecord
from site_intelligence.utils.date_utils import DateUtils


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes engine-related env vars and resets the settings cache.
    """
    env_vars = [
        "DATABASE_URL",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "CLUSTER_MAX_DISTANCE_KM",
        "NEARBY_SEARCH_RADIUS_KM",
        "DEFAULT_VISIT_DURATION_MINUTES",
        "AVERAGE_TRAVEL_SPEED_KMH",
        "FORECAST_RANDOM_SEED",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    reset_settings()

    yield

    reset_settings()


@pytest.fixture(scope="function")
def settings():
    return TestingSettings(_env_file=None)


@pytest.fixture(scope="function")
def test_db():
    """
    Create an in-memory SQLite database for testing.

    Fresh database for each test.
    """
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def now():
    return DateUtils.get_utc_now()


@pytest.fixture
def kharagpur():
    return SiteRecord(id="site-kgp", site_code="KGP-01", name="Kharagpur Yard",
                      latitude=22.3316, longitude=87.3231, status="construction",
                      region="south-eastern")


@pytest.fixture
def kharagpur_annex():
    # About 3.5 km from Kharagpur Yard
    return SiteRecord(id="site-kgp-2", site_code="KGP-02", name="Kharagpur Annex",
                      latitude=22.35, longitude=87.35, status="design",
                      region="south-eastern", priority="high")


@pytest.fixture
def howrah():
    return SiteRecord(id="site-hwh", site_code="HWH-01", name="Howrah Depot",
                      latitude=22.5834, longitude=88.3433, status="planning",
                      region="eastern")


@pytest.fixture
def in_progress_record(now):
    """Half complete project, started 60 days ago with a 60 day estimate."""
    start = now - timedelta(days=60)
    return ProjectRecord.model_validate({
        "siteId": "site-kgp",
        "projectProgress": {
            "overallCompletion": 50,
            "currentPhase": "construction",
            "startDate": start.isoformat(),
            "estimatedCompletionDate": (start + timedelta(days=60)).isoformat(),
            "milestones": [],
        },
        "team": [
            {"role": "Construction Manager", "name": "A. Sen"},
            {"role": "Installer", "name": "R. Das"},
        ],
    })


@pytest.fixture
def seeded_db(test_db, kharagpur, kharagpur_annex, howrah, in_progress_record):
    """Three sites; Kharagpur Yard and Kharagpur Annex carry project data."""
    for record in (kharagpur, kharagpur_annex, howrah):
        test_db.add(Site(**record.model_dump()))

    test_db.commit()

    projects = ProjectRepository(test_db)
    projects.save_record(in_progress_record)
    projects.save_record(ProjectRecord(site_id="site-kgp-2", team=[{"role": "Design Engineer"}]))
    return test_db
