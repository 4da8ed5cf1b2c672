"""
Pytest configuration and fixtures

Every test gets its own in-memory SQLite database; nothing persists.
"""
import os

# Must be set before config/database are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LLM_BACKEND", "mock")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from training.generator import PlanGenerator
from training.llm_client import MockLLMClient
import models


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def runner(db):
    """Intermediate runner with a profile."""
    user = models.User(firebase_id="fb-runner-1", email="runner@example.com",
                       first_name="Jane", last_name="Runner")
    user.profile = models.Profile(
        experience="intermediate",
        current_pace="9:00/mi",
        target_pace="8:30/mi",
        weekly_mileage=20,
        age=34,
        gender="female",
        injury_history="none",
        preferred_days=4,
        preferred_time="morning",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def race(db):
    race = models.Race(
        name="City Half",
        distance="half-marathon",
        date=date(2027, 4, 18),
        goal_time="2:00:00",
        course_type="road",
        elevation_gain=350,
        weather_notes="cool spring morning",
    )
    db.add(race)
    db.commit()
    return race


@pytest.fixture
def recent_activities(db, runner):
    """Seven runs, one per day, newest on 2026-10-10."""
    newest = datetime(2026, 10, 10, 7, 0)
    activities = []
    for offset in range(7):
        activity = models.Activity(
            user_id=runner.id,
            date=newest - timedelta(days=offset),
            activity_type="run",
            distance=3.0 + offset,
            duration=f"{30 + offset * 9}:00",
            pace="9:10/mi",
            average_hr=140 + offset,
        )
        activities.append(activity)
    db.add_all(activities)
    db.commit()
    return activities


@pytest.fixture
def mock_llm():
    return MockLLMClient()


@pytest.fixture
def generator(mock_llm):
    return PlanGenerator(mock_llm)
