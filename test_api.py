"""
HTTP API Tests
==============

End-to-end requests through the FastAPI app with the store session and
the generation client overridden.
"""

import importlib
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

import config
import models
from config import Settings
from database import get_db
from errors import GenerationUnavailable
from main import app
from training.generator import PlanGenerator
from training.llm_client import MockLLMClient
from training.router import get_generator, get_llm_client
from training.schemas import PlanPreferences
from training.service import TrainingService


@pytest.fixture
def llm():
    return MockLLMClient()


@pytest.fixture
def client(db, llm):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generator] = lambda: PlanGenerator(llm)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _generate(client, runner, race, days=2):
    return client.post("/training/plans/generate", json={
        "userId": runner.id,
        "raceId": race.id,
        "preferences": {"trainingDays": days, "preferredTime": "morning"},
    })


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["version"] == "1.0.0"
        assert "timestamp" in body


class TestGeneratePlanEndpoint:

    def test_generate(self, client, runner, race):
        response = _generate(client, runner, race, days=4)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        plan = body["plan"]
        assert plan["totalWeeks"] == 12
        assert plan["phase"] == "base"
        assert plan["race"]["name"] == "City Half"
        assert len(plan["workouts"]) == 48
        assert plan["workouts"][0]["weekNumber"] == 1
        assert plan["planData"]["planOverview"]["totalWeeks"] == 12

    def test_unknown_race_echoes_key(self, client, runner):
        response = client.post("/training/plans/generate", json={
            "userId": runner.id, "raceId": 777, "preferences": {"trainingDays": 3}
        })
        assert response.status_code == 404
        assert response.json()["race"] == 777
        assert "error" in response.json()

    def test_unknown_user(self, client, race):
        response = client.post("/training/plans/generate", json={
            "userId": 4242, "raceId": race.id, "preferences": {"trainingDays": 3}
        })
        assert response.status_code == 404
        assert response.json()["user"] == 4242

    @pytest.mark.parametrize("preferences", [
        {"trainingDays": 0},
        {"trainingDays": 8},
        {},
    ])
    def test_bad_preferences(self, client, runner, race, llm, preferences):
        response = client.post("/training/plans/generate", json={
            "userId": runner.id, "raceId": race.id, "preferences": preferences
        })
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert not llm.calls

    def test_backend_unavailable(self, client, runner, race, llm, db):
        llm.error = GenerationUnavailable(details="deadline exceeded")
        response = _generate(client, runner, race)

        assert response.status_code == 503
        assert response.json()["error"] == "Generation service unavailable"
        assert db.query(models.TrainingPlan).count() == 0

    def test_backend_malformed(self, client, runner, race, llm, db):
        llm.responses = ['{"planOverview": "twelve weeks"}']
        response = _generate(client, runner, race)

        assert response.status_code == 500
        assert db.query(models.TrainingPlan).count() == 0


class TestPlanEndpoints:

    def test_list_plans(self, client, runner, race):
        _generate(client, runner, race)
        response = client.get("/training/plans", params={"userId": runner.id})

        assert response.status_code == 200
        plans = response.json()["plans"]
        assert len(plans) == 1
        assert plans[0]["userId"] == runner.id

    def test_list_plans_requires_user(self, client):
        assert client.get("/training/plans").status_code == 400

    def test_get_and_delete_plan(self, client, runner, race):
        plan_id = _generate(client, runner, race).json()["plan"]["id"]

        assert client.get(f"/training/plans/{plan_id}").status_code == 200
        assert client.delete(f"/training/plans/{plan_id}").json()["success"] is True
        assert client.get(f"/training/plans/{plan_id}").status_code == 404

    def test_week_workouts(self, client, runner, race):
        plan_id = _generate(client, runner, race).json()["plan"]["id"]
        response = client.get(f"/training/plans/{plan_id}/workouts/2")

        assert response.status_code == 200
        workouts = response.json()["workouts"]
        assert [w["dayOfWeek"] for w in workouts] == ["Tuesday", "Thursday"]
        assert all(w["weekNumber"] == 2 for w in workouts)

    def test_all_workouts(self, client, runner, race):
        plan_id = _generate(client, runner, race).json()["plan"]["id"]
        workouts = client.get(f"/training/plans/{plan_id}/workouts").json()["workouts"]
        assert len(workouts) == 24
        assert [w["sequence"] for w in workouts] == sorted(w["sequence"] for w in workouts)

    def test_advance_phase(self, client, runner, race):
        plan_id = _generate(client, runner, race).json()["plan"]["id"]
        phases = [client.post(f"/training/plans/{plan_id}/phase/advance").json()["plan"]["phase"]
                  for _ in range(3)]
        assert phases == ["build", "peak", "taper"]
        assert client.post(f"/training/plans/{plan_id}/phase/advance").status_code == 400


class TestWorkoutEndpoints:

    def test_complete_workout(self, client, runner, race):
        workout_id = _generate(client, runner, race).json()["plan"]["workouts"][0]["id"]
        response = client.put(f"/training/workouts/{workout_id}/complete", json={
            "actualDistance": 4.2, "actualPace": "9:35/mi", "actualDuration": "40:15", "notes": "easy"
        })

        assert response.status_code == 200
        workout = response.json()["workout"]
        assert workout["completed"] is True
        assert workout["actualDistance"] == 4.2
        assert workout["completedAt"] is not None

    def test_complete_missing_workout(self, client):
        response = client.put("/training/workouts/9999/complete", json={"actualDistance": 3.0})
        assert response.status_code == 404
        assert response.json()["workout"] == 9999

    def test_analyze(self, client, runner, race, recent_activities):
        workout_id = _generate(client, runner, race).json()["plan"]["workouts"][0]["id"]
        response = client.post("/training/workouts/analyze", json={"workoutId": workout_id})

        assert response.status_code == 200
        analysis = response.json()["analysis"]
        assert analysis["analysis"]["performance"] == "good"
        assert analysis["insights"]["nextSteps"]

    def test_analyze_missing_workout(self, client):
        response = client.post("/training/workouts/analyze", json={"workoutId": 9999})
        assert response.status_code == 404

    def test_race_strategy(self, client, runner, race):
        response = client.post(f"/training/races/{race.id}/strategy", json={"userId": runner.id})
        assert response.status_code == 200
        assert response.json()["strategy"]["courseStrategy"]["hills"]


class TestAthleteEndpoints:

    def test_find_or_create(self, client):
        body = {"firebaseId": "fb-new", "email": "new@example.com", "firstName": "Sam"}
        first = client.post("/athlete/athleteuser", json=body)
        second = client.post("/athlete/athleteuser", json=body)

        assert first.status_code == 201
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["firstName"] == "Sam"

    def test_profile_update_keeps_unset_fields(self, client, runner):
        response = client.put(f"/athlete/{runner.id}/profile", json={"weeklyMileage": 25})

        assert response.status_code == 200
        assert response.json()["weeklyMileage"] == 25
        assert response.json()["experience"] == "intermediate"

    def test_get_missing_athlete(self, client):
        assert client.get("/athlete/555").status_code == 404

    def test_bulk_delete_requires_ids(self, client):
        response = client.request("DELETE", "/athlete/bulk", json={})
        assert response.status_code == 400

    def test_bulk_delete(self, client, runner):
        response = client.request("DELETE", "/athlete/bulk", json={"ids": [runner.id, 999]})

        assert response.status_code == 200
        body = response.json()
        assert body["deletedCount"] == 1
        assert body["requestedCount"] == 2
        assert body["deletedAthletes"][0]["firebaseId"] == "fb-runner-1"

    def test_bulk_delete_nothing_found(self, client):
        response = client.request("DELETE", "/athlete/bulk", json={"ids": [998, 999]})
        assert response.status_code == 404
        assert response.json()["requestedIds"] == [998, 999]

    def test_activities(self, client, runner):
        created = client.post("/activities", json={
            "userId": runner.id, "date": "2026-10-12T07:00:00", "distance": 5.0, "pace": "9:05/mi"
        })
        assert created.status_code == 201

        listed = client.get("/activities", params={"userId": runner.id}).json()
        assert [a["distance"] for a in listed] == [5.0]

    def test_list_athletes(self, client, runner):
        client.post("/athlete/athleteuser", json={"firebaseId": "fb-second", "email": "second@example.com"})
        athletes = client.get("/athletes").json()

        assert {a["firebaseId"] for a in athletes} == {"fb-runner-1", "fb-second"}
        runner_out = next(a for a in athletes if a["id"] == runner.id)
        assert runner_out["profile"]["experience"] == "intermediate"

    def test_email_owned_by_another_athlete(self, client, runner):
        response = client.post("/athlete/athleteuser", json={
            "firebaseId": "fb-other", "email": "runner@example.com"
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Email is already linked to another athlete"
        # Session is usable after the rollback
        assert [a["id"] for a in client.get("/athletes").json()] == [runner.id]

    def test_activity_get_update_delete(self, client, recent_activities):
        activity_id = recent_activities[0].id

        fetched = client.get(f"/activities/{activity_id}")
        assert fetched.status_code == 200
        assert fetched.json()["distance"] == 3.0

        updated = client.put(f"/activities/{activity_id}", json={"distance": 3.4, "notes": "hilly"})
        assert updated.status_code == 200
        assert updated.json()["distance"] == 3.4
        assert updated.json()["notes"] == "hilly"
        assert updated.json()["pace"] == "9:10/mi"

        assert client.delete(f"/activities/{activity_id}").json()["success"] is True
        assert client.get(f"/activities/{activity_id}").status_code == 404

    def test_activity_date_cannot_be_cleared(self, client, recent_activities):
        response = client.put(f"/activities/{recent_activities[0].id}", json={"date": None})
        assert response.status_code == 400

    def test_missing_activity(self, client):
        response = client.put("/activities/9999", json={"distance": 1.0})
        assert response.status_code == 404
        assert response.json()["activity"] == 9999


class TestRaceEndpoints:

    def test_create_and_get(self, client):
        created = client.post("/races", json={
            "name": "Harbor 10K", "distance": "10k", "date": "2027-03-07", "goalTime": "0:48:00"
        })
        assert created.status_code == 201
        race_id = created.json()["id"]

        fetched = client.get(f"/races/{race_id}").json()
        assert fetched["goalTime"] == "0:48:00"
        assert fetched["date"] == "2027-03-07"

    def test_delete_race_with_plan_is_refused(self, client, runner, race):
        _generate(client, runner, race)
        assert client.delete(f"/races/{race.id}").status_code == 400

    def test_delete_race(self, client, race):
        assert client.delete(f"/races/{race.id}").json()["success"] is True
        assert client.get(f"/races/{race.id}").status_code == 404

    def test_update_race(self, client, race):
        response = client.put(f"/races/{race.id}", json={"goalTime": "1:55:00", "weatherNotes": "windy"})

        assert response.status_code == 200
        body = response.json()
        assert body["goalTime"] == "1:55:00"
        assert body["weatherNotes"] == "windy"
        assert body["name"] == "City Half"
        assert body["date"] == "2027-04-18"

    def test_update_race_required_field_cannot_be_cleared(self, client, race):
        assert client.put(f"/races/{race.id}", json={"distance": None}).status_code == 400

    def test_update_missing_race(self, client):
        response = client.put("/races/404", json={"goalTime": "1:55:00"})
        assert response.status_code == 404
        assert response.json()["race"] == 404


class TestWithoutGenerationKey:
    """Gemini selected but no API key configured."""

    @pytest.fixture
    def unconfigured_client(self, db):
        def override_get_db():
            yield db

        app.dependency_overrides[get_db] = override_get_db
        get_llm_client.cache_clear()
        with patch.object(Settings, "LLM_BACKEND", "gemini"), patch.object(Settings, "GEMINI_API_KEY", None):
            yield TestClient(app)
        get_llm_client.cache_clear()
        app.dependency_overrides.clear()

    @pytest.fixture
    def stored_plan(self, db, generator, runner, race):
        return TrainingService(db, generator).generate_plan(runner.id, race.id, PlanPreferences(training_days=2))

    def test_store_routes_still_work(self, unconfigured_client, runner, stored_plan):
        plan_id = stored_plan.id
        workout_id = stored_plan.workouts[0].id

        assert unconfigured_client.get("/training/plans", params={"userId": runner.id}).status_code == 200
        assert unconfigured_client.get(f"/training/plans/{plan_id}").status_code == 200
        assert unconfigured_client.get(f"/training/plans/{plan_id}/workouts/1").status_code == 200
        assert unconfigured_client.put(
            f"/training/workouts/{workout_id}/complete", json={"actualDistance": 4.0}
        ).status_code == 200
        assert unconfigured_client.post(f"/training/plans/{plan_id}/phase/advance").status_code == 200
        assert unconfigured_client.delete(f"/training/plans/{plan_id}").status_code == 200

    def test_generation_routes_are_unavailable(self, unconfigured_client, runner, race):
        response = _generate(unconfigured_client, runner, race)
        assert response.status_code == 503
        assert response.json()["error"] == "Generation service unavailable"


class TestErrorDetails:

    def test_details_hidden_outside_development(self, client, runner, race, llm):
        llm.responses = ["not json"]
        with patch.object(Settings, "ENVIRONMENT", "production"):
            response = _generate(client, runner, race)

        assert response.status_code == 500
        assert response.json() == {"error": "Generation service returned a malformed response"}

    def test_details_shown_in_development(self, client, runner, race, llm):
        llm.responses = ["not json"]
        with patch.object(Settings, "ENVIRONMENT", "development"):
            response = _generate(client, runner, race)

        assert response.status_code == 500
        assert "not valid JSON" in response.json()["details"]

    def test_request_validation_details_hidden(self, client):
        with patch.object(Settings, "ENVIRONMENT", "production"):
            response = client.post("/races", json={"distance": "10k"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request"}

    def test_not_found_key_is_always_echoed(self, client):
        with patch.object(Settings, "ENVIRONMENT", "production"):
            response = client.get("/training/plans/321")

        assert response.status_code == 404
        assert response.json() == {"error": "Plan not found", "plan": 321}

    def test_environment_defaults_to_production(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        importlib.reload(config)
        try:
            assert config.Settings.ENVIRONMENT == "production"
            assert not config.Settings.is_development()
        finally:
            monkeypatch.undo()
            importlib.reload(config)
