"""
Training Service Tests
======================

Scenario-style tests of the request-level operations against an
in-memory store and the mock generation client.
"""

import pytest

import models
from errors import NotFound, ValidationError, GenerationMalformed, GenerationUnavailable
from training.generator import PlanGenerator
from training.llm_client import MockLLMClient, MOCK_PHASE_WEEKS
from training.schemas import PlanPreferences
from training.service import TrainingService


@pytest.fixture
def service(db, generator):
    return TrainingService(db, generator)


@pytest.fixture
def plan(service, runner, race):
    return service.generate_plan(runner.id, race.id, PlanPreferences(training_days=2))


class TestGeneratePlan:

    def test_twelve_week_plan_with_four_days(self, service, runner, race, mock_llm):
        """
        Scenario: intermediate runner, half-marathon, 4 training days.
        Expected: 12 weeks, each week holding exactly 4 workouts.
        """
        plan = service.generate_plan(runner.id, race.id, PlanPreferences(training_days=4))

        assert plan.total_weeks == 12 == sum(MOCK_PHASE_WEEKS.values())
        assert plan.phase == "base"
        assert plan.race.name == "City Half"
        assert len(plan.workouts) == 48
        for week in range(1, 13):
            assert len([w for w in plan.workouts if w.week_number == week]) == 4

        assert "- Experience: intermediate" in mock_llm.last_prompt
        assert "- Distance: half-marathon" in mock_llm.last_prompt
        assert "- Training Days: 4 days per week" in mock_llm.last_prompt

    def test_missing_race_does_not_call_backend(self, service, runner, mock_llm):
        with pytest.raises(NotFound) as exc_info:
            service.generate_plan(runner.id, 999, PlanPreferences(training_days=3))
        assert exc_info.value.resource == "race"
        assert not mock_llm.calls

    def test_missing_profile_does_not_call_backend(self, db, service, race, mock_llm):
        user = models.User(firebase_id="fb-no-profile", email="new@example.com")
        db.add(user)
        db.commit()

        with pytest.raises(NotFound) as exc_info:
            service.generate_plan(user.id, race.id, PlanPreferences(training_days=3))
        assert exc_info.value.resource == "profile"
        assert not mock_llm.calls

    def test_missing_user(self, service, race):
        with pytest.raises(NotFound) as exc_info:
            service.generate_plan(12345, race.id, PlanPreferences(training_days=3))
        assert exc_info.value.resource == "user"

    def test_malformed_answer_persists_nothing(self, db, runner, race):
        service = TrainingService(db, PlanGenerator(MockLLMClient(responses=["Sorry, I cannot help with that."])))
        with pytest.raises(GenerationMalformed):
            service.generate_plan(runner.id, race.id, PlanPreferences(training_days=3))

        assert db.query(models.TrainingPlan).count() == 0
        assert db.query(models.Workout).count() == 0

    def test_unavailable_backend_persists_nothing(self, db, runner, race):
        llm = MockLLMClient(error=GenerationUnavailable(details="timed out"))
        service = TrainingService(db, PlanGenerator(llm))
        with pytest.raises(GenerationUnavailable):
            service.generate_plan(runner.id, race.id, PlanPreferences(training_days=3))

        assert db.query(models.TrainingPlan).count() == 0

    def test_two_calls_give_two_plans(self, service, runner, race):
        first = service.generate_plan(runner.id, race.id, PlanPreferences(training_days=2))
        second = service.generate_plan(runner.id, race.id, PlanPreferences(training_days=2))

        assert first.id != second.id
        assert [p.id for p in service.list_plans(runner.id)] == [second.id, first.id]


class TestPlanReads:

    def test_week_workouts(self, service, plan):
        workouts = service.get_week_workouts(plan.id, 3)
        assert [w.week_number for w in workouts] == [3, 3]
        assert [w.day_of_week for w in workouts] == ["Tuesday", "Thursday"]

    def test_week_beyond_plan_is_empty(self, service, plan):
        assert service.get_week_workouts(plan.id, 40) == []

    def test_unknown_plan(self, service):
        with pytest.raises(NotFound):
            service.list_plan_workouts(404)

    def test_delete_plan_removes_workouts(self, db, service, plan):
        service.delete_plan(plan.id)

        assert db.query(models.TrainingPlan).count() == 0
        assert db.query(models.Workout).count() == 0
        with pytest.raises(NotFound):
            service.get_plan(plan.id)


class TestAdvancePhase:

    def test_walks_through_every_phase(self, service, plan):
        assert plan.phase == "base"
        assert service.advance_phase(plan.id).phase == "build"
        assert service.advance_phase(plan.id).phase == "peak"
        assert service.advance_phase(plan.id).phase == "taper"

    def test_taper_is_final(self, service, plan):
        for _ in range(3):
            service.advance_phase(plan.id)
        with pytest.raises(ValidationError):
            service.advance_phase(plan.id)
        assert service.get_plan(plan.id).phase == "taper"


class TestCompleteWorkout:

    def test_second_completion_overwrites_actuals(self, service, plan):
        workout = plan.workouts[0]
        scheduled = (workout.week_number, workout.day_of_week, workout.workout_type,
                     workout.distance, workout.pace, workout.description)

        service.complete_workout(workout.id, actual_distance=4.1, actual_pace="9:30/mi",
                                 actual_duration="38:57", notes="felt good")
        result = service.complete_workout(workout.id, actual_distance=4.3, actual_pace="9:20/mi",
                                          actual_duration="40:08", notes="windy")

        assert result.completed is True
        assert result.completed_at is not None
        assert result.actual_distance == 4.3
        assert result.actual_pace == "9:20/mi"
        assert result.actual_duration == "40:08"
        assert result.notes == "windy"
        assert (result.week_number, result.day_of_week, result.workout_type,
                result.distance, result.pace, result.description) == scheduled

    def test_missing_workout(self, service):
        with pytest.raises(NotFound) as exc_info:
            service.complete_workout(9999, actual_distance=3.0)
        assert exc_info.value.key == 9999


class TestAnalyzeWorkout:

    def test_sends_five_most_recent_activities(self, service, plan, recent_activities, mock_llm):
        workout = plan.workouts[0]
        service.complete_workout(workout.id, actual_distance=4.0, actual_pace="9:40/mi", actual_duration="38:40")

        analysis = service.analyze_workout(workout.id)

        assert analysis.analysis.performance == "good"
        prompt = mock_llm.last_prompt
        for day in ("2026-10-10", "2026-10-09", "2026-10-08", "2026-10-07", "2026-10-06"):
            assert day in prompt
        assert "2026-10-05" not in prompt
        assert "2026-10-04" not in prompt
        assert prompt.index("2026-10-10") < prompt.index("2026-10-06")
        assert "- Pace: 9:40/mi" in prompt

    def test_no_history(self, service, plan, mock_llm):
        service.analyze_workout(plan.workouts[0].id)
        assert "- none recorded" in mock_llm.last_prompt

    def test_missing_workout(self, service, mock_llm):
        with pytest.raises(NotFound):
            service.analyze_workout(9999)
        assert not mock_llm.calls


class TestRaceStrategy:

    def test_strategy_for_runner_and_race(self, service, runner, race, recent_activities, mock_llm):
        strategy = service.generate_race_strategy(race.id, runner.id)

        assert strategy.strategy.pacing.target_pace == "Goal pace"
        assert "- Course: road" in mock_llm.last_prompt
        assert "2026-10-04" in mock_llm.last_prompt

    def test_missing_race(self, service, runner):
        with pytest.raises(NotFound):
            service.generate_race_strategy(999, runner.id)
