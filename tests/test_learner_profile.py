"""
tests/test_learner_profile.py
─────────────────────────────
LearnerProfile test suite.

Group 1 — record_performance(): skill drift, clamping, rounding.
Group 2 — available_modules(): prerequisite gating.
Group 3 — recommended_difficulty(): last-5 window rules.
"""

from __future__ import annotations

from typing import List

import pytest
from pydantic import ValidationError

from curriculum.shared.models import (
    GoalKind,
    LearnerProfile,
    LearningGoal,
    Module,
    PerformanceRecord,
)


def _make_module(module_id: str, difficulty: int = 1, prerequisites=()) -> Module:
    return Module(
        id=module_id,
        title=module_id.title(),
        difficulty=difficulty,
        estimated_time=30,
        prerequisites=set(prerequisites),
    )


def _with_history(learner: LearnerProfile, scores: List[float]) -> LearnerProfile:
    """Append records directly so skill_level stays put while building history."""
    for i, score in enumerate(scores):
        learner.performance_history.append(
            PerformanceRecord(
                module_id=f"m{i}",
                score=score,
                completion_time=10,
                success=score >= 70,
                skill_at_time=learner.skill_level,
            )
        )
    return learner


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — record_performance
# ─────────────────────────────────────────────────────────────────────────────

class TestRecordPerformance:

    def test_score_95_at_skill_5(self):
        """(95 − 70) / 300 = 0.0833 → 5.0833 → rounded 5.08."""
        learner = LearnerProfile(learner_id="l1", skill_level=5.0)
        learner.record_performance("m1", 95, 30)
        assert learner.skill_level == 5.08

    def test_perfect_score_adds_one_tenth(self):
        learner = LearnerProfile(learner_id="l1", skill_level=3.0)
        learner.record_performance("m1", 100, 30)
        assert learner.skill_level == pytest.approx(3.1)

    def test_failure_subtracts_penalty(self):
        learner = LearnerProfile(learner_id="l1", skill_level=5.0)
        learner.record_performance("m1", 40, 30)
        assert learner.skill_level == pytest.approx(4.95)

    def test_exactly_seventy_is_success_with_no_gain(self):
        learner = LearnerProfile(learner_id="l1", skill_level=4.0)
        record = learner.record_performance("m1", 70, 30)
        assert record.success is True
        assert learner.skill_level == pytest.approx(4.0)

    def test_just_below_seventy_is_failure(self):
        learner = LearnerProfile(learner_id="l1", skill_level=4.0)
        record = learner.record_performance("m1", 69.9, 30)
        assert record.success is False
        assert learner.skill_level == pytest.approx(3.95)

    def test_skill_floor(self):
        learner = LearnerProfile(learner_id="l1", skill_level=1.0)
        learner.record_performance("m1", 0, 30)
        assert learner.skill_level == 1.0

    def test_skill_ceiling(self):
        learner = LearnerProfile(learner_id="l1", skill_level=10.0)
        learner.record_performance("m1", 100, 30)
        assert learner.skill_level == 10.0

    def test_record_is_appended_with_prior_skill(self):
        learner = LearnerProfile(learner_id="l1", skill_level=2.0)
        record = learner.record_performance("m1", 100, 25, attempts=3)
        assert learner.performance_history == [record]
        assert record.skill_at_time == 2.0
        assert record.attempts_needed == 3
        assert record.completion_time == 25

    def test_record_performance_does_not_complete_module(self):
        learner = LearnerProfile(learner_id="l1")
        learner.record_performance("m1", 100, 10)
        assert learner.completed_modules == set()

    def test_mark_completed_is_idempotent(self):
        learner = LearnerProfile(learner_id="l1")
        learner.mark_completed("m1")
        learner.mark_completed("m1")
        assert learner.completed_modules == {"m1"}

    def test_skill_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            LearnerProfile(learner_id="l1", skill_level=11.0)

    def test_goals_are_tagged(self):
        learner = LearnerProfile(
            learner_id="l1",
            learning_goals=[
                LearningGoal(kind=GoalKind.TARGET_MODULE, target="oop"),
                LearningGoal(kind=GoalKind.TARGET_SKILL, target=6.5),
            ],
        )
        assert [g.kind for g in learner.learning_goals] == [
            GoalKind.TARGET_MODULE, GoalKind.TARGET_SKILL,
        ]

    @pytest.mark.parametrize(
        "kind, target",
        [
            (GoalKind.TARGET_MODULE, "oop"),
            (GoalKind.TARGET_SKILL, 10.0),
            (GoalKind.WEEKLY_MINUTES, 90),
            (GoalKind.COMPLETION_COUNT, 4),
        ],
    )
    def test_goal_target_matches_kind(self, kind, target):
        assert LearningGoal(kind=kind, target=target).target == target

    @pytest.mark.parametrize(
        "kind, target",
        [
            (GoalKind.TARGET_MODULE, 3.0),
            (GoalKind.TARGET_MODULE, ""),
            (GoalKind.TARGET_SKILL, "banana"),
            (GoalKind.TARGET_SKILL, 11.0),
            (GoalKind.WEEKLY_MINUTES, 0),
            (GoalKind.WEEKLY_MINUTES, "lots"),
            (GoalKind.COMPLETION_COUNT, 2.5),
            (GoalKind.COMPLETION_COUNT, 0),
        ],
    )
    def test_goal_target_of_wrong_type_rejected(self, kind, target):
        with pytest.raises(ValidationError):
            LearningGoal(kind=kind, target=target)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — available_modules
# ─────────────────────────────────────────────────────────────────────────────

class TestAvailableModules:

    @pytest.fixture
    def modules(self) -> List[Module]:
        return [
            _make_module("a"),
            _make_module("b", prerequisites=["a"]),
            _make_module("c", prerequisites=["b"]),
            _make_module("d", prerequisites=["a", "c"]),
            _make_module("e"),
        ]

    def test_no_completed_returns_unprerequisited(self, modules):
        learner = LearnerProfile(learner_id="l1")
        assert [m.id for m in learner.available_modules(modules)] == ["a", "e"]

    def test_completed_excluded_and_dependents_unlocked(self, modules):
        learner = LearnerProfile(learner_id="l1", completed_modules={"a"})
        assert [m.id for m in learner.available_modules(modules)] == ["b", "e"]

    def test_no_partial_credit(self, modules):
        """d needs a AND c; having only a and b leaves it locked."""
        learner = LearnerProfile(learner_id="l1", completed_modules={"a", "b"})
        ids = [m.id for m in learner.available_modules(modules)]
        assert "d" not in ids
        assert ids == ["c", "e"]

    def test_prerequisites_always_subset_of_completed(self, modules):
        for completed in [set(), {"a"}, {"a", "b"}, {"a", "b", "c"}, {"e"}]:
            learner = LearnerProfile(learner_id="l1", completed_modules=completed)
            for m in learner.available_modules(modules):
                assert m.prerequisites <= completed
                assert m.id not in completed

    def test_everything_completed(self, modules):
        learner = LearnerProfile(learner_id="l1", completed_modules={m.id for m in modules})
        assert learner.available_modules(modules) == []


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 3 — recommended_difficulty
# ─────────────────────────────────────────────────────────────────────────────

class TestRecommendedDifficulty:

    def test_no_history_is_floor_of_skill(self):
        assert LearnerProfile(learner_id="l1", skill_level=3.7).recommended_difficulty() == 3

    def test_strong_recent_performance_steps_up(self):
        learner = _with_history(LearnerProfile(learner_id="l1", skill_level=3.0), [90] * 5)
        assert learner.recommended_difficulty() == 4

    def test_step_up_capped_at_five(self):
        learner = _with_history(LearnerProfile(learner_id="l1", skill_level=7.5), [95] * 5)
        assert learner.recommended_difficulty() == 5

    def test_weak_average_steps_down(self):
        learner = _with_history(LearnerProfile(learner_id="l1", skill_level=3.0), [60] * 5)
        assert learner.recommended_difficulty() == 2

    def test_low_success_rate_steps_down(self):
        """Average 73 but only 2/5 passed → success rate 0.4 < 0.5."""
        learner = _with_history(
            LearnerProfile(learner_id="l1", skill_level=3.0), [100, 100, 65, 50, 50]
        )
        assert learner.recommended_difficulty() == 2

    def test_step_down_floored_at_one(self):
        learner = _with_history(LearnerProfile(learner_id="l1", skill_level=1.2), [20] * 5)
        assert learner.recommended_difficulty() == 1

    def test_middling_performance_holds(self):
        learner = _with_history(LearnerProfile(learner_id="l1", skill_level=3.0), [80] * 5)
        assert learner.recommended_difficulty() == 3

    def test_only_last_five_considered(self):
        learner = _with_history(
            LearnerProfile(learner_id="l1", skill_level=3.0), [10] * 10 + [90] * 5
        )
        assert learner.recommended_difficulty() == 4

    def test_success_rate_property(self):
        learner = _with_history(LearnerProfile(learner_id="l1"), [90, 50, 70, 10])
        assert learner.success_rate == pytest.approx(0.5)
        assert LearnerProfile(learner_id="l2").success_rate == 0.0
