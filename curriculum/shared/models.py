"""
curriculum/shared/models.py
───────────────────────────
The single source of truth for every learning-domain data structure.

Design philosophy
-----------------
Every model answers one question: "What does the colony *need to know*
about this thing in order to recommend a good next module?"

Modules are static catalogue entries. Learner profiles are the mutable,
per-learner state the path ants read to bias their choices. The result
models at the bottom are what the colony hands back to callers.

Reading guide
-------------
Read top-to-bottom. Each model builds on the ones above it.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: ENUMERATIONS
# ─────────────────────────────────────────────────────────────────────────────

class LearningStyle(str, Enum):
    """
    How a learner prefers to absorb material.

    VISUAL       → diagrams, GUIs, interface-heavy modules.
    PRACTICAL    → exercises, projects, hands-on labs.
    THEORETICAL  → concepts, fundamentals, theory-first modules.
    MIXED        → no preference. The style term is neutral (1.0).
    """
    VISUAL = "visual"
    PRACTICAL = "practical"
    THEORETICAL = "theoretical"
    MIXED = "mixed"


class GoalKind(str, Enum):
    """
    The closed set of learning-goal types a learner can declare.

    TARGET_MODULE     → reach a specific module (target is a module id).
    TARGET_SKILL      → reach a skill level (target is a float 1–10).
    WEEKLY_MINUTES    → study budget per week (target is minutes).
    COMPLETION_COUNT  → number of modules to complete (target is a count).
    """
    TARGET_MODULE = "target_module"
    TARGET_SKILL = "target_skill"
    WEEKLY_MINUTES = "weekly_minutes"
    COMPLETION_COUNT = "completion_count"


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: MODULE CATALOGUE
# ─────────────────────────────────────────────────────────────────────────────

class Module(BaseModel):
    """
    One learning module in the graph.

    Immutable for the lifetime of a colony: loaded once by the catalog
    loader and then only read by ants and analytics.

    Fields:
        id                   → Unique module identifier, e.g. "python-basics".
        title                → Human-readable title. Also scanned by the
                               learning-style heuristic ("GUI", "Exercise", ...).
        difficulty           → 1 (intro) to 5 (expert).
        estimated_time       → Expected minutes to complete. Compared against
                               the learner's max session length.
        prerequisites        → Module ids that must be completed first.
        tags                 → Free-form tags ("visual", "hands-on", ...).
        learning_objectives  → Ordered list of objectives.
        category             → Catalogue grouping, e.g. "fundamentals".
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique module identifier")
    title: str = Field(..., description="Human-readable module title")
    difficulty: int = Field(..., ge=1, le=5, description="Difficulty 1 (easy) to 5 (expert)")
    estimated_time: int = Field(..., gt=0, description="Estimated completion time in minutes")
    prerequisites: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Module ids that must be completed before this one"
    )
    tags: FrozenSet[str] = Field(default_factory=frozenset)
    learning_objectives: Tuple[str, ...] = Field(default_factory=tuple)
    category: str = Field("general", description="Catalogue grouping")

    def has_tag(self, *candidates: str) -> bool:
        """Case-insensitive tag membership test against any of *candidates*."""
        lowered = {t.lower() for t in self.tags}
        return any(c.lower() in lowered for c in candidates)


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: LEARNER PROFILE
# ─────────────────────────────────────────────────────────────────────────────

PASSING_SCORE: float = 70.0
"""A score at or above this counts as a successful attempt."""

SKILL_MIN: float = 1.0
SKILL_MAX: float = 10.0

FAILURE_SKILL_PENALTY: float = 0.05
"""Skill lost on every failed attempt."""

SUCCESS_SKILL_DIVISOR: float = 300.0
"""Skill gained on success = (score − PASSING_SCORE) / SUCCESS_SKILL_DIVISOR.
A perfect 100 yields +0.1.
"""

DIFFICULTY_WINDOW: int = 5
"""How many recent attempts recommended_difficulty() looks at."""


class PerformanceRecord(BaseModel):
    """
    One attempt at one module by one learner.

    skill_at_time is the learner's skill *before* this attempt adjusted it,
    so analytics can reconstruct the skill curve.
    """
    module_id: str
    score: float = Field(..., ge=0.0, le=100.0)
    completion_time: int = Field(..., ge=0, description="Minutes spent")
    attempts_needed: int = Field(1, ge=1)
    success: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    skill_at_time: float = Field(..., ge=SKILL_MIN, le=SKILL_MAX)


class LearnerPreferences(BaseModel):
    """
    Fixed set of learner preferences.

    max_session_minutes → longest session the learner wants. None = no limit,
                          in which case the time-fit term is neutral.
    preferred_tags      → informational; surfaced by analytics.
    """
    max_session_minutes: Optional[int] = Field(None, gt=0)
    preferred_tags: Set[str] = Field(default_factory=set)


class LearningGoal(BaseModel):
    """
    A tagged goal: `kind` decides how `target` is read (see GoalKind).

    TARGET_MODULE    → non-empty module id (str).
    TARGET_SKILL     → number in [SKILL_MIN, SKILL_MAX].
    WEEKLY_MINUTES   → number > 0.
    COMPLETION_COUNT → whole number ≥ 1.
    """
    kind: GoalKind
    target: Union[float, str]

    @model_validator(mode="after")
    def check_target_matches_kind(self) -> "LearningGoal":
        if self.kind == GoalKind.TARGET_MODULE:
            if not isinstance(self.target, str) or not self.target:
                raise ValueError("target_module goals need a module id")
            return self

        if isinstance(self.target, str):
            raise ValueError(f"{self.kind.value} goals need a numeric target")
        if self.kind == GoalKind.TARGET_SKILL and not SKILL_MIN <= self.target <= SKILL_MAX:
            raise ValueError(f"target_skill must be within {SKILL_MIN}–{SKILL_MAX}")
        if self.kind == GoalKind.WEEKLY_MINUTES and self.target <= 0:
            raise ValueError("weekly_minutes must be positive")
        if self.kind == GoalKind.COMPLETION_COUNT and (
            self.target < 1 or not float(self.target).is_integer()
        ):
            raise ValueError("completion_count must be a whole number ≥ 1")
        return self


class LearnerProfile(BaseModel):
    """
    Per-learner mutable state consumed by the path ants.

    Fields:
        learner_id          → Unique learner identifier.
        current_module      → Last module the learner worked on. None until
                              the first progress event.
        skill_level         → 1.0–10.0. Drifts with every recorded attempt.
        learning_style      → Biases the attractiveness heuristic.
        completed_modules   → Append-only set of finished module ids.
        performance_history → Append-only ordered list of attempts.
        learning_goals      → Declared goals (tagged variant).
        preferences         → Session length and tag preferences.
    """
    learner_id: str = Field(..., min_length=1)
    current_module: Optional[str] = None
    skill_level: float = Field(1.0, ge=SKILL_MIN, le=SKILL_MAX)
    learning_style: LearningStyle = LearningStyle.MIXED
    completed_modules: Set[str] = Field(default_factory=set)
    performance_history: List[PerformanceRecord] = Field(default_factory=list)
    learning_goals: List[LearningGoal] = Field(default_factory=list)
    preferences: LearnerPreferences = Field(default_factory=LearnerPreferences)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def record_performance(
        self,
        module_id: str,
        score: float,
        completion_time: int,
        attempts: int = 1,
    ) -> PerformanceRecord:
        """
        Append one attempt and drift the skill level.

        Success (score ≥ 70) adds (score − 70) / 300; failure subtracts 0.05.
        The result is clamped to [1.0, 10.0] and rounded to 2 decimals.
        This is the only place skill_level changes.
        """
        success = score >= PASSING_SCORE
        record = PerformanceRecord(
            module_id=module_id,
            score=score,
            completion_time=completion_time,
            attempts_needed=attempts,
            success=success,
            skill_at_time=self.skill_level,
        )
        self.performance_history.append(record)

        if success:
            skill = self.skill_level + (score - PASSING_SCORE) / SUCCESS_SKILL_DIVISOR
        else:
            skill = self.skill_level - FAILURE_SKILL_PENALTY
        self.skill_level = round(min(SKILL_MAX, max(SKILL_MIN, skill)), 2)
        return record

    def mark_completed(self, module_id: str) -> None:
        """Add a module to the completed set (idempotent)."""
        self.completed_modules.add(module_id)

    def available_modules(self, modules: Iterable[Module]) -> List[Module]:
        """
        Modules not yet completed whose prerequisites are ALL completed.

        No partial credit: one missing prerequisite locks the module.
        Order follows the iteration order of *modules*.
        """
        return [
            m for m in modules
            if m.id not in self.completed_modules
            and m.prerequisites <= self.completed_modules
        ]

    def recent_average_score(self, n: int) -> Optional[float]:
        """Mean score over the last n attempts, or None with no history."""
        recent = self.performance_history[-n:]
        if not recent:
            return None
        return sum(r.score for r in recent) / len(recent)

    def recommended_difficulty(self) -> int:
        """
        Difficulty (1–5) the learner should tackle next.

        Looks at the last 5 attempts:
            avg > 85 and success rate > 0.8 → one step up (max 5)
            avg < 70 or success rate < 0.5  → one step down (min 1)
            otherwise                        → floor(skill_level)
        """
        base = int(self.skill_level)
        if not self.performance_history:
            return base

        recent = self.performance_history[-DIFFICULTY_WINDOW:]
        avg_score = sum(r.score for r in recent) / len(recent)
        success_rate = sum(1 for r in recent if r.success) / len(recent)

        if avg_score > 85 and success_rate > 0.8:
            return min(5, base + 1)
        if avg_score < 70 or success_rate < 0.5:
            return max(1, base - 1)
        return base

    @property
    def success_rate(self) -> float:
        """Fraction of all recorded attempts that passed. 0.0 with no history."""
        if not self.performance_history:
            return 0.0
        return sum(1 for r in self.performance_history if r.success) / len(
            self.performance_history
        )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 4: PROGRESS EVENTS & RESULTS
# What callers send in, and what the colony hands back.
# ─────────────────────────────────────────────────────────────────────────────

class ProgressEvent(BaseModel):
    """
    A learner finished (or gave up on) an attempt at a module.

    success=None means "derive from score" (score ≥ 70).
    """
    learner_id: str = Field(..., min_length=1)
    module_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0.0, le=100.0)
    completion_time: int = Field(..., ge=0)
    attempts_needed: int = Field(1, ge=1)
    success: Optional[bool] = None

    @property
    def succeeded(self) -> bool:
        if self.success is not None:
            return self.success
        return self.score >= PASSING_SCORE


class OptimizationResult(BaseModel):
    """
    Output of one Colony.optimize() call.

    An empty path is a valid outcome ("no route found"), never an error.

    Fields:
        path             → Recommended module ids in order. Excludes the
                           learner's current module.
        score            → evaluate_path() of the best path. 0.0 when empty.
        reaches_target   → True if the path ends at target_module.
        iterations_run   → Always equals the iteration budget.
        failed_iterations→ Iterations skipped because of a caught fault.
        converged_at     → Last iteration (1-based) where the best score
                           improved by more than the convergence threshold.
                           None if no path was ever found.
        duration_ms      → Wall-clock time of the run.
    """
    learner_id: str
    target_module: str
    path: List[str] = Field(default_factory=list)
    score: float = 0.0
    reaches_target: bool = False
    iterations_run: int = 0
    failed_iterations: int = 0
    converged_at: Optional[int] = None
    duration_ms: float = 0.0

    @property
    def found(self) -> bool:
        return bool(self.path)


class ColonyStatistics(BaseModel):
    """Aggregate, read-only view of colony state for analytics consumers."""
    module_count: int = 0
    trail_count: int = 0
    traversed_trail_count: int = 0
    average_pheromone: float = 0.0
    max_pheromone: float = 0.0
    min_pheromone: float = 0.0
    average_success_rate: float = 0.0
    learner_count: int = 0
    total_paths_generated: int = 0
    total_learning_events: int = 0
    optimization_runs: int = 0
