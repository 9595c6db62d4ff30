"""
pathfinder/ant.py
─────────────────
One ant: walks the module graph and builds one candidate learning path.

What does an ant do?
─────────────────────
An ant represents one hypothetical learning journey for one learner.
Starting where the learner is, it repeatedly picks a next module among the
ones the learner could take, until it reaches the target, runs out of
options, or hits the path length cap. Choices are probabilistic: good
modules are more likely but never certain, which is what lets the colony
explore.

The two inputs to every decision
──────────────────────────────────
1. Pheromone trail (τ) — what did previous ants learn?
   τ(current → m) from the shared PheromoneStore.

2. Attractiveness (η)  — how well does module m fit THIS learner right now?
   A weighted blend of four terms (see attractiveness()).

The selection formula
──────────────────────
weight(m) = τ(c → m)^α × η(m)^β
P(m)      = weight(m) / Σ weight(candidates)

If every weight is zero the choice degrades to uniform.

Simulated progress
───────────────────
While walking, the ant treats each module it appends as done: its
dependents unlock for the next step. The learner's real completed set is
never modified.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from curriculum.shared.config import ColonyConfig
from curriculum.shared.models import LearnerProfile, LearningStyle, Module
from pathfinder.graph import ModuleGraph
from pathfinder.pheromone import PheromoneStore

# ── Attractiveness weights ─────────────────────────────────────────────────────

W_SKILL: float = 0.4
W_STYLE: float = 0.2
W_TIME: float = 0.2
W_PERFORMANCE: float = 0.2

SKILL_MATCH_FLOOR: float = 0.1
"""Lowest skill-match score. Far-off modules stay selectable."""

DIFFICULTY_SPAN: float = 5.0

# ── Learning-style table ───────────────────────────────────────────────────────

STYLE_VISUAL_MATCH: float = 1.2
STYLE_VISUAL_BASELINE: float = 0.8
STYLE_PREFERRED: float = 1.3
STYLE_AVOIDED: float = 0.7
STYLE_NEUTRAL: float = 1.0

VISUAL_TAGS = ("visual",)
VISUAL_TITLE_TERMS = ("gui", "interface", "visual", "design")
HANDS_ON_TAGS = ("hands-on", "practical", "project", "exercise")
HANDS_ON_TITLE_TERMS = ("exercise", "project", "practice", "workshop", "lab")
THEORY_TITLE_TERMS = ("theory", "concept", "fundamental", "principle", "introduction")

# ── Time-fit and recent performance ────────────────────────────────────────────

TIME_FIT_BONUS: float = 1.2
TIME_FIT_PENALTY: float = 0.8

RECENT_WINDOW: int = 3
CONFIDENCE_SCORE: float = 80.0
CAUTION_SCORE: float = 60.0
CONFIDENCE_BONUS: float = 1.1
CAUTION_PENALTY: float = 0.9

# ── Path evaluation ────────────────────────────────────────────────────────────

EVAL_W_SKILL: float = 0.5
EVAL_W_EFFICIENCY: float = 0.2
EVAL_W_PREREQ: float = 0.3
LENGTH_PENALTY: float = 0.1
SIMULATED_SKILL_GAIN: float = 0.2
SKILL_CAP: float = 10.0


def _title_has(module: Module, terms: Sequence[str]) -> bool:
    title = module.title.lower()
    return any(term in title for term in terms)


class PathAnt:
    """
    Constructs one candidate path for one learner toward one target.

    Lifecycle:
        1. __init__()         → bind the graph, trails, learner and config.
        2. construct(target)  → walk, populating path / reached_target.
        3. Read results.

    Single-use, like the colony's other ants: create a new instance per walk.

    Attributes:
        path           : List[str] — recommended module ids, in order.
        reached_target : bool      — True if path ends at the target.
    """

    def __init__(
        self,
        graph: ModuleGraph,
        trails: PheromoneStore,
        learner: LearnerProfile,
        config: ColonyConfig,
        rng: np.random.Generator,
    ) -> None:
        self._graph = graph
        self._trails = trails
        self._learner = learner
        self._config = config
        self._rng = rng

        self.path: List[str] = []
        self.reached_target: bool = False

    # ── Attractiveness (η) ────────────────────────────────────────────────────

    @staticmethod
    def _skill_match(difficulty: float, skill: float) -> float:
        """max(0.1, 1 − |difficulty − skill| / 5)."""
        return max(SKILL_MATCH_FLOOR, 1.0 - abs(difficulty - skill) / DIFFICULTY_SPAN)

    @staticmethod
    def _style_match(module: Module, style: LearningStyle) -> float:
        """
        Fixed table keyed by learning style × module tags/title.

            VISUAL       → 1.2 for visual tags or GUI/interface titles, else 0.8
            PRACTICAL    → 1.3 hands-on, 0.7 theory-titled, else 1.0
            THEORETICAL  → 1.3 theory-titled, 0.7 hands-on, else 1.0
            MIXED        → 1.0
        """
        if style == LearningStyle.VISUAL:
            if module.has_tag(*VISUAL_TAGS) or _title_has(module, VISUAL_TITLE_TERMS):
                return STYLE_VISUAL_MATCH
            return STYLE_VISUAL_BASELINE

        hands_on = module.has_tag(*HANDS_ON_TAGS) or _title_has(module, HANDS_ON_TITLE_TERMS)
        theory = _title_has(module, THEORY_TITLE_TERMS)

        if style == LearningStyle.PRACTICAL:
            if hands_on:
                return STYLE_PREFERRED
            if theory:
                return STYLE_AVOIDED
            return STYLE_NEUTRAL

        if style == LearningStyle.THEORETICAL:
            if theory:
                return STYLE_PREFERRED
            if hands_on:
                return STYLE_AVOIDED
            return STYLE_NEUTRAL

        return STYLE_NEUTRAL

    @staticmethod
    def _time_fit(module: Module, learner: LearnerProfile) -> float:
        """1.2 if the module fits the max session, 0.8 if not, 1.0 with no limit."""
        limit = learner.preferences.max_session_minutes
        if limit is None:
            return STYLE_NEUTRAL
        return TIME_FIT_BONUS if module.estimated_time <= limit else TIME_FIT_PENALTY

    @staticmethod
    def _recent_performance(learner: LearnerProfile) -> float:
        """Mean of the last 3 scores: > 80 → 1.1, < 60 → 0.9, else 1.0."""
        avg = learner.recent_average_score(RECENT_WINDOW)
        if avg is None:
            return STYLE_NEUTRAL
        if avg > CONFIDENCE_SCORE:
            return CONFIDENCE_BONUS
        if avg < CAUTION_SCORE:
            return CAUTION_PENALTY
        return STYLE_NEUTRAL

    @staticmethod
    def attractiveness(module: Module, learner: LearnerProfile) -> float:
        """
        η(module, learner) = 0.4·skill + 0.2·style + 0.2·time + 0.2·performance.

        Always > 0: the skill term is floored at 0.1 and the others are ≥ 0.7.
        """
        return (
            W_SKILL * PathAnt._skill_match(module.difficulty, learner.skill_level)
            + W_STYLE * PathAnt._style_match(module, learner.learning_style)
            + W_TIME * PathAnt._time_fit(module, learner)
            + W_PERFORMANCE * PathAnt._recent_performance(learner)
        )

    # ── Selection ─────────────────────────────────────────────────────────────

    def selection_probabilities(
        self,
        current: Optional[str],
        candidates: Sequence[Module],
    ) -> np.ndarray:
        """
        P(m) for each candidate, in candidate order.

        weight(m) = τ(current → m)^α × η(m)^β, normalised to sum to 1.
        Degrades to uniform when every weight is zero.
        """
        n = len(candidates)
        if n == 0:
            return np.zeros(0, dtype=np.float64)

        tau = np.array(
            [self._trails.level(current, m.id) for m in candidates], dtype=np.float64
        )
        eta = np.array(
            [self.attractiveness(m, self._learner) for m in candidates], dtype=np.float64
        )
        weights = (tau ** self._config.alpha) * (eta ** self._config.beta)
        total = float(weights.sum())

        if total == 0.0:
            return np.full(n, 1.0 / n, dtype=np.float64)
        return weights / total

    def _select_next(self, current: Optional[str], candidates: Sequence[Module]) -> Module:
        """
        Roulette-wheel pick among *candidates*.

        cumsum = [0.10, 0.45, 0.70, 1.00], u = 0.52 → searchsorted → index 2.
        If rounding leaves cumsum[-1] < u, searchsorted returns n and the
        first candidate is returned instead. Never fails.
        """
        probabilities = self.selection_probabilities(current, candidates)
        cumsum = np.cumsum(probabilities)
        chosen = int(np.searchsorted(cumsum, self._rng.random(), side="left"))
        if chosen >= len(candidates):
            return candidates[0]
        return candidates[chosen]

    # ── Path construction ─────────────────────────────────────────────────────

    def construct(self, target: str) -> List[str]:
        """
        Walk from the learner's position toward *target*.

        Stops when:
            • the target is appended (reached_target = True),
            • no candidate remains (partial or empty path),
            • max_path_length modules have been appended.

        Returns an empty path immediately when the learner is already on
        the target or has completed it.
        """
        learner = self._learner
        if learner.current_module == target or target in learner.completed_modules:
            return self.path

        start = learner.current_module
        current: Optional[str] = start if start is not None else target

        visited: Set[str] = set()
        if start is not None:
            visited.add(start)
        # Walk on a scratch profile so simulated completions stay local.
        unlocked = set(learner.completed_modules) | visited
        scratch = learner.model_copy(update={"completed_modules": unlocked})

        while len(self.path) < self._config.max_path_length:
            candidates = [
                m for m in scratch.available_modules(self._graph) if m.id not in visited
            ]
            if not candidates:
                break

            nxt = self._select_next(current, candidates)
            self.path.append(nxt.id)
            visited.add(nxt.id)
            unlocked.add(nxt.id)
            current = nxt.id

            if nxt.id == target:
                self.reached_target = True
                break

        return self.path

    def __repr__(self) -> str:
        return f"PathAnt(learner={self._learner.learner_id}, path={self.path})"


def evaluate_path(
    path: Sequence[str],
    learner: LearnerProfile,
    graph: ModuleGraph,
) -> float:
    """
    Average per-module quality of *path* for *learner*.

    Per module, in order:
        skill      = max(0.1, 1 − |difficulty − running_skill| / 5)
        efficiency = 1 / (1 + 0.1 × len(path))        (constant per path)
        prereq     = share of prerequisites already completed (1.0 if none)
        score     += 0.5·skill + 0.2·efficiency + 0.3·prereq
        running_skill = min(10, running_skill + 0.2)

    Returns score / len(path); 0.0 for an empty path.

    Bounds for a non-empty path of length L ≤ 10:
        min = 0.5·0.1 + 0.2·(1 / (1 + 0.1·L)) + 0  ≥ 0.15
        max = 0.5·1 + 0.2·(1 / 1.1) + 0.3·1       ≈ 0.982
    """
    if not path:
        return 0.0

    efficiency = 1.0 / (1.0 + LENGTH_PENALTY * len(path))
    running_skill = learner.skill_level
    total = 0.0

    for module_id in path:
        module = graph.get(module_id)
        skill = PathAnt._skill_match(module.difficulty, running_skill)
        if module.prerequisites:
            met = len(module.prerequisites & learner.completed_modules)
            prereq = met / len(module.prerequisites)
        else:
            prereq = 1.0
        total += EVAL_W_SKILL * skill + EVAL_W_EFFICIENCY * efficiency + EVAL_W_PREREQ * prereq
        running_skill = min(SKILL_CAP, running_skill + SIMULATED_SKILL_GAIN)

    return total / len(path)


def probability_table(ant: PathAnt, current: Optional[str], candidates: Sequence[Module]) -> Dict[str, float]:
    """{module_id: P(module_id)} for reporting."""
    probabilities = ant.selection_probabilities(current, candidates)
    return {m.id: float(p) for m, p in zip(candidates, probabilities)}
