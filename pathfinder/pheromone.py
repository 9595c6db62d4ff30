"""
pathfinder/pheromone.py
───────────────────────
Pheromone trails: the colony's shared, persistent memory.

What is pheromone here?
───────────────────────
Every ordered pair of distinct modules (A → B) carries one trail.
Its pheromone level encodes accumulated evidence that moving from A to B
leads to good learning outcomes.

  • "Path"   = an ordered sequence of modules recommended to a learner.
  • "Better" = higher evaluate_path() score.
  • τ(A, B)  = pheromone on the transition "take B right after A".

Two forces balance each other:
  1. Evaporation   — every trail decays every iteration, used or not.
                     Stale knowledge fades so early lucky paths don't lock in.
  2. Reinforcement — edges on the path just evaluated gain
                     path_score × reinforcement_factor.

Separately, real learners leave traces: record_traversal() updates the
traversal statistics of an edge when a learner actually moves along it.
Those statistics never feed the selection probability; they feed
trail_strength() for reporting.

Bounds
──────
Every level stays in [TAU_MIN, TAU_MAX] after any operation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

# ── Pheromone constants ────────────────────────────────────────────────────────

TAU_MIN: float = 0.01
"""Floor. Keeps every transition alive so it can be rediscovered."""

TAU_MAX: float = 10.0
"""Ceiling. Stops one early winner from crowding out exploration."""

TAU_INITIAL: float = 1.0
"""Level every trail starts at. Uniform: no prior bias."""

TAU_DEFAULT: float = 0.5
"""Level assumed for a pair with no trail record."""

TrailKey = Tuple[str, str]


def _clamp(level: float) -> float:
    return min(TAU_MAX, max(TAU_MIN, level))


class PheromoneTrail(BaseModel):
    """
    Pheromone level and traversal statistics for one directed module pair.

    Fields:
        from_module / to_module → the directed pair. Never equal.
        pheromone_level         → current τ, clamped to [TAU_MIN, TAU_MAX].
        traversal_count         → real learner traversals recorded.
        success_rate            → successful traversals / traversal_count.
        total_score             → sum of traversal scores (see average_score).
        average_completion_time → minutes. Updated as (old + new) // 2, which
                                  weights the latest traversal at one half
                                  rather than 1/n. Kept for compatibility with
                                  stored values; it is not a true mean.
        last_updated            → time of the last mutation.
    """
    from_module: str
    to_module: str
    pheromone_level: float = Field(TAU_INITIAL)
    traversal_count: int = Field(0, ge=0)
    success_rate: float = Field(0.0, ge=0.0, le=1.0)
    total_score: float = Field(0.0, ge=0.0)
    average_completion_time: int = Field(0, ge=0)
    last_updated: datetime = Field(default_factory=datetime.utcnow)

    @property
    def key(self) -> TrailKey:
        return (self.from_module, self.to_module)

    def evaporate(self, rate: float) -> None:
        """
        Decay: τ ← max(TAU_MIN, τ × (1 − rate)).
        """
        self.pheromone_level = max(TAU_MIN, self.pheromone_level * (1.0 - rate))
        self.last_updated = datetime.utcnow()

    def reinforce(self, amount: float) -> None:
        """
        Deposit: τ ← clamp(τ + amount, TAU_MIN, TAU_MAX).
        """
        self.pheromone_level = _clamp(self.pheromone_level + amount)
        self.last_updated = datetime.utcnow()

    def record_traversal(self, score: float, completion_time: int, success: bool) -> None:
        """
        Record one real learner moving along this edge.

        success_rate is recomputed from the reconstructed success count, so
        after N calls with k successes it equals k / N regardless of order.
        """
        successes_before = round(self.success_rate * self.traversal_count)
        self.traversal_count += 1
        self.total_score += score
        self.average_completion_time = (self.average_completion_time + completion_time) // 2
        self.success_rate = (successes_before + (1 if success else 0)) / self.traversal_count
        self.last_updated = datetime.utcnow()

    @property
    def average_score(self) -> float:
        if self.traversal_count == 0:
            return 0.0
        return self.total_score / self.traversal_count

    def trail_strength(self) -> float:
        """Reporting metric: τ × (1 + success_rate)."""
        return self.pheromone_level * (1.0 + self.success_rate)


class PheromoneStore:
    """
    One PheromoneTrail per ordered pair of distinct modules, created eagerly.

    Used by:
        PathAnt._select_next()  → level() to weight candidates.
        Colony.optimize()       → evaporate_all() and reinforce_path().
        Colony.record_traversal → get() for real learner statistics.
        analytics               → trails(), as_matrix().

    Thread safety:
        Not thread-safe on its own. The Colony serialises writers with its lock.
    """

    def __init__(
        self,
        module_ids: Sequence[str],
        initial_level: float = TAU_INITIAL,
        default_level: float = TAU_DEFAULT,
    ) -> None:
        if not module_ids:
            raise ValueError("PheromoneStore requires at least one module id.")
        self._module_ids: Tuple[str, ...] = tuple(module_ids)
        self._default_level = default_level
        start = _clamp(initial_level)
        self._trails: Dict[TrailKey, PheromoneTrail] = {
            (a, b): PheromoneTrail(from_module=a, to_module=b, pheromone_level=start)
            for a in self._module_ids
            for b in self._module_ids
            if a != b
        }
        # Fixed once: the key set never changes after construction, so
        # evaporation walks this tuple instead of the live dict.
        self._keys: Tuple[TrailKey, ...] = tuple(self._trails)

    # ── Core operations ────────────────────────────────────────────────────────

    def get(self, from_module: str, to_module: str) -> Optional[PheromoneTrail]:
        return self._trails.get((from_module, to_module))

    def level(self, from_module: Optional[str], to_module: str) -> float:
        """τ for the pair, or the default level if no trail exists."""
        if from_module is None:
            return self._default_level
        trail = self._trails.get((from_module, to_module))
        if trail is None:
            return self._default_level
        return trail.pheromone_level

    def evaporate_all(self, rate: float) -> None:
        """Decay every trail in the store by *rate*."""
        for key in self._keys:
            self._trails[key].evaporate(rate)

    def reinforce_path(self, path: Sequence[str], amount: float) -> int:
        """
        Reinforce each consecutive edge of *path* by *amount*.

        Self-pairs and pairs without a trail are skipped.

        Returns:
            Number of trails reinforced.
        """
        reinforced = 0
        for a, b in edges(path):
            trail = self._trails.get((a, b))
            if trail is None:
                continue
            trail.reinforce(amount)
            reinforced += 1
        return reinforced

    # ── Inspection ─────────────────────────────────────────────────────────────

    def trails(self) -> List[PheromoneTrail]:
        return [self._trails[k] for k in self._keys]

    def as_matrix(self) -> NDArray[np.float64]:
        """
        Levels as an (n, n) float64 array in module order.

        The diagonal holds 0.0 (no self-transitions). The array is a fresh
        copy; mutating it does not touch the store.
        """
        index = {m: i for i, m in enumerate(self._module_ids)}
        n = len(self._module_ids)
        matrix = np.zeros((n, n), dtype=np.float64)
        for (a, b), trail in self._trails.items():
            matrix[index[a], index[b]] = trail.pheromone_level
        return matrix

    @property
    def module_ids(self) -> Tuple[str, ...]:
        return self._module_ids

    def __iter__(self) -> Iterator[PheromoneTrail]:
        return iter(self.trails())

    def __len__(self) -> int:
        return len(self._trails)

    def __contains__(self, key: object) -> bool:
        return key in self._trails

    def __repr__(self) -> str:
        levels = [t.pheromone_level for t in self._trails.values()]
        if not levels:
            return "PheromoneStore(trails=0)"
        return (
            f"PheromoneStore(trails={len(levels)}, min={min(levels):.4f}, "
            f"max={max(levels):.4f}, mean={sum(levels) / len(levels):.4f})"
        )


def edges(path: Iterable[str]) -> List[TrailKey]:
    """Consecutive (a, b) pairs of *path*, skipping self-pairs."""
    items = list(path)
    return [(a, b) for a, b in zip(items, items[1:]) if a != b]
