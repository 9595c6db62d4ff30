"""
pathfinder/colony.py
────────────────────
The Colony: owns the module graph, the trail store and the learner roster,
and runs the optimisation loop.

How the colony works
─────────────────────
For one (learner, target) request, optimize() runs a fixed iteration budget.
Each iteration:

  a. One PathAnt constructs a candidate path using the current pheromone
     levels and the learner's attractiveness scores.
  b. evaluate_path() scores it. A strictly better score replaces the best.
  c. Every trail evaporates (global forgetting).
  d. Every edge of THIS iteration's path is reinforced by
     score × reinforcement_factor, whether or not it was the best.

After the budget: the best path seen across ALL iterations is returned.
An empty path means "no route found" — a normal outcome, not an error.

Reinforced edges
─────────────────
The ant's first choice is weighted by τ(start → first), so the start
module is prepended when reinforcing: edges are start → p[0] → p[1] → ...
When the learner has no current module the start is the target itself.

Shared state and locking
─────────────────────────
Trails and learners live as long as the colony. optimize() and
record_traversal() take the colony lock for their whole duration, so two
runs never interleave evaporation and reinforcement. construct_path() takes
it too: the numpy Generator shared by every ant is not thread-safe.
Readers (analytics) take no lock and may see a run's in-progress
pheromone levels (read-uncommitted).
"""

from __future__ import annotations

import logging
import threading
import time
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

import numpy as np

from curriculum.shared.config import ColonyConfig
from curriculum.shared.models import (
    LearnerProfile,
    Module,
    OptimizationResult,
    PerformanceRecord,
)
from pathfinder.ant import PathAnt, evaluate_path, probability_table
from pathfinder.graph import ColonyError, ModuleGraph
from pathfinder.pheromone import PheromoneStore, PheromoneTrail

logger = logging.getLogger(__name__)


class UnknownLearnerError(ColonyError):
    """
    Raised when a learner id is not registered with the colony.

    Attributes:
        learner_id: The id that could not be resolved.
    """

    def __init__(self, learner_id: str, message: str = "") -> None:
        self.learner_id = learner_id
        super().__init__(message or f"Unknown learner: {learner_id!r}")


class DuplicateLearnerError(ColonyError):
    """Raised when registering a learner id that already exists."""

    def __init__(self, learner_id: str, message: str = "") -> None:
        self.learner_id = learner_id
        super().__init__(message or f"Learner already registered: {learner_id!r}")


class Colony:
    """
    The path-finding engine for one session.

    Usage:
        colony = Colony(graph, config=ColonyConfig(), seed=7)
        colony.add_learner(LearnerProfile(learner_id="ada"))
        result = colony.optimize("ada", "oop")

    Attributes:
        graph                 : ModuleGraph     — read-only module catalogue.
        trails                : PheromoneStore  — n × (n − 1) trail records.
        config                : ColonyConfig    — hyperparameters.
        total_paths_generated : int             — ants constructed by optimize().
        total_learning_events : int             — progress events recorded.
        optimization_runs     : int             — optimize() calls completed.
        last_run_ms           : float           — duration of the last optimize().
    """

    def __init__(
        self,
        modules: Union[ModuleGraph, Iterable[Module]],
        config: Optional[ColonyConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Build the graph and eagerly create every trail.

        Args:
            modules: A ModuleGraph or an iterable of Module definitions.
            config:  Hyperparameters. Defaults to ColonyConfig().
            seed:    Seed for a fresh numpy Generator. Ignored if rng is given.
            rng:     Explicit numpy Generator, shared by every ant.

        Raises:
            ValueError:         no modules.
            UnknownModuleError: a prerequisite references a missing module.
        """
        self.graph = modules if isinstance(modules, ModuleGraph) else ModuleGraph(modules)
        self.config = config or ColonyConfig()
        self.trails = PheromoneStore(
            self.graph.ids,
            initial_level=self.config.initial_pheromone,
            default_level=self.config.default_pheromone,
        )
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._learners: Dict[str, LearnerProfile] = {}
        self._lock = threading.RLock()

        self.total_paths_generated: int = 0
        self.total_learning_events: int = 0
        self.optimization_runs: int = 0
        self.last_run_ms: float = 0.0

        logger.info(
            "Colony initialised with %d modules and %d trails.",
            len(self.graph), len(self.trails),
        )

    # ── Learner roster ─────────────────────────────────────────────────────────

    def add_learner(self, learner: LearnerProfile) -> LearnerProfile:
        """Register a learner. Raises DuplicateLearnerError on id collision."""
        if learner.learner_id in self._learners:
            raise DuplicateLearnerError(learner.learner_id)
        unknown = [m for m in learner.completed_modules if m not in self.graph]
        if learner.current_module is not None:
            unknown.append(learner.current_module)
        self.graph.require(*unknown)
        self._learners[learner.learner_id] = learner
        return learner

    def get_learner(self, learner_id: str) -> LearnerProfile:
        try:
            return self._learners[learner_id]
        except KeyError:
            raise UnknownLearnerError(learner_id) from None

    def get_or_create_learner(self, learner_id: str) -> LearnerProfile:
        """Return the learner, creating a default profile on first sight."""
        learner = self._learners.get(learner_id)
        if learner is None:
            learner = self.add_learner(LearnerProfile(learner_id=learner_id))
            logger.info("Learner %s created on first progress event.", learner_id)
        return learner

    @property
    def learners(self) -> Mapping[str, LearnerProfile]:
        """Read-only view of the roster."""
        return MappingProxyType(self._learners)

    def get_module(self, module_id: str) -> Module:
        return self.graph.get(module_id)

    # ── Learner outcomes ───────────────────────────────────────────────────────

    def record_traversal(
        self,
        from_module: str,
        to_module: str,
        score: float,
        completion_time: int,
        success: bool,
    ) -> PheromoneTrail:
        """Record a real learner moving from_module → to_module."""
        self.graph.require(from_module, to_module)
        if from_module == to_module:
            raise ValueError("A traversal needs two distinct modules.")
        with self._lock:
            trail = self.trails.get(from_module, to_module)
            trail.record_traversal(score, completion_time, success)
        return trail

    def record_progress(
        self,
        learner_id: str,
        module_id: str,
        score: float,
        completion_time: int,
        attempts: int = 1,
        success: Optional[bool] = None,
    ) -> PerformanceRecord:
        """
        Apply one learner progress event.

        Steps:
            1. Resolve the module (UnknownModuleError) and learner (created
               with defaults on first sight).
            2. Append a PerformanceRecord and drift skill.
            3. On success, mark the module completed. If the learner had a
               different current module, record a real traversal on
               current → module.
            4. Move current_module to module_id.

        success=None derives success from the score (≥ 70).
        """
        self.graph.require(module_id)
        with self._lock:
            learner = self.get_or_create_learner(learner_id)
            record = learner.record_performance(module_id, score, completion_time, attempts)
            succeeded = record.success if success is None else success

            previous = learner.current_module
            if succeeded:
                learner.mark_completed(module_id)
                if previous is not None and previous != module_id:
                    self.record_traversal(previous, module_id, score, completion_time, True)

            learner.current_module = module_id
            self.total_learning_events += 1

        logger.debug(
            "Progress: learner=%s module=%s score=%.1f success=%s skill=%.2f",
            learner_id, module_id, score, succeeded, learner.skill_level,
        )
        return record

    # ── Path construction & scoring ────────────────────────────────────────────

    def _spawn_ant(self, learner: LearnerProfile) -> PathAnt:
        return PathAnt(self.graph, self.trails, learner, self.config, self._rng)

    def attractiveness(self, module_id: str, learner_id: str) -> float:
        return PathAnt.attractiveness(self.get_module(module_id), self.get_learner(learner_id))

    def construct_path(self, learner_id: str, target: str) -> List[str]:
        """
        One ant's walk toward *target*. Does not touch pheromone.

        Draws from the shared generator, so it holds the colony lock.
        """
        self.graph.require(target)
        learner = self.get_learner(learner_id)
        with self._lock:
            return self._spawn_ant(learner).construct(target)

    def evaluate_path(self, path: List[str], learner_id: str) -> float:
        self.graph.require(*path)
        return evaluate_path(path, self.get_learner(learner_id), self.graph)

    def next_module_probabilities(self, learner_id: str) -> Dict[str, float]:
        """
        Selection probabilities over the learner's currently available modules.

        Empty when nothing is available.
        """
        learner = self.get_learner(learner_id)
        candidates = [
            m for m in learner.available_modules(self.graph)
            if m.id != learner.current_module
        ]
        return probability_table(self._spawn_ant(learner), learner.current_module, candidates)

    # ── Main colony loop ───────────────────────────────────────────────────────

    def optimize(
        self,
        learner_id: str,
        target: str,
        iterations: Optional[int] = None,
    ) -> OptimizationResult:
        """
        Run the full colony and return the best path found.

        Args:
            learner_id: Registered learner (UnknownLearnerError otherwise).
            target:     Module to reach (UnknownModuleError otherwise).
            iterations: Budget. Defaults to config.max_iterations.

        Returns:
            OptimizationResult. path is empty when no iteration found a route.

        A fault inside one iteration is logged and that iteration skipped;
        the best path found so far is kept.
        """
        self.graph.require(target)
        learner = self.get_learner(learner_id)
        budget = self.config.max_iterations if iterations is None else iterations
        if budget < 1:
            raise ValueError(f"iterations must be ≥ 1, got {budget}")

        rate = self.config.evaporation_rate
        factor = self.config.reinforcement_factor
        threshold = self.config.convergence_threshold
        seed_module = learner.current_module if learner.current_module is not None else target

        best_path: List[str] = []
        best_score: float = 0.0
        converged_at: Optional[int] = None
        failed = 0

        with self._lock:
            start = time.perf_counter()

            for iteration in range(1, budget + 1):
                try:
                    ant = self._spawn_ant(learner)
                    path = ant.construct(target)
                    self.total_paths_generated += 1
                    score = evaluate_path(path, learner, self.graph)

                    if score > best_score:
                        if score - best_score > threshold:
                            converged_at = iteration
                        best_score = score
                        best_path = list(path)

                    # Evaporate BEFORE reinforcing this iteration's path
                    self.trails.evaporate_all(rate)
                    if path:
                        self.trails.reinforce_path([seed_module] + path, score * factor)
                except Exception:
                    failed += 1
                    logger.exception(
                        "optimize: iteration %d failed for learner %s → %s; skipping.",
                        iteration, learner_id, target,
                    )
                    continue

                logger.debug(
                    "optimize: iteration %d path=%s score=%.4f best=%.4f",
                    iteration, path, score, best_score,
                )

            self.optimization_runs += 1
            self.last_run_ms = (time.perf_counter() - start) * 1000.0

        result = OptimizationResult(
            learner_id=learner_id,
            target_module=target,
            path=best_path,
            score=best_score,
            reaches_target=bool(best_path) and best_path[-1] == target,
            iterations_run=budget,
            failed_iterations=failed,
            converged_at=converged_at,
            duration_ms=self.last_run_ms,
        )
        logger.info(
            "optimize: learner %s → %s: path=%s score=%.4f (%d iterations, %.2fms)",
            learner_id, target, best_path, best_score, budget, self.last_run_ms,
        )
        return result

    def __repr__(self) -> str:
        return (
            f"Colony(modules={len(self.graph)}, trails={len(self.trails)}, "
            f"learners={len(self._learners)}, runs={self.optimization_runs})"
        )
