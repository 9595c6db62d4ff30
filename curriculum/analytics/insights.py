"""
curriculum/analytics/insights.py
────────────────────────────────
Read-only views over a Colony for reports and dashboards.

Nothing here mutates the colony and nothing takes its lock: a read taken
while optimize() is running may see that run's partially updated
pheromone levels. Reports tolerate that (read-uncommitted).

Serialisation (JSON, CSV, ...) is the caller's job. colony_snapshot()
returns plain Python containers ready for any encoder.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List

import numpy as np
from numpy.typing import NDArray

from curriculum.shared.models import ColonyStatistics, LearnerProfile
from pathfinder.colony import Colony
from pathfinder.pheromone import PheromoneTrail, edges


def colony_statistics(colony: Colony) -> ColonyStatistics:
    """Aggregate trail, learner and run counters."""
    trails = colony.trails.trails()
    levels = np.array([t.pheromone_level for t in trails], dtype=np.float64)
    traversed = [t for t in trails if t.traversal_count > 0]

    return ColonyStatistics(
        module_count=len(colony.graph),
        trail_count=len(trails),
        traversed_trail_count=len(traversed),
        average_pheromone=float(levels.mean()) if levels.size else 0.0,
        max_pheromone=float(levels.max()) if levels.size else 0.0,
        min_pheromone=float(levels.min()) if levels.size else 0.0,
        average_success_rate=(
            sum(t.success_rate for t in traversed) / len(traversed) if traversed else 0.0
        ),
        learner_count=len(colony.learners),
        total_paths_generated=colony.total_paths_generated,
        total_learning_events=colony.total_learning_events,
        optimization_runs=colony.optimization_runs,
    )


def strongest_trails(colony: Colony, limit: int = 10) -> List[PheromoneTrail]:
    """Trails ranked by trail_strength(), strongest first."""
    ranked = sorted(colony.trails.trails(), key=lambda t: t.trail_strength(), reverse=True)
    return ranked[:limit]


def pheromone_matrix(colony: Colony) -> NDArray[np.float64]:
    """(n, n) copy of pheromone levels; rows/cols follow colony.graph.ids."""
    return colony.trails.as_matrix()


def path_strength(colony: Colony, path: List[str]) -> float:
    """Sum of trail_strength() over consecutive edges of *path*."""
    total = 0.0
    for a, b in edges(path):
        trail = colony.trails.get(a, b)
        if trail is not None:
            total += trail.trail_strength()
    return total


def learner_summary(learner: LearnerProfile) -> Dict[str, Any]:
    history = learner.performance_history
    return {
        "learner_id": learner.learner_id,
        "skill_level": learner.skill_level,
        "learning_style": learner.learning_style.value,
        "current_module": learner.current_module,
        "completed_count": len(learner.completed_modules),
        "attempts": len(history),
        "average_score": sum(r.score for r in history) / len(history) if history else 0.0,
        "success_rate": learner.success_rate,
        "recommended_difficulty": learner.recommended_difficulty(),
    }


def module_popularity(colony: Colony) -> Dict[str, int]:
    """Completions per module across all learners; every module present."""
    counts: Counter = Counter()
    for learner in colony.learners.values():
        counts.update(learner.completed_modules)
    return {module_id: counts.get(module_id, 0) for module_id in colony.graph.ids}


def colony_snapshot(colony: Colony) -> Dict[str, Any]:
    """Modules, trails, learners and statistics as plain containers."""
    return {
        "modules": [m.model_dump(mode="json") for m in colony.graph],
        "trails": [t.model_dump(mode="json") for t in colony.trails.trails()],
        "learners": [learner.model_dump(mode="json") for learner in colony.learners.values()],
        "statistics": colony_statistics(colony).model_dump(mode="json"),
    }
