"""
pathfinder — Ant Colony Optimisation engine for learning-path recommendation.

Public API:
    Colony               — owns graph, trails and learners; runs optimize()
    ModuleGraph          — read-only module catalogue
    PheromoneStore       — one trail per ordered module pair
    PathAnt              — builds one candidate path
    evaluate_path        — scores a path for a learner
    ColonyError          — base class of precondition failures
    UnknownModuleError, UnknownLearnerError, DuplicateLearnerError

Usage:
    from pathfinder import Colony

    colony = Colony(modules, seed=42)
    colony.add_learner(profile)
    result = colony.optimize(profile.learner_id, "oop")
    if not result.found:
        ...                      # "no route found" — not an error
"""

from pathfinder.ant import PathAnt, evaluate_path
from pathfinder.colony import Colony, DuplicateLearnerError, UnknownLearnerError
from pathfinder.graph import ColonyError, ModuleGraph, UnknownModuleError
from pathfinder.pheromone import PheromoneStore, PheromoneTrail

__all__ = [
    "Colony",
    "ColonyError",
    "DuplicateLearnerError",
    "ModuleGraph",
    "PathAnt",
    "PheromoneStore",
    "PheromoneTrail",
    "UnknownLearnerError",
    "UnknownModuleError",
    "evaluate_path",
]
