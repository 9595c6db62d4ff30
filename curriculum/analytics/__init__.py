"""
curriculum/analytics — read-only reporting over a Colony.

Public API:
    colony_statistics   — aggregate counters (ColonyStatistics)
    strongest_trails    — trails ranked by trail strength
    pheromone_matrix    — numpy copy of pheromone levels
    path_strength       — summed trail strength along a path
    learner_summary     — per-learner progress digest
    module_popularity   — completions per module
    colony_snapshot     — plain-container dump for exporters
"""

from curriculum.analytics.insights import (
    colony_snapshot,
    colony_statistics,
    learner_summary,
    module_popularity,
    path_strength,
    pheromone_matrix,
    strongest_trails,
)

__all__ = [
    "colony_snapshot",
    "colony_statistics",
    "learner_summary",
    "module_popularity",
    "path_strength",
    "pheromone_matrix",
    "strongest_trails",
]
