"""
curriculum/control_plane — session-level entry point.

Public API:
    LearningService            — owns one Colony; learners, progress, recommendations
    EngineNotInitializedError  — raised before LearningService.initialize()
"""

from curriculum.control_plane.learning_service import (
    EngineNotInitializedError,
    LearningService,
)

__all__ = ["EngineNotInitializedError", "LearningService"]
