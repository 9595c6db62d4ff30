"""
curriculum/control_plane/learning_service.py
────────────────────────────────────────────
LearningService: the control plane in front of one Colony.

Responsibilities
─────────────────
  1. Bootstrap — initialize() loads the module catalogue and config
     (each falling back to built-in defaults) and builds the Colony.
  2. Learners — register, look up, record progress.
  3. Recommendations — run the colony for a learner/target pair, or
     report next-step probabilities.
  4. Metrics — aggregate statistics for observability.

No global colony
─────────────────
The service holds its colony as an instance attribute. Callers that want
one colony per session create one service per session and pass it around.
Every operation before initialize() raises EngineNotInitializedError.

Error contract
───────────────
  Precondition failures (not initialised, unknown module, unknown learner,
  duplicate learner) are raised as ColonyError subclasses.
  "No route found" is NOT an error: recommend_path() returns an
  OptimizationResult whose path is empty.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from curriculum.analytics.insights import colony_statistics
from curriculum.catalog.loader import load_module_graph
from curriculum.shared.config import ConfigSource, load_colony_config
from curriculum.shared.models import (
    ColonyStatistics,
    LearnerPreferences,
    LearnerProfile,
    LearningGoal,
    LearningStyle,
    Module,
    OptimizationResult,
    PerformanceRecord,
    ProgressEvent,
)
from pathfinder.colony import Colony
from pathfinder.graph import ColonyError, ModuleGraph

logger = logging.getLogger(__name__)


class EngineNotInitializedError(ColonyError):
    """
    Raised when the service is used before initialize().

    Caller contract:
        Call initialize() once per session before any other operation.
    """

    def __init__(self, operation: str = "") -> None:
        self.operation = operation
        detail = f" ({operation})" if operation else ""
        super().__init__(f"Learning engine not initialised{detail}; call initialize() first.")


class LearningService:
    """
    Session-scoped control plane around one Colony.

    Public API:
        initialize(modules, config, seed)        → Colony
        register_learner(learner_id, ...)        → LearnerProfile
        get_learner(learner_id)                  → LearnerProfile
        record_progress(event)                   → PerformanceRecord
        recommend_path(learner_id, target, ...)  → OptimizationResult
        next_module_probabilities(learner_id)    → Dict[str, float]
        get_statistics()                         → ColonyStatistics

    Attributes:
        colony : Optional[Colony] — None until initialize().
    """

    def __init__(self) -> None:
        self.colony: Optional[Colony] = None

    # ── Bootstrap ─────────────────────────────────────────────────────────────

    def initialize(
        self,
        modules: Union[None, str, Path, ModuleGraph, Iterable[Module]] = None,
        config: ConfigSource = None,
        seed: Optional[int] = None,
    ) -> Colony:
        """
        Build the colony.

        Args:
            modules: None (built-in catalogue), a path to a JSON/YAML
                     catalogue, a ModuleGraph, or Module definitions.
            config:  None, a mapping or a path; see load_colony_config().
            seed:    RNG seed for reproducible recommendations.

        Calling initialize() again replaces the colony and discards all
        trails and learners.
        """
        if modules is None or isinstance(modules, (str, Path)):
            graph = load_module_graph(modules)
        elif isinstance(modules, ModuleGraph):
            graph = modules
        else:
            graph = ModuleGraph(modules)

        if self.colony is not None:
            logger.warning("LearningService re-initialised; previous colony discarded.")

        self.colony = Colony(graph, config=load_colony_config(config), seed=seed)
        logger.info("LearningService initialised: %r", self.colony)
        return self.colony

    def _require_colony(self, operation: str) -> Colony:
        if self.colony is None:
            raise EngineNotInitializedError(operation)
        return self.colony

    @property
    def is_initialized(self) -> bool:
        return self.colony is not None

    # ── Learners ──────────────────────────────────────────────────────────────

    def register_learner(
        self,
        learner_id: str,
        skill_level: float = 1.0,
        learning_style: LearningStyle = LearningStyle.MIXED,
        completed_modules: Optional[Iterable[str]] = None,
        current_module: Optional[str] = None,
        max_session_minutes: Optional[int] = None,
        learning_goals: Optional[List[LearningGoal]] = None,
    ) -> LearnerProfile:
        """Create and register a learner profile."""
        colony = self._require_colony("register_learner")
        learner = LearnerProfile(
            learner_id=learner_id,
            skill_level=skill_level,
            learning_style=learning_style,
            completed_modules=set(completed_modules or ()),
            current_module=current_module,
            preferences=LearnerPreferences(max_session_minutes=max_session_minutes),
            learning_goals=list(learning_goals or ()),
        )
        colony.add_learner(learner)
        logger.info("Learner %s registered (skill=%.2f, style=%s).",
                    learner_id, skill_level, learning_style.value)
        return learner

    def get_learner(self, learner_id: str) -> LearnerProfile:
        return self._require_colony("get_learner").get_learner(learner_id)

    def get_learners(self) -> List[LearnerProfile]:
        return list(self._require_colony("get_learners").learners.values())

    def get_modules(self) -> List[Module]:
        return list(self._require_colony("get_modules").graph)

    # ── Progress ──────────────────────────────────────────────────────────────

    def record_progress(self, event: Union[ProgressEvent, dict]) -> PerformanceRecord:
        """
        Apply a progress event. A raw dict is validated into a ProgressEvent.

        Unknown learners are created with default settings; unknown modules
        raise UnknownModuleError.
        """
        colony = self._require_colony("record_progress")
        if not isinstance(event, ProgressEvent):
            event = ProgressEvent(**event)
        return colony.record_progress(
            learner_id=event.learner_id,
            module_id=event.module_id,
            score=event.score,
            completion_time=event.completion_time,
            attempts=event.attempts_needed,
            success=event.succeeded,
        )

    # ── Recommendations ───────────────────────────────────────────────────────

    def recommend_path(
        self,
        learner_id: str,
        target_module: str,
        iterations: Optional[int] = None,
    ) -> OptimizationResult:
        """Run the colony for one learner/target pair."""
        colony = self._require_colony("recommend_path")
        result = colony.optimize(learner_id, target_module, iterations=iterations)
        if not result.found:
            logger.info("No route found for learner %s → %s.", learner_id, target_module)
        return result

    def next_module_probabilities(self, learner_id: str) -> Dict[str, float]:
        return self._require_colony("next_module_probabilities").next_module_probabilities(
            learner_id
        )

    # ── Metrics ───────────────────────────────────────────────────────────────

    def get_statistics(self) -> ColonyStatistics:
        return colony_statistics(self._require_colony("get_statistics"))
