"""
curriculum/shared/config.py
───────────────────────────
ColonyConfig: the tunable constants of the path-finding colony.

Sources
───────
load_colony_config() accepts:
  • None            → all defaults.
  • a mapping       → partial overrides, camelCase or snake_case keys.
  • a file path     → .json, .yaml or .yml holding such a mapping.

A missing or malformed source is never fatal: a WARNING is logged and
the defaults are used. A single bad field in an otherwise valid mapping
also falls back to the full default set; mixing half-valid overrides
with defaults would hide the typo.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ConfigSource = Union[None, str, Path, Mapping[str, Any]]


class ColonyConfig(BaseModel):
    """
    Colony hyperparameters.

    alpha                 → pheromone exponent in the selection weight.
    beta                  → attractiveness exponent. beta > alpha lets the
                            learner heuristic dominate while trails are flat.
    evaporation_rate      → fraction of pheromone lost by every trail per
                            iteration. Strictly between 0 and 1.
    reinforcement_factor  → deposit on a path edge = path score × factor.
    max_iterations        → default iteration budget for optimize().
    convergence_threshold → minimum best-score improvement that counts as
                            progress when reporting converged_at.
    max_path_length       → hard cap on modules per constructed path.
    initial_pheromone     → level every trail starts at.
    default_pheromone     → level assumed for a pair with no trail record.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    alpha: float = Field(1.0, ge=0.0)
    beta: float = Field(2.0, ge=0.0)
    evaporation_rate: float = Field(0.1, gt=0.0, lt=1.0, alias="evaporationRate")
    reinforcement_factor: float = Field(1.0, ge=0.0, alias="reinforcementFactor")
    max_iterations: int = Field(100, ge=1, alias="maxIterations")
    convergence_threshold: float = Field(0.001, ge=0.0, alias="convergenceThreshold")
    max_path_length: int = Field(10, ge=1, alias="maxPathLength")
    initial_pheromone: float = Field(1.0, gt=0.0, alias="initialPheromone")
    default_pheromone: float = Field(0.5, gt=0.0, alias="defaultPheromone")


def _read_mapping(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(fh)
        return json.load(fh)


def load_colony_config(source: ConfigSource = None) -> ColonyConfig:
    """
    Build a ColonyConfig from an optional source, falling back to defaults.

    Returns:
        ColonyConfig. Never raises for missing or malformed input.
    """
    if source is None:
        return ColonyConfig()

    if isinstance(source, Mapping):
        data: Any = dict(source)
        origin = "mapping"
    else:
        path = Path(source)
        origin = str(path)
        if not path.is_file():
            logger.warning("Colony config %s not found; using defaults.", origin)
            return ColonyConfig()
        try:
            data = _read_mapping(path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.warning("Colony config %s unreadable (%s); using defaults.", origin, e)
            return ColonyConfig()

    if data is None:
        return ColonyConfig()
    if not isinstance(data, Mapping):
        logger.warning(
            "Colony config %s must be a mapping, got %s; using defaults.",
            origin, type(data).__name__,
        )
        return ColonyConfig()

    try:
        return ColonyConfig.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "Colony config %s invalid (%d error(s)); using defaults.",
            origin, e.error_count(),
        )
        return ColonyConfig()
