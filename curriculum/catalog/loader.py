"""
curriculum/catalog/loader.py
────────────────────────────
Module catalogue loading: turns a JSON/YAML definition file into the
Module list a Colony is built from.

Accepted file shapes
─────────────────────
Mapping form (id is the key):

    python-basics:
      title: Python Basics
      difficulty: 1
      estimatedTime: 60
      prerequisites: []
      tags: [fundamentals]

List form (id is a field):

    [{"id": "python-basics", "title": "Python Basics", ...}]

Both snake_case and camelCase field names are accepted
(estimated_time / estimatedTime, learning_objectives / learningObjectives).

Failure policy
───────────────
Missing file, unreadable file, wrong shape, invalid module fields or a
prerequisite that points nowhere → WARNING and the built-in defaults.
Loading never raises.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from curriculum.shared.models import Module
from pathfinder.graph import ModuleGraph, UnknownModuleError

logger = logging.getLogger(__name__)

_FIELD_ALIASES: Dict[str, str] = {
    "estimatedTime": "estimated_time",
    "learningObjectives": "learning_objectives",
}


def default_modules() -> List[Module]:
    """
    The built-in 8-module programming catalogue.

    Prerequisite chain:
        python-basics → control-flow → functions → data-structures → oop
                                      functions → file-io
                                data-structures → gui-design
                                            oop → testing-project
    """
    return [
        Module(
            id="python-basics",
            title="Introduction to Python Fundamentals",
            difficulty=1,
            estimated_time=45,
            tags={"fundamentals", "theory"},
            learning_objectives=("Variables and types", "Expressions", "Running scripts"),
            category="fundamentals",
        ),
        Module(
            id="control-flow",
            title="Control Flow",
            difficulty=1,
            estimated_time=40,
            prerequisites={"python-basics"},
            tags={"fundamentals"},
            learning_objectives=("Conditionals", "Loops"),
            category="fundamentals",
        ),
        Module(
            id="functions",
            title="Functions Practice Exercises",
            difficulty=2,
            estimated_time=50,
            prerequisites={"control-flow"},
            tags={"hands-on"},
            learning_objectives=("Defining functions", "Arguments", "Scope"),
            category="fundamentals",
        ),
        Module(
            id="data-structures",
            title="Data Structures",
            difficulty=3,
            estimated_time=75,
            prerequisites={"functions"},
            tags={"core"},
            learning_objectives=("Lists and tuples", "Dictionaries", "Sets"),
            category="core",
        ),
        Module(
            id="file-io",
            title="File I/O Workshop",
            difficulty=2,
            estimated_time=45,
            prerequisites={"functions"},
            tags={"hands-on", "practical"},
            learning_objectives=("Reading files", "Writing files", "Context managers"),
            category="core",
        ),
        Module(
            id="oop",
            title="Object-Oriented Programming Concepts",
            difficulty=4,
            estimated_time=90,
            prerequisites={"data-structures"},
            tags={"theory"},
            learning_objectives=("Classes", "Inheritance", "Composition"),
            category="advanced",
        ),
        Module(
            id="gui-design",
            title="GUI and Interface Design",
            difficulty=3,
            estimated_time=80,
            prerequisites={"data-structures"},
            tags={"visual"},
            learning_objectives=("Widgets", "Layouts", "Event loops"),
            category="applications",
        ),
        Module(
            id="testing-project",
            title="Testing Project",
            difficulty=5,
            estimated_time=120,
            prerequisites={"oop"},
            tags={"hands-on", "project"},
            learning_objectives=("Unit tests", "Fixtures", "Test-driven workflow"),
            category="advanced",
        ),
    ]


def _normalise(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {_FIELD_ALIASES.get(k, k): v for k, v in raw.items()}


def parse_modules(data: Any) -> List[Module]:
    """
    Convert a decoded definition payload into validated Modules.

    Raises:
        ValueError:       wrong payload shape.
        ValidationError:  a module fails field validation.
    """
    if isinstance(data, dict):
        entries = []
        for module_id, fields in data.items():
            if not isinstance(fields, dict):
                raise ValueError(f"Module {module_id!r} must be a mapping")
            entries.append({"id": module_id, **fields})
    elif isinstance(data, list):
        entries = data
    else:
        raise ValueError(f"Expected a mapping or list of modules, got {type(data).__name__}")

    modules: List[Module] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Module entry must be a mapping, got {type(entry).__name__}")
        modules.append(Module.model_validate(_normalise(entry)))
    return modules


def load_module_graph(path: Optional[Union[str, Path]] = None) -> ModuleGraph:
    """
    Build the ModuleGraph from *path*, or from the defaults.

    Never raises: any problem with the file is logged and the built-in
    catalogue is used instead.
    """
    if path is None:
        return ModuleGraph(default_modules())

    source = Path(path)
    if not source.is_file():
        logger.warning("Module catalogue %s not found; using %d built-in modules.",
                       source, len(default_modules()))
        return ModuleGraph(default_modules())

    try:
        with source.open("r", encoding="utf-8") as fh:
            if source.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(fh)
            else:
                data = json.load(fh)
        graph = ModuleGraph(parse_modules(data))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("Module catalogue %s unreadable (%s); using defaults.", source, e)
        return ModuleGraph(default_modules())
    except (ValidationError, ValueError, UnknownModuleError) as e:
        logger.warning("Module catalogue %s malformed (%s); using defaults.", source, e)
        return ModuleGraph(default_modules())

    logger.info("Loaded %d modules from %s.", len(graph), source)
    return graph
