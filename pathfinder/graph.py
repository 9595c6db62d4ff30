"""
pathfinder/graph.py
───────────────────
The module graph: a read-only catalogue of modules keyed by id.

Edges are implicit. Every ordered pair of distinct modules is a possible
transition (the colony keeps a pheromone trail for each), and the
prerequisite sets decide which transitions a learner can actually take.

Ordering
────────
Insertion order is preserved and used everywhere an ordering matters:
candidate lists in the ant, rows/columns of the analytics pheromone matrix.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

from curriculum.shared.models import Module


class ColonyError(Exception):
    """Base class for every precondition failure raised by the colony."""


class UnknownModuleError(ColonyError):
    """
    Raised when a module id is not part of the graph.

    Attributes:
        module_id: The id that could not be resolved.
    """

    def __init__(self, module_id: str, message: str = "") -> None:
        self.module_id = module_id
        super().__init__(message or f"Unknown module: {module_id!r}")


class ModuleGraph:
    """
    Immutable mapping of module id → Module.

    Raises:
        ValueError:         empty module list or duplicate ids.
        UnknownModuleError: a prerequisite references a module not in the graph.
    """

    def __init__(self, modules: Iterable[Module]) -> None:
        ordered: Dict[str, Module] = {}
        for module in modules:
            if module.id in ordered:
                raise ValueError(f"Duplicate module id: {module.id!r}")
            ordered[module.id] = module

        if not ordered:
            raise ValueError("ModuleGraph requires at least one module.")

        for module in ordered.values():
            for prereq in module.prerequisites:
                if prereq not in ordered:
                    raise UnknownModuleError(
                        prereq,
                        f"Module {module.id!r} lists unknown prerequisite {prereq!r}",
                    )

        self._modules = ordered
        self._ids: Tuple[str, ...] = tuple(ordered)

    def get(self, module_id: str) -> Module:
        """Return the module or raise UnknownModuleError."""
        try:
            return self._modules[module_id]
        except KeyError:
            raise UnknownModuleError(module_id) from None

    def require(self, *module_ids: str) -> None:
        """Raise UnknownModuleError for the first id not in the graph."""
        for module_id in module_ids:
            if module_id not in self._modules:
                raise UnknownModuleError(module_id)

    @property
    def ids(self) -> Tuple[str, ...]:
        return self._ids

    def modules_by_tag(self, tag: str) -> List[Module]:
        return [m for m in self._modules.values() if m.has_tag(tag)]

    def dependents(self, module_id: str) -> List[Module]:
        """Modules that list *module_id* as a direct prerequisite."""
        self.require(module_id)
        return [m for m in self._modules.values() if module_id in m.prerequisites]

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"ModuleGraph(modules={len(self._modules)})"
