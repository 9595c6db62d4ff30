"""
curriculum/catalog — module catalogue loading.

Public API:
    default_modules()     — built-in 8-module catalogue
    parse_modules(data)   — decoded JSON/YAML payload → List[Module]
    load_module_graph()   — file → ModuleGraph, falling back to defaults
"""

from curriculum.catalog.loader import default_modules, load_module_graph, parse_modules

__all__ = ["default_modules", "load_module_graph", "parse_modules"]
