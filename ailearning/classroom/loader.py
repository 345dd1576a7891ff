"""
Content loader - Build catalog modules from bundled YAML content.

Each file under ailearning/content/modules/ describes one module with its
lessons, sections, optional lab and optional quiz. Loading validates:
- Unique module IDs, and unique lesson IDs within a module
- Prerequisites reference known modules
- No circular prerequisites
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Any

from ailearning.schemas import Lab, Lesson, Module
from ailearning.utils import get_yaml_files, load_yaml, parse_yaml

logger = logging.getLogger(__name__)


CONTENT_PACKAGE = "ailearning.content"
MODULES_DIR = "modules"


def _by_order(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(items, key=lambda item: int(item.get("order", 0)))


def _lab_from_dict(raw: dict[str, Any]) -> Lab:
    data = dict(raw)
    data["hints"] = _by_order(data.get("hints") or [])
    return Lab.model_validate(data)


def _lesson_from_dict(module_id: str, raw: dict[str, Any]) -> Lesson:
    """Build a lesson, stamping the parent module ID."""
    data = dict(raw)
    declared = data.get("module_id")
    if declared and declared != module_id:
        raise ValueError(
            f"Lesson '{data.get('id', '<unknown>')}' declares module '{declared}' "
            f"but is listed under '{module_id}'."
        )
    data["module_id"] = module_id
    data["sections"] = _by_order(data.get("sections") or [])
    if data.get("lab"):
        data["lab"] = _lab_from_dict(data["lab"])
    return Lesson.model_validate(data)


def _module_from_dict(raw: dict[str, Any]) -> Module:
    """Build a module from raw YAML content."""
    data = dict(raw)
    if not data.get("id"):
        raise ValueError("Module definition is missing an 'id'.")
    module_id = str(data["id"])
    lessons = [_lesson_from_dict(module_id, item) for item in data.get("lessons") or []]
    lessons.sort(key=lambda lesson: lesson.order)

    seen: set[str] = set()
    for lesson in lessons:
        if lesson.id in seen:
            raise ValueError(f"Duplicate lesson id '{lesson.id}' in module '{module_id}'.")
        seen.add(lesson.id)

    data["lessons"] = lessons
    return Module.model_validate(data)


def load_modules() -> list[Module]:
    """Load bundled modules."""
    modules: dict[str, Module] = {}
    content_dir = resources.files(CONTENT_PACKAGE).joinpath(MODULES_DIR)
    entries = sorted(
        (entry for entry in content_dir.iterdir() if entry.name.endswith((".yaml", ".yml"))),
        key=lambda entry: entry.name,
    )
    for entry in entries:
        raw = parse_yaml(entry.read_text(encoding="utf-8"), source=entry.name)
        _add_module(modules, _module_from_dict(raw))
    _validate_module_dependencies(modules)
    logger.info(f"Loaded {len(modules)} bundled modules")
    return list(modules.values())


def load_modules_from_dir(path: Path) -> list[Module]:
    """Load modules from a directory for tests/tools."""
    modules: dict[str, Module] = {}
    for file_path in get_yaml_files(path):
        _add_module(modules, _module_from_dict(load_yaml(file_path)))
    _validate_module_dependencies(modules)
    return list(modules.values())


def _add_module(modules: dict[str, Module], module: Module) -> None:
    if module.id in modules:
        raise ValueError(f"Duplicate module id: {module.id}")
    modules[module.id] = module


def _validate_module_dependencies(modules: dict[str, Module]) -> None:
    """Validate prerequisites exist and the dependency graph has no cycles."""
    for module in modules.values():
        for prerequisite in module.prerequisites:
            if prerequisite not in modules:
                raise ValueError(f"Module '{module.id}' has unknown prerequisite '{prerequisite}'.")

    visiting: set[str] = set()
    visited: set[str] = set()

    def visit(module_id: str, path: list[str]) -> None:
        if module_id in visited:
            return
        if module_id in visiting:
            cycle = path[path.index(module_id):] + [module_id]
            raise ValueError(f"Circular module prerequisite detected: {' -> '.join(cycle)}")

        visiting.add(module_id)
        path.append(module_id)
        for prerequisite in modules[module_id].prerequisites:
            visit(prerequisite, path)
        path.pop()
        visiting.remove(module_id)
        visited.add(module_id)

    for module_id in modules:
        visit(module_id, [])
