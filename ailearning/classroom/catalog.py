"""
ContentCatalog - Read-only, ordered access to modules and lessons.

The catalog is built once (usually from bundled YAML via load_catalog) and
never mutated afterwards, so it can be shared by every session.
"""

from functools import lru_cache
from typing import Iterable, Iterator, Optional

from ailearning.schemas import DifficultyLevel, Lab, Lesson, Module

from .loader import load_modules


class ContentCatalog:
    """
    In-memory tree of modules -> lessons -> sections / lab / quiz.

    Modules and each module's lessons are held sorted by `order`. All
    lookups are exact-ID matches. Unknown IDs give None (or an empty
    list), never an error.
    """

    def __init__(self, modules: Iterable[Module]):
        self._modules: list[Module] = [
            module.model_copy(update={"lessons": sorted(module.lessons, key=lambda lesson: lesson.order)})
            for module in sorted(modules, key=lambda module: module.order)
        ]
        self._by_id: dict[str, Module] = {}
        for module in self._modules:
            if module.id in self._by_id:
                raise ValueError(f"Duplicate module id: {module.id}")
            self._by_id[module.id] = module

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    def list_modules(self) -> list[Module]:
        """All modules ordered by their ordering key."""
        return list(self._modules)

    def get_module(self, module_id: str) -> Optional[Module]:
        return self._by_id.get(module_id)

    def list_modules_by_level(self, level: DifficultyLevel) -> list[Module]:
        return [module for module in self._modules if module.level == level]

    def next_module(self, current_id: str) -> Optional[Module]:
        """Module with the lowest order strictly greater than the current one."""
        current = self._by_id.get(current_id)
        if current is None:
            return None
        later = [module for module in self._modules if module.order > current.order]
        return min(later, key=lambda module: module.order, default=None)

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def get_lesson(self, module_id: str, lesson_id: str) -> Optional[Lesson]:
        module = self._by_id.get(module_id)
        if module is None:
            return None
        for lesson in module.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    def next_lesson(self, module_id: str, current_lesson_id: str) -> Optional[Lesson]:
        """Lesson with the lowest order strictly greater than the current one, same module."""
        module = self._by_id.get(module_id)
        current = self.get_lesson(module_id, current_lesson_id)
        if module is None or current is None:
            return None
        later = [lesson for lesson in module.lessons if lesson.order > current.order]
        return min(later, key=lambda lesson: lesson.order, default=None)

    def get_lab(self, module_id: str, lesson_id: str) -> Optional[Lab]:
        lesson = self.get_lesson(module_id, lesson_id)
        return lesson.lab if lesson else None

    def iter_lessons(self) -> Iterator[Lesson]:
        """All lessons, module order then lesson order."""
        for module in self._modules:
            yield from module.lessons

    @property
    def total_lessons(self) -> int:
        return sum(len(module.lessons) for module in self._modules)

    def __len__(self) -> int:
        return len(self._modules)


def load_catalog() -> ContentCatalog:
    """Build a catalog from the bundled content."""
    return ContentCatalog(load_modules())


@lru_cache(maxsize=1)
def get_catalog() -> ContentCatalog:
    """Process-wide catalog, built on first use."""
    return load_catalog()
