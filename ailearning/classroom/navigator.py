"""
Navigator - Module availability, lesson sequencing and completion flow.

Provides:
- Module availability from prerequisites and progress
- Next lesson navigation across module boundaries
- Course tree with status indicators
- Lesson completion with module completion and achievements
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ailearning.schemas import Achievement, Lesson, Module

from .catalog import ContentCatalog
from .progress import ProgressTracker


class ModuleAvailability(str, Enum):
    """Module availability status for UI display."""
    LOCKED = "locked"           # Prerequisites not met
    AVAILABLE = "available"     # Can start
    IN_PROGRESS = "in_progress" # Started but not completed
    COMPLETED = "completed"     # Every lesson finished


@dataclass
class NavigationLesson:
    """Lesson with progress flags."""
    lesson: Lesson
    is_started: bool
    is_completed: bool


@dataclass
class NavigationModule:
    """Module with lessons and navigation metadata."""
    module: Module
    availability: ModuleAvailability
    missing_prerequisites: list[str]  # IDs of unfinished prerequisite modules
    lessons: list[NavigationLesson]
    completed_count: int
    total_count: int


class Navigator:
    """
    Navigate the course with prerequisite checking.

    Combines ContentCatalog (content) with ProgressTracker (learner state).
    """

    def __init__(self, catalog: ContentCatalog, progress: ProgressTracker):
        self.catalog = catalog
        self.progress = progress

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def is_module_completed(self, module_id: str) -> bool:
        module = self.catalog.get_module(module_id)
        if module is None:
            return False
        module_progress = self.progress.get_progress().module_progress.get(module_id)
        if module_progress is None:
            return False
        if module_progress.is_completed:
            return True
        lesson_ids = {lesson.id for lesson in module.lessons}
        return bool(lesson_ids) and lesson_ids <= module_progress.completed_lesson_ids

    def get_module_availability(self, module_id: str) -> tuple[ModuleAvailability, list[str]]:
        """
        Check module availability based on progress and prerequisites.

        Returns:
            Tuple of (availability status, list of missing prerequisite IDs)
        """
        module = self.catalog.get_module(module_id)
        if module is None:
            return ModuleAvailability.LOCKED, []

        if self.is_module_completed(module_id):
            return ModuleAvailability.COMPLETED, []

        module_progress = self.progress.get_progress().module_progress.get(module_id)
        if module_progress is not None and module_progress.is_started:
            return ModuleAvailability.IN_PROGRESS, []

        missing = [
            prereq for prereq in module.prerequisites
            if not self.is_module_completed(prereq)
        ]
        if missing:
            return ModuleAvailability.LOCKED, missing

        return ModuleAvailability.AVAILABLE, []

    def is_module_available(self, module_id: str) -> bool:
        availability, _ = self.get_module_availability(module_id)
        return availability != ModuleAvailability.LOCKED

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def get_next_lesson(self, module_id: str, lesson_id: str) -> Optional[Lesson]:
        """Next lesson in the module, else the first lesson of the next available module."""
        lesson = self.catalog.next_lesson(module_id, lesson_id)
        if lesson is not None:
            return lesson

        next_module = self.catalog.next_module(module_id)
        while next_module is not None:
            if self.is_module_available(next_module.id) and next_module.lessons:
                return next_module.lessons[0]
            next_module = self.catalog.next_module(next_module.id)
        return None

    def get_recommended_lesson(self) -> Optional[Lesson]:
        """
        Get the recommended lesson for the learner.

        Priority:
        1. First started-but-unfinished lesson in an available module
        2. First unfinished lesson in an available module
        3. First lesson of the course
        """
        fallback: Optional[Lesson] = None
        for module in self.catalog.list_modules():
            if not self.is_module_available(module.id):
                continue
            for lesson in module.lessons:
                lesson_progress = self.progress.get_lesson_progress(module.id, lesson.id)
                if lesson_progress and lesson_progress.is_started and not lesson_progress.is_completed:
                    return lesson
                if fallback is None and not (lesson_progress and lesson_progress.is_completed):
                    fallback = lesson

        if fallback is not None:
            return fallback
        return next(self.catalog.iter_lessons(), None)

    def get_lesson_position(self, module_id: str, lesson_id: str) -> tuple[int, int]:
        """
        Get lesson position within its module as (current, total).

        Returns (0, total) if lesson not found.
        """
        module = self.catalog.get_module(module_id)
        if module is None:
            return (0, 0)
        for idx, lesson in enumerate(module.lessons):
            if lesson.id == lesson_id:
                return (idx + 1, len(module.lessons))
        return (0, len(module.lessons))

    # -------------------------------------------------------------------------
    # Course tree
    # -------------------------------------------------------------------------

    def get_navigation_tree(self) -> list[NavigationModule]:
        """Full course tree, each module annotated with availability and lesson flags."""
        tree = []
        for module in self.catalog.list_modules():
            availability, missing = self.get_module_availability(module.id)
            nav_lessons = []
            completed_count = 0
            for lesson in module.lessons:
                lesson_progress = self.progress.get_lesson_progress(module.id, lesson.id)
                is_completed = bool(lesson_progress and lesson_progress.is_completed)
                if is_completed:
                    completed_count += 1
                nav_lessons.append(NavigationLesson(
                    lesson=lesson,
                    is_started=bool(lesson_progress and lesson_progress.is_started),
                    is_completed=is_completed,
                ))

            tree.append(NavigationModule(
                module=module,
                availability=availability,
                missing_prerequisites=missing,
                lessons=nav_lessons,
                completed_count=completed_count,
                total_count=len(module.lessons),
            ))
        return tree

    def get_status_indicator(self, module_id: str, lesson_id: str) -> str:
        """
        Get status indicator for sidebar display.

        Returns:
            ✓ for completed
            → for started
            ○ for available
            ◌ for locked
        """
        if not self.is_module_available(module_id):
            return "◌"
        lesson_progress = self.progress.get_lesson_progress(module_id, lesson_id)
        if lesson_progress and lesson_progress.is_completed:
            return "✓"
        if lesson_progress and lesson_progress.is_started:
            return "→"
        return "○"

    # -------------------------------------------------------------------------
    # Lesson actions
    # -------------------------------------------------------------------------

    def start_lesson(self, module_id: str, lesson_id: str) -> bool:
        """
        Start a lesson if its module is available.

        Returns True if lesson was started, False if unknown or locked.
        """
        if self.catalog.get_lesson(module_id, lesson_id) is None:
            return False
        if not self.is_module_available(module_id):
            return False
        self.progress.mark_lesson_started(module_id, lesson_id)
        return True

    def complete_lesson(self, module_id: str, lesson_id: str) -> Optional[Lesson]:
        """
        Complete a lesson and return the lesson to go to next.

        Finishing the last open lesson of a module completes the module and
        awards its achievement.

        Returns:
            Next lesson, or None if the course is complete
        """
        self.progress.mark_lesson_completed(module_id, lesson_id)

        module = self.catalog.get_module(module_id)
        module_progress = self.progress.get_progress().module_progress.get(module_id)
        if module is not None and module_progress is not None and not module_progress.is_completed:
            if self.is_module_completed(module_id):
                self.progress.mark_module_completed(module_id)
                self.progress.award_achievement(Achievement(
                    id=f"module-complete-{module.id}",
                    title=f"{module.title} Complete",
                    description=f"Finished every lesson in {module.title}",
                    icon=module.icon,
                ))

        return self.get_next_lesson(module_id, lesson_id)

    # -------------------------------------------------------------------------
    # Progress summary
    # -------------------------------------------------------------------------

    def get_progress_summary(self) -> dict:
        """Get progress summary for display."""
        tree = self.get_navigation_tree()
        completed = sum(nav_module.completed_count for nav_module in tree)

        return {
            "total_lessons": self.catalog.total_lessons,
            "completed": completed,
            "completion_percent": self.progress.get_overall_progress_percentage(self.catalog),
            "modules": [
                {
                    "id": nav_module.module.id,
                    "title": nav_module.module.title,
                    "availability": nav_module.availability.value,
                    "completed": nav_module.completed_count,
                    "total": nav_module.total_count,
                }
                for nav_module in tree
            ],
            "achievements": len(self.progress.get_progress().achievements),
        }
